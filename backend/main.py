# main.py
import asyncio
import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from config import Settings, get_settings
from images import search_images
from llm import ProviderAdapter
from pdf import build_pdf, pdf_filename
from pipeline import build_study_content
import schemas
from scraper import format_search_context, search_web

MAX_QUERY_CHARS = 200
MAX_RESOURCES = 8

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger("infoquest.api")

# -----------------------------------------------------------------------------
# App & CORS
# -----------------------------------------------------------------------------
app = FastAPI(title="Info Quest – AI Study Companion")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_adapter = None


def get_adapter(settings: Settings = Depends(get_settings)) -> ProviderAdapter:
    global _adapter
    if _adapter is None:
        _adapter = ProviderAdapter.from_settings(settings)
    return _adapter


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# LLM smoke test (quick check that a provider answers)
# -----------------------------------------------------------------------------
@app.get("/api/llm-test")
def llm_test(adapter: ProviderAdapter = Depends(get_adapter)):
    return adapter.ping()


# -----------------------------------------------------------------------------
# Search smoke test (quick check that web search works)
# -----------------------------------------------------------------------------
@app.post("/api/search")
def search_only(payload: schemas.SearchIn, settings: Settings = Depends(get_settings)):
    results = search_web(payload.query.strip()[:MAX_QUERY_CHARS], timeout=settings.search_timeout)
    return {
        "ok": bool(results),
        "count": len(results),
        "context": format_search_context(results),
    }


# -----------------------------------------------------------------------------
# Query (search + images in parallel, then AI + normalize)
# -----------------------------------------------------------------------------
@app.post("/api/query", response_model=schemas.QueryOut, response_model_exclude_none=True)
async def query(
    payload: schemas.QueryIn,
    settings: Settings = Depends(get_settings),
    adapter: ProviderAdapter = Depends(get_adapter),
):
    if not payload.query or not isinstance(payload.query, str):
        raise HTTPException(status_code=400, detail="Query is required")

    topic = payload.query.strip()[:MAX_QUERY_CHARS]
    if not topic:
        raise HTTPException(status_code=400, detail="Query cannot be empty")

    try:
        # 1) Search and images don't depend on the AI
        results, images = await asyncio.gather(
            run_in_threadpool(search_web, topic, settings.search_timeout),
            run_in_threadpool(search_images, topic, settings.pexels_api_key, timeout=settings.search_timeout),
        )

        # 2) AI generation uses the search results as context
        context_text = format_search_context(results)
        content = await run_in_threadpool(build_study_content, topic, context_text, payload.difficulty, adapter)
    except Exception:
        logger.exception("Query API error")
        raise HTTPException(status_code=500, detail="Failed to process query. Please try again.")

    return schemas.QueryOut(
        query=topic,
        images=images,
        resources=results[:MAX_RESOURCES],
        **content.model_dump(),
    )


# -----------------------------------------------------------------------------
# PDF export
# -----------------------------------------------------------------------------
@app.post("/api/export/pdf")
def export_pdf(payload: schemas.ExportIn):
    data = build_pdf(payload)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(payload.query)}"'},
    )
