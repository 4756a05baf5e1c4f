# images.py  (Pexels image search, API key in PEXELS_API_KEY)
import logging
from typing import List, Optional

import requests

from schemas import ImageOut

logger = logging.getLogger("infoquest.images")

PEXELS_URL = "https://api.pexels.com/v1/search"
DEFAULT_COUNT = 6


def _to_image(photo: dict, query: str) -> ImageOut:
    src = photo.get("src") or {}
    return ImageOut(
        id=photo.get("id") or 0,
        url=photo.get("url") or "",
        src={k: v for k, v in src.items() if isinstance(v, str)},
        alt=photo.get("alt") or query,
        photographer=photo.get("photographer") or "",
        photographer_url=photo.get("photographer_url") or "",
    )


def search_images(query: str, api_key: Optional[str], count: int = DEFAULT_COUNT, timeout: float = 10.0) -> List[ImageOut]:
    if not api_key:
        return []

    try:
        resp = requests.get(
            PEXELS_URL,
            params={"query": query, "per_page": count},
            headers={"Authorization": api_key},
            timeout=timeout,
        )
        if resp.status_code != 200:
            logger.warning("Pexels returned HTTP %s", resp.status_code)
            return []
        photos = resp.json().get("photos") or []
        return [_to_image(p, query) for p in photos if isinstance(p, dict)]
    except Exception as e:
        logger.error("Pexels API error: %s", e)
        return []
