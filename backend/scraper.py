# scraper.py
import logging
from typing import List
from urllib.parse import parse_qs, urlparse

import requests
from bs4 import BeautifulSoup

from schemas import ResourceOut

logger = logging.getLogger("infoquest.search")

SEARCH_URL = "https://html.duckduckgo.com/html/"
MAX_CONTEXT_RESULTS = 10


class SearchError(Exception):
    pass


# Browser-like headers so DuckDuckGo serves the HTML results page
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def _fetch(query: str, timeout: float) -> str:
    try:
        resp = requests.post(SEARCH_URL, data={"q": query, "kp": "1"}, headers=HEADERS, timeout=timeout)
    except requests.RequestException as e:
        raise SearchError(f"Search request failed: {e}") from e
    if resp.status_code != 200:
        raise SearchError(f"Search failed: HTTP {resp.status_code}")
    return resp.text


def _unwrap_url(href: str) -> str:
    """DuckDuckGo links go through //duckduckgo.com/l/?uddg=<target>."""
    if not href:
        return "#"
    parsed = urlparse(href)
    if parsed.path.startswith("/l/"):
        target = parse_qs(parsed.query).get("uddg")
        if target:
            return target[0]
    if href.startswith("//"):
        return "https:" + href
    return href


def parse_results(html: str) -> List[ResourceOut]:
    soup = BeautifulSoup(html, "html.parser")

    results = []
    for el in soup.select("div.result"):
        link = el.select_one("a.result__a")
        if link is None:
            continue
        snippet_tag = el.select_one(".result__snippet")
        results.append(ResourceOut(
            title=link.get_text(" ", strip=True) or "Untitled",
            url=_unwrap_url(link.get("href", "")),
            snippet=snippet_tag.get_text(" ", strip=True) if snippet_tag else "",
        ))
    return results


def search_web(query: str, timeout: float = 10.0) -> List[ResourceOut]:
    """Web results for the query; [] when the search fails for any reason."""
    try:
        return parse_results(_fetch(query, timeout))
    except Exception as e:
        logger.error("Search error: %s", e)
        return []


def format_search_context(results: List[ResourceOut]) -> str:
    """Numbered results with indented URL and snippet lines, separated by blank lines."""
    return "\n\n".join(
        f"{i + 1}. {r.title}\n   URL: {r.url}\n   {r.snippet or ''}"
        for i, r in enumerate(results[:MAX_CONTEXT_RESULTS])
    )
