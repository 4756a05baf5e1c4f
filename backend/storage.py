# storage.py
"""
Key-value helpers for bookmarks, history, collections and the study planner.

Values are JSON strings under fixed keys in any MutableMapping[str, str]
(a dict, a shelve, a browser-style localStorage bridge). One writer at a
time is assumed; unreadable values read back as the defaults.

No route uses this module. It is a library for a client-side bridge (a
browser localStorage proxy, a desktop shell) that keeps per-user state
outside the API.
"""
import json
import logging
import time
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, MutableMapping, Optional

logger = logging.getLogger("infoquest.storage")

KEYS = {
    "bookmarks": "infoquest-bookmarks",
    "history": "infoquest-history",
    "collections": "infoquest-collections",
    "study": "infoquest-study",
}

MAX_HISTORY = 50
MAX_BOOKMARKS = 100
STREAK_BADGES = ((7, "week"), (30, "month"))


def default_study() -> Dict[str, Any]:
    return {"streak": 0, "lastStudyDate": "", "goals": [], "badges": []}


class StudyStore:
    def __init__(self, backend: MutableMapping[str, str], clock: Optional[Callable[[], float]] = None):
        self.backend = backend
        self.clock = clock or time.time

    # --- raw access
    def _read(self, key: str, default: Any) -> Any:
        raw = self.backend.get(key)
        if not raw:
            return default
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable value under %s", key)
            return default
        return value if isinstance(value, type(default)) else default

    def _read_records(self, key: str) -> List[Dict[str, Any]]:
        return [item for item in self._read(key, []) if isinstance(item, dict)]

    def _write(self, key: str, value: Any) -> None:
        self.backend[key] = json.dumps(value)

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _today(self) -> date:
        return date.fromtimestamp(self.clock())

    # --- History
    def get_history(self) -> List[Dict[str, Any]]:
        return self._read_records(KEYS["history"])[:MAX_HISTORY]

    def add_to_history(self, query: str) -> None:
        query = (query or "").strip()
        if not query:
            return
        items = [h for h in self.get_history() if str(h.get("query", "")).lower() != query.lower()]
        items.insert(0, {"query": query, "timestamp": self._now_ms()})
        self._write(KEYS["history"], items[:MAX_HISTORY])

    def clear_history(self) -> None:
        self.backend.pop(KEYS["history"], None)

    # --- Bookmarks
    def get_bookmarks(self) -> List[Dict[str, Any]]:
        return self._read_records(KEYS["bookmarks"])

    def is_bookmarked(self, query: str) -> bool:
        query = (query or "").strip().lower()
        return any(str(b.get("query", "")).lower() == query for b in self.get_bookmarks())

    def toggle_bookmark(self, query: str) -> bool:
        """Add or remove a bookmark; returns True when the query is now bookmarked."""
        query = (query or "").strip()
        if not query:
            return False
        items = self.get_bookmarks()
        kept = [b for b in items if str(b.get("query", "")).lower() != query.lower()]
        if len(kept) != len(items):
            self._write(KEYS["bookmarks"], kept)
            return False
        kept.insert(0, {"query": query, "timestamp": self._now_ms()})
        self._write(KEYS["bookmarks"], kept[:MAX_BOOKMARKS])
        return True

    # --- Collections
    def get_collections(self) -> List[Dict[str, Any]]:
        return self._read_records(KEYS["collections"])

    def create_collection(self, name: str) -> Dict[str, Any]:
        items = self.get_collections()
        now = self._now_ms()
        existing = {c.get("id") for c in items}
        collection_id = f"c{now}"
        n = 1
        while collection_id in existing:
            collection_id = f"c{now}-{n}"
            n += 1
        collection = {"id": collection_id, "name": name.strip(), "queries": [], "createdAt": now}
        items.append(collection)
        self._write(KEYS["collections"], items)
        return collection

    def _find_collection(self, items: List[Dict[str, Any]], collection_id: str) -> Optional[Dict[str, Any]]:
        return next((c for c in items if c.get("id") == collection_id), None)

    def add_to_collection(self, collection_id: str, query: str) -> None:
        query = (query or "").strip()
        items = self.get_collections()
        collection = self._find_collection(items, collection_id)
        if collection is None or not query:
            return
        queries = collection.get("queries")
        if not isinstance(queries, list):
            queries = collection["queries"] = []
        if query not in queries:
            queries.append(query)
            self._write(KEYS["collections"], items)

    def remove_from_collection(self, collection_id: str, query: str) -> None:
        items = self.get_collections()
        collection = self._find_collection(items, collection_id)
        if collection is None:
            return
        queries = collection.get("queries")
        collection["queries"] = [q for q in queries if q != query] if isinstance(queries, list) else []
        self._write(KEYS["collections"], items)

    # --- Study planner
    def get_study_data(self) -> Dict[str, Any]:
        data = default_study()
        data.update(self._read(KEYS["study"], {}))

        # each field falls back to its default when it has the wrong type
        streak = data["streak"]
        data["streak"] = streak if isinstance(streak, int) and not isinstance(streak, bool) and streak > 0 else 0
        if not isinstance(data["lastStudyDate"], str):
            data["lastStudyDate"] = ""
        goals = data["goals"] if isinstance(data["goals"], list) else []
        data["goals"] = [g for g in goals if isinstance(g, dict)]
        badges = data["badges"] if isinstance(data["badges"], list) else []
        data["badges"] = [b for b in badges if isinstance(b, str)]
        return data

    def record_study_session(self) -> Dict[str, Any]:
        """Advance the daily streak; a second call on the same day changes nothing."""
        data = self.get_study_data()
        today = self._today()
        if data["lastStudyDate"] == today.isoformat():
            return data

        yesterday = (today - timedelta(days=1)).isoformat()
        streak = data["streak"] + 1 if data["lastStudyDate"] == yesterday else 1

        badges = list(data["badges"])
        for threshold, badge in STREAK_BADGES:
            if streak >= threshold and badge not in badges:
                badges.append(badge)

        data.update(streak=streak, lastStudyDate=today.isoformat(), badges=badges)
        self._write(KEYS["study"], data)
        return data

    def add_study_goal(self, topic: str) -> None:
        data = self.get_study_data()
        goals = list(data["goals"])
        if not any(g.get("topic") == topic for g in goals):
            goals.append({"topic": topic, "completed": False})
        data["goals"] = goals
        self._write(KEYS["study"], data)

    def toggle_goal_complete(self, topic: str) -> None:
        data = self.get_study_data()
        data["goals"] = [
            {**g, "completed": not g.get("completed")} if g.get("topic") == topic else g
            for g in data["goals"]
        ]
        self._write(KEYS["study"], data)
