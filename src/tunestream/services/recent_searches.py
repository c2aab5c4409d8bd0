"""Bounded history of recent search queries persisted to a JSON file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from rich.console import Console

MAX_RECENT_SEARCHES = 20
MIN_QUERY_LENGTH = 2
DEFAULT_RECENT_LIMIT = 5


class RecentSearchesLog:
    """Most-recent-first list of distinct, lowercased search queries.

    The whole list is rewritten to ``path`` after every change. Storage problems are
    logged and never raised.
    """

    def __init__(
        self,
        path: Path,
        *,
        max_entries: int = MAX_RECENT_SEARCHES,
        console: Optional[Console] = None,
    ) -> None:
        self._path = Path(path)
        self._max_entries = max_entries
        self._console = console or Console()
        self._queries: List[str] = []
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._queries)

    def add_search(self, query: str) -> None:
        """Record ``query`` at the front of the history."""

        normalized = query.strip().lower()
        if len(normalized) < MIN_QUERY_LENGTH:
            return

        self._queries = [existing for existing in self._queries if existing != normalized]
        self._queries.insert(0, normalized)
        del self._queries[self._max_entries :]
        self._save()

    def get_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[str]:
        """Return up to ``limit`` queries, newest first."""

        if limit <= 0:
            return []
        return list(self._queries[:limit])

    def _load(self) -> None:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self._console.log(f"Recent searches file {self._path} not found; it will be created on first save")
            return
        except (OSError, ValueError) as exc:
            self._console.log(f"[yellow]Could not load recent searches from {self._path}:[/yellow] {exc}")
            return

        if not isinstance(raw, list):
            self._console.log(f"[yellow]Ignoring recent searches file {self._path}: expected a JSON array[/yellow]")
            return

        queries: List[str] = []
        for item in raw:
            if not isinstance(item, str):
                continue
            normalized = item.strip().lower()
            if len(normalized) >= MIN_QUERY_LENGTH and normalized not in queries:
                queries.append(normalized)
        self._queries = queries[: self._max_entries]
        self._console.log(f"Loaded {len(self._queries)} recent searches from {self._path}")

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._queries, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            self._console.log(f"[red]Failed to save recent searches to {self._path}:[/red] {exc}")


__all__ = ["DEFAULT_RECENT_LIMIT", "MAX_RECENT_SEARCHES", "MIN_QUERY_LENGTH", "RecentSearchesLog"]
