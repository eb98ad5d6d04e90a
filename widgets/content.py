from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml

from common.types import Article, Book, NowData, Song


def _load_yaml(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_articles(path: str = "content/articles.yaml") -> List[Article]:
    """
    Static article list: a YAML sequence of {title, link, date}.
    """
    rows = _load_yaml(path) or []
    return [Article(title=str(r["title"]), link=str(r["link"]), date=str(r["date"])) for r in rows]


def load_now(path: str = "content/now.yaml") -> Optional[NowData]:
    """
    "Now" page data: {reading: [{title, title_link, author, author_link}],
    listening: [{title, link}]}. Returns None when the file is absent.
    """
    if not Path(path).exists():
        return None
    d = _load_yaml(path) or {}
    reading = [
        Book(
            title=str(b["title"]),
            title_link=str(b.get("title_link", "")),
            author=str(b["author"]),
            author_link=str(b.get("author_link", "")),
        )
        for b in d.get("reading") or []
    ]
    listening = [Song(title=str(s["title"]), link=str(s.get("link", ""))) for s in d.get("listening") or []]
    return NowData(reading=reading, listening=listening)
