from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from common.types import Article


# en-US short month names, independent of the process locale
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

KIND_YEAR = "year"
KIND_ARTICLE = "article"


@dataclass(frozen=True)
class ListItem:
    """
    One row of the rendered article list.

    Attributes:
        kind: "year" (separator) or "article".
        text: year string or article title.
        delay_ms: fade-in stagger for this row.
        link: article URL (articles only).
        meta: short date, e.g. "Jan 12" (articles only).
    """
    kind: str
    text: str
    delay_ms: int
    link: Optional[str] = None
    meta: Optional[str] = None


def short_date(d: date) -> str:
    return f"{_MONTHS[d.month - 1]} {d.day}"


def render_articles(articles: Iterable[Article], stagger_ms: int = 50) -> List[ListItem]:
    """
    Newest first, with a year separator each time the year changes.
    The input is not mutated.
    """
    ordered = sorted(articles, key=lambda a: a.day, reverse=True)
    items: List[ListItem] = []
    current_year: Optional[str] = None
    delay = 0
    for art in ordered:
        if art.year != current_year:
            current_year = art.year
            items.append(ListItem(kind=KIND_YEAR, text=current_year, delay_ms=delay))
            delay += stagger_ms
        items.append(ListItem(kind=KIND_ARTICLE, text=art.title, delay_ms=delay, link=art.link, meta=short_date(art.day)))
        delay += stagger_ms
    return items


def format_text(items: Iterable[ListItem]) -> str:
    lines: List[str] = []
    for it in items:
        if it.kind == KIND_YEAR:
            if lines:
                lines.append("")
            lines.append(it.text)
        else:
            lines.append(f"  {it.meta:<7} {it.text}")
            lines.append(f"          {it.link}")
    return "\n".join(lines)
