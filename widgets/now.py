from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from common.types import NowData


@dataclass(frozen=True)
class NowEntry:
    title: str
    link: str
    author: Optional[str] = None
    author_link: Optional[str] = None

    @property
    def text(self) -> str:
        return f"{self.title} by {self.author}" if self.author else self.title


@dataclass
class NowBlock:
    label: str
    delay_ms: int
    entries: List[NowEntry] = field(default_factory=list)


def render_now(data: Optional[NowData], stagger_ms: int = 100) -> List[NowBlock]:
    """Reading, then Listening To; empty sections are skipped."""
    if data is None:
        return []
    blocks: List[NowBlock] = []
    delay = 0

    if data.reading:
        blocks.append(
            NowBlock(
                label="Reading",
                delay_ms=delay,
                entries=[
                    NowEntry(title=b.title, link=b.title_link, author=b.author, author_link=b.author_link)
                    for b in data.reading
                ],
            )
        )
        delay += stagger_ms

    if data.listening:
        blocks.append(
            NowBlock(
                label="Listening To",
                delay_ms=delay,
                entries=[NowEntry(title=s.title, link=s.link) for s in data.listening],
            )
        )
        delay += stagger_ms

    return blocks


def format_text(blocks: List[NowBlock]) -> str:
    lines: List[str] = []
    for blk in blocks:
        if lines:
            lines.append("")
        lines.append(blk.label.upper())
        for e in blk.entries:
            lines.append(f"  {e.text}")
            if e.link:
                lines.append(f"    {e.link}")
    return "\n".join(lines)
