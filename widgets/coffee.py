from __future__ import annotations

import itertools
import threading
from typing import Callable, Iterator, Optional


FRAME_INTERVAL_S = 0.6

MUG_BASE = (
    "      .------.    \n"
    "      |      |]   \n"
    "      |      |    \n"
    "      '------'    "
)

STEAM_FRAMES = (
    "      (   -   )\n"
    "        )   (\n",
    "      -   )   -\n"
    "        (   -\n",
    "      )   -   (\n"
    "        -   )\n",
)


def coffee_frames() -> Iterator[str]:
    """Steam frames over the mug, cycling forever."""
    for steam in itertools.cycle(STEAM_FRAMES):
        yield steam + MUG_BASE


def animate(
    draw: Callable[[str], None],
    stop_event: threading.Event,
    interval_s: float = FRAME_INTERVAL_S,
    limit: Optional[int] = None,
) -> int:
    """
    Call draw(frame) every interval until stop_event (or `limit` frames).
    Returns the number of frames drawn.
    """
    n = 0
    for frame in coffee_frames():
        if stop_event.is_set():
            break
        draw(frame)
        n += 1
        if limit is not None and n >= limit:
            break
        stop_event.wait(interval_s)
    return n
