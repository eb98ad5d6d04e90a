from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from common.utils import utc_now


# Mars Sol Date epoch conversion (Allison & McEwen)
_EPOCH = datetime(2000, 1, 6, tzinfo=timezone.utc)
_SOL_IN_DAYS = 1.027491252
_MSD_OFFSET = 44796.0
_TT_UTC_DAYS = 4.5

DAYTIME_TEXT = "It is currently daytime on Mars."
NIGHT_TEXT = "It is currently night on Mars."


@dataclass(frozen=True)
class MarsTime:
    mtc: float     # hours, [0, 24)
    text: str      # "H:MM:SS MTC"
    daylight: str


def mars_sol_date(now: datetime) -> float:
    d = (now - _EPOCH).total_seconds() / 86400.0
    return (d - _TT_UTC_DAYS) / _SOL_IN_DAYS + _MSD_OFFSET


def mtc_hours(now: datetime) -> float:
    """Coordinated Mars Time in hours."""
    return (mars_sol_date(now) * 24.0) % 24.0


def format_mtc(mtc: float) -> str:
    h = math.floor(mtc)
    m = math.floor((mtc - h) * 60)
    s = math.floor(((mtc - h) * 60 - m) * 60)
    return f"{h}:{m:02d}:{s:02d} MTC"


def is_mars_daytime(mtc: float) -> bool:
    # roughly 06:00 to 18:00
    return 6.0 < mtc < 18.0


def mars_time(now: Optional[datetime] = None) -> MarsTime:
    now = now or utc_now()
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    mtc = mtc_hours(now)
    return MarsTime(mtc=mtc, text=format_mtc(mtc), daylight=DAYTIME_TEXT if is_mars_daytime(mtc) else NIGHT_TEXT)
