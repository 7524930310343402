from __future__ import annotations

import math
from datetime import datetime


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, rounding halves up."""
    return math.floor((end - start).total_seconds() / 60 + 0.5)
