from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.clock import format_hhmm


@dataclass(frozen=True)
class SlotResult:
    """Availability verdict for one candidate start time."""

    start: datetime
    end: datetime
    available: bool
    reason: Optional[str] = None

    @property
    def time_label(self) -> str:
        return format_hhmm(self.start.time())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time_label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "available": self.available,
            "reason": self.reason,
        }
