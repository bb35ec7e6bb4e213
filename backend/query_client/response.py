"""
Uniform result returned by every façade terminal
"""
from dataclasses import dataclass
from typing import Any, Optional

from errors import QATrackerError


@dataclass
class DBResponse:
    """``error`` is set iff the call failed; then ``data`` is None"""
    data: Any = None
    error: Optional[QATrackerError] = None
    count: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None
