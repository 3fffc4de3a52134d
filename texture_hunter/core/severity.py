from __future__ import annotations

from typing import List, Optional, Tuple

SEVERITY_NONE = 0
SEVERITY_NOTICE = 1
SEVERITY_WARNING = 2
SEVERITY_ERROR = 3


class SeverityState:
    """Monotonic severity plus append-only warning messages.

    Severity only ever rises: it is the maximum of every level offered to
    :meth:`raise_severity`. Warnings keep evaluation order.
    """

    _severity: int = SEVERITY_NONE
    _warnings: Optional[List[str]] = None

    @property
    def severity(self) -> int:
        return self._severity

    @property
    def warnings(self) -> Tuple[str, ...]:
        return tuple(self._warnings) if self._warnings else ()

    @property
    def has_warnings(self) -> bool:
        return bool(self._warnings)

    def raise_severity(self, level: int) -> None:
        if level <= self._severity:
            return
        self._severity = level

    def add_warning(self, message: str) -> None:
        if self._warnings is None:
            self._warnings = []
        self._warnings.append(message)

    def flag(self, level: int, message: str) -> None:
        self.raise_severity(level)
        self.add_warning(message)
