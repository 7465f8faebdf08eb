"""
Diagnostic events

Every rejection or warning raised by a mission check is described by one
Diagnostic: a stable code, a message template and the positional values
that fill it, so operators can fix the mission without reading the code.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Diagnostic severity"""
    ERROR = "error"        # rejects the mission
    WARNING = "warning"    # advisory, mission may still fly
    INFO = "info"


@dataclass(frozen=True)
class Diagnostic:
    """One emitted diagnostic"""
    severity: Severity
    code: str
    template: str
    args: Tuple[Any, ...] = ()
    item: Optional[int] = None     # 1-based mission item index

    @property
    def message(self) -> str:
        return self.template.format(*self.args)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "item": self.item,
        }

    def __str__(self) -> str:
        return self.message


def error(code: str, template: str, *args: Any, item: Optional[int] = None) -> Diagnostic:
    return Diagnostic(Severity.ERROR, code, template, args, item)


def warning(code: str, template: str, *args: Any, item: Optional[int] = None) -> Diagnostic:
    return Diagnostic(Severity.WARNING, code, template, args, item)


def info(code: str, template: str, *args: Any, item: Optional[int] = None) -> Diagnostic:
    return Diagnostic(Severity.INFO, code, template, args, item)


class EventChannel(ABC):
    """Destination for diagnostics"""

    @abstractmethod
    def emit(self, diagnostic: Diagnostic):
        pass


class LoggingEventChannel(EventChannel):
    """Writes diagnostics to the Python log"""

    LEVELS = {
        Severity.ERROR: logging.ERROR,
        Severity.WARNING: logging.WARNING,
        Severity.INFO: logging.INFO,
    }

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def emit(self, diagnostic: Diagnostic):
        self._log.log(self.LEVELS[diagnostic.severity], f"[{diagnostic.code}] {diagnostic.message}")


class CollectingEventChannel(EventChannel):
    """Keeps emitted diagnostics in memory"""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic):
        self.diagnostics.append(diagnostic)

    @property
    def codes(self) -> List[str]:
        return [d.code for d in self.diagnostics]

    def clear(self):
        self.diagnostics.clear()
