"""Outcome type for calls whose failure may or may not matter."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OutcomeKind(str, Enum):
    """How a call ended."""

    OK = "ok"
    IGNORABLE = "ignorable"  # failed, but the enclosing operation still succeeds
    FATAL = "fatal"


@dataclass(frozen=True)
class Outcome:
    """Result of a remote action.

    ``data`` carries whatever the callee extracted from the response
    (e.g. ``conversation_id`` after a send).
    """

    kind: OutcomeKind
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "Outcome":
        return cls(OutcomeKind.OK, None, data)

    @classmethod
    def ignorable(cls, error: str, **data: Any) -> "Outcome":
        return cls(OutcomeKind.IGNORABLE, error, data)

    @classmethod
    def fatal(cls, error: str, **data: Any) -> "Outcome":
        return cls(OutcomeKind.FATAL, error, data)

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def is_fatal(self) -> bool:
        return self.kind is OutcomeKind.FATAL

    def as_ignorable(self) -> "Outcome":
        """Downgrade a failure so it no longer aborts the caller."""
        if self.kind is OutcomeKind.FATAL:
            return Outcome(OutcomeKind.IGNORABLE, self.error, self.data)
        return self
