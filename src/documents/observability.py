"""Injectable observability sink for extraction corrections and decisions.

The engine reports what it changed (corrections) and what it chose
(decisions) to a sink passed in by the caller. The default sink writes
structured log events; RecordingSink also keeps them in memory.

Sinks observe only. Nothing the engine does depends on what a sink does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import structlog


@dataclass(frozen=True)
class CorrectionRecord:
    """A field value the engine replaced.

    Attributes:
        field: Canonical field name.
        before: Value before the correction (None when it was absent).
        after: Value after the correction.
        reason: Outcome tag that caused it ("missing", "conflict", "swap").
    """

    field: str
    before: Decimal | str | None
    after: Decimal | str | None
    reason: str


@dataclass(frozen=True)
class DecisionRecord:
    """A choice the engine made, with its inputs."""

    event: str
    details: dict[str, Any] = field(default_factory=dict)


def _loggable(value: Any) -> Any:
    return str(value) if isinstance(value, Decimal) else value


class ObservabilitySink:
    """Sink that logs corrections and decisions through structlog."""

    def __init__(self, logger: Any | None = None) -> None:
        self._logger = logger or structlog.get_logger()

    def correction(self, record: CorrectionRecord) -> None:
        self._logger.info(
            "field_corrected",
            field=record.field,
            before=_loggable(record.before),
            after=_loggable(record.after),
            reason=record.reason,
        )

    def decision(self, event: str, **details: Any) -> None:
        self._logger.info(event, **{key: _loggable(value) for key, value in details.items()})


class RecordingSink(ObservabilitySink):
    """Sink that also keeps every record in memory for later inspection."""

    def __init__(self, logger: Any | None = None) -> None:
        super().__init__(logger)
        self.corrections: list[CorrectionRecord] = []
        self.decisions: list[DecisionRecord] = []

    def correction(self, record: CorrectionRecord) -> None:
        self.corrections.append(record)
        super().correction(record)

    def decision(self, event: str, **details: Any) -> None:
        self.decisions.append(DecisionRecord(event=event, details=dict(details)))
        super().decision(event, **details)

    def events(self) -> list[str]:
        """Decision event names in the order they were reported."""
        return [record.event for record in self.decisions]


__all__ = [
    "CorrectionRecord",
    "DecisionRecord",
    "ObservabilitySink",
    "RecordingSink",
]
