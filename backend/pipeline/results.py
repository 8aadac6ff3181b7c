"""Stage results and the per-unit outcomes the stages yield."""

import logging
import time
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from typing import Any

from pipeline.errors import FatalError

logger = logging.getLogger(__name__)


@dataclass
class UnitOutcome:
    """What happened to one unit of work (a record, a vote event, a legislator).

    Attributes:
        key: Identifier of the unit, used in logs and error strings.
        counts: Counter increments this unit contributes to the stage.
        error: Error string if the unit failed, else None.
    """

    key: str
    counts: dict[str, int] = field(default_factory=dict)
    error: str | None = None


@dataclass
class StageResult:
    """Structured result of one pipeline entry point."""

    success: bool
    counts: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def has_work(self) -> bool:
        """True if any counter is positive."""
        return any(value > 0 for value in self.counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "counts": dict(self.counts),
            "errors": list(self.errors),
            "duration_ms": self.duration_ms,
        }


def status_code_for(result: StageResult) -> int:
    """Map a result to an HTTP status: 200 success, 207 partial, 500 failure."""
    if result.success:
        return 200
    if result.has_work:
        return 207
    return 500


class StageTally:
    """Accumulates unit outcomes into a StageResult.

    Args:
        name: Stage name, used in log lines.
        counters: Counter names, reported even when zero.
        primary: Counter that makes a stage with errors still a success
            when it is positive.
    """

    def __init__(self, name: str, counters: Iterable[str], primary: str):
        self.name = name
        self.primary = primary
        self.counts: dict[str, int] = {c: 0 for c in counters}
        self.errors: list[str] = []
        self.fatal = False
        self._started = time.monotonic()

    def add(self, outcome: UnitOutcome) -> None:
        for key, value in outcome.counts.items():
            self.counts[key] = self.counts.get(key, 0) + value
        if outcome.error:
            self.errors.append(outcome.error)

    def abort(self, error: Exception) -> None:
        logger.error(f"{self.name} aborted: {error}")
        self.errors.append(str(error))
        self.fatal = True

    def result(self) -> StageResult:
        success = not self.fatal and (
            not self.errors or self.counts.get(self.primary, 0) > 0
        )
        duration_ms = int((time.monotonic() - self._started) * 1000)
        logger.info(
            f"{self.name} finished: success={success}, counts={self.counts}, "
            f"errors={len(self.errors)}, {duration_ms}ms"
        )
        return StageResult(
            success=success,
            counts=dict(self.counts),
            errors=list(self.errors),
            duration_ms=duration_ms,
        )


async def drain(units: AsyncIterator[UnitOutcome], tally: StageTally) -> StageResult:
    """Consume a stage's units and summarize them.

    A FatalError raised by the stage ends it with success=False. Anything
    else propagates to the caller.
    """
    try:
        async for outcome in units:
            tally.add(outcome)
    except FatalError as e:
        tally.abort(e)
    return tally.result()
