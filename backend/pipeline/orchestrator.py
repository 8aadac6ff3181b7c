"""Run the sync stages in order and merge their results.

Stage order is legislators, bills, votes (House then Senate), scores. A
stage that fails never stops the ones after it: scoring still runs against
whatever bills and votes did persist.
"""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field

from app.config import settings
from pipeline.congress.bill_ingestion import BILL_COUNTERS, BillIngestor
from pipeline.congress.client import CongressClient
from pipeline.congress.ingestion import LEGISLATOR_COUNTERS, LegislatorSync
from pipeline.congress.vote_ingestion import VOTE_COUNTERS, VoteSync
from pipeline.results import StageResult, UnitOutcome
from pipeline.scoring.engine import SCORE_COUNTERS, ScoringEngine
from pipeline.scoring.keywords import DEFAULT_LEXICON, PolarityLexicon
from pipeline.storage.base import SyncStore

logger = logging.getLogger(__name__)

STAGE_COUNTERS: dict[str, tuple[str, ...]] = {
    "legislators": LEGISLATOR_COUNTERS,
    "bills": BILL_COUNTERS,
    "votes": VOTE_COUNTERS,
    "scores": SCORE_COUNTERS,
}


@dataclass
class SyncOptions:
    """Per-run configuration.

    Attributes:
        congress: Congress number to sync.
        legislator_limit: Max member listing records per chamber.
        bill_limit: Max bills read from the listing.
        vote_limit: Max vote events per chamber.
        skip_scores: Leave the scoring stage out of a full sync.
    """

    congress: int = field(default_factory=lambda: settings.default_congress)
    legislator_limit: int | None = None
    bill_limit: int | None = None
    vote_limit: int | None = None
    skip_scores: bool = False


def merge_results(results: dict[str, StageResult]) -> StageResult:
    """Combine stage results into one.

    Counts are prefixed with the stage name, errors are concatenated in
    stage order, and success requires an empty merged error list.
    """
    counts: dict[str, int] = {}
    errors: list[str] = []
    duration_ms = 0
    for stage, result in results.items():
        for key, value in result.counts.items():
            counts[f"{stage}_{key}"] = value
        errors.extend(result.errors)
        duration_ms += result.duration_ms
    return StageResult(
        success=not errors, counts=counts, errors=errors, duration_ms=duration_ms
    )


class SyncOrchestrator:
    """Entry points for each stage and for the full pipeline.

    Args:
        store: Storage backend shared by every stage.
        options: Run configuration.
        client_factory: Builds the API client. Called once, on the first
            stage that needs it, so a missing API key fails that stage
            rather than the constructor.
        lexicon: Polarity keyword poles used for new bills.
    """

    def __init__(
        self,
        store: SyncStore,
        options: SyncOptions | None = None,
        client_factory: Callable[[], CongressClient] = CongressClient,
        lexicon: PolarityLexicon = DEFAULT_LEXICON,
    ):
        self.store = store
        self.options = options or SyncOptions()
        self.client_factory = client_factory
        self.lexicon = lexicon
        self._client: CongressClient | None = None

    @property
    def client(self) -> CongressClient:
        if self._client is None:
            self._client = self.client_factory()
        return self._client

    def legislator_stage(self) -> LegislatorSync:
        return LegislatorSync(
            self.client,
            self.store,
            self.options.congress,
            limit=self.options.legislator_limit,
        )

    def bill_stage(self) -> BillIngestor:
        return BillIngestor(
            self.client,
            self.store,
            self.options.congress,
            limit=self.options.bill_limit,
            lexicon=self.lexicon,
        )

    def vote_stage(self) -> VoteSync:
        return VoteSync(
            self.client,
            self.store,
            self.options.congress,
            limit=self.options.vote_limit,
        )

    def score_stage(self) -> ScoringEngine:
        return ScoringEngine(self.store)

    def iter_stage(self, name: str) -> AsyncIterator[UnitOutcome]:
        """Return a stage's unit generator for a caller that drives it directly.

        The caller can stop between units by simply not asking for the next
        one.
        """
        builders = {
            "legislators": self.legislator_stage,
            "bills": self.bill_stage,
            "votes": self.vote_stage,
            "scores": self.score_stage,
        }
        if name not in builders:
            raise ValueError(f"Unknown stage: {name}")
        return builders[name]().iter_units()

    async def _run_stage(
        self, name: str, run: Callable[[], Awaitable[StageResult]]
    ) -> StageResult:
        """Run one stage, turning anything it raises into a failed result."""
        started = time.monotonic()
        logger.info(f"Starting stage: {name}")
        try:
            return await run()
        except Exception as e:
            logger.exception(f"Stage {name} failed")
            return StageResult(
                success=False,
                counts=dict.fromkeys(STAGE_COUNTERS[name], 0),
                errors=[f"{name} stage failed: {e}"],
                duration_ms=int((time.monotonic() - started) * 1000),
            )

    async def sync_legislators(self) -> StageResult:
        return await self._run_stage(
            "legislators", lambda: self.legislator_stage().run()
        )

    async def sync_bills(self) -> StageResult:
        return await self._run_stage("bills", lambda: self.bill_stage().run())

    async def sync_votes(self) -> StageResult:
        return await self._run_stage("votes", lambda: self.vote_stage().run())

    async def calculate_scores(self) -> StageResult:
        return await self._run_stage("scores", lambda: self.score_stage().run())

    async def full_sync(self) -> StageResult:
        """Run every stage in order and merge the results."""
        logger.info(
            f"Full sync for Congress {self.options.congress} "
            f"(skip_scores={self.options.skip_scores})"
        )
        results = {
            "legislators": await self.sync_legislators(),
            "bills": await self.sync_bills(),
            "votes": await self.sync_votes(),
        }
        if not self.options.skip_scores:
            results["scores"] = await self.calculate_scores()

        merged = merge_results(results)
        logger.info(
            f"Full sync finished: success={merged.success}, "
            f"errors={len(merged.errors)}, {merged.duration_ms}ms"
        )
        return merged
