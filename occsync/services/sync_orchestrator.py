"""
Resumable batch sync of occupation statistics.

A run walks the work list in fixed-size batches. Inside a batch, items are
processed in groups of at most max_concurrent, each group awaited in full before
the next starts. After every batch a checkpoint is appended; a later non-forced
start resumes from the newest checkpoint whose run did not finish.

Resume starts at batch processed // batch_size. When a run was stopped part way
through a batch, the items of that batch that already finished are processed
again; upserts are idempotent and scored records are skipped, so the only cost is
a few extra upstream calls.

The index is approximate in the other direction too. A stop-time checkpoint
counts those reprocessed items again, so after a second mid-batch stop the
resume index can move past a batch whose tail never ran. That run skips those
items and still reports COMPLETED. A forced restart picks them up cheaply, since
scored records are skipped.

Per-item failures never stop a run. Only stop() or the capacity guard (remaining
credential quota below capacity_guard_factor x the next batch size) end it early.
"""

import asyncio
import math
import time
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, Optional

import structlog

from occsync.core.config import Settings, settings as default_settings
from occsync.core.errors import capture_exception
from occsync.core.events import EventBus, EventType
from occsync.core.exceptions import RecordValidationError, classify_error, is_retryable
from occsync.core.health_thresholds import HealthThresholds
from occsync.core.metrics import MetricsStore, sync_metrics
from occsync.core.retry import with_retry
from occsync.core.typing import utc_now
from occsync.models.occupation import Occupation, WorkItem, validate_occupation
from occsync.models.sync import (
    Checkpoint,
    ControlResult,
    ItemError,
    SyncOutcome,
    SyncProgress,
    SyncResult,
    SyncStats,
)
from occsync.services.bls_client import BLSClient
from occsync.services.credential_pool import CredentialPool
from occsync.services.datastore import ResilientDataStore
from occsync.services.occupation_codes import load_work_items
from occsync.services.risk_scoring import RiskAssessment, score_risk

logger = structlog.get_logger(__name__)

RUN_NAME = "occupation_sync"

# Used for the ETA until real timings are available
DEFAULT_ITEM_SECONDS = 1.0


class ItemOutcome(str, Enum):
    SYNCED = "synced"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncConfig:
    max_concurrent: int = 5
    batch_size: int = 50
    retry_attempts: int = 3
    base_retry_delay: float = 1.0
    max_retry_delay: float = 30.0
    validate_data: bool = True
    health_check_interval: float = 60.0
    progress_update_interval: float = 1.0
    resume_from_last_checkpoint: bool = True
    checkpoint_history: int = 10
    low_capacity_threshold: float = HealthThresholds.SYNC_LOW_CAPACITY
    # Upstream calls per item, used by the capacity guard
    capacity_guard_factor: int = 2
    eta_window: int = 50

    @classmethod
    def for_serverless(cls, **overrides) -> "SyncConfig":
        """Smaller batches and longer backoff for short-lived function runtimes."""
        base = cls(
            max_concurrent=2,
            batch_size=10,
            retry_attempts=5,
            base_retry_delay=2.0,
            max_retry_delay=60.0,
        )
        return replace(base, **overrides)

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "SyncConfig":
        config = config or default_settings
        values = dict(
            max_concurrent=config.SYNC_MAX_CONCURRENT,
            batch_size=config.SYNC_BATCH_SIZE,
            retry_attempts=config.SYNC_RETRY_ATTEMPTS,
            base_retry_delay=config.SYNC_BASE_RETRY_DELAY,
            max_retry_delay=config.SYNC_MAX_RETRY_DELAY,
            validate_data=config.SYNC_VALIDATE_DATA,
            health_check_interval=config.SYNC_HEALTH_CHECK_INTERVAL,
            progress_update_interval=config.SYNC_PROGRESS_INTERVAL,
            resume_from_last_checkpoint=config.SYNC_RESUME_FROM_CHECKPOINT,
            checkpoint_history=config.SYNC_CHECKPOINT_HISTORY,
        )
        if config.is_serverless:
            return cls.for_serverless(
                validate_data=values["validate_data"],
                health_check_interval=values["health_check_interval"],
                progress_update_interval=values["progress_update_interval"],
                resume_from_last_checkpoint=values["resume_from_last_checkpoint"],
                checkpoint_history=values["checkpoint_history"],
            )
        return cls(**values)


class SyncOrchestrator:
    def __init__(
        self,
        pool: CredentialPool,
        client: BLSClient,
        datastore: ResilientDataStore,
        config: Optional[SyncConfig] = None,
        work_items: Optional[Iterable[WorkItem]] = None,
        scorer: Callable[[str, Optional[str]], RiskAssessment] = score_risk,
        events: Optional[EventBus] = None,
        metrics: Optional[MetricsStore] = None,
    ):
        self.pool = pool
        self.client = client
        self.datastore = datastore
        self.config = config or SyncConfig()
        self.scorer = scorer
        self.events = events if events is not None else EventBus()
        self.metrics = metrics if metrics is not None else sync_metrics

        self._work_items: Optional[list[WorkItem]] = list(work_items) if work_items is not None else None
        self._progress = self._new_progress()
        self._abort = asyncio.Event()
        self._finished: Optional[asyncio.Event] = None
        self._background: list[asyncio.Task] = []
        self._durations: deque[float] = deque(maxlen=self.config.eta_window)
        self._errors: list[ItemError] = []

    def _new_progress(self, **counters) -> SyncProgress:
        return SyncProgress(checkpoints=deque(maxlen=self.config.checkpoint_history), **counters)

    @property
    def is_running(self) -> bool:
        return self._progress.running

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    async def start(self, force_restart: bool = False) -> SyncResult:
        """
        Run a sync to completion, abort or pause.

        Args:
            force_restart: Ignore checkpoints and start from the first item

        Returns:
            SyncResult; never raises for failures inside the run
        """
        if self._progress.running:
            return SyncResult(
                success=True,
                message="Sync is already running",
                outcome=SyncOutcome.ALREADY_RUNNING,
                stats=self._stats(),
            )

        # Claim the run before the first await so a concurrent start() sees it
        self._progress.running = True
        self._abort = asyncio.Event()
        self._finished = asyncio.Event()
        self._errors = []

        try:
            outcome, message = await self._run(force_restart)
        except Exception as e:
            logger.error("sync run crashed", error=str(e))
            capture_exception(e, context={"component": "sync"})
            self._progress.last_error = str(e)
            self._progress.last_error_at = utc_now()
            outcome, message = SyncOutcome.FAILED, f"Sync failed: {e}"
        finally:
            await self._stop_background()
            self._progress.running = False
            self._progress.current_item = None
            self._progress.ended_at = utc_now()
            self._finished.set()

        progress = self._progress
        try:
            self.metrics.record_complete(
                RUN_NAME,
                outcome=outcome.value,
                processed=progress.processed,
                successful=progress.successful,
                failed=progress.failed,
                skipped=progress.skipped,
            )
            logger.info(
                "sync finished",
                outcome=outcome.value,
                processed=progress.processed,
                successful=progress.successful,
                failed=progress.failed,
                skipped=progress.skipped,
            )
            await self._publish_progress()
        except Exception as e:
            # The run itself is over; reporting problems do not change its outcome
            logger.error("sync completion reporting failed", error=str(e))
            capture_exception(e, context={"component": "sync", "stage": "report"})

        return SyncResult(
            success=outcome is SyncOutcome.COMPLETED,
            message=message,
            outcome=outcome,
            stats=self._stats(),
            errors=tuple(self._errors),
        )

    async def stop(self) -> ControlResult:
        """Ask the running sync to stop and wait for in-flight items to settle."""
        if not self._progress.running:
            return ControlResult(success=False, message="No sync is currently running")

        logger.info("sync stop requested", processed=self._progress.processed, total=self._progress.total)
        self._abort.set()
        if self._finished is not None:
            await self._finished.wait()

        progress = self._progress
        return ControlResult(
            success=True,
            message=f"Sync stopped after {progress.processed} of {progress.total} items",
        )

    def get_progress(self) -> SyncProgress:
        snapshot = self._progress.snapshot()
        snapshot.estimated_seconds_remaining = self._estimate_remaining()
        snapshot.credentials = self.pool.status_snapshot()
        return snapshot

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _load_work_items(self) -> list[WorkItem]:
        if self._work_items is None:
            self._work_items = load_work_items()
            logger.info("work list loaded", items=len(self._work_items))
        return self._work_items

    def _prepare_progress(self, force_restart: bool, total: int) -> bool:
        """Reset or restore counters. Returns True when resuming from a checkpoint."""
        last = self._progress.last_checkpoint
        resume = (
            not force_restart
            and self.config.resume_from_last_checkpoint
            and last is not None
            and last.processed < total
        )

        if resume:
            checkpoints = self._progress.checkpoints
            self._progress = SyncProgress(
                running=True,
                processed=last.processed,
                successful=last.successful,
                failed=last.failed,
                skipped=last.skipped,
                current_batch=last.batch_number,
                checkpoints=checkpoints,
            )
            logger.info(
                "resuming sync from checkpoint",
                processed=last.processed,
                batch=last.batch_number,
                last_code=last.last_processed_code,
            )
        else:
            self._progress = self._new_progress(running=True)
            self._durations.clear()
        return resume

    async def _run(self, force_restart: bool) -> tuple[SyncOutcome, str]:
        items = self._load_work_items()
        resume = self._prepare_progress(force_restart, len(items))

        progress = self._progress
        progress.total = len(items)
        progress.total_batches = math.ceil(len(items) / self.config.batch_size) if items else 0
        progress.started_at = utc_now()
        progress.ended_at = None

        self.metrics.record_start(RUN_NAME)
        logger.info(
            "sync started",
            total=progress.total,
            batches=progress.total_batches,
            batch_size=self.config.batch_size,
            max_concurrent=self.config.max_concurrent,
            resume=resume,
        )

        self._start_background()
        await self._publish_progress()
        return await self._process_batches(items, resume)

    async def _process_batches(self, items: list[WorkItem], resume: bool) -> tuple[SyncOutcome, str]:
        size = self.config.batch_size
        total_batches = self._progress.total_batches or 0
        start_batch = self._progress.processed // size if resume else 0

        for batch_index in range(start_batch, total_batches):
            if self._abort.is_set():
                return SyncOutcome.ABORTED, self._summary("Sync aborted")

            self._progress.current_batch = batch_index + 1
            batch = items[batch_index * size : (batch_index + 1) * size]
            try:
                await self._process_batch(batch)
                await self._create_checkpoint()
            except Exception as e:
                logger.error("batch processing crashed", batch=batch_index + 1, error=str(e))
                capture_exception(e, context={"batch": batch_index + 1})
                continue

            if self._abort.is_set():
                return SyncOutcome.ABORTED, self._summary("Sync aborted")

            if batch_index + 1 < total_batches:
                next_batch = items[(batch_index + 1) * size : (batch_index + 2) * size]
                needed = len(next_batch) * self.config.capacity_guard_factor
                remaining = self.pool.remaining_capacity()
                if remaining < needed:
                    logger.warning(
                        "pausing sync, not enough API capacity for next batch",
                        remaining=remaining,
                        needed=needed,
                        next_batch=batch_index + 2,
                    )
                    return (
                        SyncOutcome.PAUSED,
                        f"Sync paused due to API rate limits: {remaining} requests remaining, "
                        f"{needed} needed for the next batch",
                    )

        return SyncOutcome.COMPLETED, self._summary("Sync completed")

    async def _process_batch(self, batch: list[WorkItem]) -> None:
        step = max(1, self.config.max_concurrent)
        for start in range(0, len(batch), step):
            if self._abort.is_set():
                break
            group = batch[start : start + step]
            await asyncio.gather(*(self._process_item(item) for item in group))

    async def _process_item(self, item: WorkItem) -> None:
        if self._abort.is_set():
            return

        self._progress.current_item = item.code
        started = time.monotonic()
        try:
            outcome = await self._sync_item(item)
        except Exception as e:
            error = self._record_outcome(item, ItemOutcome.FAILED, e)
            logger.warning("item failed", code=item.code, error=str(e), retryable=error.retryable)
            await self.events.emit(EventType.ITEM_ERROR, **error.to_dict())
        else:
            self._record_outcome(item, outcome)
        self._durations.append(time.monotonic() - started)
        await self._publish_progress()

    async def _sync_item(self, item: WorkItem) -> ItemOutcome:
        existing = await self.datastore.get_occupation(item.code)
        if existing is not None and existing.risk_score is not None:
            logger.debug("occupation already scored, skipping", code=item.code)
            return ItemOutcome.SKIPPED

        stats = await with_retry(
            lambda: self.client.fetch_occupation_stats(item.code),
            max_retries=self.config.retry_attempts,
            base_delay=self.config.base_retry_delay,
            max_delay=self.config.max_retry_delay,
            retry_if=is_retryable,
            operation_name=f"fetch {item.code}",
        )

        title = item.title or stats.title or (existing.occ_title if existing else None) or f"Occupation {item.code}"
        assessment = self.scorer(title, item.code)
        record = Occupation(
            occ_code=item.code,
            occ_title=title,
            employment=stats.employment,
            median_wage=stats.median_wage,
            risk_score=assessment.score,
            risk_category=assessment.category,
            skills_at_risk=", ".join(assessment.skills_at_risk),
            skills_needed=", ".join(assessment.skills_needed),
            future_outlook=assessment.outlook,
        )

        if self.config.validate_data:
            problems = validate_occupation(record)
            if problems:
                raise RecordValidationError(item.code, problems)

        await self.datastore.upsert_occupation(record)
        await self.events.emit(
            EventType.ITEM_PROCESSED,
            code=item.code,
            title=title,
            risk_score=assessment.score,
            risk_category=assessment.category,
        )
        return ItemOutcome.SYNCED

    def _record_outcome(
        self,
        item: WorkItem,
        outcome: ItemOutcome,
        error: Optional[BaseException] = None,
    ) -> Optional[ItemError]:
        """The only place progress counters change during a run."""
        progress = self._progress
        item_error = None

        if outcome is ItemOutcome.SYNCED:
            progress.successful += 1
        elif outcome is ItemOutcome.SKIPPED:
            progress.skipped += 1
        else:
            category = classify_error(error) if error is not None else None
            item_error = ItemError(
                code=item.code,
                error=str(error),
                retryable=bool(category and category.retryable),
                category=category.value if category else "fatal",
            )
            self._errors.append(item_error)
            progress.failed += 1
            progress.last_error = f"{item.code}: {error}"
            progress.last_error_at = utc_now()
        progress.processed += 1
        return item_error

    async def _create_checkpoint(self) -> None:
        progress = self._progress
        checkpoint = Checkpoint(
            created_at=utc_now(),
            processed=progress.processed,
            successful=progress.successful,
            failed=progress.failed,
            skipped=progress.skipped,
            batch_number=progress.current_batch or 0,
            last_processed_code=progress.current_item,
        )
        progress.checkpoints.append(checkpoint)
        logger.info(
            "checkpoint created",
            batch=checkpoint.batch_number,
            processed=checkpoint.processed,
            total=progress.total,
        )
        await self.events.emit(EventType.CHECKPOINT, **checkpoint.to_dict())

    # ------------------------------------------------------------------
    # Progress reporting
    # ------------------------------------------------------------------

    def _stats(self) -> SyncStats:
        progress = self._progress
        return SyncStats(
            total=progress.total,
            processed=progress.processed,
            successful=progress.successful,
            failed=progress.failed,
            skipped=progress.skipped,
            started_at=progress.started_at,
            ended_at=progress.ended_at,
        )

    def _summary(self, prefix: str) -> str:
        progress = self._progress
        return (
            f"{prefix}: {progress.successful} successful, {progress.failed} failed, "
            f"{progress.skipped} skipped of {progress.total}"
        )

    def _estimate_remaining(self) -> Optional[float]:
        progress = self._progress
        if not progress.running:
            return None
        remaining = max(0, progress.total - progress.processed)
        average = sum(self._durations) / len(self._durations) if self._durations else DEFAULT_ITEM_SECONDS
        # Rounded up to a tenth so unfinished work never reads as zero seconds
        seconds = remaining * average / max(1, self.config.max_concurrent)
        return math.ceil(seconds * 10) / 10

    async def _publish_progress(self) -> None:
        await self.events.emit(EventType.PROGRESS, **self.get_progress().to_dict())

    def _start_background(self) -> None:
        self._background = [
            asyncio.create_task(self._progress_loop(), name="sync-progress"),
            asyncio.create_task(self._capacity_probe_loop(), name="sync-capacity-probe"),
        ]

    async def _stop_background(self) -> None:
        tasks, self._background = self._background, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _progress_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.config.progress_update_interval)
                await self._publish_progress()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("progress update failed", error=str(e))

    async def _capacity_probe_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.config.health_check_interval)
                remaining = self.pool.remaining_capacity()
                if remaining < self.config.low_capacity_threshold:
                    logger.warning("low API requests remaining", remaining=remaining)
                    await self.events.emit(
                        EventType.HEALTH_WARNING,
                        type="low_api_requests",
                        remaining_requests=remaining,
                    )
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("capacity probe failed", error=str(e))
