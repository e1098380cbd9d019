"""Monthly Period Background Worker

Keeps every MONTHLY group's active period aligned with the calendar month:
ends last month's period and opens the current one.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from messledger.adapter.repositories.group_repository import SqlAlchemyGroupRepository
from messledger.adapter.repositories.ledger_aggregate_repository import SqlAlchemyLedgerAggregateRepository
from messledger.adapter.repositories.period_repository import SqlAlchemyPeriodRepository
from messledger.adapter.services.cache_service import create_cache_service
from messledger.adapter.services.notification_service import create_notification_service
from messledger.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from messledger.app.services.cache_service import CacheService
from messledger.app.services.notification_service import NotificationService
from messledger.app.use_cases.ledger.aggregator import LedgerAggregator
from messledger.app.use_cases.periods import EndPeriod, EnsureMonthPeriod, StartPeriod
from messledger.app.use_cases.periods.dtos import MonthPeriodAction, MonthlyPeriodRunResultDTO
from messledger.domain.period import PeriodMode

logger = logging.getLogger(__name__)


class MonthlyPeriodWorker:
    """
    Background worker for monthly period reconciliation

    Features:
    - Runs EnsureMonthPeriod for every group in MONTHLY mode
    - One session per group; a failing group does not stop the run
    - Idempotent: a group whose month period exists is left unchanged

    Usage:
        worker = MonthlyPeriodWorker()
        result = await worker.run_once()

        # Run continuously (hourly by default)
        await worker.run_forever()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        session_factory=None,
        cache: Optional[CacheService] = None,
        notifier: Optional[NotificationService] = None,
        actor_id: Optional[str] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            session_factory: Existing session factory; overrides db_uri
            cache: Cache to invalidate (defaults to the configured backend)
            notifier: Event sink (defaults to the configured webhook)
            actor_id: Identity recorded as the acting user
            now: Clock used to decide the current month
        """
        self.engine = None
        if session_factory is None:
            self.engine = create_async_engine(db_uri or ApplicationConfig.DB_URI, echo=False, future=True)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.cache = cache or create_cache_service(
            ApplicationConfig.CACHE_BACKEND,
            redis_url=ApplicationConfig.REDIS_URL,
            prefix=ApplicationConfig.CACHE_KEY_PREFIX,
        )
        self.notifier = notifier or create_notification_service(ApplicationConfig.NOTIFICATION_WEBHOOK)
        self.actor_id = actor_id or ApplicationConfig.SYSTEM_ACTOR_ID
        self.now = now or datetime.utcnow

        logger.info("MonthlyPeriodWorker initialized")

    def _build_use_case(self, session: AsyncSession) -> EnsureMonthPeriod:
        uow = SqlAlchemyUnitOfWork(session)
        period_repo = SqlAlchemyPeriodRepository(session)
        group_repo = SqlAlchemyGroupRepository(session)
        aggregator = LedgerAggregator(SqlAlchemyLedgerAggregateRepository(self.async_session_factory))

        return EnsureMonthPeriod(
            period_repo,
            group_repo,
            StartPeriod(uow, period_repo, self.cache, self.notifier),
            EndPeriod(uow, period_repo, group_repo, aggregator, self.cache, self.notifier),
            now=self.now,
        )

    async def run_once(self) -> MonthlyPeriodRunResultDTO:
        """
        Reconcile every MONTHLY group once

        Returns:
            MonthlyPeriodRunResultDTO with per-outcome counts
        """
        start_time = time.time()
        run_at = self.now()

        if not ApplicationConfig.MONTHLY_PERIOD_ENABLED:
            logger.info("Monthly period reconciliation is disabled, skipping")
            return MonthlyPeriodRunResultDTO(
                total_groups=0, created=0, rolled_over=0, unchanged=0, failed=0,
                run_at=run_at, execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            groups = await SqlAlchemyGroupRepository(session).list_by_period_mode(PeriodMode.MONTHLY)
            group_ids = [group.id for group in groups]

        logger.info(f"Found {len(group_ids)} monthly groups")

        counts = {action: 0 for action in MonthPeriodAction}
        failed = 0

        for group_id in group_ids:
            try:
                # A new session per group isolates its transaction
                async with self.async_session_factory() as group_session:
                    result = await self._build_use_case(group_session).execute(group_id, self.actor_id)
                counts[result.action] += 1
                if result.action != MonthPeriodAction.UNCHANGED:
                    logger.info(f"Group {group_id}: {result.action.value}")
            except Exception as e:
                logger.error(f"Monthly period reconciliation failed for group {group_id}: {e}")
                failed += 1

        execution_time_ms = int((time.time() - start_time) * 1000)

        result = MonthlyPeriodRunResultDTO(
            total_groups=len(group_ids),
            created=counts[MonthPeriodAction.CREATED],
            rolled_over=counts[MonthPeriodAction.ROLLED_OVER],
            unchanged=counts[MonthPeriodAction.UNCHANGED] + counts[MonthPeriodAction.SKIPPED],
            failed=failed,
            run_at=run_at,
            execution_time_ms=execution_time_ms,
        )

        logger.info(
            f"Monthly period run complete: "
            f"{result.created} created, {result.rolled_over} rolled over, "
            f"{result.failed} failed of {result.total_groups}, {execution_time_ms}ms"
        )

        return result

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Run reconciliation continuously

        Args:
            interval_seconds: Seconds between runs (default: config, hourly)
        """
        interval_seconds = interval_seconds or int(ApplicationConfig.MONTHLY_PERIOD_INTERVAL_SECONDS)
        logger.info(f"Starting continuous monthly period reconciliation with {interval_seconds}s interval")

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Monthly period cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        close = getattr(self.cache, "close", None)
        if close:
            await close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("MonthlyPeriodWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m messledger.worker.monthly_period
        python -m messledger.worker.monthly_period --continuous
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Monthly Period Worker")
    parser.add_argument(
        "--continuous", action="store_true", help="Run continuously"
    )
    parser.add_argument("--interval", type=int, help="Seconds between runs")
    args = parser.parse_args()

    worker = MonthlyPeriodWorker()

    try:
        if args.continuous:
            await worker.run_forever(args.interval)
        else:
            result = await worker.run_once()
            print("Monthly period run complete:")
            print(f"  Groups: {result.total_groups}")
            print(f"  Created: {result.created}")
            print(f"  Rolled over: {result.rolled_over}")
            print(f"  Unchanged: {result.unchanged}")
            print(f"  Failed: {result.failed}")
            print(f"  Execution time: {result.execution_time_ms}ms")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
