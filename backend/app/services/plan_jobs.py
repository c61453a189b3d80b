"""
Background execution of plan assembly.

Plan creation only writes a PENDING row; assembly runs later, either from the
deferred trigger queued by the request or from the recovery sweep that picks
up plans whose trigger was lost (e.g. a restart). Both paths go through
PlanJobRunner.run, which de-duplicates work with an in-memory claim set.
The claim set does not survive a crash; a stale claim simply expires.
"""
import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import PlanState
from app.core.logging import get_logger
from app.db import crud_plans, crud_users
from app.db.schema import UserProfile
from app.services.plan_assembler import PlanAssembler
from app.services.recipe_cache import TTLCache

logger = get_logger("services.plan_jobs")

# Store access is synchronous; keep it off the event loop
db_executor = ThreadPoolExecutor(max_workers=2)


async def run_sync(func, *args):
    """Run a synchronous DB function in the thread pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(db_executor, func, *args)


class PlanJobRunner:
    """Runs assembly for one plan and persists the terminal state."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        assembler: PlanAssembler,
        claim_ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic
    ):
        self.session_factory = session_factory
        self.assembler = assembler
        self.claims = TTLCache(claim_ttl, clock=clock)

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def claim(self, plan_id: int) -> bool:
        """Mark a plan as in flight; False if someone already holds it."""
        key = str(plan_id)
        if key in self.claims:
            return False
        self.claims.set(key, True)
        return True

    def release(self, plan_id: int) -> None:
        self.claims.delete(str(plan_id))

    def claimed_ids(self) -> List[int]:
        return [int(key) for key in self.claims.keys()]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_later(self, plan_id: int, delay: float = 0.0) -> Optional[PlanState]:
        """Deferred trigger queued by the generate endpoint."""
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.run(plan_id)

    async def run(self, plan_id: int) -> Optional[PlanState]:
        """
        Assemble a PENDING plan and store the outcome.

        Returns:
            The terminal state written, or None when nothing was done (plan
            claimed elsewhere, missing, owner missing, or no longer PENDING).
        """
        if not self.claim(plan_id):
            logger.info(f"Plan {plan_id} is already being processed")
            return None

        try:
            return await self._process(plan_id)
        finally:
            self.release(plan_id)

    @staticmethod
    def _load(db: Session, plan_id: int) -> Optional[Tuple[UserProfile, date, date]]:
        plan = crud_plans.plan.get(db, plan_id)
        if not plan:
            logger.warning(f"Plan {plan_id} not found, nothing to process")
            return None
        if PlanState(plan.state).is_terminal:
            logger.info(f"Plan {plan_id} already {plan.state}, skipping")
            return None

        profile = crud_users.user.get_profile(db, plan.user_id)
        if not profile:
            # Plan stays PENDING and moves behind the other pending plans
            logger.warning(f"Owner {plan.user_id} of plan {plan_id} not found, skipping")
            crud_plans.plan.touch(db, plan_id)
            return None

        return profile, plan.start_date, plan.end_date

    async def _process(self, plan_id: int) -> Optional[PlanState]:
        db = self.session_factory()
        try:
            loaded = await run_sync(self._load, db, plan_id)
            if loaded is None:
                return None
            profile, start_date, end_date = loaded

            logger.info(f"Processing plan {plan_id} ({start_date} - {end_date})")
            try:
                week = await self.assembler.assemble_week(profile, start_date, end_date)
                written = await run_sync(
                    crud_plans.plan.finalize, db, plan_id, week.days, week.shopping_list
                )
            except Exception as e:
                logger.error(f"Error processing plan {plan_id}: {e}", exc_info=True)
                db.rollback()
                return await self._cancel(db, plan_id)

            if not written:
                logger.info(f"Plan {plan_id} left PENDING while processing, result discarded")
                return None

            logger.info(f"Plan {plan_id} finalized")
            return PlanState.FINALIZED
        finally:
            db.close()

    async def _cancel(self, db: Session, plan_id: int) -> Optional[PlanState]:
        try:
            cancelled = await run_sync(crud_plans.plan.cancel, db, plan_id)
        except SQLAlchemyError as e:
            # Left PENDING; the recovery sweep will try again
            logger.error(f"Could not cancel plan {plan_id}: {e}")
            db.rollback()
            return None

        if not cancelled:
            return None
        logger.info(f"Plan {plan_id} cancelled")
        return PlanState.CANCELLED


class RecoverySweep:
    """Periodically runs PENDING plans that no job has claimed."""

    def __init__(
        self,
        runner: PlanJobRunner,
        interval_seconds: float = 1800,
        batch_size: int = 3
    ):
        self.runner = runner
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self._task: Optional[asyncio.Task] = None

    def _pending_ids(self, claimed: List[int]) -> List[int]:
        db = self.runner.session_factory()
        try:
            plans = crud_plans.plan.get_pending(
                db,
                exclude_ids=claimed,
                limit=self.batch_size,
            )
            return [p.id for p in plans]
        finally:
            db.close()

    async def run_once(self) -> int:
        """
        Process up to batch_size unclaimed PENDING plans, one after another.

        Returns:
            Number of plans that reached a terminal state
        """
        logger.info("Looking for pending plans...")
        try:
            plan_ids = await run_sync(self._pending_ids, self.runner.claimed_ids())
        except SQLAlchemyError as e:
            logger.error(f"Recovery sweep could not query pending plans: {e}")
            return 0

        logger.info(f"Found {len(plan_ids)} pending plans")

        completed = 0
        for plan_id in plan_ids:
            try:
                if await self.runner.run(plan_id) is not None:
                    completed += 1
            except Exception as e:
                logger.error(f"Error processing plan {plan_id} in recovery sweep: {e}", exc_info=True)
        return completed

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Run once now, then every interval, on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("Plan recovery sweep started")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
