"""
Daily point budget against the recipe catalog.

Process-local: each worker process keeps its own counter. A shared deployment
would back the same try_consume/remaining interface with an atomic counter.
"""
import time
from typing import Callable, Dict

from app.core.constants import LimitsConstants
from app.core.logging import get_logger

logger = get_logger("services.rate_budget")


class RateBudgetTracker:
    """Consumable daily quota of catalog points on a rolling 24h window."""

    def __init__(
        self,
        daily_limit: float,
        per_plan_cap: float,
        window_seconds: float = LimitsConstants.DAY_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.daily_limit = daily_limit
        self.per_plan_cap = per_plan_cap
        self.window_seconds = window_seconds
        self._clock = clock
        self.points_used_today: float = 0
        self.last_reset_time: float = clock()

    def reset_if_window_elapsed(self) -> bool:
        """Reset the counter when more than a full window has passed since the last reset."""
        now = self._clock()
        if now - self.last_reset_time > self.window_seconds:
            self.points_used_today = 0
            self.last_reset_time = now
            logger.info("Daily point counter reset")
            return True
        return False

    def try_consume(self, points: float) -> bool:
        """
        Spend points if the daily limit allows it.

        Returns:
            False without touching the counter when the limit would be exceeded
        """
        self.reset_if_window_elapsed()

        if self.points_used_today + points > self.daily_limit:
            logger.warning(
                f"Point limit reached: {self.points_used_today}/{self.daily_limit} "
                f"(requested {points})"
            )
            return False

        self.points_used_today += points
        logger.info(f"Points used: {self.points_used_today}/{self.daily_limit}")
        return True

    @property
    def remaining(self) -> float:
        self.reset_if_window_elapsed()
        return self.daily_limit - self.points_used_today

    def can_start_plan(self, estimated_points: float = 0) -> bool:
        """
        Admission check for a new plan.

        The per-plan cap must still fit in today's budget, and so must the
        estimated cost of the plan when it is larger than the cap.
        """
        self.reset_if_window_elapsed()
        if self.points_used_today >= self.daily_limit - self.per_plan_cap:
            return False
        return self.daily_limit - self.points_used_today >= estimated_points

    def snapshot(self) -> Dict[str, float]:
        return {
            "points_used_today": self.points_used_today,
            "daily_limit": self.daily_limit,
            "remaining": self.remaining,
            "per_plan_cap": self.per_plan_cap,
        }
