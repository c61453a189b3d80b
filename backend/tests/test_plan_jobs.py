"""
Tests for background plan processing and the recovery sweep.
"""
import asyncio
from datetime import timedelta

from app.core.constants import PlanState
from app.db import crud_plans
from app.services.plan_jobs import PlanJobRunner, RecoverySweep

from conftest import TODAY


def load_plan(session_factory, plan_id):
    session = session_factory()
    try:
        plan = crud_plans.plan.get_full(session, plan_id)
        return plan.state, len(plan.days), [len(d.meals) for d in plan.days], len(plan.shopping_items)
    finally:
        session.close()


def test_run_finalizes_plan(plan_service, session_factory, make_user, make_plan, pantry_item):
    user_id = make_user(pantry=[pantry_item("tomate", 1, "kg")])
    plan_id = make_plan(user_id, TODAY, TODAY + timedelta(days=2))

    state = asyncio.run(plan_service.runner.run(plan_id))

    assert state == PlanState.FINALIZED
    assert load_plan(session_factory, plan_id) == ("FINALIZED", 3, [3, 3, 3], 2)
    assert plan_service.runner.claimed_ids() == []


def test_failed_assembly_cancels_plan(plan_service, fake_catalog, session_factory, make_user, make_plan):
    fake_catalog.result_limit = 1
    plan_id = make_plan(make_user())

    state = asyncio.run(plan_service.runner.run(plan_id))

    assert state == PlanState.CANCELLED
    assert load_plan(session_factory, plan_id) == ("CANCELLED", 0, [], 0)


def test_budget_exhaustion_cancels_plan(plan_service, session_factory, make_user, make_plan):
    plan_id = make_plan(make_user())
    plan_service.budget.points_used_today = plan_service.budget.daily_limit

    assert asyncio.run(plan_service.runner.run(plan_id)) == PlanState.CANCELLED


def test_missing_owner_leaves_plan_pending(plan_service, session_factory, make_plan):
    plan_id = make_plan(user_id=999)

    assert asyncio.run(plan_service.runner.run(plan_id)) is None
    assert load_plan(session_factory, plan_id)[0] == "PENDING"


def test_terminal_plan_is_not_reprocessed(plan_service, fake_catalog, make_user, make_plan):
    plan_id = make_plan(make_user())
    asyncio.run(plan_service.runner.run(plan_id))
    calls = len(fake_catalog.requests)

    assert asyncio.run(plan_service.runner.run(plan_id)) is None
    assert len(fake_catalog.requests) == calls


def test_claimed_plan_is_skipped(plan_service, fake_catalog, session_factory, make_user, make_plan):
    plan_id = make_plan(make_user())
    assert plan_service.runner.claim(plan_id)

    assert asyncio.run(plan_service.runner.run(plan_id)) is None
    assert fake_catalog.requests == []
    assert load_plan(session_factory, plan_id)[0] == "PENDING"


def test_unknown_plan_is_ignored(plan_service):
    assert asyncio.run(plan_service.runner.run(12345)) is None


def test_sweep_processes_a_batch_of_unclaimed_plans(plan_service, session_factory, make_user, make_plan):
    user_id = make_user()
    plan_ids = [make_plan(user_id) for _ in range(5)]
    plan_service.runner.claim(plan_ids[0])

    sweep = RecoverySweep(plan_service.runner, interval_seconds=1800, batch_size=3)
    assert asyncio.run(sweep.run_once()) == 3

    states = [load_plan(session_factory, plan_id)[0] for plan_id in plan_ids]
    assert states == ["PENDING", "FINALIZED", "FINALIZED", "FINALIZED", "PENDING"]


def test_sweep_start_stop(plan_service):
    async def scenario():
        sweep = RecoverySweep(plan_service.runner, interval_seconds=1800, batch_size=3)
        sweep.start()
        assert sweep._task is not None
        await sweep.stop()
        assert sweep._task is None

    asyncio.run(scenario())


def test_stale_claim_expires_and_sweep_recovers_plan(plan_service, session_factory, clock, make_user, make_plan):
    runner = PlanJobRunner(session_factory, plan_service.assembler, claim_ttl=60, clock=clock)
    sweep = RecoverySweep(runner, interval_seconds=1800, batch_size=3)
    plan_id = make_plan(make_user())

    # Claimed by a worker that never released it
    assert runner.claim(plan_id)
    assert asyncio.run(sweep.run_once()) == 0
    assert load_plan(session_factory, plan_id)[0] == "PENDING"

    clock.advance(61)
    assert asyncio.run(sweep.run_once()) == 1
    assert load_plan(session_factory, plan_id)[0] == "FINALIZED"


def test_ownerless_plans_rotate_behind_recoverable_ones(plan_service, session_factory, make_user, make_plan):
    orphan_ids = [make_plan(user_id=999) for _ in range(3)]
    plan_id = make_plan(make_user())

    sweep = RecoverySweep(plan_service.runner, interval_seconds=1800, batch_size=3)
    assert asyncio.run(sweep.run_once()) == 0
    assert load_plan(session_factory, plan_id)[0] == "PENDING"

    assert asyncio.run(sweep.run_once()) == 1
    assert load_plan(session_factory, plan_id)[0] == "FINALIZED"
    assert [load_plan(session_factory, o)[0] for o in orphan_ids] == ["PENDING"] * 3
