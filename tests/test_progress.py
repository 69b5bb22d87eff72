from __future__ import annotations

import pytest

from code_planner.generator import fallback_plan
from code_planner.models import CreatePlanOptions
from code_planner.progress import ProgressEngine, StepNotFoundError


@pytest.fixture
def engine(store):
    return ProgressEngine(store)


def _saved_plan(store, project_type=None):
    plan = fallback_plan("Build a todo app", CreatePlanOptions(project_type=project_type))
    store.save(plan)
    return plan


def test_three_of_five_steps_is_sixty_percent(store, engine):
    plan = _saved_plan(store)
    for order in (1, 2, 3):
        plan = engine.set_step_completion(plan, order, True)

    assert plan.progress.model_dump() == {"completed_steps": 3, "total_steps": 5, "percentage": 60}
    assert store.load(plan.id).progress == plan.progress


def test_completing_twice_is_idempotent(store, engine):
    plan = _saved_plan(store)
    once = engine.set_step_completion(plan, 2, True)
    twice = engine.set_step_completion(once, 2, True)

    assert twice.steps == once.steps
    assert twice.progress == once.progress


def test_marking_incomplete(store, engine):
    plan = engine.set_step_completion(_saved_plan(store), 1, True)
    plan = engine.set_step_completion(plan, 1, False)
    assert not plan.steps[0].completed
    assert plan.progress.completed_steps == 0


@pytest.mark.parametrize("order", [0, 4, 99, -1])
def test_out_of_range_step_leaves_plan_untouched(store, engine, order):
    plan = _saved_plan(store, project_type="backend")
    path = store.plans_dir / f"{plan.id}.json"
    before = path.read_bytes()

    with pytest.raises(StepNotFoundError) as exc:
        engine.set_step_completion(plan, order, True)

    assert "Plan has 3 steps" in str(exc.value)
    assert path.read_bytes() == before


def test_only_the_target_step_changes(store, engine):
    plan = _saved_plan(store)
    updated = engine.set_step_completion(plan, 3, True)

    assert [s.completed for s in updated.steps] == [False, False, True, False, False]
    assert updated.title == plan.title
    assert updated.status == plan.status
    assert not plan.steps[2].completed


def test_status_is_not_derived_from_progress(store, engine):
    plan = _saved_plan(store)
    for order in range(1, len(plan.steps) + 1):
        plan = engine.set_step_completion(plan, order, True)

    assert plan.progress.percentage == 100
    assert plan.status == "planning"
    assert store.load(plan.id).status == "planning"
