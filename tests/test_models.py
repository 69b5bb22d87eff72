from __future__ import annotations

import json

import pytest

from code_planner.models import PlanStep, Progress, ProjectPlan, percent


@pytest.mark.parametrize(
    "done,total,expected",
    [(0, 0, 0), (0, 4, 0), (3, 5, 60), (1, 3, 33), (2, 3, 67), (1, 8, 13), (4, 4, 100)],
)
def test_percent_rounds_halves_up(done, total, expected):
    assert percent(done, total) == expected


def _steps(flags):
    return [PlanStep(id=f"step-{i}", title=f"S{i}", order=i, completed=f) for i, f in enumerate(flags, 1)]


def test_progress_from_steps():
    p = Progress.from_steps(_steps([True, True, True, False, False]))
    assert (p.completed_steps, p.total_steps, p.percentage) == (3, 5, 60)


def test_recompute_progress_on_empty_plan():
    plan = ProjectPlan(id="empty-1", title="Empty")
    plan.recompute_progress()
    assert plan.progress.total_steps == 0
    assert plan.progress.percentage == 0


def test_json_uses_camel_case_keys():
    plan = ProjectPlan(id="x-1", title="X", steps=_steps([False]))
    data = json.loads(plan.to_json())
    assert {"createdAt", "updatedAt", "fileStructure", "progress"} <= data.keys()
    assert data["overview"] == {"projectType": "fullstack", "estimatedTime": "TBD", "complexity": "medium"}
    assert data["progress"] == {"completedSteps": 0, "totalSteps": 0, "percentage": 0}
    assert data["createdAt"].endswith("Z")


def test_next_step():
    plan = ProjectPlan(id="x-1", title="X", steps=_steps([True, False, False]))
    assert plan.next_step().order == 2
    plan.steps[1].completed = plan.steps[2].completed = True
    assert plan.next_step() is None


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        ProjectPlan(id="x-1", title="X", status="done")
