from __future__ import annotations

from .models import ProjectPlan
from .store import PlanStore

class StepNotFoundError(LookupError):
    def __init__(self, step_order: int, total: int):
        super().__init__(f"Step {step_order} not found. Plan has {total} steps.")
        self.step_order = step_order
        self.total = total

class ProgressEngine:
    def __init__(self, store: PlanStore):
        self.store = store

    def set_step_completion(self, plan: ProjectPlan, step_order: int, completed: bool) -> ProjectPlan:
        """
        Mark the step at 1-based position step_order complete or incomplete and
        persist the plan with recomputed progress. Status is left alone even
        when every step is done.
        """
        if not 1 <= step_order <= len(plan.steps):
            raise StepNotFoundError(step_order, len(plan.steps))
        updated = plan.model_copy(deep=True)
        updated.steps[step_order - 1].completed = completed
        return self.store.update(updated)
