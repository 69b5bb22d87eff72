from __future__ import annotations
from pathlib import Path
from typing import Optional
import logging

from .config import PlannerConfig, default_app_dir
from .models import ProjectPlan, utcnow
from .utils import atomic_write, jail_path

def title_matches(title: str, term: str) -> bool:
    """
    Loose title search: the title contains the term, or the term contains the
    title's first word. A one-word title therefore matches any search that
    contains that word.
    """
    t = title.lower()
    s = term.lower()
    if s in t:
        return True
    words = t.split()
    return bool(words) and words[0] in s

class PlanStore:
    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else default_app_dir()
        self.config_path = self.root / "config.json"
        self.plans_dir = self.root / "plans"

    def ensure_directories(self) -> None:
        self.plans_dir.mkdir(parents=True, exist_ok=True)

    # plans

    def save(self, plan: ProjectPlan) -> None:
        self.ensure_directories()
        atomic_write(self._plan_path(plan.id), plan.to_json().encode("utf-8"))

    def load(self, plan_id: str) -> Optional[ProjectPlan]:
        try:
            path = self._plan_path(plan_id)
        except (PermissionError, ValueError):
            return None
        if not path.is_file():
            return None
        try:
            return ProjectPlan.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logging.debug(f"skipping unreadable plan {path.name}: {e}")
            return None

    def list(self) -> list[ProjectPlan]:
        if not self.plans_dir.is_dir():
            return []
        plans = []
        for f in sorted(self.plans_dir.glob("*.json")):
            plan = self.load(f.stem)
            if plan is not None:
                plans.append(plan)
        return sorted(plans, key=lambda p: p.created_at, reverse=True)

    def find_by_title(self, term: str) -> list[ProjectPlan]:
        return [p for p in self.list() if title_matches(p.title, term)]

    def update(self, plan: ProjectPlan) -> ProjectPlan:
        plan.recompute_progress()
        plan.updated_at = utcnow()
        self.save(plan)
        return plan

    def delete(self, plan_id: str) -> bool:
        try:
            self._plan_path(plan_id).unlink()
        except (OSError, ValueError):
            return False
        return True

    def stats(self) -> dict:
        plans = self.list()
        return {
            "total_plans": len(plans),
            "completed_plans": sum(1 for p in plans if p.status == "completed"),
            "in_progress_plans": sum(1 for p in plans if p.status == "in-progress"),
        }

    # config

    def load_config(self) -> PlannerConfig:
        try:
            return PlannerConfig.model_validate_json(self.config_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return PlannerConfig()
        except (OSError, ValueError) as e:
            logging.warning(f"config at {self.config_path} is unreadable, using defaults: {e}")
            return PlannerConfig()

    def save_config(self, config: PlannerConfig) -> None:
        data = config.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        atomic_write(self.config_path, data.encode("utf-8"))

    def _plan_path(self, plan_id: str) -> Path:
        return jail_path(self.plans_dir, f"{plan_id}.json")
