from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

PlanStatus = Literal["planning", "in-progress", "completed", "paused"]
Complexity = Literal["low", "medium", "high"]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class _Record(BaseModel):
    # camelCase on disk, snake_case in Python
    model_config = ConfigDict(populate_by_name=True)

class PlanStep(_Record):
    id: str
    title: str
    description: str = ""
    files: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    completed: bool = False
    order: int = Field(..., ge=1)

class Overview(_Record):
    project_type: str = Field("fullstack", alias="projectType")
    estimated_time: str = Field("TBD", alias="estimatedTime")
    complexity: Complexity = "medium"

class FileStructure(_Record):
    directories: list[str] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)

class Dependencies(_Record):
    npm: list[str] = Field(default_factory=list)
    apis: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)

class Progress(_Record):
    completed_steps: int = Field(0, alias="completedSteps")
    total_steps: int = Field(0, alias="totalSteps")
    percentage: int = 0

    @classmethod
    def from_steps(cls, steps: list[PlanStep]) -> "Progress":
        total = len(steps)
        done = sum(1 for s in steps if s.completed)
        return cls(completed_steps=done, total_steps=total, percentage=percent(done, total))

def percent(done: int, total: int) -> int:
    """Whole-number percentage, halves rounded up; 0 for an empty plan."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)

class ProjectPlan(_Record):
    id: str
    title: str
    description: str = ""
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
    status: PlanStatus = "planning"
    overview: Overview = Field(default_factory=Overview)
    file_structure: FileStructure = Field(default_factory=FileStructure, alias="fileStructure")
    dependencies: Dependencies = Field(default_factory=Dependencies)
    steps: list[PlanStep] = Field(default_factory=list)
    progress: Progress = Field(default_factory=Progress)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # timestamps without an offset are read as UTC
        return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v

    def recompute_progress(self) -> Progress:
        self.progress = Progress.from_steps(self.steps)
        return self.progress

    def next_step(self) -> Optional[PlanStep]:
        return next((s for s in self.steps if not s.completed), None)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

@dataclass
class CreatePlanOptions:
    project_type: Optional[str] = None
    framework: Optional[str] = None

@dataclass
class GenerationResult:
    plan: ProjectPlan
    from_ai: bool
