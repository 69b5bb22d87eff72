from __future__ import annotations
import json, logging
from typing import Any, Optional

from .llm import LLM
from .models import (
    CreatePlanOptions, Dependencies, FileStructure, GenerationResult, Overview,
    PlanStep, Progress, ProjectPlan, utcnow,
)
from .utils import plan_id, step_id

SYSTEM_PROMPT = "You are an expert software development planner. You answer with a single JSON object."

FRAMEWORK_DEPENDENCIES = {
    "react": ["react", "react-dom"],
    "vue": ["vue"],
    "angular": ["@angular/core"],
    "next": ["next", "react"],
}

COMPLEXITIES = ("low", "medium", "high")

def build_prompt(task: str, options: CreatePlanOptions) -> str:
    extras = ""
    if options.project_type:
        extras += f"Project Type: {options.project_type}\n"
    if options.framework:
        extras += f"Framework: {options.framework}\n"
    return f"""Create a detailed development plan for the following task:

Task: "{task}"
{extras}
Please provide a structured response in the following JSON format:

{{
  "title": "Project title (concise)",
  "description": "Brief project description",
  "overview": {{
    "projectType": "frontend|backend|fullstack",
    "estimatedTime": "time estimate (e.g., '2-3 weeks')",
    "complexity": "low|medium|high"
  }},
  "fileStructure": {{
    "directories": ["array of directory paths"],
    "files": ["array of important file paths"]
  }},
  "dependencies": {{
    "npm": ["array of npm packages needed"],
    "apis": ["array of external APIs"],
    "services": ["array of deployment/hosting services"]
  }},
  "steps": [
    {{
      "title": "Step title",
      "description": "Detailed description of what to do",
      "files": ["files that will be created/modified"],
      "dependencies": ["specific dependencies for this step"],
      "order": 1
    }}
  ]
}}

Requirements:
- Create 4-7 logical development steps
- Include realistic file structures
- Suggest appropriate dependencies
- Provide clear, actionable step descriptions
- Consider best practices for the chosen technology stack

Respond only with valid JSON, no additional text."""

def extract_json(text: str) -> str:
    """Return the first brace-balanced {...} region of text, ignoring braces inside strings."""
    start = text.find("{")
    if start < 0:
        raise ValueError("No JSON found in response")
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    raise ValueError("Unbalanced JSON object in response")

def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]

def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    return value if isinstance(value, dict) else {}

def _numbered(steps: list[dict]) -> list[PlanStep]:
    # ids and orders always come from position, never from the source
    return [
        PlanStep(
            id=step_id(n),
            title=str(s.get("title") or f"Step {n}"),
            description=str(s.get("description") or ""),
            files=_strings(s.get("files")),
            dependencies=_strings(s.get("dependencies")),
            completed=False,
            order=n,
        )
        for n, s in enumerate(steps, 1)
    ]

def parse_plan(text: str, task: str, options: CreatePlanOptions) -> ProjectPlan:
    data = json.loads(extract_json(text))
    if not isinstance(data, dict):
        raise ValueError("response JSON is not an object")
    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise ValueError("response has no steps")
    if not all(isinstance(s, dict) for s in raw_steps):
        raise ValueError("response steps must be objects")

    overview = _section(data, "overview")
    files = _section(data, "fileStructure")
    deps = _section(data, "dependencies")
    complexity = str(overview.get("complexity") or "").lower()
    title = str(data.get("title") or task)
    steps = _numbered(raw_steps)
    now = utcnow()

    return ProjectPlan(
        id=plan_id(title),
        title=title,
        description=str(data.get("description") or f"Development plan for: {task}"),
        created_at=now,
        updated_at=now,
        status="planning",
        overview=Overview(
            project_type=str(overview.get("projectType") or options.project_type or "fullstack"),
            estimated_time=str(overview.get("estimatedTime") or "TBD"),
            complexity=complexity if complexity in COMPLEXITIES else "medium",
        ),
        file_structure=FileStructure(
            directories=_strings(files.get("directories")),
            files=_strings(files.get("files")),
        ),
        dependencies=Dependencies(
            npm=_strings(deps.get("npm")),
            apis=_strings(deps.get("apis")),
            services=_strings(deps.get("services")),
        ),
        steps=steps,
        progress=Progress.from_steps(steps),
    )

def default_steps(task: str, project_type: str) -> list[PlanStep]:
    steps = [
        {
            "title": "Project Setup",
            "description": "Initialize project structure and install dependencies",
            "files": ["package.json", "README.md"],
            "dependencies": ["npm init", "dependency installation"],
        },
        {
            "title": "Core Implementation",
            "description": f"Implement the main functionality for: {task}",
            "files": ["src/index.js", "src/main.js"],
            "dependencies": [],
        },
        {
            "title": "Testing & Documentation",
            "description": "Add tests and update documentation",
            "files": ["tests/", "README.md"],
            "dependencies": ["testing framework"],
        },
    ]
    if project_type == "fullstack":
        steps.insert(1, {
            "title": "Backend Setup",
            "description": "Set up server and database connections",
            "files": ["server/index.js", "server/models/"],
            "dependencies": ["express", "database driver"],
        })
        steps.append({
            "title": "Frontend Integration",
            "description": "Connect frontend to backend APIs",
            "files": ["src/services/", "src/components/"],
            "dependencies": ["axios", "frontend framework"],
        })
    return _numbered(steps)

def default_dependencies(framework: Optional[str]) -> list[str]:
    deps = ["express"]
    if framework:
        deps += FRAMEWORK_DEPENDENCIES.get(framework.lower(), [])
    return deps

def fallback_plan(task: str, options: CreatePlanOptions) -> ProjectPlan:
    project_type = options.project_type or "fullstack"
    steps = default_steps(task, project_type)
    now = utcnow()
    return ProjectPlan(
        id=plan_id(task),
        title=task,
        description=f"Development plan for: {task}",
        created_at=now,
        updated_at=now,
        status="planning",
        overview=Overview(project_type=project_type, estimated_time="TBD", complexity="medium"),
        file_structure=FileStructure(
            directories=["src/", "src/components/", "src/utils/"],
            files=["package.json", "README.md", "src/index.js"],
        ),
        dependencies=Dependencies(npm=default_dependencies(options.framework)),
        steps=steps,
        progress=Progress.from_steps(steps),
    )

class PlanGenerator:
    """
    Turns a task description into a ProjectPlan. Uses the LLM when one is
    available and falls back to a fixed template on any failure, so
    generation never raises for a string task.
    """
    def __init__(self, llm: Optional[LLM] = None):
        self.llm = llm

    def generate(self, task: str, options: Optional[CreatePlanOptions] = None) -> ProjectPlan:
        return self.generate_with_source(task, options).plan

    def generate_with_source(self, task: str, options: Optional[CreatePlanOptions] = None) -> GenerationResult:
        options = options or CreatePlanOptions()
        if self.llm is None or not self.llm.available:
            return GenerationResult(plan=fallback_plan(task, options), from_ai=False)
        try:
            text = self.llm.generate_text(build_prompt(task, options), SYSTEM_PROMPT)
            return GenerationResult(plan=parse_plan(text, task, options), from_ai=True)
        except Exception as e:
            logging.warning(f"AI generation failed, creating basic plan: {e}")
            return GenerationResult(plan=fallback_plan(task, options), from_ai=False)

    def suggest_next_steps(self, plan: ProjectPlan) -> list[str]:
        next_step = plan.next_step()
        if next_step is None:
            return ["All steps completed! Consider deployment or additional features."]

        defaults = [
            f"Work on: {next_step.description}",
            f"Create files: {', '.join(next_step.files)}",
            f"Install dependencies: {', '.join(next_step.dependencies)}",
        ]
        if self.llm is None or not self.llm.available:
            return defaults

        done = ", ".join(s.title for s in plan.steps if s.completed) or "none"
        prompt = f"""Given this development plan progress:
- Project: {plan.title}
- Completed steps: {done}
- Next step: {next_step.title}

Suggest 3-5 specific actionable items for the next step "{next_step.title}".
Respond with one item per line, no additional formatting."""
        try:
            text = self.llm.generate_text(prompt, max_tokens=500)
        except Exception as e:
            logging.warning(f"could not fetch suggestions: {e}")
            return defaults
        lines = [l.strip() for l in text.splitlines() if l.strip()][:5]
        return lines or defaults
