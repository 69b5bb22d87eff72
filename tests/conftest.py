from __future__ import annotations

import pytest

from code_planner.store import PlanStore


class FakeLLM:
    """Stands in for code_planner.llm.LLM; replies with canned text or raises."""

    def __init__(self, reply=None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    @property
    def available(self) -> bool:
        return True

    def generate_text(self, prompt, system_prompt="", max_tokens=4000):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def store(tmp_path):
    return PlanStore(tmp_path / "home")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("CODE_PLANNER_HOME", str(tmp_path / "default-home"))
