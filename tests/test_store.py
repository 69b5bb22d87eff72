from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone

from code_planner.config import PlannerConfig
from code_planner.generator import fallback_plan
from code_planner.models import CreatePlanOptions, ProjectPlan
from code_planner.store import PlanStore, title_matches


def _plan(title, created=None, **kw):
    plan = fallback_plan(title, CreatePlanOptions())
    if created is not None:
        plan.created_at = plan.updated_at = created
    for k, v in kw.items():
        setattr(plan, k, v)
    return plan


def test_save_then_load_round_trips(store):
    plan = _plan("Build a todo app")
    store.save(plan)

    loaded = store.load(plan.id)
    assert loaded == plan
    assert isinstance(loaded.created_at, datetime)
    assert loaded.created_at == plan.created_at

    on_disk = json.loads((store.plans_dir / f"{plan.id}.json").read_text())
    assert isinstance(on_disk["createdAt"], str)


def test_save_overwrites_whole_document(store):
    plan = _plan("Build a todo app")
    store.save(plan)
    plan.title = "Renamed"
    plan.steps = plan.steps[:1]
    store.save(plan)
    assert store.load(plan.id).title == "Renamed"
    assert len(store.load(plan.id).steps) == 1


def test_load_missing_or_corrupt_returns_none(store):
    assert store.load("nope") is None
    store.ensure_directories()
    (store.plans_dir / "broken.json").write_text("{ not json")
    (store.plans_dir / "wrong-shape.json").write_text('{"id": 1}')
    assert store.load("broken") is None
    assert store.load("wrong-shape") is None


def test_load_refuses_ids_outside_plans_dir(store):
    store.save_config(PlannerConfig(gemini_api_key="k" * 30))
    assert store.load("../config") is None


def test_list_on_fresh_home_is_empty(tmp_path):
    assert PlanStore(tmp_path / "never-created").list() == []


def test_list_sorts_newest_first_and_skips_corrupt(store):
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    old = _plan("Old plan", created=base)
    new = _plan("New plan", created=base + timedelta(days=2))
    mid = _plan("Mid plan", created=base + timedelta(days=1))
    for p in (old, new, mid):
        store.save(p)
    (store.plans_dir / "corrupt.json").write_text("][")
    (store.plans_dir / "notes.txt").write_text("ignored")

    assert [p.title for p in store.list()] == ["New plan", "Mid plan", "Old plan"]


def test_find_by_title(store):
    store.save(_plan("Build a Todo App with Authentication"))
    store.save(_plan("Build a REST API for Blog"))

    found = store.find_by_title("todo")
    assert [p.title for p in found] == ["Build a Todo App with Authentication"]
    assert [p.title for p in store.find_by_title("REST api")] == ["Build a REST API for Blog"]


def test_title_matches_first_word_heuristic():
    assert title_matches("Blog", "my blog engine")
    assert title_matches("Build a REST API", "rebuild everything")
    assert not title_matches("Build a REST API", "todo")
    assert not title_matches("", "anything")


def test_update_recomputes_progress_and_touches_updated_at(store):
    plan = _plan("Five steps", created=datetime(2025, 1, 1, tzinfo=timezone.utc))
    assert len(plan.steps) == 5
    for step in plan.steps[:3]:
        step.completed = True

    store.update(plan)

    loaded = store.load(plan.id)
    p = loaded.progress
    assert (p.completed_steps, p.total_steps, p.percentage) == (3, 5, 60)
    assert loaded.updated_at > loaded.created_at
    assert loaded.status == "planning"


def test_update_on_plan_without_steps(store):
    plan = ProjectPlan(id="empty-1", title="Empty")
    store.update(plan)
    assert store.load("empty-1").progress.percentage == 0


def test_delete(store):
    plan = _plan("Delete me")
    store.save(plan)
    assert store.delete(plan.id)
    assert store.load(plan.id) is None
    assert not store.delete(plan.id)


def test_stats(store):
    store.save(_plan("a", status="completed"))
    store.save(_plan("b", status="in-progress"))
    store.save(_plan("c"))
    assert store.stats() == {"total_plans": 3, "completed_plans": 1, "in_progress_plans": 1}


def test_config_defaults_when_absent(store):
    config = store.load_config()
    assert config.gemini_api_key is None
    assert config.default_output_dir == os.getcwd()
    assert config.max_plans == 50


def test_config_defaults_when_corrupt(store):
    store.root.mkdir(parents=True)
    store.config_path.write_text("garbage")
    assert store.load_config().max_plans == 50


def test_config_round_trip(store):
    store.save_config(PlannerConfig(gemini_api_key="secret-key", max_plans=5, default_output_dir="/tmp/out"))
    data = json.loads(store.config_path.read_text())
    assert data["geminiApiKey"] == "secret-key"
    assert data["maxPlans"] == 5

    config = store.load_config()
    assert config.gemini_api_key == "secret-key"
    assert config.default_output_dir == "/tmp/out"


def test_config_file_without_optional_fields_loads(store):
    store.root.mkdir(parents=True)
    store.config_path.write_text('{"defaultOutputDir": "/work", "maxPlans": 50}')
    config = store.load_config()
    assert config.gemini_api_key is None
    assert config.gemini_model == "gemini-2.0-flash"


def test_list_accepts_timestamps_without_offset(store):
    aware = _plan("Aware plan", created=datetime(2025, 1, 2, tzinfo=timezone.utc))
    store.save(aware)
    naive = _plan("Naive plan")
    data = json.loads(naive.to_json())
    data["createdAt"] = data["updatedAt"] = "2025-01-01T10:00:00"
    (store.plans_dir / f"{naive.id}.json").write_text(json.dumps(data))

    loaded = store.load(naive.id)
    assert loaded.created_at == datetime(2025, 1, 1, 10, tzinfo=timezone.utc)
    assert [p.title for p in store.list()] == ["Aware plan", "Naive plan"]
    assert store.stats()["total_plans"] == 2


def test_load_and_delete_treat_unusable_ids_as_absent(store):
    store.ensure_directories()
    assert store.load("bad\x00id") is None
    assert not store.delete("bad\x00id")
