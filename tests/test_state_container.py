"""Tests for ProjectStateContainer — load fallbacks and coalesced saves.

The flush timer needs a running event loop; most tests call ``flush()``
directly to mark the flush boundary, one lets the timer fire via
``QTest.qWait``.
"""

import json
import sys
from unittest.mock import MagicMock

import pytest
from PyQt6.QtCore import QCoreApplication
from PyQt6.QtTest import QTest

from deductive_design.constants import state_key_for
from deductive_design.core.serializers import default_state_dict, state_to_dict
from deductive_design.database.db_manager import DatabaseManager
from deductive_design.database.document_store import DocumentStore
from deductive_design.database.project_registry import ProjectRegistry
from deductive_design.database.settings_store import SettingsStore
from deductive_design.database.state_container import ProjectStateContainer
from deductive_design.models.project import ProjectMeta
from deductive_design.models.state import ProjectState, ResearchCondition, ResearchDomain

_app = QCoreApplication.instance() or QCoreApplication(sys.argv)


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def documents(tmp_path):
    db = DatabaseManager(tmp_path / "test.db")
    db.initialize_database()
    yield DocumentStore(db)
    db.close()


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(tmp_path / "settings.ini")


@pytest.fixture
def registry(settings):
    return ProjectRegistry(settings)


@pytest.fixture
def container(documents, settings, registry):
    return ProjectStateContainer(documents, settings, registry)


def _state(theme: str) -> ProjectState:
    return ProjectState(research_theme=theme)


# ── Load ─────────────────────────────────────────────────────────────

class TestLoad:

    def test_absent_gives_defaults(self, container):
        assert state_to_dict(container.load("nope")) == default_state_dict()

    def test_reads_bulk_tier(self, container, documents):
        documents.set(state_key_for("p"), {"researchTheme": "stored"})
        assert container.load("p").research_theme == "stored"

    def test_old_document_upgraded(self, container, documents):
        documents.set(state_key_for("p"), {"researchTheme": "old", "conditions": []})
        state = container.load("p")
        assert state.atmosphere.presets == []
        assert state.evaluation_results == []

    def test_settings_tier_fallback_moves_document(self, container, documents, settings):
        key = state_key_for("p")
        settings.set(key, json.dumps({"sceneConstraint": "narrow lot"}))

        state = container.load("p")

        assert state.scene_constraint == "narrow lot"
        assert settings.get(key) is None
        assert documents.get(key)["sceneConstraint"] == "narrow lot"

    def test_unreadable_settings_document_gives_defaults(self, container, settings):
        settings.set(state_key_for("p"), "{nope")
        assert state_to_dict(container.load("p")) == default_state_dict()

    def test_pending_save_is_visible_before_flush(self, container):
        container.save("p", _state("unflushed"))
        assert container.load("p").research_theme == "unflushed"

    def test_load_returns_independent_copy(self, container):
        state = _state("t")
        state.conditions.append(ResearchCondition(domain=ResearchDomain.CULTURE))
        container.save("p", state)
        loaded = container.load("p")
        loaded.conditions.clear()
        assert len(container.load("p").conditions) == 1


# ── Coalesced save ───────────────────────────────────────────────────

class TestCoalescedSave:

    def test_n_saves_one_write_last_wins(self, container, documents):
        documents.set = MagicMock(wraps=documents.set)
        for i in range(1, 6):
            container.save("p", _state(f"theme-{i}"))
        documents.set.assert_not_called()

        assert container.flush() == 1

        documents.set.assert_called_once()
        key, payload = documents.set.call_args[0]
        assert key == state_key_for("p")
        assert payload["researchTheme"] == "theme-5"

    def test_snapshot_taken_at_save_time(self, container, documents):
        state = _state("before")
        container.save("p", state)
        state.research_theme = "mutated after save"
        container.flush()
        assert documents.get(state_key_for("p"))["researchTheme"] == "before"

    def test_one_slot_per_project(self, container, documents):
        container.save("a", _state("A"))
        container.save("b", _state("B"))
        assert sorted(container.pending_project_ids()) == ["a", "b"]
        assert container.flush() == 2
        assert documents.get(state_key_for("a"))["researchTheme"] == "A"
        assert documents.get(state_key_for("b"))["researchTheme"] == "B"

    def test_accepts_raw_dict(self, container, documents):
        container.save("p", {"researchTheme": "raw"})
        container.flush()
        doc = documents.get(state_key_for("p"))
        assert sorted(doc) == sorted(default_state_dict())

    def test_flush_with_nothing_pending(self, container):
        assert container.flush() == 0

    def test_timer_flushes_on_next_tick(self, container, documents):
        container.save("p", _state("tick"))
        assert container.is_pending
        QTest.qWait(50)
        assert not container.is_pending
        assert documents.get(state_key_for("p"))["researchTheme"] == "tick"

    def test_failed_write_keeps_previous_value(self, container, documents):
        documents.set(state_key_for("p"), {"researchTheme": "on disk"})
        real_set = documents.set
        documents.set = MagicMock(return_value=False)
        container.save("p", _state("lost"))
        assert container.flush() == 0
        assert not container.is_pending
        documents.set = real_set
        assert documents.get(state_key_for("p"))["researchTheme"] == "on disk"

    def test_successful_write_touches_registry(self, container, registry):
        registry.add(ProjectMeta(id="p", name="P", created_at="2020-01-01T00:00:00",
                                 updated_at="2020-01-01T00:00:00"))
        container.save("p", _state("x"))
        container.flush()
        assert registry.get("p").updated_at > "2020-01-01T00:00:00"

    def test_signals(self, container):
        pending = MagicMock()
        saved = MagicMock()
        container.save_pending_changed.connect(pending)
        container.document_saved.connect(saved)

        container.save("p", _state("1"))
        container.save("p", _state("2"))
        container.flush()

        assert [c.args for c in pending.call_args_list] == [(True,), (False,)]
        saved.assert_called_once_with("p")


# ── Discard / delete ─────────────────────────────────────────────────

class TestDiscardDelete:

    def test_discard_drops_pending(self, container, documents):
        container.save("p", _state("x"))
        container.discard("p")
        assert not container.is_pending
        container.flush()
        assert documents.get(state_key_for("p")) is None

    def test_delete_removes_both_tiers(self, container, documents, settings):
        key = state_key_for("p")
        documents.set(key, {"researchTheme": "bulk"})
        settings.set(key, "{}")
        container.save("p", _state("pending"))

        container.delete("p")
        container.flush()

        assert documents.get(key) is None
        assert settings.get(key) is None
