"""Per-project state documents — load with fallbacks, coalesced save.

Saves go into a pending mailbox with one slot per project: a newer save
for the same project replaces the older payload. One zero-interval
single-shot QTimer flushes every pending slot on the next event-loop
iteration, so a burst of edits (e.g. slider drags) costs one write per
project per tick.
"""

from __future__ import annotations

import json
import logging

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from deductive_design.constants import state_key_for
from deductive_design.core.serializers import dict_to_state, merge_defaults, state_to_dict
from deductive_design.database.document_store import DocumentStore
from deductive_design.database.project_registry import ProjectRegistry
from deductive_design.database.settings_store import SettingsStore
from deductive_design.models.state import ProjectState

logger = logging.getLogger(__name__)


class ProjectStateContainer(QObject):
    """Loads and persists ProjectState documents through the storage tiers."""

    # True when the first save is queued, False once the mailbox drains
    save_pending_changed = pyqtSignal(bool)
    # Project id whose document was written
    document_saved = pyqtSignal(str)

    def __init__(
        self,
        documents: DocumentStore,
        settings: SettingsStore,
        registry: ProjectRegistry,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._documents = documents
        self._settings = settings
        self._registry = registry
        self._pending: dict[str, dict] = {}
        self._flush_timer = QTimer(self)
        self._flush_timer.setSingleShot(True)
        self._flush_timer.setInterval(0)
        self._flush_timer.timeout.connect(self.flush)

    @property
    def is_pending(self) -> bool:
        return bool(self._pending)

    def pending_project_ids(self) -> list[str]:
        return list(self._pending)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self, project_id: str) -> ProjectState:
        """Return the project's document, completed against defaults.

        Lookup order: pending (unflushed) save, bulk tier, small-value
        tier (older generation; moved to the bulk tier on read), defaults.
        The result never shares objects with stored or pending data.
        """
        if project_id in self._pending:
            return dict_to_state(self._pending[project_id])

        key = state_key_for(project_id)
        data = self._documents.get(key)
        if data is not None:
            return dict_to_state(data)

        raw = self._settings.get(key)
        if raw is not None:
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Unreadable settings document %s", key, exc_info=True)
                return ProjectState()
            merged = merge_defaults(parsed)
            if self._documents.set(key, merged):
                self._settings.delete(key)
            return dict_to_state(merged)

        return ProjectState()

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, project_id: str, state: ProjectState | dict) -> None:
        """Queue a snapshot of ``state``; later saves for the same project win."""
        if isinstance(state, ProjectState):
            snapshot = state_to_dict(state)
        else:
            snapshot = merge_defaults(state)
        was_idle = not self._pending
        self._pending[project_id] = snapshot
        if not self._flush_timer.isActive():
            self._flush_timer.start()
        if was_idle:
            self.save_pending_changed.emit(True)

    def flush(self) -> int:
        """Write every pending snapshot now.

        Failed writes are dropped (the stored value stays as it was).

        Returns:
            Number of documents written.
        """
        self._flush_timer.stop()
        if not self._pending:
            return 0
        pending, self._pending = self._pending, {}
        written = 0
        for project_id, snapshot in pending.items():
            if self._documents.set(state_key_for(project_id), snapshot):
                written += 1
                self._registry.touch(project_id)
                self.document_saved.emit(project_id)
            else:
                logger.warning("Dropped save for project %s", project_id)
        logger.debug("Flushed %d/%d pending document(s)", written, len(pending))
        self.save_pending_changed.emit(False)
        return written

    def discard(self, project_id: str) -> None:
        """Forget a pending save without writing it."""
        if self._pending.pop(project_id, None) is None:
            return
        if not self._pending:
            self._flush_timer.stop()
            self.save_pending_changed.emit(False)

    def delete(self, project_id: str) -> None:
        """Remove a project's document from both tiers."""
        self.discard(project_id)
        key = state_key_for(project_id)
        self._documents.delete(key)
        self._settings.delete(key)
