"""Project registry — project metadata index and current-project pointer.

Both live in the small-value tier. The index is a JSON array of
ProjectMeta; every mutation reads the whole array, edits it, and writes
it back (the tier has no partial update).
"""

from __future__ import annotations

import dataclasses
import logging

from deductive_design.constants import (
    CURRENT_PROJECT_KEY,
    DEFAULT_PROJECT_ID,
    PROJECTS_INDEX_KEY,
)
from deductive_design.core.serializers import dict_to_meta, meta_to_dict
from deductive_design.database.settings_store import SettingsStore
from deductive_design.models.project import ProjectMeta, now_iso

logger = logging.getLogger(__name__)


class ProjectRegistry:
    """Read-modify-write access to the project index."""

    def __init__(self, settings: SettingsStore):
        self._settings = settings

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def list_projects(self) -> list[ProjectMeta]:
        """All registered projects in index order. Malformed entries are skipped."""
        raw = self._settings.get_json(PROJECTS_INDEX_KEY)
        if not isinstance(raw, list):
            return []
        projects = []
        seen = set()
        for entry in raw:
            meta = dict_to_meta(entry)
            if meta is None or meta.id in seen:
                logger.warning("Skipping invalid registry entry: %r", entry)
                continue
            seen.add(meta.id)
            projects.append(meta)
        return projects

    def save_all(self, projects: list[ProjectMeta]) -> bool:
        return self._settings.set_json(
            PROJECTS_INDEX_KEY, [meta_to_dict(p) for p in projects]
        )

    def is_empty(self) -> bool:
        return not self.list_projects()

    def get(self, project_id: str) -> ProjectMeta | None:
        for meta in self.list_projects():
            if meta.id == project_id:
                return meta
        return None

    def ids(self) -> list[str]:
        return [p.id for p in self.list_projects()]

    def add(self, meta: ProjectMeta) -> list[ProjectMeta]:
        """Append (or replace by id) and return the new index."""
        projects = [p for p in self.list_projects() if p.id != meta.id]
        projects.append(meta)
        self.save_all(projects)
        return projects

    def remove(self, project_id: str) -> list[ProjectMeta]:
        projects = [p for p in self.list_projects() if p.id != project_id]
        self.save_all(projects)
        return projects

    def update(self, project_id: str, **changes) -> ProjectMeta | None:
        """Apply field changes to one entry. Returns the updated entry."""
        projects = self.list_projects()
        for i, meta in enumerate(projects):
            if meta.id == project_id:
                projects[i] = dataclasses.replace(meta, **changes)
                self.save_all(projects)
                return projects[i]
        return None

    def touch(self, project_id: str) -> ProjectMeta | None:
        """Bump ``updated_at`` to now."""
        return self.update(project_id, updated_at=now_iso())

    # ------------------------------------------------------------------
    # Current project pointer
    # ------------------------------------------------------------------

    def current_project_id(self) -> str:
        return self._settings.get(CURRENT_PROJECT_KEY) or DEFAULT_PROJECT_ID

    def set_current_project_id(self, project_id: str) -> bool:
        return self._settings.set(CURRENT_PROJECT_KEY, project_id)
