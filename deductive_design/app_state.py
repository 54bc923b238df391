"""Application state controller — the single owner of project state.

Owns the in-memory ProjectState of the current project and the mirror of
the project registry. All mutations go through this controller, which
queues a coalesced save and emits Qt signals so views stay in sync.

Constructed once at the application root and passed to consumers;
tests build independent instances over temporary stores.
"""

from __future__ import annotations

import copy
import dataclasses
import functools
import logging
import uuid
from pathlib import Path

from PyQt6.QtCore import QObject, pyqtSignal

from deductive_design.constants import (
    COPY_SUFFIX,
    DEFAULT_PROJECT_ID,
    DEFAULT_PROJECT_NAME,
    DETAIL_STAGES,
    IMPORTED_PROJECT_NAME,
)
from deductive_design.core.serializers import dict_to_state, overall_score
from deductive_design.database.document_store import DocumentStore
from deductive_design.database.migration import migrate_if_needed, migrate_settings_documents
from deductive_design.database.project_registry import ProjectRegistry
from deductive_design.database.settings_store import SettingsStore
from deductive_design.database.state_container import ProjectStateContainer
from deductive_design.export.json_export import ProjectJsonExporter
from deductive_design.models.project import ProcessLog, ProjectMeta, now_iso
from deductive_design.models.state import (
    ArchitecturalConcept,
    AtmosphereState,
    EvaluationResult,
    GenerateJob,
    GeneratedDesign,
    GeneratedImage,
    ProjectState,
    RefinedConcept,
    ResearchCondition,
    ResearchJob,
)

logger = logging.getLogger(__name__)


def _generate_id() -> str:
    return f"proj-{uuid.uuid4().hex[:12]}"


def _persisted(method):
    """Decorator: after a state mutation, queue a save and notify views."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        if self._initialized:
            self._container.save(self._current_project_id, self._state)
        self.state_changed.emit()
        return result
    return wrapper


class AppStateController(QObject):
    """Facade over the registry and per-project state documents.

    Invariants:
      * the registry always holds at least one project;
      * the outgoing project's in-memory state is queued for saving
        before any switch, create, import or export proceeds;
      * ``state`` is replaced wholesale, never field by field.
    """

    # Current project's document changed (mutation or project switch)
    state_changed = pyqtSignal()
    # Registry list changed (create/rename/delete/duplicate/import/save)
    projects_changed = pyqtSignal()
    current_project_changed = pyqtSignal(str)
    save_pending_changed = pyqtSignal(bool)

    def __init__(
        self,
        documents: DocumentStore,
        settings: SettingsStore,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._documents = documents
        self._settings = settings
        self._registry = ProjectRegistry(settings)
        self._container = ProjectStateContainer(documents, settings, self._registry, self)
        self._container.save_pending_changed.connect(self.save_pending_changed)
        self._container.document_saved.connect(self._on_document_saved)
        self._exporter = ProjectJsonExporter()

        self._state = ProjectState()
        self._current_project_id = DEFAULT_PROJECT_ID
        self._projects: list[ProjectMeta] = []
        self._initialized = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ProjectState:
        """Current project's document (read-only reference)."""
        return self._state

    @property
    def projects(self) -> list[ProjectMeta]:
        return list(self._projects)

    @property
    def current_project_id(self) -> str:
        return self._current_project_id

    @property
    def current_project(self) -> ProjectMeta | None:
        for meta in self._projects:
            if meta.id == self._current_project_id:
                return meta
        return None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_save_pending(self) -> bool:
        return self._container.is_pending

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Run migrations and load the current project."""
        migrate_if_needed(self._settings, self._documents, self._registry)
        migrate_settings_documents(self._settings, self._documents, self._registry.ids())

        self._projects = self._registry.list_projects()
        if not self._projects:
            # Registry could not be written; keep working in memory.
            logger.warning("Project registry unavailable, using in-memory default")
            self._projects = [ProjectMeta(id=DEFAULT_PROJECT_ID, name=DEFAULT_PROJECT_NAME)]

        project_id = self._registry.current_project_id()
        if project_id not in {p.id for p in self._projects}:
            logger.warning("Current project %r not registered, falling back", project_id)
            project_id = self._projects[0].id
            self._registry.set_current_project_id(project_id)

        self._state = self._container.load(project_id)
        self._current_project_id = project_id
        self._initialized = True
        self.projects_changed.emit()
        self.current_project_changed.emit(project_id)
        self.state_changed.emit()

    def flush(self) -> int:
        """Write pending saves immediately."""
        return self._container.flush()

    def shutdown(self) -> None:
        """Flush pending saves and release storage."""
        self._container.flush()
        self._settings.sync()
        self._documents.close()

    # ------------------------------------------------------------------
    # Project management
    # ------------------------------------------------------------------

    def switch_project(self, project_id: str) -> bool:
        """Make another project current. No-op for the current or an unknown id."""
        if project_id == self._current_project_id:
            return False
        if self._registry.get(project_id) is None:
            logger.warning("Cannot switch to unknown project %r", project_id)
            return False
        self._save_current()
        state = self._container.load(project_id)
        self._apply(project_id, state)
        return True

    def create_project(self, name: str, theme: str = "") -> ProjectMeta:
        """Register a fresh project (theme pre-filled) and make it current."""
        self._save_current()
        meta = ProjectMeta(id=_generate_id(), name=name, theme=theme)
        self._projects = self._registry.add(meta)

        state = ProjectState(research_theme=theme)
        self._container.save(meta.id, state)
        self.projects_changed.emit()
        self._apply(meta.id, state)
        return meta

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and its document. Refused for the last project."""
        projects = self._registry.list_projects()
        if len(projects) <= 1:
            return False
        if project_id not in {p.id for p in projects}:
            return False

        self._projects = self._registry.remove(project_id)
        self._container.delete(project_id)
        self.projects_changed.emit()

        if project_id == self._current_project_id:
            next_id = self._projects[0].id
            self._apply(next_id, self._container.load(next_id))
        return True

    def duplicate_project(self, project_id: str) -> ProjectMeta | None:
        """Copy a project's metadata and document under a new id.

        The current project stays current.
        """
        source = self._registry.get(project_id)
        if source is None:
            return None
        if project_id == self._current_project_id:
            self._save_current()

        meta = ProjectMeta(
            id=_generate_id(),
            name=f"{source.name}{COPY_SUFFIX}",
            theme=source.theme,
        )
        self._container.save(meta.id, self._container.load(project_id))
        self._projects = self._registry.add(meta)
        self.projects_changed.emit()
        return meta

    def rename_project(self, project_id: str, name: str) -> bool:
        meta = self._registry.update(project_id, name=name, updated_at=now_iso())
        if meta is None:
            return False
        self._projects = self._registry.list_projects()
        self.projects_changed.emit()
        return True

    def export_project(self, project_id: str) -> str | None:
        """JSON text with the project's meta and full document.

        Returns None for an unknown project.
        """
        meta = self._registry.get(project_id)
        if meta is None:
            return None
        if project_id == self._current_project_id:
            self._save_current()
        return self._exporter.to_text(meta, self._container.load(project_id))

    def import_project(self, text: str) -> ProjectMeta:
        """Add a project from export text (or a bare document) and make it current.

        Raises:
            ProjectImportError: If the text is not a JSON object. The
                registry is left untouched.
        """
        name, theme, raw_state = self._exporter.parse_text(text)
        self._save_current()

        meta = ProjectMeta(
            id=_generate_id(),
            name=name if name is not None else IMPORTED_PROJECT_NAME,
            theme=theme if theme is not None else "",
        )
        state = dict_to_state(raw_state)
        self._container.save(meta.id, state)
        self._projects = self._registry.add(meta)
        self.projects_changed.emit()
        self._apply(meta.id, state)
        return meta

    def export_project_to_file(self, project_id: str, output_path: Path | str) -> bool:
        meta = self._registry.get(project_id)
        if meta is None:
            return False
        if project_id == self._current_project_id:
            self._save_current()
        self._exporter.export_file(meta, self._container.load(project_id), output_path)
        return True

    def import_project_from_file(self, input_path: Path | str) -> ProjectMeta:
        return self.import_project(self._exporter.read_file(input_path))

    # ------------------------------------------------------------------
    # Research
    # ------------------------------------------------------------------

    @_persisted
    def set_research_theme(self, theme: str) -> None:
        self._state.research_theme = theme

    @_persisted
    def add_condition(self, condition: ResearchCondition) -> None:
        self._state.conditions.append(condition)

    @_persisted
    def remove_condition(self, index: int) -> None:
        if 0 <= index < len(self._state.conditions):
            del self._state.conditions[index]

    @_persisted
    def update_conditions(self, conditions: list[ResearchCondition]) -> None:
        self._state.conditions = list(conditions)

    @_persisted
    def add_research_job(self, job: ResearchJob) -> None:
        self._state.research_jobs.append(job)

    @_persisted
    def load_research_job(self, job_id: str) -> bool:
        """Restore the conditions recorded by an earlier research job."""
        for job in self._state.research_jobs:
            if job.id == job_id:
                self._state.conditions = copy.deepcopy(job.conditions)
                return True
        return False

    @_persisted
    def set_selected_concepts(self, concepts: list[ArchitecturalConcept]) -> None:
        self._state.selected_concepts = list(concepts)

    @_persisted
    def set_refined_concept(self, concept: RefinedConcept | None) -> None:
        self._state.refined_concept = concept

    @_persisted
    def set_atmosphere(self, atmosphere: AtmosphereState) -> None:
        self._state.atmosphere = atmosphere

    # ------------------------------------------------------------------
    # Generate / Filter
    # ------------------------------------------------------------------

    @_persisted
    def set_scene_constraint(self, constraint: str) -> None:
        self._state.scene_constraint = constraint

    @_persisted
    def add_generate_job(self, job: GenerateJob) -> None:
        self._state.generate_jobs.append(job)

    @_persisted
    def add_generate_image(self, image: GeneratedImage) -> None:
        self._state.generate_images.append(image)

    @_persisted
    def clear_generate_images(self) -> None:
        self._state.generate_images = []

    @_persisted
    def set_generated_designs(self, designs: list[GeneratedDesign]) -> None:
        self._state.generated_designs = list(designs)

    @_persisted
    def set_filtered_designs(self, designs: list[GeneratedDesign]) -> None:
        self._state.filtered_designs = list(designs)

    @_persisted
    def set_detail_images(self, images: dict[str, GeneratedImage]) -> None:
        """Replace the detail images.

        New keys must be canonical stages; keys already stored under
        another name (kept from older documents) may stay.
        """
        unknown = set(images) - set(DETAIL_STAGES) - set(self._state.detail_images)
        if unknown:
            raise ValueError(f"Unknown detail stage(s): {sorted(unknown)}")
        self._state.detail_images = dict(images)

    def set_detail_image(self, stage: str, image: GeneratedImage) -> None:
        if stage not in DETAIL_STAGES:
            raise ValueError(f"Unknown detail stage: {stage!r}")
        images = dict(self._state.detail_images)
        images[stage] = image
        self.set_detail_images(images)

    # ------------------------------------------------------------------
    # Distill
    # ------------------------------------------------------------------

    @_persisted
    def add_evaluation_result(self, result: EvaluationResult) -> None:
        """Append an evaluation; a missing overall score is derived from domain scores."""
        if result.overall_score is None:
            result = dataclasses.replace(result, overall_score=overall_score(result.evaluations))
        self._state.evaluation_results.append(result)

    def export_process_log(self) -> ProcessLog:
        """Research/generate history of the current project."""
        now = now_iso()
        jobs = self._state.research_jobs
        return ProcessLog(
            project_id=self._current_project_id,
            created_at=jobs[0].timestamp if jobs and jobs[0].timestamp else now,
            updated_at=now,
            research_jobs=copy.deepcopy(jobs),
            generate_jobs=copy.deepcopy(self._state.generate_jobs),
            generated_designs=copy.deepcopy(self._state.generated_designs),
            filtered_designs=copy.deepcopy(self._state.filtered_designs),
        )

    def export_process_log_to_file(self, output_path: Path | str) -> ProcessLog:
        log = self.export_process_log()
        self._exporter.export_process_log_file(log, output_path)
        return log

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _save_current(self) -> None:
        if self._initialized:
            self._container.save(self._current_project_id, self._state)

    def _apply(self, project_id: str, state: ProjectState) -> None:
        """Swap in another project's document in one step."""
        self._state = state
        self._current_project_id = project_id
        self._registry.set_current_project_id(project_id)
        self.current_project_changed.emit(project_id)
        self.state_changed.emit()

    def _on_document_saved(self, project_id: str) -> None:
        projects = self._registry.list_projects()
        if projects:
            self._projects = projects
            self.projects_changed.emit()
