"""Storage layer — SQLite document tier, QSettings string tier, registry, migrations."""

from deductive_design.database.db_manager import DatabaseManager
from deductive_design.database.document_store import DocumentStore
from deductive_design.database.project_registry import ProjectRegistry
from deductive_design.database.settings_store import SettingsStore
from deductive_design.database.state_container import ProjectStateContainer

__all__ = [
    "DatabaseManager",
    "DocumentStore",
    "ProjectRegistry",
    "ProjectStateContainer",
    "SettingsStore",
]
