"""Export — project JSON files (``{"meta": ..., "state": ...}``)."""

from deductive_design.export.json_export import ProjectImportError, ProjectJsonExporter

__all__ = [
    "ProjectImportError",
    "ProjectJsonExporter",
]
