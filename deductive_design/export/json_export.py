"""Project JSON export/import.

Export text is ``{"meta": ProjectMeta, "state": ProjectState}``. Import
also accepts a bare state document; either way the state is completed
against defaults by the caller.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from deductive_design.core.serializers import meta_to_dict, process_log_to_dict, state_to_dict
from deductive_design.models.project import ProcessLog, ProjectMeta
from deductive_design.models.state import ProjectState


class ProjectImportError(ValueError):
    """Import text is not a JSON object."""


class ProjectJsonExporter:
    """Project JSON text and file operations."""

    def to_text(self, meta: ProjectMeta, state: ProjectState) -> str:
        """Serialize one project for round-trip import."""
        data = {"meta": meta_to_dict(meta), "state": state_to_dict(state)}
        return json.dumps(data, indent=2, ensure_ascii=False)

    def parse_text(self, text: str) -> tuple[str | None, str | None, dict[str, Any]]:
        """Split import text into name, theme and raw state document.

        Args:
            text: Exported project, or a bare state document.

        Returns:
            ``(name, theme, state)``; name/theme are None when the text
            carries no usable ``meta``.

        Raises:
            ProjectImportError: If the text is not a JSON object.
        """
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as exc:
            raise ProjectImportError(f"Not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ProjectImportError("Expected a JSON object")

        state = data.get("state")
        if not isinstance(state, dict):
            state = data

        meta = data.get("meta")
        if not isinstance(meta, dict):
            meta = {}
        name = meta.get("name")
        theme = meta.get("theme")
        return (
            name if isinstance(name, str) else None,
            theme if isinstance(theme, str) else None,
            state,
        )

    def export_file(
        self, meta: ProjectMeta, state: ProjectState, output_path: Path | str,
    ) -> None:
        """Write the export text to a ``.json`` file."""
        Path(output_path).write_text(self.to_text(meta, state), encoding="utf-8")

    def read_file(self, input_path: Path | str) -> str:
        return Path(input_path).read_text(encoding="utf-8")

    def process_log_to_text(self, log: ProcessLog) -> str:
        return json.dumps(process_log_to_dict(log), indent=2, ensure_ascii=False)

    def export_process_log_file(self, log: ProcessLog, output_path: Path | str) -> None:
        """Write a project's research/generate history to a ``.json`` file."""
        Path(output_path).write_text(self.process_log_to_text(log), encoding="utf-8")
