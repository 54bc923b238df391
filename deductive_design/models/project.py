"""Project metadata models for the registry and process logs.

Lightweight dataclasses — no full state document.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def now_iso() -> str:
    return datetime.now().isoformat()


@dataclass
class ProjectMeta:
    """Registry entry for one project."""
    id: str = ""
    name: str = ""
    theme: str = ""
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)


@dataclass
class ProcessLog:
    """Snapshot of one project's research/generate history for archiving."""
    project_id: str = ""
    created_at: str = ""
    updated_at: str = ""
    research_jobs: list[Any] = field(default_factory=list)
    generate_jobs: list[Any] = field(default_factory=list)
    generated_designs: list[Any] = field(default_factory=list)
    filtered_designs: list[Any] = field(default_factory=list)
