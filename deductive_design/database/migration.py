"""Startup migrations between storage generations.

Generation 1 kept a single global document under ``app-state`` in the
small-value tier. Generation 2 kept per-project documents in the
small-value tier. The current layout keeps per-project documents in the
bulk tier and only the registry in the small-value tier.

Parse failures never abort startup; the affected payload is skipped.
"""

from __future__ import annotations

import json
import logging

from deductive_design.constants import (
    DEFAULT_PROJECT_ID,
    DEFAULT_PROJECT_NAME,
    LEGACY_STATE_KEY,
    state_key_for,
)
from deductive_design.core.serializers import merge_defaults
from deductive_design.database.document_store import DocumentStore
from deductive_design.database.project_registry import ProjectRegistry
from deductive_design.database.settings_store import SettingsStore
from deductive_design.models.project import ProjectMeta, now_iso

logger = logging.getLogger(__name__)


def migrate_if_needed(
    settings: SettingsStore,
    documents: DocumentStore,
    registry: ProjectRegistry,
) -> bool:
    """Create the registry on first start, adopting a legacy document.

    Does nothing when the registry already has entries, so repeated runs
    are harmless.

    Returns:
        True if the registry was (re)created.
    """
    if not registry.is_empty():
        return False

    now = now_iso()
    default_meta = ProjectMeta(
        id=DEFAULT_PROJECT_ID,
        name=DEFAULT_PROJECT_NAME,
        theme="",
        created_at=now,
        updated_at=now,
    )

    legacy_raw = settings.get(LEGACY_STATE_KEY)
    if legacy_raw is not None:
        try:
            parsed = json.loads(legacy_raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable legacy state", exc_info=True)
            parsed = None
        if isinstance(parsed, dict):
            theme = parsed.get("researchTheme")
            if isinstance(theme, str) and theme:
                default_meta.theme = theme
            documents.set(state_key_for(DEFAULT_PROJECT_ID), merge_defaults(parsed))
            logger.info("Migrated legacy state into project %r", DEFAULT_PROJECT_ID)
        settings.delete(LEGACY_STATE_KEY)

    registry.save_all([default_meta])
    registry.set_current_project_id(DEFAULT_PROJECT_ID)
    return True


def migrate_settings_documents(
    settings: SettingsStore,
    documents: DocumentStore,
    project_ids: list[str],
) -> int:
    """Move per-project documents out of the small-value tier.

    Best effort: a document is copied only if the bulk tier has none for
    that project (otherwise the small-tier copy is stale and just
    removed). Unparsable payloads are left where they are.

    Returns:
        Number of documents copied into the bulk tier.
    """
    moved = 0
    for project_id in project_ids:
        key = state_key_for(project_id)
        raw = settings.get(key)
        if raw is None:
            continue
        if documents.get(key) is not None:
            settings.delete(key)
            continue
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Leaving unreadable document %s in settings", key, exc_info=True)
            continue
        if documents.set(key, merge_defaults(parsed)):
            settings.delete(key)
            moved += 1
    if moved:
        logger.info("Moved %d project document(s) into the document store", moved)
    return moved
