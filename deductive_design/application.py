"""Application factory — QCoreApplication creation, logging, state wiring."""

from __future__ import annotations

import logging
from pathlib import Path

from PyQt6.QtCore import QCoreApplication, QtMsgType, qInstallMessageHandler

from deductive_design.app_state import AppStateController
from deductive_design.constants import (
    APP_NAME,
    APP_ORGANIZATION,
    APP_VERSION,
    DB_FILENAME,
    SETTINGS_FILENAME,
)
from deductive_design.database.db_manager import DatabaseManager
from deductive_design.database.document_store import DocumentStore
from deductive_design.database.settings_store import SettingsStore

_qt_logger = logging.getLogger("deductive_design.qt")


def _qt_message_handler(msg_type, context, message):
    """Route Qt warnings and errors into logging; drop debug/info chatter."""
    if msg_type == QtMsgType.QtWarningMsg:
        _qt_logger.warning(message)
    elif msg_type in (QtMsgType.QtCriticalMsg, QtMsgType.QtFatalMsg):
        _qt_logger.error(message)


def create_application(argv: list[str], log_level: int = logging.INFO) -> QCoreApplication:
    """Create and configure the QCoreApplication instance."""
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    qInstallMessageHandler(_qt_message_handler)

    app = QCoreApplication.instance() or QCoreApplication(argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName(APP_ORGANIZATION)
    return app


def create_app_state(data_dir: Path | str | None = None) -> AppStateController:
    """Wire both storage tiers into an (uninitialized) AppStateController.

    Args:
        data_dir: Directory for the database and settings files
            (default: current working directory).
    """
    root = Path(data_dir) if data_dir is not None else Path.cwd()
    root.mkdir(parents=True, exist_ok=True)

    db = DatabaseManager(root / DB_FILENAME)
    db.initialize_database()
    return AppStateController(
        DocumentStore(db),
        SettingsStore(root / SETTINGS_FILENAME),
    )
