"""Application-wide constants."""

APP_NAME = "Deductive Design"
APP_VERSION = "0.1.0"
APP_ORGANIZATION = "Deductive Design"

# Local storage
DB_FILENAME = "deductive_design.db"
SETTINGS_FILENAME = "deductive_design.ini"

# Small-value tier keys
PROJECTS_INDEX_KEY = "projects-index"
CURRENT_PROJECT_KEY = "current-project"
LEGACY_STATE_KEY = "app-state"

# Bulk tier keys
STATE_KEY_PREFIX = "project-state-"

# Projects
DEFAULT_PROJECT_ID = "default"
DEFAULT_PROJECT_NAME = "Default"
IMPORTED_PROJECT_NAME = "Imported"
COPY_SUFFIX = " (copy)"

# Detail stages, ordered abstract → concrete
DETAIL_STAGES = ["diagram", "concept", "material", "exterior", "interior"]

# Research condition weights, evaluation scores
MIN_WEIGHT = 0.0
MAX_WEIGHT = 1.0
MAX_SCORE = 100


def state_key_for(project_id: str) -> str:
    """Storage key of a project's state document."""
    return f"{STATE_KEY_PREFIX}{project_id}"
