"""
Runtime configuration for the outreach CRM.
Values come from environment variables; accessors re-read the environment so
tests and scripts can switch databases without reimporting modules.
"""

import os
from pathlib import Path

from ..util.logging import VALID_LOG_LEVELS

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/crm.db")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Demo bootstrap (off unless explicitly requested)
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
DEMO_USER_ID = os.getenv("DEMO_USER_ID", "demo-user")

# Identity recorded on activities when no caller identity is available
SYSTEM_USER_ID = os.getenv("SYSTEM_USER_ID", "system")

# Pipeline rules
STAGE_TRANSITIONS_ENFORCED = os.getenv("STAGE_TRANSITIONS_ENFORCED", "false").lower() == "true"

# Analytics placeholder until reply tracking exists
REPLY_RATE_PLACEHOLDER = 12.5

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

VERSION = "1.0.0"


def get_db_path() -> str:
    """Current database path (env wins over the import-time default)."""
    return os.getenv("DB_PATH", DB_PATH)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def seed_demo_enabled():
    return os.getenv("SEED_DEMO_DATA", "false").lower() == "true"


def get_demo_user_id() -> str:
    return os.getenv("DEMO_USER_ID", DEMO_USER_ID)


def get_system_user_id() -> str:
    return os.getenv("SYSTEM_USER_ID", SYSTEM_USER_ID)


def stage_transitions_enforced():
    """Check if illegal stage transitions should be rejected."""
    return os.getenv("STAGE_TRANSITIONS_ENFORCED", "false").lower() == "true"


def get_reply_rate_placeholder() -> float:
    return float(os.getenv("REPLY_RATE_PLACEHOLDER", str(REPLY_RATE_PLACEHOLDER)))


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if not get_db_path().strip():
        issues.append("DB_PATH must not be empty")

    try:
        rate = get_reply_rate_placeholder()
        if rate < 0 or rate > 100:
            issues.append("REPLY_RATE_PLACEHOLDER must be between 0 and 100")
    except ValueError:
        issues.append(f"Invalid REPLY_RATE_PLACEHOLDER: {os.getenv('REPLY_RATE_PLACEHOLDER')}")

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LOG_LEVELS:
        issues.append(f"Invalid LOG_LEVEL: {log_level}")

    if not get_system_user_id().strip():
        issues.append("SYSTEM_USER_ID must not be empty")

    return issues
