"""
Badge Lookup Configuration

Loads Airtable table/field names and runtime settings from environment
variables. Supports loading from .env file using python-dotenv.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# ==================== CONSTANTS ====================

REQUIRED_ENV = [
    "AIRTABLE_API_KEY",
    "AIRTABLE_BASE_ID",
    "AIRTABLE_USER_TABLE",
    "AIRTABLE_BADGE_TABLE",
    "AIRTABLE_ASSIGNMENT_TABLE",
]

MAX_ASSIGNMENTS = 20


@dataclass
class TableNames:
    users: str = "Users"
    badges: str = "Badges"
    assignments: str = "AssignedBadges"


@dataclass
class FieldNames:
    """Airtable column names for each logical field."""

    assignment_user: str = "UserId"
    assignment_session: str = "SessionId"
    assignment_badge_link: str = "Badge"
    assignment_badge_id: str = "BadgeId"
    # Empty string means "no issued-at column": fetch is left unsorted
    assignment_issued_at: str = "Date Assigned"
    assignment_status: str = "Status"
    badge_image: str = "Image"
    badge_image_url: str = "ImageUrl"
    badge_name: str = "Name"
    badge_description: str = "Description"
    badge_criteria: str = "Criteria"
    badge_id: str = "BadgeId"

    @classmethod
    def from_env(cls) -> "FieldNames":
        def _name(key: str, default: str) -> str:
            return (os.getenv(key) or "").strip() or default

        return cls(
            assignment_user=_name("AIRTABLE_ASSIGN_USER_FIELD", "UserId"),
            assignment_session=_name("AIRTABLE_ASSIGN_SESSION_FIELD", "SessionId"),
            assignment_badge_link=_name("AIRTABLE_ASSIGN_BADGE_LINK_FIELD", "Badge"),
            assignment_badge_id=_name("AIRTABLE_ASSIGN_BADGE_ID_FIELD", "BadgeId"),
            assignment_issued_at=os.getenv("AIRTABLE_ASSIGN_ISSUED_AT_FIELD", "Date Assigned").strip(),
            assignment_status=_name("AIRTABLE_ASSIGN_STATUS_FIELD", "Status"),
            badge_image=_name("AIRTABLE_BADGE_IMAGE_FIELD", "Image"),
            badge_image_url=_name("AIRTABLE_BADGE_IMAGE_URL_FIELD", "ImageUrl"),
            badge_name=_name("AIRTABLE_BADGE_NAME_FIELD", "Name"),
            badge_description=_name("AIRTABLE_BADGE_DESCRIPTION_FIELD", "Description"),
            badge_criteria=_name("AIRTABLE_BADGE_CRITERIA_FIELD", "Criteria"),
            badge_id=_name("AIRTABLE_BADGE_ID_FIELD", "BadgeId"),
        )


@dataclass
class BadgeConfig:
    """Validated Airtable connection plus table/field naming."""

    api_key: Optional[str] = None
    base_id: Optional[str] = None
    tables: TableNames = field(default_factory=TableNames)
    fields: FieldNames = field(default_factory=FieldNames)

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "public"

    # Upstream behaviour
    timeout: Optional[float] = None
    concurrency: int = 1
    max_assignments: int = MAX_ASSIGNMENTS

    # Required keys absent from the environment when this was built
    missing: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "BadgeConfig":
        """Load configuration from environment variables."""
        missing = [key for key in REQUIRED_ENV if not (os.getenv(key) or "").strip()]

        timeout = os.getenv("AIRTABLE_TIMEOUT")
        return cls(
            api_key=os.getenv("AIRTABLE_API_KEY") or None,
            base_id=os.getenv("AIRTABLE_BASE_ID") or None,
            tables=TableNames(
                users=os.getenv("AIRTABLE_USER_TABLE") or "Users",
                badges=os.getenv("AIRTABLE_BADGE_TABLE") or "Badges",
                assignments=os.getenv("AIRTABLE_ASSIGNMENT_TABLE") or "AssignedBadges",
            ),
            fields=FieldNames.from_env(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            static_dir=os.getenv("STATIC_DIR", "public"),
            timeout=float(timeout) if timeout else None,
            concurrency=max(1, int(os.getenv("BADGE_LOOKUP_CONCURRENCY", "1"))),
            missing=missing,
        )

    def missing_keys(self) -> List[str]:
        """Required keys that are unset, whether built from env or in code"""
        values = {
            "AIRTABLE_API_KEY": self.api_key,
            "AIRTABLE_BASE_ID": self.base_id,
            "AIRTABLE_USER_TABLE": self.tables.users,
            "AIRTABLE_BADGE_TABLE": self.tables.badges,
            "AIRTABLE_ASSIGNMENT_TABLE": self.tables.assignments,
        }
        return [
            key for key in REQUIRED_ENV
            if key in self.missing or not (values[key] or "").strip()
        ]

    @property
    def has_airtable(self) -> bool:
        return bool(self.api_key and self.base_id)

    def validate(self) -> None:
        """Raise ConfigurationError naming every missing required key."""
        missing = self.missing_keys()
        if missing:
            raise ConfigurationError(f"Missing env vars: {', '.join(missing)}")


# Global config instance
_config: Optional[BadgeConfig] = None


def get_config() -> BadgeConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BadgeConfig.from_env()
    return _config


def reload_config() -> BadgeConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
