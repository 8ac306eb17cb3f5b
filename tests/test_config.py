import pytest

from badge_lookup.config import REQUIRED_ENV, BadgeConfig, TableNames, get_config, reload_config
from badge_lookup.errors import ConfigurationError

OPTIONAL_ENV = [
    "AIRTABLE_ASSIGN_USER_FIELD",
    "AIRTABLE_ASSIGN_ISSUED_AT_FIELD",
    "AIRTABLE_BADGE_ID_FIELD",
    "AIRTABLE_TIMEOUT",
    "BADGE_LOOKUP_CONCURRENCY",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in REQUIRED_ENV + OPTIONAL_ENV:
        monkeypatch.delenv(key, raising=False)


def test_defaults_when_fully_configured(airtable_env):
    config = BadgeConfig.from_env()

    config.validate()
    assert config.missing_keys() == []
    assert config.has_airtable
    assert config.tables.assignments == "AssignedBadges"
    assert config.fields.assignment_user == "UserId"
    assert config.fields.assignment_issued_at == "Date Assigned"
    assert config.fields.badge_image == "Image"
    assert config.port == 3000
    assert config.timeout is None
    assert config.concurrency == 1
    assert config.max_assignments == 20


def test_missing_keys_are_named_in_order(monkeypatch):
    monkeypatch.setenv("AIRTABLE_BASE_ID", "app123")
    monkeypatch.setenv("AIRTABLE_BADGE_TABLE", "Badges")

    config = BadgeConfig.from_env()

    assert config.missing_keys() == [
        "AIRTABLE_API_KEY",
        "AIRTABLE_USER_TABLE",
        "AIRTABLE_ASSIGNMENT_TABLE",
    ]
    assert not config.has_airtable
    with pytest.raises(ConfigurationError) as exc:
        config.validate()
    assert str(exc.value) == (
        "Missing env vars: AIRTABLE_API_KEY, AIRTABLE_USER_TABLE, AIRTABLE_ASSIGNMENT_TABLE"
    )
    assert exc.value.status_code == 500


def test_field_and_runtime_overrides(airtable_env, monkeypatch):
    monkeypatch.setenv("AIRTABLE_ASSIGN_USER_FIELD", "Learner")
    monkeypatch.setenv("AIRTABLE_BADGE_ID_FIELD", "Code")
    monkeypatch.setenv("AIRTABLE_TIMEOUT", "2.5")
    monkeypatch.setenv("BADGE_LOOKUP_CONCURRENCY", "4")
    monkeypatch.setenv("PORT", "8080")

    config = BadgeConfig.from_env()

    assert config.fields.assignment_user == "Learner"
    assert config.fields.badge_id == "Code"
    assert config.timeout == 2.5
    assert config.concurrency == 4
    assert config.port == 8080


def test_empty_issued_at_field_disables_sorting(airtable_env, monkeypatch):
    monkeypatch.setenv("AIRTABLE_ASSIGN_ISSUED_AT_FIELD", "")

    assert BadgeConfig.from_env().fields.assignment_issued_at == ""


def test_get_config_is_cached_until_reload(airtable_env, monkeypatch):
    first = reload_config()
    assert get_config() is first

    monkeypatch.setenv("AIRTABLE_ASSIGN_USER_FIELD", "Learner")
    assert reload_config().fields.assignment_user == "Learner"


def test_missing_keys_checks_values_set_in_code():
    config = BadgeConfig(api_key="key", base_id=None, tables=TableNames(badges=""))

    assert config.missing_keys() == ["AIRTABLE_BASE_ID", "AIRTABLE_BADGE_TABLE"]
    with pytest.raises(ConfigurationError):
        config.validate()
    assert not config.has_airtable
