import pytest

from badge_lookup.config import BadgeConfig, TableNames
from badge_lookup.errors import UpstreamError

REQUIRED_ENV_VALUES = {
    "AIRTABLE_API_KEY": "key123",
    "AIRTABLE_BASE_ID": "app123",
    "AIRTABLE_USER_TABLE": "Users",
    "AIRTABLE_BADGE_TABLE": "Badges",
    "AIRTABLE_ASSIGNMENT_TABLE": "AssignedBadges",
}


class FakeStore:
    """In-memory RecordStore that records every call."""

    def __init__(self, tables=None):
        self.tables = tables or {}
        self.select_calls = []
        self.find_calls = []
        self.fail_select = None

    def add(self, table, record_id, **fields):
        self.tables.setdefault(table, []).append({"id": record_id, "fields": fields})

    def select(self, table, filters, sort=None, limit=None):
        self.select_calls.append({"table": table, "filters": dict(filters), "sort": sort, "limit": limit})
        if self.fail_select:
            raise UpstreamError(self.fail_select)

        rows = [
            r for r in self.tables.get(table, [])
            if all(r["fields"].get(k) == v for k, v in filters.items())
        ]
        for key in reversed(sort or []):
            name = key.lstrip("-")
            dated = [r for r in rows if r["fields"].get(name)]
            undated = [r for r in rows if not r["fields"].get(name)]
            dated.sort(key=lambda r: r["fields"][name], reverse=key.startswith("-"))
            rows = dated + undated
        return rows[:limit] if limit else rows

    def find(self, table, record_id):
        self.find_calls.append((table, record_id))
        for r in self.tables.get(table, []):
            if r["id"] == record_id:
                return r
        return None


@pytest.fixture
def config():
    return BadgeConfig(
        api_key="key123",
        base_id="app123",
        tables=TableNames(users="Users", badges="Badges", assignments="AssignedBadges"),
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def airtable_env(monkeypatch):
    for key, value in REQUIRED_ENV_VALUES.items():
        monkeypatch.setenv(key, value)
    return REQUIRED_ENV_VALUES
