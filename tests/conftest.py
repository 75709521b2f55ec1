"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings are read at import time; never reach real services from tests
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ["AI_MAPPING_ENABLED"] = "false"

import pytest
from unittest.mock import MagicMock
from datetime import datetime, timezone
from typing import Optional

from models.imports import SourceTable

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table: str, data: list = None, count: int = None):
        self._client = client
        self._table = table
        self._data = data or []
        self._count = count
        self._pending_insert: Optional[list] = None
        self._pending_update: Optional[dict] = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        rows = data if isinstance(data, list) else [data]
        self._pending_insert = [dict(row) for row in rows]
        return self

    def update(self, data):
        self._pending_update = dict(data)
        return self

    def delete(self):
        return self

    def eq(self, column, value):
        return self

    def neq(self, column, value):
        return self

    def in_(self, column, values):
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._pending_insert is not None:
            error = self._client.insert_errors.get(self._table)
            if error is not None:
                raise error
            now = datetime.now(timezone.utc).isoformat()
            stored = [
                {**row, "id": f"{self._table}-{i}", "created_at": now}
                for i, row in enumerate(self._pending_insert, start=1)
            ]
            self._client.inserts.setdefault(self._table, []).append(self._pending_insert)
            return MockSupabaseResponse(data=stored)

        if self._pending_update is not None:
            self._client.updates.setdefault(self._table, []).append(self._pending_update)
            return MockSupabaseResponse(data=[{**row, **self._pending_update} for row in self._data])

        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, client: "MockSupabaseClient", name: str, data: list = None, count: int = None):
        self._client = client
        self._name = name
        self._data = data or []
        self._count = count

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._client, self._name, self._data.copy(), self._count)

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def update(self, data):
        return self._query().update(data)

    def delete(self):
        return self._query()


class MockSupabaseClient:
    """
    Mock Supabase client.

    Records every executed insert/update per table, can be told to reject
    inserts, and exposes a MagicMock `auth` for the admin user API.
    """

    def __init__(self):
        self._tables = {}
        self.inserts: dict[str, list[list[dict]]] = {}
        self.updates: dict[str, list[dict]] = {}
        self.insert_errors: dict[str, Exception] = {}
        self.auth = MagicMock()
        self.auth.admin.list_users.return_value = []

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def fail_inserts(self, table_name: str, error: Exception):
        """Make every insert into table_name raise error."""
        self.insert_errors[table_name] = error

    def set_auth_users(self, users: list):
        self.auth.admin.list_users.return_value = users

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseTable(self, name, config["data"], config["count"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("runs", [{"id": "1", ...}])
    """
    return MockSupabaseClient()


@pytest.fixture
def customer_table() -> SourceTable:
    """Small customer upload: header line plus two data lines."""
    return SourceTable(
        filename="customers.csv",
        headers=("ServiceID", "Site Name", "Suburb"),
        rows=(
            {"ServiceID": "1001", "Site Name": "Acme Co", "Suburb": "Northgate"},
            {"ServiceID": "1002", "Site Name": "Birch Dental", "Suburb": "Kedron"},
        ),
    )


@pytest.fixture
def run_table() -> SourceTable:
    """Run upload where the second data line has no service id."""
    return SourceTable(
        filename="runs.csv",
        headers=("Service ID", "Clients", "Completed"),
        rows=(
            {"Service ID": "2001", "Clients": "Acme Co", "Completed": "Yes"},
            {"Service ID": "", "Clients": "Nowhere Pty", "Completed": "no"},
        ),
    )
