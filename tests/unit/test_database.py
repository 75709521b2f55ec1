"""
Unit tests for the Supabase client helpers.
"""

from unittest.mock import patch
import pytest

import config
from config import database
from config.database import ConnectionError, check_connection, get_supabase_client


@pytest.fixture(autouse=True)
def fresh_client_cache():
    get_supabase_client.cache_clear()
    yield
    get_supabase_client.cache_clear()


class TestGetSupabaseClient:

    def test_client_created_once(self, mock_supabase):
        with patch("config.database.create_client", return_value=mock_supabase) as create:
            first = get_supabase_client()
            second = get_supabase_client()

        assert first is second
        create.assert_called_once()

    def test_cache_clear_reconnects(self, mock_supabase):
        with patch("config.database.create_client", return_value=mock_supabase) as create:
            get_supabase_client()
            get_supabase_client.cache_clear()
            get_supabase_client()

        assert create.call_count == 2

    def test_connection_failure_wrapped(self):
        with patch("config.database.create_client", side_effect=RuntimeError("bad url")):
            with pytest.raises(ConnectionError) as exc_info:
                get_supabase_client()

        assert "bad url" in str(exc_info.value)

    def test_public_helpers(self):
        assert config.db is database.get_supabase_client
        assert not hasattr(database, "reset_connection")


class TestCheckConnection:

    def test_healthy_with_counts(self, mock_supabase):
        mock_supabase.set_table_data("customers", [{"id": "c-1"}], count=12)
        mock_supabase.set_table_data("runs", [{"id": "r-1"}], count=3)

        with patch("config.database.get_supabase_client", return_value=mock_supabase):
            status = check_connection()

        assert status == {"status": "healthy", "customers_count": 12, "runs_count": 3}

    def test_unhealthy_when_client_fails(self):
        with patch("config.database.get_supabase_client", side_effect=ConnectionError("down")):
            status = check_connection()

        assert status == {"status": "unhealthy", "error": "down"}
