"""
API tests for the import, report and user routes.

Uses FastAPI's TestClient without the lifespan, so no database connection
is attempted. Service getters are patched to use the mock client.
"""

from unittest.mock import AsyncMock, patch
import pytest
from fastapi.testclient import TestClient

from main import app
from services import import_session_store
from services.data_sink import SupabaseDataSink
from services.report_export_service import ReportExportService
from services.user_service import UserService
from exceptions import MappingSuggestionUnavailable
from tests.factories import AuthUserFactory, ReportFactory, csv_bytes


# ===================
# FIXTURES
# ===================

@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def sink(mock_supabase):
    with patch("routes.imports.get_data_sink", return_value=SupabaseDataSink(mock_supabase)):
        yield mock_supabase


@pytest.fixture(autouse=True)
def empty_store():
    import_session_store.clear_sessions()
    yield
    import_session_store.clear_sessions()


def upload(client, entity_type: str, content: bytes, filename: str = "upload.csv"):
    return client.post(
        f"/api/imports/{entity_type}/sessions",
        files={"file": (filename, content, "text/csv")},
    )


# ===================
# IMPORT SESSIONS
# ===================

class TestImportSessionRoutes:

    def test_upload_suggests_mapping(self, client):
        # Act
        response = upload(client, "customers", csv_bytes(
            ["ServiceID", "Site Name", "Suburb"], [["1001", "Acme Co", "Northgate"]]
        ))

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["state"] == "mapped"
        assert body["row_count"] == 1
        assert body["mapping"] == {
            "ServiceID": "service_id",
            "Site Name": "site_name",
            "Suburb": "site_suburb",
        }
        assert body["can_import"] is True

    def test_unreadable_file(self, client):
        response = upload(client, "customers", b"\xff\xfe\xfa", filename="bad.csv")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "FILE_PARSE_ERROR"

    def test_unsupported_extension(self, client):
        response = upload(client, "runs", b"hello", filename="notes.txt")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"

    def test_unknown_entity_type(self, client):
        response = upload(client, "invoices", b"a\n1\n")

        assert response.status_code == 422

    def test_full_import(self, client, sink):
        # Arrange
        created = upload(client, "runs", csv_bytes(
            ["Service ID", "Clients", "Completed"],
            [["2001", "Acme", "yes"], ["", "Birch", "no"]]
        )).json()
        session_id = created["session_id"]

        # Act
        response = client.post(f"/api/imports/sessions/{session_id}/execute")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "succeeded"
        assert body["inserted_count"] == 1
        assert body["skipped_rows"] == [
            {"original_line_number": 3, "reason": "missing required field service_id"}
        ]
        assert sink.inserts["runs"] == [[{"service_id": "2001", "clients": "Acme", "completed": True}]]

    def test_edit_mapping_then_import(self, client, sink):
        created = upload(client, "customers", csv_bytes(["Account", "Customer"], [["1001", "Acme"]])).json()
        session_id = created["session_id"]
        assert created["missing_required"] == ["service_id", "site_name"]

        blocked = client.post(f"/api/imports/sessions/{session_id}/execute")
        assert blocked.status_code == 422
        assert blocked.json()["error"]["code"] == "MAPPING_INCOMPLETE"

        client.put(f"/api/imports/sessions/{session_id}/mapping", json={"header": "Account", "field": "service_id"})
        edited = client.put(
            f"/api/imports/sessions/{session_id}/mapping",
            json={"header": "Customer", "field": "site_name"},
        ).json()
        assert edited["can_import"] is True

        response = client.post(f"/api/imports/sessions/{session_id}/execute")

        assert response.json()["summary"] == "1 customers imported successfully"

    def test_insert_failure(self, client, sink):
        sink.fail_inserts("customers", RuntimeError("duplicate key value violates unique constraint"))
        session_id = upload(client, "customers", csv_bytes(
            ["ServiceID", "Site Name"], [["1001", "Acme"]]
        )).json()["session_id"]

        response = client.post(f"/api/imports/sessions/{session_id}/execute")

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "duplicate key value violates unique constraint"
        assert client.get(f"/api/imports/sessions/{session_id}").json()["state"] == "failed"

    def test_retry_after_insert_failure(self, client, sink):
        sink.fail_inserts("customers", RuntimeError("connection reset by peer"))
        session_id = upload(client, "customers", csv_bytes(
            ["ServiceID", "Site Name"], [["1001", "Acme"]]
        )).json()["session_id"]
        assert client.post(f"/api/imports/sessions/{session_id}/execute").status_code == 500
        assert client.get(f"/api/imports/sessions/{session_id}").json()["can_import"] is True

        sink.insert_errors.clear()
        response = client.post(f"/api/imports/sessions/{session_id}/execute")

        assert response.status_code == 200
        assert response.json()["state"] == "succeeded"
        assert sink.inserts["customers"] == [[{"service_id": "1001", "site_name": "Acme"}]]

    def test_unknown_header_edit(self, client):
        session_id = upload(client, "customers", csv_bytes(["ServiceID"], [["1"]])).json()["session_id"]

        response = client.put(
            f"/api/imports/sessions/{session_id}/mapping",
            json={"header": "Nope", "field": "notes"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNKNOWN_HEADER"

    def test_close_session(self, client):
        session_id = upload(client, "customers", csv_bytes(["ServiceID"], [["1"]])).json()["session_id"]

        assert client.delete(f"/api/imports/sessions/{session_id}").status_code == 204

        response = client.get(f"/api/imports/sessions/{session_id}")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "IMPORT_SESSION_NOT_FOUND"

    def test_catalog(self, client):
        response = client.get("/api/imports/catalogs/service_agreements")

        assert response.status_code == 200
        names = [f["machine_name"] for f in response.json()["fields"]]
        assert "unit_price" in names


# ===================
# STANDALONE SUGGESTION
# ===================

class TestSuggestMappingRoute:

    def test_restricted_to_requested_columns(self, client):
        mapper = AsyncMock()
        mapper.map_columns.return_value = {
            "ServiceID": "service_id",
            "Name": "site_name",
            "Fax": "invented_column",
        }

        with patch("routes.imports.get_column_mapper", return_value=mapper):
            response = client.post("/api/imports/suggest-mapping", json={
                "csvHeaders": ["ServiceID", "Name", "Fax", "Other"],
                "databaseColumns": ["service_id", "site_name"],
            })

        assert response.status_code == 200
        assert response.json()["mapping"] == {
            "ServiceID": "service_id",
            "Name": "site_name",
            "Fax": "skip",
            "Other": "skip",
        }

    def test_mapper_unavailable(self, client):
        mapper = AsyncMock()
        mapper.map_columns.side_effect = MappingSuggestionUnavailable("Invalid AI response format")

        with patch("routes.imports.get_column_mapper", return_value=mapper):
            response = client.post("/api/imports/suggest-mapping", json={
                "csvHeaders": ["A"],
                "databaseColumns": ["service_id"],
            })

        assert response.status_code == 503
        assert response.json()["error"]["message"] == "Invalid AI response format"


# ===================
# REPORTS / USERS
# ===================

class TestReportAndUserRoutes:

    def test_export_csv(self, client, mock_supabase):
        mock_supabase.set_table_data("customer_service_reports", [ReportFactory.create(run_id="run-1")])
        mock_supabase.set_table_data("runs", [{"id": "run-1", "clients": "Acme", "suburb": "Kedron"}])

        with patch("routes.reports.get_report_export_service", return_value=ReportExportService(mock_supabase)):
            response = client.get("/api/reports/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.startswith("Report Date,Service ID")

    def test_export_empty(self, client, mock_supabase):
        with patch("routes.reports.get_report_export_service", return_value=ReportExportService(mock_supabase)):
            response = client.get("/api/reports/export.csv")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_REPORTS"

    def test_users(self, client, mock_supabase):
        mock_supabase.set_auth_users([AuthUserFactory.create(id="u-1", email="a@hygiene.example")])

        with patch("routes.users.get_user_service", return_value=UserService(mock_supabase)):
            listed = client.get("/api/users")
            exists = client.post("/api/users/exists", json={"email": "A@hygiene.example"})
            invalid = client.put("/api/users/u-1/role", json={"role": "owner"})
            updated = client.put("/api/users/u-1/role", json={"role": "admin"})

        assert listed.json()["users"][0]["id"] == "u-1"
        assert exists.json() == {"exists": True}
        assert invalid.status_code == 422
        assert updated.json() == {"success": True, "message": "User role updated successfully"}
