"""
Unit tests for the import executor and the Supabase data sink.

Tests value coercion, row skipping with line numbers, and the
all-or-nothing insert.
"""

import copy
import pytest

from services.import_executor import (
    ImportExecutor,
    build_record,
    coerce_value,
    skip_reason,
)
from services.data_sink import SupabaseDataSink
from services.field_catalog import CUSTOMER_CATALOG, RUN_CATALOG, SERVICE_AGREEMENT_CATALOG
from services.notifier import CollectingNotifier
from exceptions import InsertError, MappingValidationError, NoValidRowsError
from models.imports import SKIP, EntityType, FieldType, SourceTable
from models.records import ServiceAgreementRecord


# ===================
# FIXTURES
# ===================

class RecordingSink:
    """In-memory DataSink."""

    def __init__(self):
        self.calls = []

    def insert(self, entity_type, records):
        self.calls.append((entity_type, copy.deepcopy(records)))
        return len(records)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def customer_mapping():
    return {"ServiceID": "service_id", "Site Name": "site_name", "Suburb": "site_suburb"}


@pytest.fixture
def run_mapping():
    return {"Service ID": "service_id", "Clients": "clients", "Completed": "completed"}


# ===================
# COERCION
# ===================

class TestCoerceValue:

    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", "Yes", " yes "])
    def test_boolean_true_values(self, raw):
        assert coerce_value(raw, FieldType.BOOLEAN) is True

    @pytest.mark.parametrize("raw", ["false", "0", "no", "y", "done"])
    def test_boolean_other_values_are_false(self, raw):
        assert coerce_value(raw, FieldType.BOOLEAN) is False

    def test_empty_is_absent(self):
        assert coerce_value("", FieldType.STRING) is None
        assert coerce_value("   ", FieldType.BOOLEAN) is None
        assert coerce_value(None, FieldType.NUMBER) is None

    def test_number_parsed(self):
        assert coerce_value("12.50", FieldType.NUMBER) == 12.5
        assert coerce_value("7", FieldType.NUMBER) == 7.0

    def test_unparseable_number_is_absent(self):
        assert coerce_value("$12", FieldType.NUMBER) is None

    @pytest.mark.parametrize("raw", ["NaN", "nan", "inf", "-Infinity", "1e999"])
    def test_non_finite_number_is_absent(self, raw):
        assert coerce_value(raw, FieldType.NUMBER) is None

    def test_string_trimmed(self):
        assert coerce_value("  Acme  ", FieldType.STRING) == "Acme"


class TestBuildRecord:

    def test_skipped_and_empty_values_left_out(self):
        row = {"ServiceID": "1001", "Site Name": "", "Extra": "x"}
        mapping = {"ServiceID": "service_id", "Site Name": "site_name", "Extra": SKIP}

        assert build_record(row, mapping, CUSTOMER_CATALOG) == {"service_id": "1001"}

    def test_later_non_empty_header_wins(self):
        row = {"Name": "Acme", "Trading Name": "Acme Pty Ltd", "Alias": ""}
        mapping = {"Name": "site_name", "Trading Name": "site_name", "Alias": "site_name"}

        assert build_record(row, mapping, CUSTOMER_CATALOG) == {"site_name": "Acme Pty Ltd"}

    def test_numeric_fields_coerced(self):
        row = {"ID": "3001", "Price": "19.95", "Total": "n/a"}
        mapping = {"ID": "service_id", "Price": "unit_price", "Total": "total"}

        assert build_record(row, mapping, SERVICE_AGREEMENT_CATALOG) == {
            "service_id": "3001",
            "unit_price": 19.95,
        }

    def test_skip_reason_wording(self):
        assert skip_reason(CUSTOMER_CATALOG.required_fields[:1]) == "missing required field service_id"
        assert skip_reason(CUSTOMER_CATALOG.required_fields) == "missing required fields service_id, site_name"


# ===================
# EXECUTE
# ===================

class TestImportExecutor:

    def test_all_rows_inserted(self, customer_table, customer_mapping, sink, notifier):
        # Arrange
        executor = ImportExecutor(sink, notifier)

        # Act
        outcome = executor.execute(customer_table, customer_mapping, CUSTOMER_CATALOG)

        # Assert
        assert outcome.inserted_count == 2
        assert outcome.skipped_rows == []
        entity_type, records = sink.calls[0]
        assert entity_type == EntityType.CUSTOMERS
        assert records[0] == {"service_id": "1001", "site_name": "Acme Co", "site_suburb": "Northgate"}

    def test_row_missing_required_value_skipped_with_line_number(self, run_table, run_mapping, sink, notifier):
        outcome = ImportExecutor(sink, notifier).execute(run_table, run_mapping, RUN_CATALOG)

        assert outcome.inserted_count == 1
        assert len(outcome.skipped_rows) == 1
        assert outcome.skipped_rows[0].original_line_number == 3
        assert outcome.skipped_rows[0].reason == "missing required field service_id"
        assert sink.calls[0][1] == [{"service_id": "2001", "clients": "Acme Co", "completed": True}]

    def test_single_insert_call(self, customer_table, customer_mapping, sink):
        ImportExecutor(sink).execute(customer_table, customer_mapping, CUSTOMER_CATALOG)

        assert len(sink.calls) == 1

    def test_source_and_mapping_not_modified(self, run_table, run_mapping, sink):
        rows_before = copy.deepcopy(run_table.rows)
        mapping_before = dict(run_mapping)

        ImportExecutor(sink).execute(run_table, run_mapping, RUN_CATALOG)

        assert run_table.rows == rows_before
        assert run_mapping == mapping_before

    def test_no_valid_rows(self, sink, notifier):
        # Arrange
        table = SourceTable(
            filename="runs.csv",
            headers=("Service ID", "Clients"),
            rows=({"Service ID": "", "Clients": "A"}, {"Service ID": " ", "Clients": "B"}),
        )

        # Act & Assert
        with pytest.raises(NoValidRowsError) as exc_info:
            ImportExecutor(sink, notifier).execute(
                table, {"Service ID": "service_id", "Clients": "clients"}, RUN_CATALOG
            )

        assert exc_info.value.details["total_rows"] == 2
        assert [s["original_line_number"] for s in exc_info.value.details["skipped_rows"]] == [2, 3]
        assert sink.calls == []
        assert notifier.messages == [exc_info.value.message]

    def test_empty_table_has_no_valid_rows(self, sink):
        table = SourceTable(filename="runs.csv", headers=("Service ID",))

        with pytest.raises(NoValidRowsError):
            ImportExecutor(sink).execute(table, {"Service ID": "service_id"}, RUN_CATALOG)

    def test_unmapped_required_field_blocks_import(self, customer_table, sink):
        mapping = {"ServiceID": "service_id", "Site Name": SKIP, "Suburb": "site_suburb"}

        with pytest.raises(MappingValidationError):
            ImportExecutor(sink).execute(customer_table, mapping, CUSTOMER_CATALOG)

        assert sink.calls == []

    def test_multiple_missing_required_values(self, sink):
        table = SourceTable(
            filename="customers.csv",
            headers=("ServiceID", "Site Name"),
            rows=(
                {"ServiceID": "1001", "Site Name": "Acme"},
                {"ServiceID": "", "Site Name": ""},
            ),
        )

        outcome = ImportExecutor(sink).execute(
            table, {"ServiceID": "service_id", "Site Name": "site_name"}, CUSTOMER_CATALOG
        )

        assert outcome.skipped_rows[0].reason == "missing required fields service_id, site_name"

    def test_non_finite_price_left_out_of_insert(self, sink):
        table = SourceTable(
            filename="agreements.csv",
            headers=("Service ID", "Unit Price", "CPI"),
            rows=({"Service ID": "3001", "Unit Price": "NaN", "CPI": "Infinity"},),
        )
        mapping = {"Service ID": "service_id", "Unit Price": "unit_price", "CPI": "cpi"}

        outcome = ImportExecutor(sink).execute(table, mapping, SERVICE_AGREEMENT_CATALOG)

        assert outcome.inserted_count == 1
        assert sink.calls[0][1] == [{"service_id": "3001"}]

    def test_prepared_records_match_destination_schema(self):
        table = SourceTable(
            filename="agreements.csv",
            headers=("Service ID", "Products", "Unit Price", "Total"),
            rows=({"Service ID": "3001", "Products": " Sanitary bins ", "Unit Price": "12", "Total": "144.5"},),
        )
        mapping = {"Service ID": "service_id", "Products": "products", "Unit Price": "unit_price", "Total": "total"}

        prepared = ImportExecutor(RecordingSink()).prepare(table, mapping, SERVICE_AGREEMENT_CATALOG)

        record = prepared.records[0]
        assert record == ServiceAgreementRecord(**record).to_insert()
        assert record == {"service_id": "3001", "products": "Sanitary bins", "unit_price": 12.0, "total": 144.5}

    def test_sink_failure_propagates(self, customer_table, customer_mapping, notifier):
        class BrokenSink:
            def insert(self, entity_type, records):
                raise InsertError("customers", "duplicate key value violates unique constraint")

        with pytest.raises(InsertError) as exc_info:
            ImportExecutor(BrokenSink(), notifier).execute(customer_table, customer_mapping, CUSTOMER_CATALOG)

        assert exc_info.value.message == "duplicate key value violates unique constraint"
        assert notifier.messages == ["Import failed: duplicate key value violates unique constraint"]


# ===================
# SUPABASE SINK
# ===================

class TestSupabaseDataSink:

    def test_insert_writes_one_batch(self, mock_supabase):
        sink = SupabaseDataSink(mock_supabase)

        inserted = sink.insert(EntityType.RUNS, [{"service_id": "1"}, {"service_id": "2"}])

        assert inserted == 2
        assert mock_supabase.inserts["runs"] == [[{"service_id": "1"}, {"service_id": "2"}]]

    def test_backend_message_surfaced_verbatim(self, mock_supabase):
        class PostgrestFailure(Exception):
            def __init__(self, message):
                super().__init__({"message": message, "code": "23505"})
                self.message = message

        mock_supabase.fail_inserts("customers", PostgrestFailure("duplicate key value violates unique constraint"))
        sink = SupabaseDataSink(mock_supabase)

        with pytest.raises(InsertError) as exc_info:
            sink.insert(EntityType.CUSTOMERS, [{"service_id": "1", "site_name": "A"}])

        assert exc_info.value.code == "INSERT_FAILED"
        assert exc_info.value.message == "duplicate key value violates unique constraint"
        assert exc_info.value.details["table"] == "customers"
        assert "customers" not in mock_supabase.inserts

    def test_failed_import_writes_nothing(self, customer_table, customer_mapping, mock_supabase):
        mock_supabase.fail_inserts("customers", RuntimeError("connection refused"))

        with pytest.raises(InsertError) as exc_info:
            ImportExecutor(SupabaseDataSink(mock_supabase)).execute(
                customer_table, customer_mapping, CUSTOMER_CATALOG
            )

        assert exc_info.value.message == "connection refused"
        assert mock_supabase.inserts == {}
