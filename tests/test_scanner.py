from decimal import Decimal

import pytest
from sqlalchemy import create_engine

from schema_health.databases import get_adapter_for_engine, supported_dialects
from schema_health.errors import QueryFailed, UnknownCheckKind, UnknownTypeKind, UnsupportedEngine
from schema_health.models import CheckKind, RawColumn
from schema_health.scanner import run_overflow_scan, run_validity_scan


def _summary(result):
    return [(f.table_name, f.column_name, f.check.value, f.issue_count) for f in result.findings]


class TestValidityScan:
    def test_all_checks_on_shop(self, shop_adapter):
        result, status = run_validity_scan(shop_adapter)
        assert status == 1
        assert result.total_issue_count == 4
        assert result.risky_column_count == 0
        assert _summary(result) == [
            ("users", "email", "null", 1),
            ("users", "email", "long_string", 1),
            ("users", "last_seen_at", "datetime", 1),
            ("users", "created", "datetime", 1),
        ]
        assert [(a.table_name, a.column_name) for a in result.advisories] == [("users", "nickname")]
        assert result.tables_scanned == 3
        assert result.columns_scanned == 9

    def test_selected_checks_only(self, shop_adapter):
        result, status = run_validity_scan(shop_adapter, ["datetime"])
        assert status == 1
        assert {f.check for f in result.findings} == {CheckKind.DATETIME}
        assert result.total_issue_count == 2
        assert result.advisories == ()

    def test_packet_size_is_queried_once_per_scan(self, shop_adapter):
        run_validity_scan(shop_adapter)
        assert shop_adapter.queries.count(("packet",)) == 1

    def test_packet_size_not_queried_without_long_text(self, shop_adapter):
        run_validity_scan(shop_adapter, ["null", "long_string"])
        assert ("packet",) not in shop_adapter.queries

    def test_unknown_check_fails_before_querying(self, shop_adapter):
        with pytest.raises(UnknownCheckKind):
            run_validity_scan(shop_adapter, ["nulls"])
        assert shop_adapter.queries == []

    def test_clean_database_exits_zero(self, make_adapter):
        adapter = make_adapter({
            "t": ([RawColumn("name", "string", nullable=False, length=10)], [{"name": "ok"}]),
        })
        result, status = run_validity_scan(adapter)
        assert status == 0
        assert result.findings == ()

    def test_advisory_alone_does_not_fail_the_scan(self, make_adapter):
        adapter = make_adapter({"t": ([RawColumn("name", "string")], [{"name": "x" * 500}])})
        result, status = run_validity_scan(adapter)
        assert status == 0
        assert len(result.advisories) == 1

    def test_runs_are_independent(self, shop_adapter):
        first, _ = run_validity_scan(shop_adapter)
        second, _ = run_validity_scan(shop_adapter)
        assert first.total_issue_count == second.total_issue_count == 4
        assert _summary(first) == _summary(second)

    def test_query_failure_aborts_with_context(self, shop_adapter):
        shop_adapter.fail_on = {("users", "email")}
        with pytest.raises(QueryFailed) as exc:
            run_validity_scan(shop_adapter)
        error = exc.value
        assert (error.table, error.column, error.check) == ("users", "email", "null")
        assert "Lost connection" in str(error)

    def test_continue_on_error_records_failure_and_exits_non_zero(self, shop_adapter):
        shop_adapter.fail_on = {("users", "email")}
        result, status = run_validity_scan(shop_adapter, continue_on_error=True)
        assert status == 1
        assert result.degraded
        assert [(f.column_name, f.check) for f in result.failures] == [
            ("email", "null"),
            ("email", "long_string"),
        ]
        # the other columns were still scanned
        assert result.total_issue_count == 2

    def test_continue_on_error_with_no_findings_still_exits_non_zero(self, make_adapter):
        adapter = make_adapter(
            {"t": ([RawColumn("name", "string", nullable=False, length=10)], [{"name": "ok"}])},
            fail_on={("t", "name")},
        )
        result, status = run_validity_scan(adapter, continue_on_error=True)
        assert result.total_issue_count == 0
        assert status == 1

    def test_column_listing_failure_aborts_with_table_context(self, shop_adapter):
        shop_adapter.fail_on = {("users", None)}
        with pytest.raises(QueryFailed) as exc:
            run_validity_scan(shop_adapter)
        assert exc.value.table == "users"
        assert exc.value.column is None

    def test_column_listing_failure_is_recorded_per_table(self, shop_adapter):
        shop_adapter.fail_on = {("users", None)}
        result, status = run_validity_scan(shop_adapter, continue_on_error=True)
        assert status == 1
        assert [(f.table_name, f.column_name, f.check) for f in result.failures] == [("users", None, None)]
        assert result.total_issue_count == 0
        assert result.tables_scanned == 3
        assert result.columns_scanned == 3


class TestOverflowScan:
    def test_shop_at_default_threshold(self, shop_adapter):
        result, status = run_overflow_scan(shop_adapter)
        assert status == 1
        assert result.risky_column_count == 1
        assert result.total_issue_count == 0
        finding = result.findings[0]
        assert (finding.table_name, finding.column_name) == ("tags", "id")
        assert finding.occupancy_percentage == Decimal("78.4314")
        assert finding.size_bytes == 1536

    def test_size_is_only_fetched_for_tables_with_candidates(self, shop_adapter):
        run_overflow_scan(shop_adapter)
        sizes = [q[1] for q in shop_adapter.queries if q[0] == "size"]
        assert sizes == ["users", "tags"]
        assert not any(q[0] == "max" and q[1] == "amounts" for q in shop_adapter.queries)

    def test_high_threshold_flags_nothing(self, shop_adapter):
        result, status = run_overflow_scan(shop_adapter, 90)
        assert status == 0
        assert result.findings == ()

    def test_findings_are_ordered_by_occupancy(self, make_adapter):
        def table(value):
            return ([RawColumn("id", "tinyint", unsigned=True, autoincrement=True)], [{"id": value}])

        adapter = make_adapter({"low": table(100), "full": table(255), "mid": table(200), "same": table(200)})
        result, _ = run_overflow_scan(adapter, 10)
        assert [f.table_name for f in result.findings] == ["full", "mid", "same", "low"]

    def test_query_failure_aborts_with_context(self, shop_adapter):
        shop_adapter.fail_on = {("tags", "id")}
        with pytest.raises(QueryFailed) as exc:
            run_overflow_scan(shop_adapter)
        assert (exc.value.table, exc.value.column, exc.value.check) == ("tags", "id", "overflow_risk")

    def test_continue_on_error(self, shop_adapter):
        shop_adapter.fail_on = {("tags", "id")}
        result, status = run_overflow_scan(shop_adapter, continue_on_error=True)
        assert status == 1
        assert result.risky_column_count == 0
        assert result.failures[0].check == "overflow_risk"

    def test_column_listing_failure_is_recorded_per_table(self, shop_adapter):
        shop_adapter.fail_on = {("users", None)}
        result, status = run_overflow_scan(shop_adapter, continue_on_error=True)
        assert status == 1
        assert result.risky_column_count == 1
        failure = result.failures[0]
        assert (failure.table_name, failure.column_name, failure.check) == ("users", None, "overflow_risk")
        assert ("size", "users") not in shop_adapter.queries

    def test_auto_increment_on_unmapped_type_is_fatal(self, make_adapter):
        adapter = make_adapter({"t": ([RawColumn("id", "float", autoincrement=True)], [{"id": 1.0}])})
        with pytest.raises(UnknownTypeKind):
            run_overflow_scan(adapter, continue_on_error=True)


def test_non_mysql_engine_is_rejected():
    engine = create_engine("sqlite://")
    with pytest.raises(UnsupportedEngine) as exc:
        get_adapter_for_engine(engine)
    assert exc.value.dialect_name == "sqlite"
    assert "mysql" in str(exc.value)


def test_supported_dialects():
    assert set(supported_dialects()) == {"mysql", "mariadb"}
