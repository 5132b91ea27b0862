"""Tests for build_records (provider rows -> LinkRecords)."""

from __future__ import annotations

from structlog.testing import capture_logs

from linkaudit.application.factories import build_records
from linkaudit.domain.entities import RawLinkRow


class TestBuildRecords:
    def test_converts_rows(self) -> None:
        records = build_records(
            [
                RawLinkRow(1, 10, "Syllabus", "https://a.example.com"),
                RawLinkRow(2, 10, "Reader", "https://b.example.com"),
            ]
        )
        assert [r.id for r in records] == [1, 2]
        assert records[0].owner_id == 10
        assert records[1].raw_url == "https://b.example.com"

    def test_accepts_plain_tuples(self) -> None:
        records = build_records([(3, 4, "n", "https://c.example.com")])
        assert records[0].id == 3

    def test_preserves_order(self) -> None:
        rows = [RawLinkRow(i, 1, f"n{i}", f"https://h{i}.example.com") for i in range(5)]
        assert [r.id for r in build_records(rows)] == [0, 1, 2, 3, 4]

    def test_drops_row_without_url_and_keeps_rest(self) -> None:
        with capture_logs() as logs:
            records = build_records(
                [
                    RawLinkRow(1, 10, "ok", "https://a.example.com"),
                    RawLinkRow(2, 11, "missing", None),
                    RawLinkRow(3, 12, "blank", "   "),
                ]
            )

        assert [r.id for r in records] == [1]
        dropped = [e for e in logs if e["event"] == "invalid_record_dropped"]
        assert [e["record_id"] for e in dropped] == [2, 3]
        assert dropped[0]["owner_id"] == 11
        assert all(e["log_level"] == "warning" for e in dropped)

    def test_drops_row_with_non_integer_id(self) -> None:
        with capture_logs() as logs:
            records = build_records(
                [
                    RawLinkRow("abc", "1", "bad id", "https://a.example.com"),
                    RawLinkRow("7", "1", "good", "https://b.example.com"),
                ]
            )

        assert [r.id for r in records] == [7]
        assert any(e["event"] == "unparseable_row_dropped" for e in logs)

    def test_drops_row_with_wrong_arity(self) -> None:
        records = build_records([(1, 2, "too short"), (1, 2, "n", "https://a.com")])
        assert len(records) == 1

    def test_malformed_url_is_kept_for_classification(self) -> None:
        records = build_records([RawLinkRow(1, 1, "n", "not a url")])
        assert records[0].raw_url == "not a url"

    def test_logs_summary(self) -> None:
        with capture_logs() as logs:
            build_records(
                [
                    RawLinkRow(1, 1, "a", "https://a.example.com"),
                    RawLinkRow(2, 1, "b", None),
                ]
            )
        summary = next(e for e in logs if e["event"] == "records_built")
        assert summary["accepted"] == 1
        assert summary["dropped"] == 1

    def test_empty_input(self) -> None:
        assert build_records([]) == []
