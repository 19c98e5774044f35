"""
Tests for flat-table export and import.
"""

import json
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest
from depositlab.core.config import LedgerConfig
from depositlab.core import tabular
from depositlab.core.errors import ExternalDependencyMissing, ImportFormatError
from depositlab.core.models import AppSettings, InvestmentStatus, PaymentRecord
from depositlab.core.persistence import LedgerState, export_json
from depositlab.core.tabular import (
    EXPORT_COLUMNS,
    ImportOutcome,
    export_file,
    export_frame,
    export_rows,
    funders_summary,
    import_file,
    parse_funders_string,
    parse_json_import,
    parse_rows,
    read_tabular,
    row_to_investment,
)

TODAY = date(2025, 4, 10)


@pytest.fixture
def state(abc_investment, pooled_investment) -> LedgerState:
    paid = replace(
        abc_investment,
        payment_history={
            1: PaymentRecord(is_paid=True, paid_date=date(2025, 2, 15)),
            2: PaymentRecord(is_paid=True, paid_date=date(2025, 3, 15)),
        },
        note="first",
    )
    # reversed on purpose: export sorts by order
    return LedgerState(investments=[pooled_investment, paid], settings=AppSettings())


class TestExport:
    def test_columns(self, state):
        frame = export_frame(state.investments, TODAY)
        assert list(frame.columns) == EXPORT_COLUMNS
        assert list(frame["系統ID"]) == ["abc", "xyz"]

    def test_row_values(self, state):
        abc, xyz = export_rows(state.investments, TODAY)

        assert abc["存單編號"] == "1140715-ABC50(1.2%)"
        assert abc["共同出資人"] == ""
        assert abc["每月利息"] == 6_000
        assert abc["獎勵金額"] == 2_500
        assert abc["獎勵已領"] == "否"
        assert abc["開始日期"] == "114/01/15"
        assert abc["到期日期"] == "114/07/15"
        assert abc["目前期數"] == 4
        assert abc["已收期數"] == 2
        assert abc["累積已收利息"] == 12_000
        assert abc["狀態"] == "Active"
        assert abc["備註"] == "first"

        assert xyz["存單編號"] == "1150301-王30(1%), 1150301-李20(1%)"
        assert xyz["共同出資人"] == "王(30萬), 李(20萬)"

    def test_funders_summary_fractional_wan(self, pooled_investment):
        funders = [replace(f, amount=25_000) for f in pooled_investment.funders]
        assert funders_summary(funders) == "王(2.5萬), 李(2.5萬)"

    def test_unknown_suffix(self, state, tmp_path):
        with pytest.raises(ValueError, match="Unsupported export format"):
            export_file(state, tmp_path / "out.txt")

    def test_json_file(self, state, tmp_path):
        path = export_file(state, tmp_path / "out.json")
        doc = json.loads(path.read_text(encoding="utf-8"))
        assert doc["version"] == 2
        assert len(doc["investments"]) == 2


class TestFunderParsing:
    def test_full_and_half_width_commas(self):
        funders = parse_funders_string("王(30萬)，李(2.5萬), 張 (1萬)")
        assert [(f.name, f.amount) for f in funders] == [
            ("王", 300_000),
            ("李", 25_000),
            ("張", 10_000),
        ]
        assert len({f.id for f in funders}) == 3

    def test_garbage_fragments_dropped(self):
        assert parse_funders_string("nobody") == []
        assert parse_funders_string("") == []
        assert parse_funders_string(None) == []


class TestRowMapping:
    def test_defaults(self):
        inv = row_to_investment({"總本金": "100000", "開始日期": "113/01/10"})

        assert inv.source == "匯入資料"
        assert inv.rate == 1.2
        assert inv.intro_fee_rate == 0.5
        assert inv.duration == 12
        assert inv.start_date == date(2024, 1, 10)
        assert inv.end_date == date(2025, 1, 10)
        assert inv.payment_history == {}
        assert inv.status is InvestmentStatus.ACTIVE
        assert inv.id

    def test_legacy_aliases(self):
        inv = row_to_investment(
            {
                "掛名人/群組": "OLD",
                "介紹費(%)": "1",
                "介紹費已收": "是",
                "單號": "T1",
                "金主明細": "王(10萬)",
                "總本金": "999",
                "開始日期": "2024-01-10",
                "狀態": "已回金",
            }
        )
        assert inv.source == "OLD"
        assert inv.intro_fee_rate == 1.0
        assert inv.intro_fee_paid is True
        assert inv.ticket_number == "T1"
        assert inv.amount == 100_000
        assert inv.status is InvestmentStatus.RETURNED

    def test_zero_and_garbage_numbers_take_defaults(self):
        cfg = LedgerConfig(import_default_rate=2.0, import_default_duration=6)
        inv = row_to_investment(
            {"月利率(%)": "0", "合約期數": "abc", "開始日期": "2025-01-15"}, cfg
        )
        assert inv.rate == 2.0
        assert inv.duration == 6
        assert inv.end_date == date(2025, 7, 15)

    def test_end_date_is_recomputed(self):
        inv = row_to_investment(
            {"開始日期": "114/01/15", "到期日期": "199/01/01", "合約期數": "6"}
        )
        assert inv.end_date == date(2025, 7, 15)

    def test_bad_date_falls_back(self):
        inv = row_to_investment({"開始日期": "soon"}, today=TODAY)
        assert inv.start_date == TODAY

    def test_nan_cells_are_missing(self):
        inv = row_to_investment({"系統ID": float("nan"), "機構/專案": "A"})
        assert inv.id != "nan"
        assert inv.source == "A"

    def test_empty_row(self):
        assert row_to_investment({"a": "", "b": None}) is None


class TestParseRows:
    def test_outcomes(self, caplog):
        assert parse_rows([]).outcome is ImportOutcome.EMPTY_INPUT
        assert parse_rows([{"a": ""}]).outcome is ImportOutcome.NO_VALID_DATA
        assert "Skipping empty import row" in caplog.text

        result = parse_rows([{"機構/專案": "A"}, {"x": " "}])
        assert result.outcome is ImportOutcome.OK
        assert len(result.candidates) == 1


class TestJsonImport:
    def test_bare_list(self, abc_investment):
        text = json.dumps([abc_investment.to_dict()])
        result = parse_json_import(text)
        assert result.outcome is ImportOutcome.OK
        assert result.candidates == [abc_investment]
        assert result.settings is None

    def test_document_with_settings(self, state):
        result = parse_json_import(export_json(state))
        assert len(result.candidates) == 2
        assert result.settings == AppSettings()
        assert result.candidates[1].payment_history[2].paid_date == date(2025, 3, 15)

    def test_empty(self):
        assert parse_json_import("").outcome is ImportOutcome.EMPTY_INPUT
        assert parse_json_import('{"investments": []}').outcome is ImportOutcome.EMPTY_INPUT

    def test_no_valid_records(self):
        assert parse_json_import("[1, 2]").outcome is ImportOutcome.NO_VALID_DATA

    def test_malformed(self):
        with pytest.raises(ImportFormatError, match="Invalid JSON"):
            parse_json_import("{oops")
        with pytest.raises(ImportFormatError):
            parse_json_import('{"data": []}')


class TestFileRoundTrip:
    def test_csv(self, state, tmp_path):
        path = export_file(state, tmp_path / "ledger.csv", TODAY)
        assert path.read_bytes().startswith(b"\xef\xbb\xbf")

        result = import_file(path, today=TODAY)
        assert result.outcome is ImportOutcome.OK
        abc, xyz = result.candidates

        assert abc.id == "abc"
        assert abc.amount == 500_000
        assert abc.rate == 1.2
        assert abc.start_date == date(2025, 1, 15)
        assert abc.end_date == date(2025, 7, 15)
        assert abc.ticket_number == "1140715-ABC50(1.2%)"
        assert abc.payment_history == {}
        assert abc.note == "first"

        assert xyz.id == "xyz"
        assert [(f.name, f.amount) for f in xyz.funders] == [("王", 300_000), ("李", 200_000)]
        assert xyz.amount == 500_000
        assert xyz.order == 1

    def test_xlsx(self, state, tmp_path):
        pytest.importorskip("openpyxl")
        path = export_file(state, tmp_path / "ledger.xlsx", TODAY)

        rows = read_tabular(path)
        assert len(rows) == 2
        result = import_file(path, today=TODAY)
        assert [inv.id for inv in result.candidates] == ["abc", "xyz"]
        assert result.candidates[0].start_date == date(2025, 1, 15)

    def test_unknown_suffix(self, tmp_path):
        path = Path(tmp_path / "ledger.txt")
        path.write_text("x", encoding="utf-8")
        with pytest.raises(ImportFormatError):
            import_file(path)


class TestMissingOpenpyxl:
    """XLSX paths raise a helpful error when openpyxl is not installed."""

    @pytest.fixture(autouse=True)
    def _no_openpyxl(self, monkeypatch):
        monkeypatch.setattr(tabular, "OPENPYXL_AVAILABLE", False)

    def test_export(self, state, tmp_path):
        before = [replace(inv) for inv in state.investments]
        path = tmp_path / "ledger.xlsx"

        with pytest.raises(ExternalDependencyMissing, match="openpyxl"):
            export_file(state, path, TODAY)

        assert not path.exists()
        assert state.investments == before

    def test_import(self, tmp_path):
        with pytest.raises(ExternalDependencyMissing, match="openpyxl"):
            read_tabular(tmp_path / "ledger.xlsx")

    def test_csv_still_works(self, state, tmp_path):
        path = export_file(state, tmp_path / "ledger.csv", TODAY)
        assert len(read_tabular(path)) == 2
