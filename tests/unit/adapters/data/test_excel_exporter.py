"""
ExcelExporter 단위 테스트
"""
from datetime import datetime
from unittest.mock import Mock

import pandas as pd
import pytest

from infra.adapters.data.excel_exporter import ExcelExporter


def holdings_df(rows):
    return pd.DataFrame(rows, columns=["종목명", "심볼", "보유수량", "평가금액"])


class TestExcelExporter:

    @pytest.fixture
    def exporter(self, tmp_path):
        return ExcelExporter(output_dir=tmp_path, filename="holdings_test.xlsx", logger=Mock())

    @pytest.fixture
    def summary(self):
        return {
            "last_synced_at": datetime(2026, 1, 2, 10, 0),
            "last_sync_status": "success",
            "stocks_count": 1,
            "total_investment": 98209.1,
        }

    def test_writes_holdings_and_summary_sheets(self, exporter, summary, tmp_path):
        # When
        path = exporter.export(holdings_df([["Nuvama Wealth", "NUVAMA", 19, 131670.0]]), summary)

        # Then
        assert path == tmp_path / "holdings_test.xlsx"
        sheets = pd.read_excel(path, sheet_name=None)
        assert set(sheets) == {ExcelExporter.HOLDINGS_SHEET, ExcelExporter.SUMMARY_SHEET}
        assert sheets[ExcelExporter.HOLDINGS_SHEET]["종목명"].tolist() == ["Nuvama Wealth"]

        summary_sheet = sheets[ExcelExporter.SUMMARY_SHEET]
        values = dict(zip(summary_sheet["항목"], summary_sheet["값"]))
        assert values["상태"] == "success"
        assert values["마지막 동기화"] == "2026-01-02 10:00:00"

    def test_merges_with_existing_file(self, exporter, summary):
        """같은 종목은 최신 값으로 교체, 나머지는 보존"""
        # Given
        exporter.export(holdings_df([
            ["Nuvama Wealth", "NUVAMA", 10, 70000.0],
            ["Infosys", "INFY", 5, 8000.0],
        ]), summary)

        # When
        path = exporter.export(holdings_df([["Nuvama Wealth", "NUVAMA", 19, 131670.0]]), summary)

        # Then
        merged = pd.read_excel(path, sheet_name=ExcelExporter.HOLDINGS_SHEET)
        assert len(merged) == 2
        nuvama = merged[merged["심볼"] == "NUVAMA"].iloc[0]
        assert nuvama["보유수량"] == 19
        assert "Infosys" in merged["종목명"].tolist()
