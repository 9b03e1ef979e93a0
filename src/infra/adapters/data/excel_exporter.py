"""
Excel 내보내기 어댑터 구현
"""
from pathlib import Path
import os
from typing import Dict, Optional, Union
import pandas as pd
from openpyxl.utils import get_column_letter

from core.ports.data_ports import DataExporterPort
from core.ports.utility_ports import LoggerPort
from config import config


class ExcelExporter(DataExporterPort):
    """
    보유 종목 DataFrame과 동기화 요약을 Excel 파일로 저장하는 어댑터
    """

    HOLDINGS_SHEET = "보유종목"
    SUMMARY_SHEET = "동기화요약"

    # 동기화 요약 키 -> 표시 이름
    SUMMARY_LABELS = {
        "last_synced_at": "마지막 동기화",
        "last_sync_status": "상태",
        "stocks_count": "종목 수",
        "total_investment": "총 투자금액",
        "total_value": "총 평가금액",
        "total_profit_loss": "총 평가손익",
        "total_profit_loss_percentage": "총 수익률(%)",
        "source_url": "추출 페이지",
    }

    def __init__(
        self,
        output_dir: Union[str, Path] = None,
        filename: Optional[str] = None,
        logger: Optional[LoggerPort] = None,
    ):
        # config.OUTPUT_DIR을 기본값으로 사용
        self.output_dir = Path(output_dir) if output_dir else config.OUTPUT_DIR
        self.filename = filename
        self.logger = logger

    def export(self, holdings: pd.DataFrame, summary: Dict[str, object]) -> Optional[Path]:
        """
        보유 종목과 동기화 요약을 엑셀 파일로 저장

        Args:
            holdings: DataFrameMapper가 만든 보유 종목 DataFrame
            summary: 계좌 요약 (HoldingsSyncService 참고)

        Returns:
            저장된 파일 경로
        """
        os.makedirs(self.output_dir, exist_ok=True)
        filepath = self.output_dir / (self.filename or config.get_default_filename())

        # 같은 날 여러 번 동기화하면 기존 행과 병합 (최신 값 유지)
        if filepath.exists():
            holdings = self._merge_existing(filepath, holdings)

        summary_df = pd.DataFrame(
            [
                {"항목": self.SUMMARY_LABELS.get(key, key), "값": self._format_value(value)}
                for key, value in summary.items()
            ],
            columns=["항목", "값"],
        )

        with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
            holdings.to_excel(writer, sheet_name=self.HOLDINGS_SHEET, index=False)
            self._adjust_column_width(writer, self.HOLDINGS_SHEET, holdings)

            summary_df.to_excel(writer, sheet_name=self.SUMMARY_SHEET, index=False)
            self._adjust_column_width(writer, self.SUMMARY_SHEET, summary_df)

        self._info(f"[저장 완료] {filepath} ({len(holdings)}건)")
        return filepath

    def _merge_existing(self, filepath: Path, holdings: pd.DataFrame) -> pd.DataFrame:
        self._info(f"[정보] 기존 파일 발견: {filepath} (데이터 병합)")
        try:
            existing_df = pd.read_excel(filepath, sheet_name=self.HOLDINGS_SHEET)
        except (ValueError, OSError) as e:
            self._warning(f"[경고] 기존 파일을 읽지 못해 새로 저장합니다: {e}")
            return holdings

        combined_df = pd.concat([existing_df, holdings], ignore_index=True)
        keys = [col for col in ("심볼", "종목명") if col in combined_df.columns]
        if keys:
            combined_df = combined_df.drop_duplicates(subset=keys, keep='last')
        self._info(
            f"[병합 완료] 총 {len(combined_df)}건 (기존 {len(existing_df)} + 신규 {len(holdings)})"
        )
        return combined_df.reset_index(drop=True)

    @staticmethod
    def _format_value(value: object) -> object:
        if hasattr(value, "strftime"):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        return value

    def _adjust_column_width(self, writer, sheet_name: str, df: pd.DataFrame) -> None:
        """컬럼 너비 자동 조정"""
        worksheet = writer.sheets[sheet_name]
        for idx, col in enumerate(df.columns, start=1):
            max_len = len(str(col).encode('utf-8'))

            # 최대 50개 행만 검사
            sample_values = df[col].astype(str).head(50)
            if not sample_values.empty:
                max_data_len = sample_values.map(lambda x: len(x.encode('utf-8'))).max()
                max_len = max(max_len, int(max_data_len * 0.8))

            # 너비 설정 (최소 10, 최대 50)
            worksheet.column_dimensions[get_column_letter(idx)].width = min(max(max_len + 2, 10), 50)

    def _info(self, message: str) -> None:
        if self.logger:
            self.logger.info(message)

    def _warning(self, message: str) -> None:
        if self.logger:
            self.logger.warning(message)
