"""
DataFrame 매퍼 구현
"""
from typing import Sequence
import pandas as pd

from core.ports.data_ports import DataMapperPort
from core.domain.models import HoldingRecord


class DataFrameMapper(DataMapperPort):
    """
    HoldingRecord 리스트를 Pandas DataFrame으로 변환하는 어댑터
    """

    # 컬럼명 매핑 (영문 필드명 -> 한글 컬럼명)
    COLUMN_MAPPING = {
        "name": "종목명",
        "symbol": "심볼",
        "units": "보유수량",
        "average_buy_price": "평균매입가",
        "current_price": "현재가",
        "invested_value": "투자금액",
        "current_value": "평가금액",
        "profit_loss": "평가손익",
        "profit_loss_percentage": "수익률(%)",
        "day_change": "당일변동",
        "day_change_percentage": "당일변동률(%)",
        "sector": "업종",
        "exchange": "거래소",
        "market_cap": "시가총액",
        "isin": "ISIN",
        "extracted_at": "추출시각",
    }

    # 금액은 소수 둘째 자리까지
    MONEY_COLUMNS = [
        "평균매입가", "현재가", "투자금액", "평가금액", "평가손익",
        "수익률(%)", "당일변동", "당일변동률(%)",
    ]

    def to_dataframe(self, holdings: Sequence[HoldingRecord]) -> pd.DataFrame:
        """HoldingRecord 리스트를 DataFrame으로 변환"""
        columns = list(self.COLUMN_MAPPING.values())
        if not holdings:
            return pd.DataFrame(columns=columns)

        data = [{field: getattr(h, field) for field in self.COLUMN_MAPPING} for h in holdings]
        df = pd.DataFrame(data).rename(columns=self.COLUMN_MAPPING)
        df = df[columns]

        for col in self.MONEY_COLUMNS:
            df[col] = pd.to_numeric(df[col], errors='coerce').round(2)

        df["보유수량"] = pd.to_numeric(df["보유수량"], errors='coerce')
        df["추출시각"] = pd.to_datetime(df["추출시각"]).dt.strftime("%Y-%m-%d %H:%M:%S")

        return df
