"""
데이터 변환/저장 포트 정의
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Sequence

import pandas as pd

from core.domain.models import HoldingRecord


class DataMapperPort(ABC):

    @abstractmethod
    def to_dataframe(self, holdings: Sequence[HoldingRecord]) -> pd.DataFrame:
        ...


class DataExporterPort(ABC):

    @abstractmethod
    def export(self, holdings: pd.DataFrame, summary: Dict[str, object]) -> Optional[Path]:
        """보유 종목과 계좌 요약 저장 후 저장 경로 반환"""
