"""
후보 요소 -> HoldingRecord 변환
"""
import re
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from core.domain.models import HoldingRecord, RawFragment
from infra.adapters.parsing.html.strategies import (
    HoldingExtractionStrategy,
    ObservedFields,
    default_strategies,
)
from infra.adapters.parsing.text import parsers as text_parsers


class BuildOutcome(Enum):
    BUILT = "built"
    SKIPPED = "skipped"      # 헤더/짧은 텍스트 (데이터 아님)
    REJECTED = "rejected"    # 적용 가능한 전략 없음 또는 최소 유효성 미달


class HoldingRecordBuilder:
    """
    보유 종목 레코드 빌더

    1. 헤더/짧은 텍스트는 건너뜀 (데이터로 세지 않음)
    2. 전략을 우선순위대로 시도 (표 셀 -> 평문)
    3. 관측되지 않은 값은 파생 규칙으로 채움
    4. 최소 유효성(식별자 또는 양수 금액)을 만족하지 못하면 버림

    중복 제거는 하지 않습니다. (PageExtractor 책임)
    """

    MIN_TEXT_LENGTH = 8

    # 이 문구로 시작하는 요소는 표 헤더/섹션 제목
    HEADER_PREFIXES = (
        "stock name",
        "company name",
        "company",
        "holding",
        "instrument",
        "symbol",
        "quantity",
    )

    HEADER_VOCABULARY = frozenset({
        "stock", "stocks", "name", "symbol", "quantity", "qty", "holding", "holdings",
        "company", "avg", "average", "price", "buy", "ltp", "current", "market",
        "invested", "investment", "value", "returns", "return", "total", "day",
        "change", "p", "l", "pl", "profit", "loss", "shares", "units", "sector",
        "exchange", "cap", "of", "and", "isin", "d",
    })

    def __init__(
        self,
        strategies: Optional[Iterable[HoldingExtractionStrategy]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.strategies: List[HoldingExtractionStrategy] = (
            list(strategies) if strategies is not None else default_strategies()
        )
        self.clock = clock

    def is_non_data(self, fragment: RawFragment) -> bool:
        """헤더 문구이거나 의미 있는 길이가 안 되는 요소"""
        text = " ".join(text_parsers.normalize_text(fragment.text).split())
        if not text and fragment.cells:
            text = " ".join(" ".join(c.split()) for c in fragment.cells)

        if len(text) < self.MIN_TEXT_LENGTH:
            return True

        lowered = text.lower()
        if lowered.startswith(self.HEADER_PREFIXES):
            return True

        if text_parsers.has_digits(text):
            return False
        words = re.findall(r"[a-z]+", lowered)
        return bool(words) and all(word in self.HEADER_VOCABULARY for word in words)

    def build(self, fragment: RawFragment) -> Optional[HoldingRecord]:
        """유효한 레코드 또는 None (건너뜀/거부)"""
        return self.classify(fragment)[1]

    def classify(self, fragment: RawFragment) -> Tuple[BuildOutcome, Optional[HoldingRecord]]:
        """요소 하나를 한 번만 판정해 (결과, 레코드) 반환"""
        if self.is_non_data(fragment):
            return BuildOutcome.SKIPPED, None

        fields = self.observe(fragment)
        if fields is None:
            return BuildOutcome.REJECTED, None

        record = self.derive(fields)
        if not record.is_valid():
            return BuildOutcome.REJECTED, None
        return BuildOutcome.BUILT, record

    def observe(self, fragment: RawFragment) -> Optional[ObservedFields]:
        """첫 번째로 적용 가능한 전략의 관측값"""
        for strategy in self.strategies:
            fields = strategy.extract(fragment)
            if fields is not None:
                return fields
        return None

    def derive(self, fields: ObservedFields) -> HoldingRecord:
        """관측값 + 파생 규칙 -> HoldingRecord"""
        units = abs(fields.units or 0.0)
        average_buy_price = abs(fields.average_buy_price or 0.0)

        current_price = fields.current_price
        if current_price is None and units > 0 and fields.current_value is not None:
            current_price = fields.current_value / units
        current_price = abs(current_price or 0.0)

        invested_value = fields.invested_value
        if invested_value is None:
            invested_value = units * average_buy_price

        current_value = fields.current_value
        if current_value is None:
            current_value = units * current_price

        profit_loss = fields.profit_loss
        if profit_loss is None:
            profit_loss = current_value - invested_value

        profit_loss_percentage = fields.profit_loss_percentage
        if profit_loss_percentage is None:
            profit_loss_percentage = (
                profit_loss / invested_value * 100 if invested_value > 0 else 0.0
            )

        return HoldingRecord(
            symbol=(fields.symbol or None),
            name=(fields.name or None),
            units=units,
            average_buy_price=average_buy_price,
            current_price=current_price,
            invested_value=invested_value,
            current_value=current_value,
            profit_loss=profit_loss,
            profit_loss_percentage=profit_loss_percentage,
            day_change=fields.day_change or 0.0,
            day_change_percentage=fields.day_change_percentage or 0.0,
            exchange=fields.exchange,
            isin=fields.isin,
            sector=fields.sector,
            market_cap=fields.market_cap,
            extracted_at=self.clock(),
        )
