"""
보유 종목 추출 전략

후보 요소 하나를 관측값(ObservedFields)으로 바꾸는 전략들.
전략은 우선순위대로 시도되며, 적용할 수 없으면 None을 반환합니다.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import List, Optional

from core.domain.models import RawFragment
from infra.adapters.parsing.text import parsers as text_parsers

SYMBOL_PATTERN = re.compile(r"^[A-Z][A-Z0-9&\-]{1,19}$")
UNITS_PATTERN = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*shares?", re.IGNORECASE)
AVERAGE_PRICE_PATTERN = re.compile(
    r"Avg\.?\s*(?:price)?\s*:?\s*₹\s*((?:\d{1,3}(?:,\d{2,3})+|\d+)(?:\.\d{1,2})?)",
    re.IGNORECASE,
)
# 통화 토큰 바로 뒤의 "(1.12%)"
TRAILING_PERCENT_PATTERN = re.compile(r"\s*\(\s*([+\-]?\d+(?:\.\d+)?)\s*%\s*\)")
EXCHANGE_PATTERN = re.compile(r"\b(NSE|BSE)\b")
ISIN_PATTERN = re.compile(r"\b(IN[A-Z0-9]{9}\d)\b")


@dataclass(frozen=True)
class ObservedFields:
    """페이지에서 직접 관측된 값 (None = 관측되지 않음)"""
    name: Optional[str] = None
    symbol: Optional[str] = None
    units: Optional[float] = None
    average_buy_price: Optional[float] = None
    current_price: Optional[float] = None
    invested_value: Optional[float] = None
    current_value: Optional[float] = None
    profit_loss: Optional[float] = None
    profit_loss_percentage: Optional[float] = None
    day_change: Optional[float] = None
    day_change_percentage: Optional[float] = None
    exchange: Optional[str] = None
    sector: Optional[str] = None
    market_cap: Optional[str] = None
    isin: Optional[str] = None


def _split_identity(raw: Optional[str]) -> tuple:
    """이름 셀에서 (종목명, 심볼) 분리"""
    lines = [line.strip() for line in (raw or "").splitlines() if line.strip()]
    if not lines:
        return None, None
    name = lines[0]
    symbol = next((line for line in lines[1:] if SYMBOL_PATTERN.match(line)), None)
    return name, symbol


def _annotate(fields: ObservedFields, text: str, fragment: RawFragment) -> ObservedFields:
    """거래소/ISIN/업종/시가총액 같은 부가 정보"""
    exchange = EXCHANGE_PATTERN.search(text)
    isin = ISIN_PATTERN.search(text)
    return replace(
        fields,
        exchange=fields.exchange or (exchange.group(1) if exchange else None),
        isin=fields.isin or (isin.group(1) if isin else None),
        sector=fields.sector or _clean_label(fragment.sector),
        market_cap=fields.market_cap or _clean_label(fragment.market_cap),
    )


def _clean_label(value: Optional[str]) -> Optional[str]:
    cleaned = " ".join(text_parsers.normalize_text(value).split())
    return cleaned or None


class HoldingExtractionStrategy(ABC):
    """추출 전략 인터페이스"""

    name: str = "base"

    @abstractmethod
    def extract(self, fragment: RawFragment) -> Optional[ObservedFields]:
        """적용 불가 또는 불완전하면 None"""


class StructuredCellStrategy(HoldingExtractionStrategy):
    """
    표 형식 행(셀 7개 이상)을 위치 기반으로 매핑

    컬럼 순서: 종목명, 수량, 평균매입가, 현재가, 투자금액, 평가금액, 당일변동, 평가손익, (손익률)
    """

    name = "structured-cell"
    MIN_CELLS = 7

    def extract(self, fragment: RawFragment) -> Optional[ObservedFields]:
        cells = [text_parsers.normalize_text(c) for c in fragment.cells]
        if len(cells) < self.MIN_CELLS:
            return None

        cell_name, cell_symbol = _split_identity(cells[0])
        name = fragment.name or cell_name
        symbol = fragment.symbol or cell_symbol

        # 첫 셀이 숫자뿐이면 컬럼 배치가 다른 표
        if name and text_parsers.parse_amount(name) is not None and not re.search(r"[A-Za-z]", name):
            return None

        units = text_parsers.parse_units(cells[1])
        if not (name or symbol) or units is None:
            return None

        money = [text_parsers.parse_amount(cell) for cell in cells[2:6]]
        # 금액 셀이 하나도 읽히지 않으면 불완전한 행 (다음 전략에 넘김)
        if all(value is None for value in money):
            return None
        average_buy_price, current_price, invested_value, current_value = money

        day_change, day_change_pct = text_parsers.parse_change(cells[6])
        profit_loss, profit_loss_pct = (None, None)
        if len(cells) > 7:
            profit_loss, profit_loss_pct = text_parsers.parse_change(cells[7])
        if len(cells) > 8 and profit_loss_pct is None:
            profit_loss_pct = text_parsers.parse_percentage(cells[8])

        fields = ObservedFields(
            name=name,
            symbol=symbol,
            units=units,
            average_buy_price=average_buy_price,
            current_price=current_price,
            invested_value=invested_value,
            current_value=current_value,
            day_change=day_change,
            day_change_percentage=day_change_pct,
            profit_loss=profit_loss,
            profit_loss_percentage=profit_loss_pct,
        )
        return _annotate(fields, " ".join(cells), fragment)


class FreeTextStrategy(HoldingExtractionStrategy):
    """
    카드형 요소의 평문 텍스트를 정규식으로 해석

    알려진 레이아웃에 의존합니다:
    - "N shares" -> 수량, "Avg. ₹X" -> 평균매입가
    - 부호 있는 "+₹X"/"-₹X" -> 평가손익
    - 부호 없는 통화 토큰을 문서 순서로 볼 때 첫째 = 평균매입가, 둘째 = 현재가,
      끝에서 둘째 = 평가금액, 마지막 = 투자금액
    """

    name = "free-text"

    def extract(self, fragment: RawFragment) -> Optional[ObservedFields]:
        text = text_parsers.normalize_text(fragment.text)
        if not text:
            return None

        tokens = text_parsers.find_currency_tokens(text)
        units_match = UNITS_PATTERN.search(text)
        if not tokens and not units_match:
            return None

        positional: List[text_parsers.CurrencyToken] = []
        profit_loss = profit_loss_pct = None
        day_change = day_change_pct = None
        consumed = []

        for token in tokens:
            trailing = TRAILING_PERCENT_PATTERN.match(text, token.end)
            if trailing:
                consumed.append((token.start, trailing.end()))
                percentage = float(trailing.group(1))
                if token.signed:
                    if profit_loss is None:
                        profit_loss, profit_loss_pct = token.value, percentage
                elif day_change is None:
                    day_change, day_change_pct = token.value, percentage
                continue

            consumed.append((token.start, token.end))
            if token.signed:
                if profit_loss is None:
                    profit_loss = token.value
            else:
                positional.append(token)

        # 통화 토큰을 지운 나머지 텍스트에서 "77.00 (1.12%)", "34.07%" 탐색
        residual = self._strip_spans(text, consumed)
        if day_change is None:
            change_match = text_parsers.CHANGE_WITH_PERCENT_PATTERN.search(residual)
            if change_match:
                day_change, day_change_pct = text_parsers.parse_change(change_match.group(0))
                residual = residual[:change_match.start()] + " | " + residual[change_match.end():]
        if profit_loss_pct is None:
            profit_loss_pct = text_parsers.parse_percentage(residual)
        if profit_loss is not None and profit_loss < 0 and profit_loss_pct is not None and profit_loss_pct > 0:
            profit_loss_pct = -profit_loss_pct

        average_buy_price = current_price = current_value = invested_value = None
        if positional:
            average_buy_price = positional[0].value
        if len(positional) >= 2:
            current_price = positional[1].value
        if len(positional) >= 4:
            current_value = positional[-2].value
            invested_value = positional[-1].value

        avg_match = AVERAGE_PRICE_PATTERN.search(text)
        if avg_match:
            average_buy_price = text_parsers.parse_amount(avg_match.group(1))

        units = None
        if units_match:
            units = text_parsers.parse_amount(units_match.group(1))

        name = fragment.name or self._leading_name(text, units_match, tokens)
        fields = ObservedFields(
            name=name,
            symbol=fragment.symbol,
            units=units,
            average_buy_price=average_buy_price,
            current_price=current_price,
            invested_value=invested_value,
            current_value=current_value,
            profit_loss=profit_loss,
            profit_loss_percentage=profit_loss_pct,
            day_change=day_change,
            day_change_percentage=day_change_pct,
        )
        return _annotate(fields, text, fragment)

    @staticmethod
    def _strip_spans(text: str, spans: List[tuple]) -> str:
        pieces = []
        cursor = 0
        for start, end in sorted(spans):
            if start < cursor:
                continue
            pieces.append(text[cursor:start])
            pieces.append(" | ")
            cursor = end
        pieces.append(text[cursor:])
        return "".join(pieces)

    @staticmethod
    def _leading_name(text: str, units_match, tokens) -> Optional[str]:
        """수량/금액 이전의 선행 텍스트를 종목명으로 사용"""
        if units_match:
            end = units_match.start()
        else:
            first_digit = re.search(r"[\d₹+\-]", text)
            end = first_digit.start() if first_digit else len(text)
            if tokens:
                end = min(end, tokens[0].start)
        name = text[:end].strip(" \t\n-|:·•")
        first_line = name.splitlines()[0].strip() if name else ""
        return first_line or None


DEFAULT_STRATEGIES = (StructuredCellStrategy, FreeTextStrategy)


def default_strategies() -> List[HoldingExtractionStrategy]:
    return [strategy() for strategy in DEFAULT_STRATEGIES]
