"""
통화/퍼센트 텍스트 파싱 함수 모음 (상태 없음)
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

# ₹, Rs., INR 등 통화 표기
_CURRENCY_SYMBOLS = re.compile(r"₹|\bRs\.?|\bINR\b|\$", re.IGNORECASE)
_SIGNED_NUMBER = re.compile(r"([+\-]?)\s*(\d[\d,]*(?:\.\d+)?)")
_PERCENTAGE = re.compile(r"([+\-]?)\s*(\d[\d,]*(?:\.\d+)?)\s*%")
CHANGE_WITH_PERCENT_PATTERN = re.compile(
    r"([+\-]?\s*(?:₹\s*)?\d[\d,]*(?:\.\d+)?)\s*\(\s*([+\-]?\s*\d+(?:\.\d+)?)\s*%\s*\)"
)
_UNITS = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*(?:shares?|qty|units?)", re.IGNORECASE)

# 인도식 천 단위 구분(1,31,670.00) 포함, 소수점은 2자리까지만
# "₹6,930.0077.00" 처럼 붙어 있는 값에서도 "6,930.00"에서 끊김
CURRENCY_TOKEN_PATTERN = re.compile(
    r"(?P<sign>[+\-])?\s*₹\s*(?P<number>(?:\d{1,3}(?:,\d{2,3})+|\d+)(?:\.\d{1,2})?)"
)

Number = Union[int, float]


@dataclass(frozen=True)
class CurrencyToken:
    """텍스트 안의 통화 토큰 하나"""
    value: float
    signed: bool
    start: int
    end: int


def normalize_text(text: Optional[str]) -> str:
    """nbsp, 유니코드 마이너스 등 정리"""
    if not text:
        return ""
    return (
        str(text)
        .replace("\u00a0", " ")
        .replace("\u2212", "-")
        .replace("\u2013", "-")
        .strip()
    )


def _to_float(sign: str, digits: str) -> Optional[float]:
    try:
        value = float(digits.replace(",", ""))
    except ValueError:
        return None
    return -value if sign == "-" else value


def parse_amount(text: Union[str, Number, None]) -> Optional[float]:
    """
    통화 형식 텍스트를 숫자로 변환

    "₹1,31,670.00" -> 131670.0, "+₹33,460.90" -> 33460.9, "-₹120" -> -120.0
    숫자를 찾지 못하면 None
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text)

    cleaned = _CURRENCY_SYMBOLS.sub("", normalize_text(text))
    match = _SIGNED_NUMBER.search(cleaned)
    if not match:
        return None
    return _to_float(match.group(1), match.group(2))


def parse_percentage(text: Optional[str]) -> Optional[float]:
    """"34.07%" -> 34.07, "-1.5 %" -> -1.5"""
    match = _PERCENTAGE.search(normalize_text(text))
    if not match:
        return None
    return _to_float(match.group(1), match.group(2))


def parse_change(text: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """
    변동액/변동률 동시 추출

    "77.00 (1.12%)" -> (77.0, 1.12)
    괄호 형식이 아니면 금액과 퍼센트를 각각 따로 찾습니다.
    """
    normalized = normalize_text(text)
    match = CHANGE_WITH_PERCENT_PATTERN.search(normalized)
    if match:
        amount = parse_amount(match.group(1).replace(" ", ""))
        percentage = parse_amount(match.group(2).replace(" ", ""))
        return amount, percentage

    percentage = parse_percentage(normalized)
    without_percent = _PERCENTAGE.sub("", normalized)
    return parse_amount(without_percent), percentage


def parse_units(text: Optional[str]) -> Optional[float]:
    """"19 shares" -> 19.0, 수량 표기가 없으면 첫 숫자"""
    normalized = normalize_text(text)
    match = _UNITS.search(normalized)
    if match:
        return _to_float("", match.group(1))
    return parse_amount(normalized)


def find_currency_tokens(text: Optional[str]) -> List[CurrencyToken]:
    """문서 순서대로 통화 토큰 목록 반환"""
    tokens = []
    for match in CURRENCY_TOKEN_PATTERN.finditer(normalize_text(text)):
        sign = match.group("sign") or ""
        value = _to_float(sign, match.group("number"))
        if value is None:
            continue
        tokens.append(
            CurrencyToken(value=value, signed=bool(sign), start=match.start(), end=match.end())
        )
    return tokens


def has_digits(text: Optional[str]) -> bool:
    return any(c.isdigit() for c in (text or ""))
