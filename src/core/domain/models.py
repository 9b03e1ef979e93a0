# src/core/domain/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.domain.errors import ExtractionError


class SessionState(Enum):
    """추출 세션 상태"""
    IDLE = "idle"
    INITIALIZING = "initializing"
    AWAITING_LOGIN = "awaiting_login"
    SESSION_DETECTED = "session_detected"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED)


@dataclass(frozen=True)
class RawFragment:
    """
    페이지 안에서 수집한 보유 종목 후보 요소 하나

    in-page 스크립트가 돌려준 JSON을 그대로 옮겨 담습니다.
    """
    text: str                           # 요소 전체 텍스트 (innerText)
    cells: Tuple[str, ...] = ()         # td/셀 단위 텍스트 (표 형식일 때)
    name: Optional[str] = None          # [class*="name"] 등에서 찾은 종목명
    symbol: Optional[str] = None        # [class*="symbol"] 등에서 찾은 심볼
    selector: Optional[str] = None      # 매칭된 구조 셀렉터
    sector: Optional[str] = None        # [data-cy="sector"] 등
    market_cap: Optional[str] = None    # [data-cy="market-cap"] 등

    @classmethod
    def from_json(cls, data: dict) -> "RawFragment":
        return cls(
            text=str(data.get("text") or ""),
            cells=tuple(str(c) for c in (data.get("cells") or [])),
            name=(data.get("name") or None),
            symbol=(data.get("symbol") or None),
            selector=data.get("selector"),
            sector=(data.get("sector") or None),
            market_cap=(data.get("marketCap") or None),
        )

    @property
    def content_key(self) -> str:
        """중복 판별용 키 (렌더링된 전체 내용 기준)"""
        normalized = " ".join(self.text.split())
        return normalized + "\x1f" + "\x1f".join(" ".join(c.split()) for c in self.cells)


@dataclass(frozen=True)
class HoldingRecord:
    """
    증권사 보유 종목 1건

    관측되지 않은 값은 생성 시점에 파생 규칙으로 채워집니다.
    (HoldingRecordBuilder 참고)
    """
    symbol: Optional[str]
    name: Optional[str]

    units: float                        # 보유 수량
    average_buy_price: float            # 평균 매입가
    current_price: float                # 현재가

    invested_value: float               # 투자 금액
    current_value: float                # 평가 금액
    profit_loss: float                  # 평가 손익
    profit_loss_percentage: float       # 손익률 (%)
    day_change: float = 0.0             # 당일 변동액
    day_change_percentage: float = 0.0  # 당일 변동률 (%)

    sector: Optional[str] = None
    exchange: Optional[str] = None
    market_cap: Optional[str] = None
    isin: Optional[str] = None

    extracted_at: datetime = field(default_factory=datetime.now)

    @property
    def display_name(self) -> str:
        return self.name or self.symbol or ""

    def is_valid(self) -> bool:
        """최소 유효성: 종목 식별자 또는 양수 금액 중 하나는 있어야 함"""
        has_identity = bool((self.name or "").strip() or (self.symbol or "").strip())
        has_money = any(
            value > 0
            for value in (
                self.average_buy_price,
                self.current_price,
                self.invested_value,
                self.current_value,
            )
        )
        return has_identity or has_money


@dataclass(frozen=True)
class PortfolioSummary:
    """페이지에서 직접 관측된 포트폴리오 합계 (관측되지 않은 값은 None)"""
    total_invested: Optional[float] = None
    current_value: Optional[float] = None
    total_returns: Optional[float] = None
    total_returns_percentage: Optional[float] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.total_invested,
                self.current_value,
                self.total_returns,
                self.total_returns_percentage,
            )
        )


@dataclass(frozen=True)
class PortfolioSnapshot:
    """추출 1회의 전체 결과"""
    holdings: Tuple[HoldingRecord, ...]
    summary: PortfolioSummary
    source_url: str
    extracted_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ProgressEvent:
    session_id: str
    percentage: int
    message: str
    state: Optional[SessionState] = None


@dataclass(frozen=True)
class ExtractionResult:
    """
    세션 결과 (스냅샷 또는 오류 중 하나만 존재)
    """
    session_id: str
    snapshot: Optional[PortfolioSnapshot] = None
    error: Optional[ExtractionError] = None

    def __post_init__(self):
        if (self.snapshot is None) == (self.error is None):
            raise ValueError("ExtractionResult는 snapshot과 error 중 정확히 하나만 가져야 합니다")

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    @classmethod
    def success(cls, session_id: str, snapshot: PortfolioSnapshot) -> "ExtractionResult":
        return cls(session_id=session_id, snapshot=snapshot)

    @classmethod
    def failure(cls, session_id: str, error: ExtractionError) -> "ExtractionResult":
        return cls(session_id=session_id, error=error)
