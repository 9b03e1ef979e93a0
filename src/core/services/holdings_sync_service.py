"""
보유 종목 동기화 비즈니스 로직 서비스
"""
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.domain.errors import ExtractionError
from core.domain.models import HoldingRecord, PortfolioSnapshot
from core.ports.data_ports import DataExporterPort, DataMapperPort
from core.ports.utility_ports import LoggerPort
from core.services.extraction_orchestrator import ExtractionOrchestrator
from core.services.progress_reporter import ProgressCallback


@dataclass
class SyncReport:
    """동기화 1회 결과"""
    session_id: str
    holdings: List[HoldingRecord] = field(default_factory=list)
    dropped_count: int = 0
    summary: Dict[str, object] = field(default_factory=dict)
    snapshot: Optional[PortfolioSnapshot] = None
    error: Optional[ExtractionError] = None
    output_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_holding(holding: HoldingRecord) -> List[str]:
    """저장 규칙 위반 목록 (비어 있으면 저장 가능)"""
    problems = []
    if not (holding.symbol or "").strip() and not (holding.name or "").strip():
        problems.append("종목명/심볼 없음")
    if holding.units < 0:
        problems.append("보유수량 음수")
    if holding.average_buy_price < 0 or holding.current_price < 0:
        problems.append("가격 음수")
    return problems


def summarize_holdings(holdings: Sequence[HoldingRecord]) -> Dict[str, float]:
    """계좌 합계 (투자금액/평가금액/손익/수익률)"""
    total_investment = sum(h.invested_value for h in holdings)
    total_value = sum(h.current_value for h in holdings)
    total_profit_loss = total_value - total_investment
    percentage = total_profit_loss / total_investment * 100 if total_investment > 0 else 0.0
    return {
        "stocks_count": len(holdings),
        "total_investment": round(total_investment, 2),
        "total_value": round(total_value, 2),
        "total_profit_loss": round(total_profit_loss, 2),
        "total_profit_loss_percentage": round(percentage, 2),
    }


class HoldingsSyncService:
    """
    보유 종목 동기화 워크플로우

    흐름:
    1. 추출 세션 실행
    2. 저장 규칙으로 레코드 검증 (위반 레코드는 로그 후 제외)
    3. 계좌 요약 계산
    4. DataFrame 변환 후 저장
    """

    def __init__(
        self,
        orchestrator: ExtractionOrchestrator,
        data_mapper: DataMapperPort,
        data_exporter: DataExporterPort,
        logger: LoggerPort,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.orchestrator = orchestrator
        self.data_mapper = data_mapper
        self.data_exporter = data_exporter
        self.logger = logger
        self.clock = clock

    async def sync(
        self,
        session_id: str,
        progress_callback: Optional[ProgressCallback] = None,
        export: bool = True,
    ) -> SyncReport:
        self.logger.info(f"보유 종목 동기화 시작 (세션: {session_id})")
        result = await self.orchestrator.run_session(session_id, progress_callback)
        synced_at = self.clock()

        if not result.ok:
            self.logger.error(f"동기화 실패: {result.error}")
            return SyncReport(
                session_id=session_id,
                error=result.error,
                summary={
                    "last_synced_at": synced_at,
                    "last_sync_status": "failed",
                    "last_sync_error": result.error.message,
                },
            )

        snapshot = result.snapshot
        accepted, dropped = self._validate(snapshot.holdings)

        summary: Dict[str, object] = {
            "last_synced_at": synced_at,
            "last_sync_status": "success",
            "source_url": snapshot.source_url,
        }
        summary.update(summarize_holdings(accepted))
        self.logger.info(
            f"{summary['stocks_count']}개 종목 동기화 "
            f"(투자 {summary['total_investment']:,.2f} / 평가 {summary['total_value']:,.2f})"
        )

        report = SyncReport(
            session_id=session_id,
            holdings=accepted,
            dropped_count=dropped,
            summary=summary,
            snapshot=snapshot,
        )

        if export:
            df = self.data_mapper.to_dataframe(accepted)
            report.output_path = self.data_exporter.export(df, summary)
            if report.output_path:
                self.logger.info(f"저장 완료: {report.output_path}")
        return report

    def _validate(self, holdings: Sequence[HoldingRecord]) -> Tuple[List[HoldingRecord], int]:
        accepted = []
        dropped = 0
        for holding in holdings:
            problems = validate_holding(holding)
            if problems:
                dropped += 1
                self.logger.warning(f"저장 규칙 위반으로 제외: {holding.display_name or '(이름 없음)'} - {', '.join(problems)}")
                continue
            accepted.append(holding)
        return accepted, dropped
