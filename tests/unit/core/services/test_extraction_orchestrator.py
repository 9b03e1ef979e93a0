"""
ExtractionOrchestrator 단위 테스트
세션 상태 전이, 오류 변환, 리소스 해제를 검증
"""
from unittest.mock import AsyncMock, Mock

import pytest

from core.domain.errors import (
    BrowserAutomationError,
    FailureReason,
    HoldingsPageUnreachableError,
)
from core.domain.models import HoldingRecord, PortfolioSnapshot, PortfolioSummary, SessionState
from core.services.extraction_orchestrator import ExtractionOrchestrator
from core.services.progress_reporter import ProgressReporter
from infra.adapters.web.session_detector_adapter import SessionDetectorAdapter

HOLDINGS_URL = "https://groww.in/holdings"


def make_holding(name="Nuvama Wealth"):
    return HoldingRecord(
        symbol=None, name=name, units=19, average_buy_price=5168.90, current_price=6930.00,
        invested_value=98209.10, current_value=131670.00, profit_loss=33460.90,
        profit_loss_percentage=34.07,
    )


class TestExtractionOrchestrator:
    """ExtractionOrchestrator 단위 테스트"""

    @pytest.fixture
    def logger(self):
        return Mock()

    @pytest.fixture
    def session_detector(self):
        detector = Mock()
        detector.wait_for_login = AsyncMock(return_value=True)
        return detector

    @pytest.fixture
    def navigator(self):
        navigator = Mock()
        navigator.navigate_to_holdings = AsyncMock(return_value=HOLDINGS_URL)
        return navigator

    @pytest.fixture
    def page_extractor(self):
        extractor = Mock()
        extractor.extract = AsyncMock(return_value=PortfolioSnapshot(
            holdings=(make_holding(),), summary=PortfolioSummary(), source_url=HOLDINGS_URL,
        ))
        return extractor

    @pytest.fixture
    def reporter(self, logger):
        return ProgressReporter(logger=logger)

    @pytest.fixture
    def orchestrator(self, fake_browser, session_detector, navigator, page_extractor, logger, reporter):
        return ExtractionOrchestrator(
            browser=fake_browser,
            session_detector=session_detector,
            navigator=navigator,
            page_extractor=page_extractor,
            logger=logger,
            progress_reporter=reporter,
            login_url="https://groww.in/login",
            login_timeout_sec=30,
            login_poll_interval_sec=5,
        )

    @pytest.mark.asyncio
    async def test_successful_session(self, orchestrator, fake_browser, reporter):
        # Given
        events = []

        # When
        result = await orchestrator.run_session("s-1", events.append)

        # Then
        assert result.ok
        assert result.error is None
        assert len(result.snapshot.holdings) == 1
        assert fake_browser.launch_count == 1
        assert fake_browser.close_count == 1
        assert fake_browser.visited == ["https://groww.in/login"]
        assert events[-1].percentage == 100
        assert not reporter.is_registered("s-1")
        assert "s-1" not in orchestrator.active_sessions

    @pytest.mark.asyncio
    async def test_progress_never_decreases(self, orchestrator):
        events = []

        await orchestrator.run_session("s-1", events.append)

        percentages = [e.percentage for e in events]
        assert percentages == sorted(percentages)
        assert percentages[0] == 0
        states = [e.state for e in events]
        assert SessionState.AWAITING_LOGIN in states
        assert SessionState.EXTRACTING in states
        assert SessionState.COMPLETED in states

    @pytest.mark.asyncio
    async def test_login_timeout(self, fake_browser, navigator, page_extractor, logger, fake_clock):
        """로그인이 끝나지 않으면 LoginTimeout, 브라우저는 닫힘"""
        # Given: 실제 감지기 + 로그인 페이지에 머무는 브라우저
        fake_browser.evaluate_handler = lambda script, arg, url: {"loginMarkers": 1, "authMarkers": 0}
        detector = SessionDetectorAdapter(browser=fake_browser, sleep=fake_clock.sleep, clock=fake_clock)
        orchestrator = ExtractionOrchestrator(
            browser=fake_browser,
            session_detector=detector,
            navigator=navigator,
            page_extractor=page_extractor,
            logger=logger,
            login_timeout_sec=20,
            login_poll_interval_sec=5,
        )
        events = []

        # When
        result = await orchestrator.run_session("s-timeout", events.append)

        # Then
        assert not result.ok
        assert result.snapshot is None
        assert result.error.reason == FailureReason.LOGIN_TIMEOUT
        assert result.error.retryable is True
        assert fake_browser.close_count == 1
        navigator.navigate_to_holdings.assert_not_called()
        assert events[-1].state == SessionState.FAILED
        assert events[-1].percentage < 100
        assert [e.percentage for e in events] == sorted(e.percentage for e in events)
        assert not orchestrator.progress_reporter.is_registered("s-timeout")

    @pytest.mark.asyncio
    async def test_empty_page_is_not_a_failure(self, orchestrator, page_extractor, logger):
        """보유 종목 0건은 성공 + 경고"""
        # Given
        page_extractor.extract.return_value = PortfolioSnapshot(
            holdings=(), summary=PortfolioSummary(), source_url=HOLDINGS_URL,
        )

        # When
        result = await orchestrator.run_session("s-empty")

        # Then
        assert result.ok
        assert result.snapshot.holdings == ()
        assert result.snapshot.summary.is_empty()
        warnings = [c.args[0] for c in logger.with_prefix.return_value.warning.call_args_list]
        assert any(FailureReason.EXTRACTION_PARTIAL_FAILURE.value in w for w in warnings)

    @pytest.mark.asyncio
    async def test_missing_browser_capability(self, session_detector, navigator, page_extractor, logger, reporter):
        # Given
        orchestrator = ExtractionOrchestrator(
            browser=None,
            session_detector=session_detector,
            navigator=navigator,
            page_extractor=page_extractor,
            logger=logger,
            progress_reporter=reporter,
        )

        # When
        result = await orchestrator.run_session("s-none", lambda e: None)

        # Then
        assert result.error.reason == FailureReason.CAPABILITY_UNAVAILABLE
        session_detector.wait_for_login.assert_not_called()
        assert not reporter.is_registered("s-none")

    @pytest.mark.asyncio
    async def test_launch_failure_is_capability_unavailable(self, orchestrator, fake_browser, reporter):
        # Given
        fake_browser.launch_error = BrowserAutomationError("Executable doesn't exist")

        # When
        result = await orchestrator.run_session("s-launch", lambda e: None)

        # Then
        assert result.error.reason == FailureReason.CAPABILITY_UNAVAILABLE
        assert fake_browser.close_count == 0
        assert not reporter.is_registered("s-launch")

    @pytest.mark.asyncio
    async def test_holdings_page_unreachable(self, orchestrator, navigator, fake_browser, reporter):
        # Given
        navigator.navigate_to_holdings.side_effect = HoldingsPageUnreachableError([HOLDINGS_URL])

        # When
        result = await orchestrator.run_session("s-nav", lambda e: None)

        # Then
        assert result.error.reason == FailureReason.HOLDINGS_PAGE_UNREACHABLE
        assert result.error.attempted_urls == [HOLDINGS_URL]
        assert fake_browser.close_count == 1
        assert not reporter.is_registered("s-nav")

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_automation_failure(self, orchestrator, page_extractor, fake_browser, reporter):
        """예상하지 못한 예외도 세션 밖으로 나가지 않음"""
        # Given
        page_extractor.extract.side_effect = RuntimeError("boom")

        # When
        result = await orchestrator.run_session("s-boom", lambda e: None)

        # Then
        assert result.error.reason == FailureReason.AUTOMATION_FAILURE
        assert "boom" in result.error.message
        assert fake_browser.close_count == 1
        assert not reporter.is_registered("s-boom")

    @pytest.mark.asyncio
    async def test_browser_error_mid_session(self, orchestrator, page_extractor, reporter):
        page_extractor.extract.side_effect = BrowserAutomationError("Target page has been closed")

        result = await orchestrator.run_session("s-closed", lambda e: None)

        assert result.error.reason == FailureReason.AUTOMATION_FAILURE
        assert not reporter.is_registered("s-closed")

    @pytest.mark.asyncio
    async def test_release_failure_does_not_change_result(self, orchestrator, fake_browser, logger, reporter):
        # Given
        fake_browser.close_error = BrowserAutomationError("browser: already closed")

        # When
        result = await orchestrator.run_session("s-release", lambda e: None)

        # Then
        assert result.ok
        assert fake_browser.close_count == 1
        errors = [c.args[0] for c in logger.with_prefix.return_value.error.call_args_list]
        assert any(FailureReason.RESOURCE_RELEASE_FAILURE.value in e for e in errors)
        assert not reporter.is_registered("s-release")

    @pytest.mark.asyncio
    async def test_failing_progress_callback_does_not_break_session(self, orchestrator):
        def broken(event):
            raise ValueError("listener gone")

        result = await orchestrator.run_session("s-cb", broken)

        assert result.ok
