"""
보유 종목 추출 세션 오케스트레이션
"""
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.domain.errors import (
    AutomationFailureError,
    BrowserAutomationError,
    CapabilityUnavailableError,
    ExtractionError,
    FailureReason,
    LoginTimeoutError,
)
from core.domain.models import ExtractionResult, PortfolioSnapshot, SessionState
from core.ports.utility_ports import LoggerPort
from core.ports.web_scraping_ports import (
    BrowserAutomationPort,
    NavigationPort,
    PageExtractorPort,
    SessionDetectorPort,
)
from core.services.progress_reporter import ProgressCallback, ProgressReporter

# 상태별 진행률 구간
PROGRESS_BANDS = {
    SessionState.INITIALIZING: (0, 10),
    SessionState.AWAITING_LOGIN: (10, 35),
    SessionState.SESSION_DETECTED: (35, 35),
    SessionState.NAVIGATING: (35, 50),
    SessionState.EXTRACTING: (50, 90),
    SessionState.COMPLETED: (90, 100),
}


@dataclass
class ExtractionSession:
    """진행 중인 세션 1건의 상태"""
    session_id: str
    logger: LoggerPort
    state: SessionState = SessionState.IDLE
    browser_handle: Any = field(default=None, repr=False)


class ExtractionOrchestrator:
    """
    추출 세션 상태 머신

    Idle -> Initializing -> AwaitingLogin -> SessionDetected -> Navigating
         -> Extracting -> Completed | Failed

    원칙:
    - 세션당 브라우저 리소스 1개, 어떤 종료 경로에서도 정확히 한 번 해제
    - 자동화 오류는 이 경계에서 ExtractionError로 변환 (원본 예외는 밖으로 나가지 않음)
    - 모든 대기에 상한 시간 존재
    """

    def __init__(
        self,
        browser: Optional[BrowserAutomationPort],
        session_detector: SessionDetectorPort,
        navigator: NavigationPort,
        page_extractor: PageExtractorPort,
        logger: LoggerPort,
        progress_reporter: Optional[ProgressReporter] = None,
        login_url: str = "https://groww.in/login",
        headless: bool = False,
        login_timeout_sec: float = 600,
        login_poll_interval_sec: float = 5,
        navigation_timeout_ms: int = 20000,
    ):
        self.browser = browser
        self.session_detector = session_detector
        self.navigator = navigator
        self.page_extractor = page_extractor
        self.logger = logger
        self.progress_reporter = progress_reporter or ProgressReporter(logger=logger)
        self.login_url = login_url
        self.headless = headless
        self.login_timeout_sec = login_timeout_sec
        self.login_poll_interval_sec = login_poll_interval_sec
        self.navigation_timeout_ms = navigation_timeout_ms
        self.active_sessions: Dict[str, ExtractionSession] = {}

    async def run_session(
        self,
        session_id: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ExtractionResult:
        """
        세션 1회 실행

        Args:
            session_id: 호출자가 정한 세션 ID (유일성은 호출자 책임)
            progress_callback: ProgressEvent를 받을 콜백

        Returns:
            성공 시 PortfolioSnapshot, 실패 시 ExtractionError를 담은 결과
        """
        session = ExtractionSession(session_id=session_id, logger=self.logger.with_prefix(session_id))
        if session_id in self.active_sessions:
            session.logger.warning("같은 세션 ID로 이미 실행 중인 세션이 있습니다")
        self.active_sessions[session_id] = session

        with self.progress_reporter.registered(session_id, progress_callback):
            try:
                result = await self._execute(session)
                if result.ok:
                    self._report(session, 100, "보유 종목 동기화 완료")
                return result
            finally:
                if self.active_sessions.get(session_id) is session:
                    del self.active_sessions[session_id]

    async def _execute(self, session: ExtractionSession) -> ExtractionResult:
        try:
            snapshot = await self._run_steps(session)
            self._transition(session, SessionState.COMPLETED, 90, "추출 완료, 브라우저를 닫는 중...")
            result = ExtractionResult.success(session.session_id, snapshot)
        except ExtractionError as e:
            result = self._fail(session, e)
        except BrowserAutomationError as e:
            result = self._fail(session, AutomationFailureError(f"브라우저 자동화 중 오류가 발생했습니다: {e}"))
        except Exception as e:
            session.logger.error(f"❌ 예상하지 못한 오류: {e}\n{traceback.format_exc()}")
            result = self._fail(session, AutomationFailureError(f"추출 중 오류가 발생했습니다: {e}"))
        finally:
            await self._release(session)

        return result

    async def _run_steps(self, session: ExtractionSession) -> PortfolioSnapshot:
        # 1. 브라우저 준비
        if self.browser is None:
            raise CapabilityUnavailableError()

        self._transition(session, SessionState.INITIALIZING, 0, "브라우저를 준비하는 중...")
        try:
            session.browser_handle = await self.browser.launch(headless=self.headless)
            page = await self.browser.new_page(session.browser_handle)
        except BrowserAutomationError as e:
            raise CapabilityUnavailableError(f"브라우저를 실행할 수 없습니다: {e}") from e
        self._report(session, 10, "브라우저 준비 완료")

        # 2. 사용자 로그인 대기
        self._transition(session, SessionState.AWAITING_LOGIN, 10, "로그인 페이지를 여는 중...")
        await self.browser.navigate(page, self.login_url, self.navigation_timeout_ms)
        self._report(session, 15, "브라우저 창에서 로그인을 완료해주세요")

        logged_in = await self.session_detector.wait_for_login(
            page,
            timeout_sec=self.login_timeout_sec,
            poll_interval_sec=self.login_poll_interval_sec,
            on_poll=lambda elapsed: self._on_login_poll(session, elapsed),
        )
        if not logged_in:
            raise LoginTimeoutError(self.login_timeout_sec)
        self._transition(session, SessionState.SESSION_DETECTED, 35, "로그인 세션 확인 완료")

        # 3. 보유 종목 페이지 이동
        self._transition(session, SessionState.NAVIGATING, 35, "보유 종목 페이지로 이동하는 중...")
        source_url = await self.navigator.navigate_to_holdings(
            page,
            on_attempt=lambda index, total, url: self._report(
                session, 36 + int(13 * index / max(total, 1)), f"{url} 확인 중..."
            ),
        )
        self._report(session, 50, "보유 종목 페이지 로드 완료")

        # 4. 추출
        self._transition(session, SessionState.EXTRACTING, 60, "보유 종목 데이터를 추출하는 중...")
        snapshot = await self.page_extractor.extract(page, source_url)
        self._report(session, 80, f"{len(snapshot.holdings)}개 종목 추출")

        if not snapshot.holdings:
            # 빈 포트폴리오인지 셀렉터 불일치인지 구분할 수 없으므로 실패로 바꾸지 않음
            session.logger.warning(
                f"⚠️  {FailureReason.EXTRACTION_PARTIAL_FAILURE.value}: "
                f"페이지는 로드됐지만 유효한 보유 종목이 없습니다 ({source_url})"
            )
        return snapshot

    def _on_login_poll(self, session: ExtractionSession, elapsed: float) -> None:
        ratio = min(elapsed / self.login_timeout_sec, 1.0) if self.login_timeout_sec else 1.0
        self._report(session, 15 + int(19 * ratio), f"로그인 대기 중... ({int(elapsed)}초 경과)")

    async def _release(self, session: ExtractionSession) -> None:
        """리소스 해제 (실패해도 로그만 남김)"""
        handle, session.browser_handle = session.browser_handle, None
        if handle is None or self.browser is None:
            return
        try:
            await self.browser.close(handle)
            session.logger.info("🧹 브라우저 리소스 정리 완료")
        except Exception as e:
            session.logger.error(f"{FailureReason.RESOURCE_RELEASE_FAILURE.value}: {e}")

    def _fail(self, session: ExtractionSession, error: ExtractionError) -> ExtractionResult:
        session.state = SessionState.FAILED
        session.logger.error(f"❌ 세션 실패 [{error.reason.value}] {error.message}")
        last = self.progress_reporter.last_percentage(session.session_id) or 0
        self.progress_reporter.report(session.session_id, last, error.message, SessionState.FAILED)
        return ExtractionResult.failure(session.session_id, error)

    def _transition(self, session: ExtractionSession, state: SessionState, percentage: int, message: str) -> None:
        low, high = PROGRESS_BANDS[state]
        session.state = state
        session.logger.info(f"[{state.value}] {message}")
        self.progress_reporter.report(
            session.session_id, max(low, min(high, percentage)), message, state
        )

    def _report(self, session: ExtractionSession, percentage: int, message: str) -> None:
        session.logger.debug(f"{percentage}% - {message}")
        self.progress_reporter.report(session.session_id, percentage, message, session.state)
