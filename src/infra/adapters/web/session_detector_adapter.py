"""
로그인 세션 감지 어댑터
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, Sequence
from urllib.parse import urlparse

from core.domain.errors import EvaluationTimeoutError, PageNavigatedError
from core.ports.utility_ports import LoggerPort
from core.ports.web_scraping_ports import BrowserAutomationPort, SessionDetectorPort

# 로그인 화면 표시 요소
LOGIN_MARKERS = (
    'input[type="password"]',
    'input[data-cy*="login"]',
    'button[data-cy*="login"]',
    '[class*="loginModal"]',
    '[class*="login-form"]',
)

# 인증 영역(프로필/대시보드) 표시 요소
AUTHENTICATED_MARKERS = (
    '[data-testid="user-profile"]',
    '.usr23UserName',
    '[class*="profile"]',
    '[class*="avatar"]',
    '[data-testid="portfolio"]',
    '[href*="dashboard"]',
    '[class*="dashboard"]',
)

LOGIN_STATE_SCRIPT = """
({ loginSelectors, authSelectors }) => {
  const visible = (el) => !!el && !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length);
  const anyVisible = (selectors) => selectors.some((selector) => {
    try {
      return Array.from(document.querySelectorAll(selector)).some(visible);
    } catch (_) {
      return false;
    }
  });
  const bodyText = (document.body && document.body.innerText) || '';
  return {
    loginMarkers: anyVisible(loginSelectors) || /login\\s*\\/\\s*register|enter your (email|mobile)/i.test(bodyText),
    authMarkers: anyVisible(authSelectors),
  };
}
"""


class SessionDetectorAdapter(SessionDetectorPort):
    """
    사용자가 직접 진행하는 로그인의 완료 여부 판단

    특정 성공 URL을 가정하지 않고,
    로그인 화면 요소가 없고 인증 영역 요소가 있으면 로그인된 것으로 봅니다.
    """

    # 확인 1회의 상한
    CHECK_TIMEOUT_MS = 10000
    MIN_CHECK_TIMEOUT_MS = 100

    def __init__(
        self,
        browser: BrowserAutomationPort,
        login_markers: Sequence[str] = LOGIN_MARKERS,
        authenticated_markers: Sequence[str] = AUTHENTICATED_MARKERS,
        logger: Optional[LoggerPort] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        check_timeout_ms: int = CHECK_TIMEOUT_MS,
    ):
        self.browser = browser
        self.login_markers = list(login_markers)
        self.authenticated_markers = list(authenticated_markers)
        self.logger = logger
        self.check_timeout_ms = check_timeout_ms
        self._sleep = sleep
        self._clock = clock

    async def is_logged_in(self, page: Any) -> bool:
        return await self._check(page, self.check_timeout_ms)

    async def _check(self, page: Any, timeout_ms: int) -> bool:
        url = await self.browser.current_url(page)
        if "/login" in urlparse(url or "").path.lower():
            return False

        try:
            state = await self.browser.evaluate_within(
                page,
                LOGIN_STATE_SCRIPT,
                {"loginSelectors": self.login_markers, "authSelectors": self.authenticated_markers},
                timeout_ms,
            )
        except PageNavigatedError:
            # 로그인 직후 리다이렉트 중
            return False
        except EvaluationTimeoutError:
            if self.logger:
                self.logger.debug(f"로그인 상태 확인 응답 없음 ({timeout_ms}ms)")
            return False

        state = state or {}
        return not state.get("loginMarkers") and bool(state.get("authMarkers"))

    async def wait_for_login(
        self,
        page: Any,
        timeout_sec: float,
        poll_interval_sec: float,
        on_poll: Optional[Callable[[float], None]] = None,
    ) -> bool:
        """
        고정 간격 폴링으로 로그인 완료 대기

        확인 1회도 남은 대기 시간 안에서만 실행됩니다.

        Returns:
            제한 시간 안에 로그인되면 True, 시간 초과 시 False
        """
        started = self._clock()
        attempts = 0

        while True:
            attempts += 1
            remaining_ms = (timeout_sec - (self._clock() - started)) * 1000
            check_ms = int(min(self.check_timeout_ms, max(remaining_ms, self.MIN_CHECK_TIMEOUT_MS)))
            if await self._check(page, check_ms):
                if self.logger:
                    self.logger.debug(f"로그인 감지 ({attempts}회째 확인)")
                return True

            elapsed = self._clock() - started
            if on_poll:
                on_poll(elapsed)
            if elapsed >= timeout_sec:
                if self.logger:
                    self.logger.debug(f"로그인 대기 시간 초과 ({attempts}회 확인)")
                return False

            await self._sleep(min(poll_interval_sec, max(timeout_sec - elapsed, 0)))
