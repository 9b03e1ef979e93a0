"""
보유 종목 페이지 이동 어댑터
"""
from typing import Any, Callable, List, Optional, Sequence

from core.domain.errors import BrowserAutomationError, HoldingsPageUnreachableError
from core.ports.utility_ports import LoggerPort
from core.ports.web_scraping_ports import BrowserAutomationPort, NavigationPort

HOLDINGS_INDICATORS = (
    '[data-testid="holdings"]',
    '[class*="holding"]',
    '[class*="portfolio"]',
    "table",
    '[class*="stock"]',
    ".holdings-container",
    ".portfolio-container",
)

HOLDINGS_MARKUP_SCRIPT = """
(selectors) => selectors.some((selector) => {
  try {
    const el = document.querySelector(selector);
    return !!el && (el.textContent || '').trim().length > 0;
  } catch (_) {
    return false;
  }
})
"""


class NavigationAdapter(NavigationPort):
    """
    후보 URL을 순서대로 시도해 보유 종목 마크업이 있는 첫 페이지에서 멈춤
    """

    def __init__(
        self,
        browser: BrowserAutomationPort,
        urls: Sequence[str],
        navigation_timeout_ms: int = 20000,
        settle_timeout_ms: int = 3000,
        indicators: Sequence[str] = HOLDINGS_INDICATORS,
        logger: Optional[LoggerPort] = None,
    ):
        self.browser = browser
        self.urls = list(urls)
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_timeout_ms = settle_timeout_ms
        self.indicators = list(indicators)
        self.logger = logger

    @property
    def candidate_urls(self) -> List[str]:
        return list(self.urls)

    async def navigate_to_holdings(
        self,
        page: Any,
        on_attempt: Optional[Callable[[int, int, str], None]] = None,
    ) -> str:
        attempted: List[str] = []
        failures: List[str] = []

        for index, url in enumerate(self.urls):
            attempted.append(url)
            if on_attempt:
                on_attempt(index, len(self.urls), url)
            if self.logger:
                self.logger.info(f"🔍 URL 시도: {url}")

            try:
                await self.browser.navigate(page, url, self.navigation_timeout_ms)
                # 렌더링 대기 (표시 요소가 끝내 안 나타나도 아래에서 다시 확인)
                await self.browser.wait_for(page, ", ".join(self.indicators), self.settle_timeout_ms)

                if await self.has_holdings_markup(page):
                    landed = await self.browser.current_url(page)
                    if self.logger:
                        self.logger.info(f"✅ 보유 종목 페이지 확인: {landed or url}")
                    return landed or url

                failures.append(f"{url}: 보유 종목 요소 없음")
            except BrowserAutomationError as e:
                failures.append(f"{url}: {e}")
                if self.logger:
                    self.logger.warning(f"⚠️  {url} 이동 실패: {e}")

        raise HoldingsPageUnreachableError(attempted, failures)

    async def has_holdings_markup(self, page: Any) -> bool:
        return bool(await self.browser.evaluate_within(
            page, HOLDINGS_MARKUP_SCRIPT, self.indicators, self.settle_timeout_ms
        ))
