"""
Playwright 기반 브라우저 자동화 어댑터
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from core.domain.errors import BrowserAutomationError, PageNavigatedError
from core.ports.utility_ports import LoggerPort
from core.ports.web_scraping_ports import BrowserAutomationPort

_NAVIGATION_MESSAGES = (
    "Execution context was destroyed",
    "Cannot find context with specified id",
    "frame was detached",
)


def _first_line(message: str) -> str:
    lines = message.strip().splitlines()
    return lines[0] if lines else message


@dataclass
class PlaywrightBrowserHandle:
    """세션 하나가 소유하는 브라우저 리소스 (컨텍스트 단위로 격리)"""
    playwright: Playwright
    browser: Browser
    context: BrowserContext


class PlaywrightBrowserAdapter(BrowserAutomationPort):
    """
    Chromium 실행/페이지 조작 구현

    Playwright 예외는 모두 BrowserAutomationError로 바꿔서 던집니다.
    """

    LAUNCH_ARGS = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--no-first-run",
        "--disable-gpu",
    ]

    def __init__(
        self,
        viewport: Tuple[int, int] = (1366, 768),
        user_agent: Optional[str] = None,
        slow_mo_ms: int = 0,
        logger: Optional[LoggerPort] = None,
    ):
        self.viewport = viewport
        self.user_agent = user_agent
        self.slow_mo_ms = slow_mo_ms
        self.logger = logger

    async def launch(self, headless: bool) -> PlaywrightBrowserHandle:
        try:
            playwright = await async_playwright().start()
        except Exception as e:
            raise BrowserAutomationError(f"Playwright 드라이버 시작 실패: {e}") from e

        try:
            browser = await self._launch_chromium(playwright, headless)
            width, height = self.viewport
            context_kwargs = {"viewport": {"width": width, "height": height}}
            if self.user_agent:
                context_kwargs["user_agent"] = self.user_agent
            context = await browser.new_context(**context_kwargs)
        except PlaywrightError as e:
            await playwright.stop()
            raise BrowserAutomationError(f"브라우저 실행 실패: {e}") from e

        return PlaywrightBrowserHandle(playwright=playwright, browser=browser, context=context)

    async def _launch_chromium(self, playwright: Playwright, headless: bool) -> Browser:
        """번들 Chromium이 없으면 시스템 Chrome/Edge로 재시도"""
        try:
            return await playwright.chromium.launch(
                headless=headless, slow_mo=self.slow_mo_ms, args=self.LAUNCH_ARGS
            )
        except PlaywrightError as e:
            if "Executable doesn't exist" not in str(e):
                raise
            if self.logger:
                self.logger.warning("Playwright Chromium 미설치, 시스템 브라우저로 재시도합니다")

        try:
            return await playwright.chromium.launch(
                headless=headless, slow_mo=self.slow_mo_ms, args=self.LAUNCH_ARGS, channel="chrome"
            )
        except PlaywrightError:
            return await playwright.chromium.launch(
                headless=headless, slow_mo=self.slow_mo_ms, args=self.LAUNCH_ARGS, channel="msedge"
            )

    async def new_page(self, browser: PlaywrightBrowserHandle) -> Page:
        try:
            return await browser.context.new_page()
        except PlaywrightError as e:
            raise BrowserAutomationError(f"페이지 생성 실패: {e}") from e

    async def close(self, browser: PlaywrightBrowserHandle) -> None:
        """컨텍스트 -> 브라우저 -> 드라이버 순서로 모두 정리 (하나가 실패해도 나머지 진행)"""
        errors: List[str] = []

        for step, closer in (
            ("context", browser.context.close),
            ("browser", browser.browser.close),
            ("playwright", browser.playwright.stop),
        ):
            try:
                await closer()
            except Exception as e:
                errors.append(f"{step}: {e}")

        if errors:
            raise BrowserAutomationError("리소스 정리 실패 - " + "; ".join(errors))

    async def navigate(self, page: Page, url: str, timeout_ms: int) -> None:
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise BrowserAutomationError(f"{timeout_ms}ms 안에 로드되지 않음") from e
        except PlaywrightError as e:
            raise BrowserAutomationError(_first_line(str(e))) from e

    async def evaluate(self, page: Page, script: str, arg: Any = None) -> Any:
        try:
            return await page.evaluate(script, arg)
        except PlaywrightError as e:
            message = str(e)
            if any(marker in message for marker in _NAVIGATION_MESSAGES):
                raise PageNavigatedError(_first_line(message)) from e
            raise BrowserAutomationError(_first_line(message)) from e

    async def wait_for(self, page: Page, selector: str, timeout_ms: int) -> bool:
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms, state="attached")
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise BrowserAutomationError(_first_line(str(e))) from e

    async def current_url(self, page: Page) -> str:
        return page.url

    async def title(self, page: Page) -> str:
        try:
            return await page.title()
        except PlaywrightError as e:
            raise BrowserAutomationError(_first_line(str(e))) from e
