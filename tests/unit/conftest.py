"""
공용 테스트 더블

실제 브라우저 없이 BrowserAutomationPort를 흉내내는 FakeBrowser와
로그인 폴링용 가짜 시계를 제공합니다.
"""
import asyncio
from typing import Any, Callable, List, Optional, Set

import pytest

from core.domain.errors import BrowserAutomationError
from core.ports.web_scraping_ports import BrowserAutomationPort


class FakeBrowser(BrowserAutomationPort):

    def __init__(self):
        self.url = "about:blank"
        self.launch_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None
        self.failing_urls: Set[str] = set()
        self.evaluate_handler: Callable[[str, Any, str], Any] = lambda script, arg, url: None
        self.launch_count = 0
        self.close_count = 0
        self.visited: List[str] = []
        # True면 evaluate가 응답하지 않음 (멈춘 페이지)
        self.hanging = False

    async def launch(self, headless: bool) -> Any:
        self.launch_count += 1
        if self.launch_error:
            raise self.launch_error
        return "browser-handle"

    async def new_page(self, browser: Any) -> Any:
        return "page"

    async def close(self, browser: Any) -> None:
        self.close_count += 1
        if self.close_error:
            raise self.close_error

    async def navigate(self, page: Any, url: str, timeout_ms: int) -> None:
        self.visited.append(url)
        if url in self.failing_urls:
            raise BrowserAutomationError(f"{timeout_ms}ms 안에 로드되지 않음")
        self.url = url

    async def evaluate(self, page: Any, script: str, arg: Any = None) -> Any:
        if self.hanging:
            await asyncio.Event().wait()
        return self.evaluate_handler(script, arg, self.url)

    async def wait_for(self, page: Any, selector: str, timeout_ms: int) -> bool:
        return True

    async def current_url(self, page: Any) -> str:
        return self.url

    async def title(self, page: Any) -> str:
        return "Groww"


class FakeClock:
    """sleep()을 호출하면 시간이 흐르는 시계"""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_browser():
    return FakeBrowser()


@pytest.fixture
def fake_clock():
    return FakeClock()
