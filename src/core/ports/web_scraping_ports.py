"""
웹 스크래핑 관련 포트 정의
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from core.domain.errors import EvaluationTimeoutError
from core.domain.models import PortfolioSnapshot


class BrowserAutomationPort(ABC):
    """
    브라우저 자동화 기능 (launch / new_page / close / navigate / evaluate / wait_for)

    핸들 타입은 구현체가 정하며 서비스 계층은 내용을 들여다보지 않습니다.
    """

    @abstractmethod
    async def launch(self, headless: bool) -> Any:
        """브라우저 실행 후 핸들 반환"""

    @abstractmethod
    async def new_page(self, browser: Any) -> Any:
        """새 페이지 생성"""

    @abstractmethod
    async def close(self, browser: Any) -> None:
        """브라우저 및 관련 리소스 해제"""

    @abstractmethod
    async def navigate(self, page: Any, url: str, timeout_ms: int) -> None:
        """URL 이동 (타임아웃/네트워크 오류 시 BrowserAutomationError)"""

    @abstractmethod
    async def evaluate(self, page: Any, script: str, arg: Any = None) -> Any:
        """페이지 렌더링 컨텍스트에서 스크립트 실행 후 JSON 결과 반환"""

    @abstractmethod
    async def wait_for(self, page: Any, selector: str, timeout_ms: int) -> bool:
        """셀렉터가 나타날 때까지 대기 (시간 초과 시 False)"""

    @abstractmethod
    async def current_url(self, page: Any) -> str:
        """현재 페이지 URL"""

    async def title(self, page: Any) -> str:
        return ""

    async def evaluate_within(self, page: Any, script: str, arg: Any, timeout_ms: int) -> Any:
        """evaluate + 상한 시간 (초과 시 EvaluationTimeoutError)"""
        try:
            return await asyncio.wait_for(self.evaluate(page, script, arg), timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise EvaluationTimeoutError(f"페이지 스크립트가 {timeout_ms}ms 안에 응답하지 않음") from e


class SessionDetectorPort(ABC):

    @abstractmethod
    async def is_logged_in(self, page: Any) -> bool:
        """로그인 완료 여부 (미완료는 False, 자동화 오류만 예외)"""

    @abstractmethod
    async def wait_for_login(
        self,
        page: Any,
        timeout_sec: float,
        poll_interval_sec: float,
        on_poll: Optional[Callable[[float], None]] = None,
    ) -> bool:
        """제한 시간 동안 주기적으로 로그인 여부 확인"""


class NavigationPort(ABC):

    @abstractmethod
    async def navigate_to_holdings(
        self,
        page: Any,
        on_attempt: Optional[Callable[[int, int, str], None]] = None,
    ) -> str:
        """보유 종목 페이지 이동 후 성공한 URL 반환"""

    @property
    @abstractmethod
    def candidate_urls(self) -> List[str]:
        ...


class PageExtractorPort(ABC):

    @abstractmethod
    async def extract(self, page: Any, source_url: str) -> PortfolioSnapshot:
        """로드된 페이지에서 스냅샷 추출"""
