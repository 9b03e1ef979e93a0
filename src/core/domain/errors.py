"""
추출 세션 오류 분류
"""
from enum import Enum
from typing import List, Optional, Sequence


class FailureReason(Enum):
    CAPABILITY_UNAVAILABLE = "CapabilityUnavailable"
    LOGIN_TIMEOUT = "LoginTimeout"
    HOLDINGS_PAGE_UNREACHABLE = "HoldingsPageUnreachable"
    AUTOMATION_FAILURE = "AutomationFailure"
    # 아래 두 항목은 로그로만 남고 세션 결과가 되지 않음
    EXTRACTION_PARTIAL_FAILURE = "ExtractionPartialFailure"
    RESOURCE_RELEASE_FAILURE = "ResourceReleaseFailure"


class ExtractionError(Exception):
    """
    세션 경계 밖으로 나가는 유일한 오류 타입

    message는 사용자에게 그대로 보여줄 수 있는 문장이어야 합니다.
    """

    reason: FailureReason = FailureReason.AUTOMATION_FAILURE
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.message}"


class CapabilityUnavailableError(ExtractionError):
    reason = FailureReason.CAPABILITY_UNAVAILABLE

    def __init__(self, message: str = "브라우저 자동화 기능을 사용할 수 없습니다. (playwright install chromium)"):
        super().__init__(message)


class LoginTimeoutError(ExtractionError):
    reason = FailureReason.LOGIN_TIMEOUT
    retryable = True

    def __init__(self, timeout_sec: float):
        super().__init__(f"{int(timeout_sec)}초 안에 로그인이 완료되지 않았습니다. 다시 시도해주세요.")
        self.timeout_sec = timeout_sec


class HoldingsPageUnreachableError(ExtractionError):
    reason = FailureReason.HOLDINGS_PAGE_UNREACHABLE
    retryable = True

    def __init__(self, attempted_urls: Sequence[str], failures: Optional[List[str]] = None):
        self.attempted_urls = list(attempted_urls)
        self.failures = list(failures or [])
        super().__init__(
            f"보유 종목 페이지에 접근할 수 없습니다 (시도한 URL: {', '.join(self.attempted_urls) or '없음'})"
        )


class AutomationFailureError(ExtractionError):
    reason = FailureReason.AUTOMATION_FAILURE
    retryable = True


class BrowserAutomationError(Exception):
    """브라우저 어댑터 내부 오류 (세션 경계에서 ExtractionError로 변환됨)"""


class PageNavigatedError(BrowserAutomationError):
    """스크립트 실행 도중 페이지가 이동해 실행 컨텍스트가 사라진 경우"""


class EvaluationTimeoutError(BrowserAutomationError):
    """페이지 스크립트가 제한 시간 안에 응답하지 않은 경우"""
