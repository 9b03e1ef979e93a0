"""
애플리케이션 설정

환경 변수(.env 포함)에서 값을 읽어 단일 config 객체로 노출합니다.
"""
import os
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_list(key: str, default: List[str]) -> List[str]:
    value = os.getenv(key)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """
    크롤러 설정값 모음

    로그인은 사람이 직접 진행하므로 기본값은 헤드풀(HEADLESS=False) 모드입니다.
    """

    # 브라우저
    HEADLESS: bool = _env_bool("HEADLESS", False)
    VIEWPORT: Tuple[int, int] = (1366, 768)
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    )

    # 대상 사이트
    BASE_URL: str = os.getenv("BROKER_BASE_URL", "https://groww.in").rstrip("/")
    LOGIN_URL: str = os.getenv("BROKER_LOGIN_URL", f"{BASE_URL}/login")
    HOLDINGS_URLS: List[str] = _env_list(
        "BROKER_HOLDINGS_URLS",
        [
            f"{BASE_URL}/holdings",
            f"{BASE_URL}/portfolio",
            f"{BASE_URL}/dashboard",
            f"{BASE_URL}/stocks/user/holdings",
        ],
    )

    # 대기 시간
    LOGIN_TIMEOUT_SEC: int = _env_int("LOGIN_TIMEOUT_SEC", 600)
    LOGIN_POLL_INTERVAL_SEC: int = _env_int("LOGIN_POLL_INTERVAL_SEC", 5)
    NAVIGATION_TIMEOUT_MS: int = _env_int("NAVIGATION_TIMEOUT_MS", 20000)
    SETTLE_TIMEOUT_MS: int = _env_int("SETTLE_TIMEOUT_MS", 3000)
    LOGIN_CHECK_TIMEOUT_MS: int = _env_int("LOGIN_CHECK_TIMEOUT_MS", 10000)
    EXTRACTION_TIMEOUT_MS: int = _env_int("EXTRACTION_TIMEOUT_MS", 15000)

    # 출력
    OUTPUT_DIR: Path = Path(os.getenv("OUTPUT_DIR", "reports"))
    OUTPUT_FILENAME: Optional[str] = os.getenv("OUTPUT_FILENAME")

    def get_default_filename(self) -> str:
        """보유 종목 엑셀 파일명"""
        if self.OUTPUT_FILENAME:
            return self.OUTPUT_FILENAME
        return f"holdings_{date.today():%Y%m%d}.xlsx"

    def get_output_path(self, filename: str) -> Path:
        """출력 디렉토리 기준 파일 경로"""
        return self.OUTPUT_DIR / filename


config = Config()
