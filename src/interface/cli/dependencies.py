"""
CLI 의존성 주입 모듈
"""
from typing import Any, Dict, Optional

from config import config
from core.services.extraction_orchestrator import ExtractionOrchestrator
from core.services.holdings_sync_service import HoldingsSyncService
from core.services.progress_reporter import ProgressReporter
from infra.adapters.utils.console_logger import ConsoleLogger
from infra.adapters.web.playwright_browser_adapter import PlaywrightBrowserAdapter
from infra.adapters.web.session_detector_adapter import SessionDetectorAdapter
from infra.adapters.web.navigation_adapter import NavigationAdapter
from infra.adapters.web.page_extractor_adapter import PageExtractorAdapter
from infra.adapters.parsing.html.holding_record_builder import HoldingRecordBuilder
from infra.adapters.data.dataframe_mapper import DataFrameMapper
from infra.adapters.data.excel_exporter import ExcelExporter


def build_dependencies(
    headless: bool = config.HEADLESS,
    login_timeout_sec: Optional[int] = None,
    verbose: bool = False,
) -> Dict[str, Any]:
    """
    의존성 주입 컨테이너 역할

    Args:
        headless: 브라우저 헤드리스 모드 여부 (로그인은 사람이 해야 하므로 기본 False)
        login_timeout_sec: 로그인 대기 시간 (None이면 config 값)
        verbose: debug 로그 출력 여부

    Returns:
        Dict: 구성된 서비스 및 어댑터 모음
    """
    # 1. 유틸리티
    logger = ConsoleLogger(verbose=verbose)
    progress_reporter = ProgressReporter(logger=logger)

    # 2. Data
    data_mapper = DataFrameMapper()
    data_exporter = ExcelExporter(output_dir=config.OUTPUT_DIR, logger=logger)

    # 3. Web
    browser = PlaywrightBrowserAdapter(
        viewport=config.VIEWPORT,
        user_agent=config.USER_AGENT,
        logger=logger,
    )
    session_detector = SessionDetectorAdapter(
        browser=browser,
        logger=logger,
        check_timeout_ms=config.LOGIN_CHECK_TIMEOUT_MS,
    )
    navigator = NavigationAdapter(
        browser=browser,
        urls=config.HOLDINGS_URLS,
        navigation_timeout_ms=config.NAVIGATION_TIMEOUT_MS,
        settle_timeout_ms=config.SETTLE_TIMEOUT_MS,
        logger=logger,
    )
    page_extractor = PageExtractorAdapter(
        browser=browser,
        record_builder=HoldingRecordBuilder(),
        script_timeout_ms=config.EXTRACTION_TIMEOUT_MS,
        logger=logger,
    )

    # 4. Service
    orchestrator = ExtractionOrchestrator(
        browser=browser,
        session_detector=session_detector,
        navigator=navigator,
        page_extractor=page_extractor,
        logger=logger,
        progress_reporter=progress_reporter,
        login_url=config.LOGIN_URL,
        headless=headless,
        login_timeout_sec=login_timeout_sec or config.LOGIN_TIMEOUT_SEC,
        login_poll_interval_sec=config.LOGIN_POLL_INTERVAL_SEC,
        navigation_timeout_ms=config.NAVIGATION_TIMEOUT_MS,
    )
    sync_service = HoldingsSyncService(
        orchestrator=orchestrator,
        data_mapper=data_mapper,
        data_exporter=data_exporter,
        logger=logger,
    )

    return {
        'sync': sync_service,
        'orchestrator': orchestrator,
        'browser': browser,
        'logger': logger,
        'exporter': data_exporter,
    }
