"""
NavigationAdapter 단위 테스트
"""
import asyncio

import pytest

from core.domain.errors import FailureReason, HoldingsPageUnreachableError
from infra.adapters.web.navigation_adapter import NavigationAdapter

URLS = [
    "https://groww.in/holdings",
    "https://groww.in/portfolio",
    "https://groww.in/dashboard",
]


def markup_on(*urls):
    return lambda script, arg, url: url in urls


class TestNavigationAdapter:

    @pytest.fixture
    def navigator(self, fake_browser):
        return NavigationAdapter(browser=fake_browser, urls=URLS)

    @pytest.mark.asyncio
    async def test_stops_at_first_page_with_holdings(self, navigator, fake_browser):
        # Given
        fake_browser.evaluate_handler = markup_on("https://groww.in/portfolio")

        # When
        landed = await navigator.navigate_to_holdings("page")

        # Then
        assert landed == "https://groww.in/portfolio"
        assert fake_browser.visited == URLS[:2]

    @pytest.mark.asyncio
    async def test_failed_navigation_moves_to_next_candidate(self, navigator, fake_browser):
        # Given
        fake_browser.failing_urls = {"https://groww.in/holdings"}
        fake_browser.evaluate_handler = markup_on(*URLS)
        attempts = []

        # When
        landed = await navigator.navigate_to_holdings(
            "page", on_attempt=lambda index, total, url: attempts.append((index, total, url))
        )

        # Then
        assert landed == "https://groww.in/portfolio"
        assert attempts == [(0, 3, URLS[0]), (1, 3, URLS[1])]

    @pytest.mark.asyncio
    async def test_all_candidates_exhausted(self, navigator, fake_browser):
        # Given
        fake_browser.failing_urls = {URLS[0]}
        fake_browser.evaluate_handler = markup_on()

        # When
        with pytest.raises(HoldingsPageUnreachableError) as exc_info:
            await navigator.navigate_to_holdings("page")

        # Then
        assert exc_info.value.reason == FailureReason.HOLDINGS_PAGE_UNREACHABLE
        assert exc_info.value.attempted_urls == URLS
        assert len(exc_info.value.failures) == 3

    def test_candidate_urls_are_ordered(self, navigator):
        assert navigator.candidate_urls == URLS

    @pytest.mark.asyncio
    async def test_unresponsive_markup_check_moves_on(self, fake_browser):
        """마크업 확인 스크립트가 멈추면 실패로 기록하고 다음 후보로"""
        # Given
        navigator = NavigationAdapter(browser=fake_browser, urls=URLS, settle_timeout_ms=50)
        fake_browser.hanging = True

        # When
        with pytest.raises(HoldingsPageUnreachableError) as exc_info:
            await asyncio.wait_for(navigator.navigate_to_holdings("page"), 3)

        # Then
        assert fake_browser.visited == URLS
        assert len(exc_info.value.failures) == 3
