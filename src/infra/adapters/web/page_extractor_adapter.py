"""
보유 종목 페이지 추출 어댑터
"""
import re
from collections import Counter
from typing import Any, Iterable, List, Optional, Sequence

from core.domain.errors import BrowserAutomationError
from core.domain.models import HoldingRecord, PortfolioSnapshot, PortfolioSummary, RawFragment
from core.ports.utility_ports import LoggerPort
from core.ports.web_scraping_ports import BrowserAutomationPort, PageExtractorPort
from infra.adapters.parsing.html.holding_record_builder import BuildOutcome, HoldingRecordBuilder
from infra.adapters.parsing.text import parsers as text_parsers

# 우선순위 순서의 구조 셀렉터
FRAGMENT_SELECTORS = (
    '[data-cy="stock-holding-item"]',
    "table tbody tr",
    '[data-testid*="holding"]',
    '[class*="holding"] [class*="row"]',
    '[class*="stock"] [class*="item"]',
    ".portfolio-table tr",
    '[class*="portfolio"] [class*="item"]',
)

FRAGMENT_SCRIPT = """
(selectors) => {
  const textOf = (el) => ((el && (el.innerText || el.textContent)) || '').trim();
  const seen = new Set();
  const results = [];
  for (const selector of selectors) {
    let elements = [];
    try {
      elements = Array.from(document.querySelectorAll(selector));
    } catch (_) {
      continue;
    }
    for (const el of elements) {
      if (seen.has(el)) continue;
      seen.add(el);
      const cells = Array.from(
        el.querySelectorAll(':scope > td, :scope > th, :scope > [role="cell"]')
      ).map(textOf);
      const nameEl = el.querySelector('[data-cy="stock-name"], [class*="name"], [class*="company"], [data-testid*="name"]');
      const symbolEl = el.querySelector('[class*="symbol"], [class*="ticker"]');
      const sectorEl = el.querySelector('[data-cy="sector"], .sector');
      const marketCapEl = el.querySelector('[data-cy="market-cap"], .market-cap');
      results.push({
        selector,
        text: textOf(el),
        cells,
        name: textOf(nameEl) || null,
        symbol: textOf(symbolEl) || null,
        sector: textOf(sectorEl) || null,
        marketCap: textOf(marketCapEl) || null,
      });
    }
  }
  return results;
}
"""

SUMMARY_LABEL_PATTERN = r"invested|current\s*value|total\s*returns?|^returns?$"

SUMMARY_SCRIPT = """
(pattern) => {
  const re = new RegExp(pattern, 'i');
  const textOf = (el) => ((el && (el.innerText || el.textContent)) || '').trim();
  const results = [];
  for (const el of Array.from(document.querySelectorAll('body *'))) {
    if (el.children.length > 2) continue;
    const label = textOf(el);
    if (!label || label.length > 40 || !re.test(label)) continue;
    const container = el.parentElement || el;
    results.push({ label, context: textOf(container).slice(0, 200) });
  }
  return results;
}
"""

_INVESTED = re.compile(r"invested", re.IGNORECASE)
_CURRENT = re.compile(r"current\s*value|^current$", re.IGNORECASE)
_RETURNS = re.compile(r"total\s*returns?|^returns?$", re.IGNORECASE)
_DAY_RETURNS = re.compile(r"\b1\s*d\b|day", re.IGNORECASE)


def _value_near_label(label: str, context: str) -> tuple:
    """레이블 뒤(없으면 앞)의 금액과 퍼센트"""
    index = context.lower().find(label.lower())
    after = context[index + len(label):] if index >= 0 else context
    for candidate in (after, context):
        tokens = text_parsers.find_currency_tokens(candidate)
        amount = tokens[0].value if tokens else text_parsers.parse_amount(
            re.sub(r"\(\s*[+\-]?\d+(?:\.\d+)?\s*%\s*\)", "", candidate)
        )
        if amount is not None:
            return amount, text_parsers.parse_percentage(candidate)
    return None, None


def parse_summary(entries: Optional[Iterable[dict]]) -> PortfolioSummary:
    """
    요약 후보({label, context}) 목록 -> PortfolioSummary

    관측된 값만 채우고, 같은 항목은 먼저 관측된 값을 사용합니다.
    """
    values = {}
    for entry in entries or []:
        label = text_parsers.normalize_text((entry or {}).get("label"))
        context = text_parsers.normalize_text((entry or {}).get("context")) or label
        if not label:
            continue

        if _INVESTED.search(label):
            key = "total_invested"
        elif _CURRENT.search(label):
            key = "current_value"
        elif _RETURNS.search(label) and not _DAY_RETURNS.search(label):
            key = "total_returns"
        else:
            continue
        if key in values:
            continue

        amount, percentage = _value_near_label(label, context)
        if amount is None:
            continue
        values[key] = amount
        if key == "total_returns" and percentage is not None:
            values.setdefault("total_returns_percentage", percentage)

    return PortfolioSummary(**values)


class PageExtractorAdapter(PageExtractorPort):
    """
    로드된 페이지에서 보유 종목과 요약을 추출

    - 여러 구조 셀렉터로 후보 요소 수집
    - 렌더링된 내용 기준 중복 제거
    - HoldingRecordBuilder로 레코드 생성 (건너뜀/거부는 조용히 제외)
    - 페이지 스크립트는 script_timeout_ms 안에 끝나야 함
    """

    SCRIPT_TIMEOUT_MS = 15000

    def __init__(
        self,
        browser: BrowserAutomationPort,
        record_builder: Optional[HoldingRecordBuilder] = None,
        fragment_selectors: Sequence[str] = FRAGMENT_SELECTORS,
        logger: Optional[LoggerPort] = None,
        script_timeout_ms: int = SCRIPT_TIMEOUT_MS,
    ):
        self.browser = browser
        self.record_builder = record_builder or HoldingRecordBuilder()
        self.fragment_selectors = tuple(fragment_selectors)
        self.logger = logger
        self.script_timeout_ms = script_timeout_ms

    async def extract(self, page: Any, source_url: str) -> PortfolioSnapshot:
        raw_fragments = await self.browser.evaluate_within(
            page, FRAGMENT_SCRIPT, list(self.fragment_selectors), self.script_timeout_ms
        )
        fragments = self.collect_fragments(raw_fragments)
        holdings = self.build_holdings(fragments)
        summary = await self._extract_summary(page)

        return PortfolioSnapshot(
            holdings=tuple(holdings),
            summary=summary,
            source_url=source_url,
        )

    def collect_fragments(self, raw_fragments: Optional[Iterable[dict]]) -> List[RawFragment]:
        """JSON 결과 -> RawFragment (내용 기준 중복 제거, 페이지 순서 유지)"""
        fragments = []
        seen = set()
        duplicates = 0

        for data in raw_fragments or []:
            if not isinstance(data, dict):
                continue
            fragment = RawFragment.from_json(data)
            key = fragment.content_key
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            fragments.append(fragment)

        self._debug(f"후보 요소 {len(fragments)}개 (중복 {duplicates}개 제외)")
        return fragments

    def build_holdings(self, fragments: Iterable[RawFragment]) -> List[HoldingRecord]:
        holdings = []
        counts = Counter()

        for fragment in fragments:
            outcome, record = self.record_builder.classify(fragment)
            counts[outcome] += 1
            if record is not None:
                holdings.append(record)

        self._debug(
            f"레코드 {len(holdings)}건 생성 "
            f"(건너뜀 {counts[BuildOutcome.SKIPPED]}, 거부 {counts[BuildOutcome.REJECTED]})"
        )
        return holdings

    async def _extract_summary(self, page: Any) -> PortfolioSummary:
        try:
            entries = await self.browser.evaluate_within(
                page, SUMMARY_SCRIPT, SUMMARY_LABEL_PATTERN, self.script_timeout_ms
            )
        except BrowserAutomationError as e:
            if self.logger:
                self.logger.warning(f"포트폴리오 요약 추출 실패: {e}")
            return PortfolioSummary()
        return parse_summary(entries)

    def _debug(self, message: str) -> None:
        if self.logger:
            self.logger.debug(message)
