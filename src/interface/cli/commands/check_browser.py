import asyncio
from typing import Tuple

import typer
from rich.panel import Panel

from config import config
from core.domain.errors import BrowserAutomationError
from core.ports.web_scraping_ports import BrowserAutomationPort
from interface.cli.console import console
from interface.cli.dependencies import build_dependencies


async def open_login_page(browser: BrowserAutomationPort, url: str, headless: bool) -> Tuple[str, str]:
    """브라우저 실행 -> 페이지 이동 -> (제목, URL). 브라우저는 항상 닫음"""
    handle = await browser.launch(headless=headless)
    try:
        page = await browser.new_page(handle)
        await browser.navigate(page, url, config.NAVIGATION_TIMEOUT_MS)
        return await browser.title(page), await browser.current_url(page)
    finally:
        await browser.close(handle)


def check_browser(
    headless: bool = typer.Option(True, "--headless/--no-headless", help="헤드리스 모드"),
):
    """
    브라우저 자동화 점검

    크롤링 없이 브라우저 실행과 로그인 페이지 접속만 확인합니다.
    """
    console.print(Panel.fit("🧪 브라우저 자동화 점검", style="bold blue"))

    deps = build_dependencies(headless=headless)
    console.print(f"[info]{config.LOGIN_URL} 접속을 시도합니다...[/info]")

    try:
        title, url = asyncio.run(open_login_page(deps['browser'], config.LOGIN_URL, headless))
    except BrowserAutomationError as e:
        console.print(f"[error]❌ 브라우저 점검 실패:[/error] {e}")
        console.print("[warning]`playwright install chromium` 실행 후 다시 시도해주세요.[/warning]")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[success]✅ 브라우저 정상 동작[/success]\n\n제목: {title}\nURL: {url}",
        title="점검 완료",
        border_style="green",
    ))
