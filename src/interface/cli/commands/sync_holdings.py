import asyncio
import uuid
from typing import Optional

import typer
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config import config
from core.domain.models import ProgressEvent
from core.services.holdings_sync_service import SyncReport
from interface.cli.console import console
from interface.cli.dependencies import build_dependencies


def _holdings_table(report: SyncReport) -> Table:
    table = Table(title=f"보유 종목 ({len(report.holdings)}개)")
    table.add_column("종목", style="bold")
    table.add_column("수량", justify="right")
    table.add_column("평균매입가", justify="right")
    table.add_column("현재가", justify="right")
    table.add_column("평가금액", justify="right")
    table.add_column("평가손익", justify="right")
    table.add_column("수익률", justify="right")

    for h in report.holdings:
        color = "green" if h.profit_loss >= 0 else "red"
        table.add_row(
            h.display_name,
            f"{h.units:,.0f}" if float(h.units).is_integer() else f"{h.units:,.4f}",
            f"₹{h.average_buy_price:,.2f}",
            f"₹{h.current_price:,.2f}",
            f"₹{h.current_value:,.2f}",
            f"[{color}]₹{h.profit_loss:,.2f}[/{color}]",
            f"[{color}]{h.profit_loss_percentage:.2f}%[/{color}]",
        )
    return table


def sync_holdings(
    session_id: Optional[str] = typer.Option(None, "--session-id", help="세션 ID (기본값: 자동 생성)"),
    headless: bool = typer.Option(config.HEADLESS, "--headless/--no-headless", help="헤드리스 모드"),
    login_timeout: Optional[int] = typer.Option(
        None, "--login-timeout", help=f"로그인 대기 시간(초), 기본값: {config.LOGIN_TIMEOUT_SEC}"
    ),
    export: bool = typer.Option(True, "--export/--no-export", help="엑셀 파일 저장 여부"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="디버그 로그 출력"),
):
    """
    보유 종목 동기화

    브라우저 창이 열리면 직접 로그인해주세요.
    로그인이 확인되면 보유 종목 페이지로 이동해 데이터를 추출합니다.
    """
    session_id = session_id or f"sync-{uuid.uuid4().hex[:8]}"
    deps = build_dependencies(headless=headless, login_timeout_sec=login_timeout, verbose=verbose)

    console.print(Panel.fit(f"📈 보유 종목 동기화 (세션: {session_id})", style="bold blue"))
    if headless:
        console.print("[warning]헤드리스 모드에서는 로그인 창이 보이지 않습니다.[/warning]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task_id = progress.add_task("시작하는 중...", total=100)

        def on_progress(event: ProgressEvent) -> None:
            progress.update(task_id, completed=event.percentage, description=event.message)

        try:
            report = asyncio.run(deps['sync'].sync(session_id, on_progress, export=export))
        except KeyboardInterrupt:
            console.print("[warning]⚠️  사용자에 의해 중단되었습니다[/warning]")
            raise typer.Exit(code=130)

    if not report.ok:
        console.print(f"[error]❌ 동기화 실패 [{report.error.reason.value}]:[/error] {report.error.message}")
        raise typer.Exit(code=1)

    if report.holdings:
        console.print(_holdings_table(report))
    else:
        console.print("[warning]보유 종목을 찾지 못했습니다. (빈 포트폴리오이거나 화면 구조가 바뀌었을 수 있습니다)[/warning]")

    summary = report.summary
    lines = [
        f"종목 수: {summary['stocks_count']}개",
        f"총 투자금액: ₹{summary['total_investment']:,.2f}",
        f"총 평가금액: ₹{summary['total_value']:,.2f}",
        f"총 평가손익: ₹{summary['total_profit_loss']:,.2f} ({summary['total_profit_loss_percentage']:.2f}%)",
    ]
    if report.dropped_count:
        lines.append(f"제외된 종목: {report.dropped_count}개")
    if report.output_path:
        lines.append(f"저장 위치: {report.output_path}")
    console.print(Panel("\n".join(lines), title="[success]✅ 동기화 완료[/success]", border_style="green"))
