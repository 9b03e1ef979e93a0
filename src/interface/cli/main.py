"""
Holdings Crawler CLI - 단일 진입점
"""
import typer
from interface.cli.commands.sync_holdings import sync_holdings
from interface.cli.commands.check_browser import check_browser

app = typer.Typer(help="증권사 보유 종목 크롤러 CLI")

app.command("sync")(sync_holdings)
app.command("check-browser")(check_browser)

if __name__ == "__main__":
    app()
