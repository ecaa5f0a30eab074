# main.py

import argparse
import asyncio
import logging
import time
from datetime import date

import schedule
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.traceback import install

from config import Settings, get_settings
from models.models import Shlok
from processing.processing import ShlokService
from retrieval.csv_datasource import DataSource
from retrieval.errors import ShlokError

# Install rich traceback handler
install(show_locals=True)

# Initialize Rich console
console = Console()

# Configure logging with Rich handler
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True, markup=True)],
)
logger = logging.getLogger("tamohar")


def build_service(settings: Settings) -> ShlokService:
    datasource = DataSource(
        settings.csv_path,
        fallback_path=settings.fallback_csv_path,
        cache_enabled=settings.cache_enabled,
    )
    return ShlokService(datasource)


def print_shlok(shlok: Shlok, title: str) -> None:
    body = f"[bold]{shlok.sanskrit}[/bold]\n\n[italic]{shlok.transliteration}[/italic]\n\n{shlok.english_meaning}"
    if shlok.application:
        body += f"\n\n[green]{shlok.application}[/green]"
    console.print(
        Panel.fit(body, title=f"{title} - {shlok.chapter}.{shlok.verse}", border_style="cyan")
    )


def run_server(settings: Settings) -> None:
    from hypercorn.asyncio import serve
    from hypercorn.config import Config

    from serving.server import app

    config = Config()
    config.bind = [f"{settings.host}:{settings.port}"]
    logger.info(f"[cyan]Tamohar backend server running on port {settings.port}[/cyan]")
    asyncio.run(serve(app, config))


def run_scheduler(settings: Settings) -> None:
    from motor.motor_asyncio import AsyncIOMotorClient

    from notifications.dispatcher import NotificationDispatcher

    if not settings.mongo_uri:
        raise SystemExit("MONGO_URI environment variable not set")

    loop = asyncio.new_event_loop()
    client = AsyncIOMotorClient(host=settings.mongo_uri, io_loop=loop)
    dispatcher = loop.run_until_complete(
        NotificationDispatcher.create(client, settings.mongo_db, build_service(settings))
    )

    def tick():
        try:
            result = loop.run_until_complete(dispatcher.check_and_send())
            logger.info(
                f"Notification check: {result.total_sent}/{result.total_processed} queued"
            )
        except Exception as e:
            logger.error(f"[red]Error in scheduled notification check: {e}[/red]")

    # Check every minute so notifications go out at the exact minute
    schedule.every().minute.at(":00").do(tick)
    logger.info("[cyan]Notification checks scheduled every minute[/cyan]")
    try:
        while True:
            schedule.run_pending()
            time.sleep(1)
    finally:
        client.close()
        loop.close()


def main():
    parser = argparse.ArgumentParser(description="Tamohar daily Bhagavad Gita shlok service")
    sub = parser.add_subparsers(dest="command", required=True)

    daily = sub.add_parser("daily", help="Show the daily shlok")
    daily.add_argument("--date", type=date.fromisoformat, default=None, help="YYYY-MM-DD, defaults to today (UTC)")
    sub.add_parser("random", help="Show a random shlok")
    verse = sub.add_parser("verse", help="Show a shlok by chapter and verse")
    verse.add_argument("chapter")
    verse.add_argument("verse")
    sub.add_parser("serve", help="Run the HTTP API")
    sub.add_parser("schedule", help="Run the minute notification scheduler")
    args = parser.parse_args()

    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    if args.command == "serve":
        run_server(settings)
        return
    if args.command == "schedule":
        run_scheduler(settings)
        return

    service = build_service(settings)
    try:
        if args.command == "daily":
            selection = service.daily_selection(on=args.date)
            shlok = service.get_daily_shlok(on=args.date)
            print_shlok(shlok, f"Daily shlok for {selection.date_string}")
        elif args.command == "random":
            print_shlok(service.get_random_shlok(), "Random shlok")
        else:
            shlok = service.get_shlok(args.chapter, args.verse)
            if shlok is None:
                console.print(
                    f"[yellow]Shlok not found for chapter {args.chapter}, verse {args.verse}[/yellow]"
                )
                raise SystemExit(1)
            print_shlok(shlok, "Shlok")
    except ShlokError as e:
        console.print(Panel.fit(f"[red]{e}[/red]", title="Error Details", border_style="red"))
        raise SystemExit(1)


if __name__ == "__main__":
    main()
