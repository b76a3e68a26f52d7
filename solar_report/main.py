import argparse
import asyncio
import datetime
from typing import Mapping, Optional

import structlog
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from solar_report.config import ConfigurationError, Settings, load_environment, load_settings, resolve_config
from solar_report.report import ReportResponse, send_solar_report

logger = structlog.get_logger()


async def scheduled(
        scheduled_time: datetime.datetime, env: Optional[Mapping[str, Optional[str]]] = None
) -> ReportResponse:
    """Entry point for one timer tick.

    Configuration is resolved before anything touches the network; a
    ConfigurationError propagates to the caller and no report is attempted.
    """
    config = resolve_config(load_environment() if env is None else env)
    return await send_solar_report(scheduled_time, config)


def run_once() -> ReportResponse:
    """Run one report, stamped with the wall-clock start time of the run.

    APScheduler does not hand the job its fire time, so a run started late
    within the misfire grace time logs when it actually began.
    """
    return asyncio.run(scheduled(datetime.datetime.now(datetime.timezone.utc)))


def build_scheduler(settings: Settings) -> BlockingScheduler:
    try:
        scheduler = BlockingScheduler(timezone=settings.timezone)
        trigger = CronTrigger.from_crontab(settings.report_schedule, timezone=settings.timezone)
    except (ValueError, LookupError) as e:
        raise ConfigurationError(f"Invalid report schedule {settings.report_schedule!r} / {settings.timezone!r}: {e}")
    scheduler.add_job(run_once, trigger, id="solar_report")
    return scheduler


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Relay the daily solar data image to Telegram.")
    parser.add_argument("--once", action="store_true", help="send one report now and exit")
    args = parser.parse_args(argv)

    try:
        if args.once:
            response = run_once()
            return 0 if response.ok else 1

        settings = load_settings()
        scheduler = build_scheduler(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    logger.info("Scheduler started", schedule=settings.report_schedule, timezone=settings.timezone)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler shut down.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
