import datetime
import enum
import time
from typing import NamedTuple, Optional

import httpx
import structlog

from solar_report.config import Config
from solar_report.error_reporter import report_error
from solar_report.telegram_client import TelegramClient

logger = structlog.get_logger()

REPORT_TEXT = "Günlük Solar Veriler:"
ORCHESTRATOR_CONTEXT = "sendSolarReport"


class ReportState(enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    DONE = "done"
    FAILED = "failed"


class ReportResponse(NamedTuple):
    """HTTP-style answer handed back to the scheduler."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status == 200


OK_RESPONSE = ReportResponse(200, "OK")
ERROR_RESPONSE = ReportResponse(500, "Error")


def current_millis() -> int:
    return time.time_ns() // 1_000_000


def build_photo_url(base_url: str, timestamp_ms: int) -> str:
    """Append the cache-busting `t` parameter so Telegram refetches the image."""
    return str(httpx.URL(base_url).copy_merge_params({"t": str(timestamp_ms)}))


class SolarReport:
    """One scheduled run: text message, then the solar data photo."""

    def __init__(self, config: Config, client: Optional[TelegramClient] = None):
        self.config = config
        self.client = client or TelegramClient(config)
        self.state = ReportState.IDLE

    async def run(self, scheduled_time: datetime.datetime) -> ReportResponse:
        self.state = ReportState.SENDING
        logger.info("Sending solar report", scheduled_time=scheduled_time.isoformat())

        try:
            await self.client.send_message(self.config.target_chat_id, REPORT_TEXT)
            await self.client.send_photo(
                self.config.target_chat_id,
                build_photo_url(self.config.solar_data_url, current_millis()),
            )
        except Exception as e:
            logger.error(f"Solar report failed: {e}")
            await report_error(e, ORCHESTRATOR_CONTEXT, self.config)
            self.state = ReportState.FAILED
            return ERROR_RESPONSE

        self.state = ReportState.DONE
        logger.info(f"Solar report sent at {scheduled_time.isoformat()}")
        return OK_RESPONSE


async def send_solar_report(scheduled_time: datetime.datetime, config: Config) -> ReportResponse:
    return await SolarReport(config).run(scheduled_time)
