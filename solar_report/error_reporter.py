"""Best-effort failure notifications to the administrator chat."""

import datetime
from typing import Optional

import structlog

from solar_report.config import Config
from solar_report.telegram_client import PlatformRejectedError, build_api_url, post_json

logger = structlog.get_logger()


def format_error_message(error: BaseException, context: str, now: Optional[datetime.datetime] = None) -> str:
    """Compose the plain-text alert sent to the administrator.

    Args:
        error: The failure being reported.
        context: Short label of the component that failed.
        now: Timestamp to print (default: current UTC time).

    Returns:
        Multi-line message; the Telegram code line only appears for platform rejections.
    """
    now = now or datetime.datetime.now(datetime.timezone.utc)
    lines = [
        f"🚨 Error in {context}",
        f"Time: {now.isoformat(timespec='milliseconds')}",
        f"Message: {error}",
    ]
    if isinstance(error, PlatformRejectedError) and error.error_code is not None:
        lines.append(f"Telegram Code: {error.error_code}")
    return "\n".join(lines)


async def report_error(error: BaseException, context: str, config: Config) -> None:
    """Notify the administrator about error. Never raises.

    Goes through post_json directly rather than TelegramClient so a broken
    client layer cannot fail the report as well.
    """
    text = format_error_message(error, context)
    url = build_api_url(config.api_base, config.token, "sendMessage")

    try:
        response = await post_json(url, {"chat_id": config.master_id, "text": text}, config.request_timeout)
        result = response.json()
        if not result.get("ok"):
            logger.warning(
                "Administrator notification was rejected",
                error_code=result.get("error_code"),
                description=result.get("description"),
                original_error=str(error),
            )
            return
        logger.info("Administrator notified", context=context)
    except Exception as report_exc:
        logger.error(f"Failed to report error: {report_exc}", exc_info=report_exc)
        logger.error(f"Original error: {error}", exc_info=error)
