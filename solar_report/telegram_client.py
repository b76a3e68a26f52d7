from typing import Any, Optional

import httpx
import structlog

from solar_report.config import Config

logger = structlog.get_logger()


class MessagingError(Exception):
    """Base class for failures while talking to the Telegram Bot API"""
    pass


class PlatformRejectedError(MessagingError):
    """Raised when Telegram answers with ok=false"""

    def __init__(self, description: Optional[str], error_code: Optional[int], response: dict):
        super().__init__(f"Telegram API error: {description}")
        self.description = description
        self.error_code = error_code
        self.response = response


class TransportFailedError(MessagingError):
    """Raised when the request could not complete or the reply was not JSON"""
    pass


def build_api_url(api_base: str, token: str, method: str) -> str:
    return f"{api_base}{token}/{method}"


async def post_json(url: str, payload: dict, timeout: Optional[float] = None) -> httpx.Response:
    """Single JSON POST, shared by the client and the error reporter."""
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
        return await client.post(url, json=payload, headers={"Content-Type": "application/json"})


class TelegramClient:
    def __init__(self, config: Config):
        self.config = config

    async def call(self, method: str, payload: dict) -> dict[str, Any]:
        """POST payload to a Bot API method and return the parsed reply.

        There is no retry: a transport failure or an ok=false reply is raised
        to the caller right away.
        """
        url = build_api_url(self.config.api_base, self.config.token, method)
        logger.info("Calling Telegram API", method=method)

        try:
            response = await post_json(url, payload, self.config.request_timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Request to {method} failed: {e}")
            raise TransportFailedError(f"Request to {method} failed: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise TransportFailedError(f"Invalid JSON reply from {method}: {e}") from e

        if not isinstance(result, dict) or not result.get("ok"):
            result = result if isinstance(result, dict) else {"ok": False, "result": result}
            logger.warning(
                "Telegram API rejected request",
                method=method,
                error_code=result.get("error_code"),
                description=result.get("description"),
            )
            raise PlatformRejectedError(result.get("description"), result.get("error_code"), result)

        return result

    async def send_message(self, chat_id: int | str, text: str) -> dict[str, Any]:
        return await self.call("sendMessage", {"chat_id": chat_id, "text": text})

    async def send_photo(self, chat_id: int | str, photo: str) -> dict[str, Any]:
        """Send a photo by URL; Telegram fetches the image itself."""
        return await self.call("sendPhoto", {"chat_id": chat_id, "photo": photo})
