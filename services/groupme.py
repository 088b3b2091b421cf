"""
GroupMe Client - Outbound bot messages
======================================

Posts replies through the GroupMe bot API. Each group the bot serves has
its own bot id; the id is looked up from the group registries in the
configuration (management groups first).

Sends are fire-and-forget: the request runs on a daemon thread and any
failure only reaches the log.
"""

import threading
from typing import Optional

import httpx

from core.config import Config
from core.exceptions import SendError
from core.logging import get_logger

logger = get_logger("services.groupme")


GROUPME_BASE_URL = "https://api.groupme.com/v3"
BOT_POST_URL = GROUPME_BASE_URL + "/bots/post"


class GroupMeClient:
    """
    Sends messages as a GroupMe bot.

    Example:
        client = GroupMeClient(config)
        client.send_message("12345", "Hello from the bot!")
    """

    def __init__(
        self,
        config: Config,
        timeout: float = 10.0,
        background: bool = True,
        url: str = BOT_POST_URL
    ):
        """
        Initialize the client.

        Args:
            config: Application configuration (token and group registries)
            timeout: HTTP timeout in seconds
            background: Post on a daemon thread instead of blocking
            url: Bot post endpoint
        """
        self.config = config
        self.timeout = timeout
        self.background = background
        self.url = url

    def resolve_bot_id(self, group_id: str) -> str:
        """
        Get the bot id registered for a group.

        Returns:
            The bot id, or "" if the group is not registered
        """
        bot_id = self.config.get_bot_id(group_id)
        if bot_id is None:
            logger.warning(f"Corresponding bot id for group id {group_id} not found")
            return ""
        return bot_id

    def send_message(self, group_id: str, message: str) -> Optional[threading.Thread]:
        """
        Post a message to a group.

        Args:
            group_id: Destination group
            message: Message text

        Returns:
            The sender thread when sending in the background
        """
        bot_id = self.resolve_bot_id(group_id)
        logger.info(f"Sending message. Bot id: {bot_id} Text: {message}")

        if not self.background:
            self._send_logged(bot_id, message)
            return None

        thread = threading.Thread(
            target=self._send_logged,
            args=(bot_id, message),
            daemon=True
        )
        thread.start()
        return thread

    def post(self, bot_id: str, message: str) -> None:
        """
        Post a message synchronously.

        Raises:
            SendError: If the request fails or is rejected
        """
        params = {
            "bot_id": bot_id,
            "text": message,
            "token": self.config.access_token,
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.url, params=params)
        except httpx.HTTPError as e:
            raise SendError(f"Failed to reach bot API: {e}", {"bot_id": bot_id})

        if not 200 <= response.status_code < 300:
            raise SendError(
                f"Bot API returned {response.status_code}",
                {"bot_id": bot_id, "body": response.text[:200]},
            )

    def _send_logged(self, bot_id: str, message: str) -> None:
        try:
            self.post(bot_id, message)
        except SendError as e:
            logger.error(f"Message send failed: {e}")
            return
        logger.info("Message sent successfully")
