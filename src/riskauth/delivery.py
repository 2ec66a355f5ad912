"""Code delivery channel for development debugging."""

from __future__ import annotations

import logging

from .ports import ICodeDeliveryChannel

logger = logging.getLogger("riskauth.delivery")


class LoggingCodeDelivery(ICodeDeliveryChannel):
    """
    Development adapter that logs one-time codes instead of sending them.

    Never use in production: codes end up in the logs.
    """

    def __init__(self, output_to_stdout: bool = False):
        self.output_to_stdout = output_to_stdout

    async def send_sms(self, phone_number: str, code: str) -> None:
        self._emit("SMS", phone_number, code)

    async def send_email(self, email: str, code: str) -> None:
        self._emit("EMAIL", email, code)

    def _emit(self, channel: str, recipient: str, code: str) -> None:
        output = "\n".join(
            [
                "═" * 50,
                f"2FA CODE SENT VIA {channel}",
                f"To:   {recipient}",
                f"Code: {code}",
                "═" * 50,
            ]
        )
        logger.info(output)
        if self.output_to_stdout:
            print(output)


__all__: list[str] = ["LoggingCodeDelivery"]
