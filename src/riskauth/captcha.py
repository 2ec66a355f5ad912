"""CAPTCHA verifiers."""

from __future__ import annotations

import logging

import httpx

from .ports import ICaptchaVerifier

logger = logging.getLogger("riskauth.captcha")

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class NoopCaptchaVerifier(ICaptchaVerifier):
    """Accepts every request; for deployments without a CAPTCHA."""

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        return True


class RecaptchaVerifier(ICaptchaVerifier):
    """Google reCAPTCHA server-side verification.

    A disabled verifier, or one without a secret, lets every request
    through. An empty token always fails. Transport errors and non-2xx
    responses fail closed and are logged.

    Example:
        ```python
        verifier = RecaptchaVerifier(secret=settings.recaptcha_secret)
        if not await verifier.verify(form_token, remote_ip=client_ip):
            raise CaptchaFailedError()
        ```
    """

    def __init__(
        self,
        *,
        secret: str | None,
        enabled: bool = True,
        verify_url: str = RECAPTCHA_VERIFY_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the verifier.

        Args:
            secret: reCAPTCHA secret key.
            enabled: Set False to skip verification entirely.
            verify_url: siteverify endpoint.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests inject a mock).
        """
        self.secret = secret
        self.enabled = enabled
        self.verify_url = verify_url
        self.timeout = timeout
        self._transport = transport

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        if not self.enabled or not self.secret:
            return True
        if not token:
            return False

        data = {"secret": self.secret, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.verify_url, data=data)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("reCAPTCHA HTTP error: %s", e.response.status_code)
            return False
        except (httpx.HTTPError, ValueError) as e:
            logger.error("reCAPTCHA verification failed: %s", e)
            return False

        if not isinstance(payload, dict):
            logger.error("Unexpected reCAPTCHA response: %r", payload)
            return False
        success = bool(payload.get("success", False))
        if not success:
            logger.info("reCAPTCHA rejected token: %s", payload.get("error-codes"))
        return success


__all__: list[str] = [
    "NoopCaptchaVerifier",
    "RECAPTCHA_VERIFY_URL",
    "RecaptchaVerifier",
]
