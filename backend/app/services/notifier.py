"""
License delivery by email (Resend).

Fire-and-forget from the caller's point of view: the issuance handler runs
this in a detached task and only logs failures.
"""
import logging
from typing import Optional

import httpx

from ..config import Settings, settings as default_settings

logger = logging.getLogger("uvicorn.error")


def license_email_html(license_key: str) -> str:
    return f"""
    <div style="font-family:Arial,sans-serif;max-width:480px;margin:0 auto;padding:32px;background:#0f0f0f;color:#f5f0e8;border-radius:12px">
      <h2 style="font-size:24px;margin-bottom:8px">You're all set!</h2>
      <p style="color:#aaa;margin-bottom:24px">Thanks for purchasing AI TL;DR by Bolt Extensions.</p>
      <p style="margin-bottom:8px">Your license key is:</p>
      <div style="background:#1a1a1a;border:1px solid #333;border-radius:8px;padding:16px;font-family:monospace;font-size:20px;letter-spacing:0.1em;color:#f5d060;text-align:center">{license_key}</div>
      <p style="color:#aaa;font-size:13px;margin-top:24px">Enter this in the AI TL;DR extension popup to activate it. Keep it safe, this key is yours forever.</p>
      <p style="color:#555;font-size:11px;margin-top:32px">Bolt Extensions &middot; boltextensions.com</p>
    </div>
    """


class EmailNotifier:
    """Sends license keys through the Resend HTTP API"""

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        self.api_key = config.resend_api_key
        self.api_url = config.resend_api_url
        self.from_email = config.email_from
        self.timeout = 12

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def send_license_key(self, to_email: Optional[str], license_key: str) -> bool:
        """
        Email ``license_key`` to ``to_email``.

        Returns:
            True if Resend accepted the message, False if sending was skipped

        Raises:
            httpx.HTTPError: transport failure or non-2xx from Resend
        """
        to_email = (to_email or "").strip().lower()
        if not to_email or "@" not in to_email:
            logger.warning("[email] No recipient address, license email skipped")
            return False
        if not self.is_available():
            logger.warning("[email] RESEND_API_KEY not set, license email to %s skipped", to_email)
            return False

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "from": self.from_email,
                    "to": [to_email],
                    "subject": "Your AI TL;DR License Key",
                    "html": license_email_html(license_key),
                },
            )
            resp.raise_for_status()

        logger.info("[email] License email sent to %s", to_email)
        return True
