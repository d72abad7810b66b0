"""Support requests forwarded to the support inbox through Resend"""
import html
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from app.config import RESEND_API_URL, SUPPORT_EMAIL_FROM, SUPPORT_EMAIL_TO

logger = logging.getLogger(__name__)


def build_support_email(subject: str, message: str, priority: str) -> Dict[str, Any]:
    """Resend payload; the message is escaped and its newlines become <br/>"""
    body = html.escape(message).replace("\n", "<br/>")
    return {
        "from": SUPPORT_EMAIL_FROM,
        "to": [SUPPORT_EMAIL_TO],
        "subject": f"[Support – {priority}] {subject}",
        "html": f"<p>{body}</p>",
    }


class SupportService:
    """Sends support form submissions as email"""

    def __init__(self, http: httpx.AsyncClient, resend_api_key: Optional[str]):
        self.http = http
        self.resend_api_key = resend_api_key

    async def send_support_request(self, subject: Optional[str], message: Optional[str], priority: str = "medium") -> None:
        """
        Email a support request to the support inbox

        Raises:
            HTTPException(400): subject or message missing
            HTTPException(500): email not configured or Resend rejected the send
        """
        if not subject or not message:
            raise HTTPException(status_code=400, detail="Subject and message are required")

        if not self.resend_api_key:
            logger.error("Missing RESEND_API_KEY env var")
            raise HTTPException(status_code=500, detail="Server not configured for email sending")

        payload = build_support_email(subject, message, priority or "medium")
        try:
            response = await self.http.post(
                RESEND_API_URL,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.resend_api_key}",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to send email")

        if response.status_code >= 400:
            logger.error(f"Resend API error ({response.status_code}): {response.text}")
            raise HTTPException(status_code=500, detail="Failed to send email")

        logger.info(f"Support request sent (priority={priority})")
