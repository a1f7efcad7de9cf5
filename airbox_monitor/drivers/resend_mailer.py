from __future__ import annotations

import html
import logging
from typing import Sequence

import httpx

from ..core.errors import DispatchFailure
from ..domain.models import Alert

logger = logging.getLogger(__name__)


def render_subject(alerts: Sequence[Alert]) -> str:
    n = len(alerts)
    return f"AirBox Alert: {n} Threshold{'s' if n > 1 else ''} Exceeded"


def render_html(alerts: Sequence[Alert]) -> str:
    n = len(alerts)
    items = "".join(
        f"""
        <div style="background: #fff3cd; border-left: 4px solid #ff9800; padding: 15px; margin-bottom: 10px;">
            <h3 style="margin: 0 0 10px 0; color: #333;">{html.escape(a.threshold_type.upper())} Alert</h3>
            <p style="margin: 5px 0;"><strong>Sensor:</strong> {html.escape(a.sensor_name)} ({html.escape(a.mac)})</p>
            <p style="margin: 5px 0;"><strong>Current Value:</strong> {a.actual_value:.2f}</p>
            <p style="margin: 5px 0;"><strong>Threshold:</strong> {a.threshold_value:g}</p>
            <p style="margin: 5px 0;"><strong>Time:</strong> {a.time.strftime("%Y-%m-%d %H:%M:%S UTC")}</p>
        </div>"""
        for a in alerts
    )
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>AirBox Sensor Alert</title>
</head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: #667eea; color: white; padding: 20px; border-radius: 10px 10px 0 0;">
        <h1 style="margin: 0;">AirBox Sensor Alert</h1>
        <p style="margin: 10px 0 0 0;">Threshold exceeded for {n} metric{'s' if n > 1 else ''}</p>
    </div>
    <div style="background: #f5f5f5; padding: 20px; border-radius: 0 0 10px 10px;">{items}
        <p style="margin-top: 20px; font-size: 12px; color: #666;">
            This is an automated alert from your AirBox Sensor Dashboard.
        </p>
    </div>
</body>
</html>
"""


class ResendMailer:
    """Sends alert emails through the Resend REST API."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._from = from_email
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def send(self, recipient: str, alerts: Sequence[Alert]) -> None:
        if not self._api_key:
            logger.warning("RESEND_API_KEY not configured, skipping email alert")
            return

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._api_url,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json={
                        "from": self._from,
                        "to": recipient,
                        "subject": render_subject(alerts),
                        "html": render_html(alerts),
                    },
                )
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DispatchFailure(f"Failed to send alert email to {recipient}: {e}") from e

        logger.info("Alert email sent to %s for %d threshold violation(s)", recipient, len(alerts))
