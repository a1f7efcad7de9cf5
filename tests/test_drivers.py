import asyncio
import json

import httpx
import pytest

from airbox_monitor.core.errors import DispatchFailure, FeedUnavailable, ShapeMismatch
from airbox_monitor.domain.models import Alert
from airbox_monitor.drivers.airbox_feed import AirboxFeedClient
from airbox_monitor.drivers.resend_mailer import ResendMailer, render_html, render_subject

from .fakes import ts

FEED_URL = "https://airbox.example.com/api/entries"


def _feed(handler) -> AirboxFeedClient:
    return AirboxFeedClient(FEED_URL, "s3cret", transport=httpx.MockTransport(handler))


def _alert(**kw) -> Alert:
    base = dict(
        sensor_name="Lobby", mac="AA:BB", threshold_type="PM2.5",
        threshold_value=35, actual_value=41.237, time=ts(8, 30),
    )
    base.update(kw)
    return Alert(**base)


def test_feed_passes_token_and_returns_json() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "ok", "entries": []})

    payload = asyncio.run(_feed(handler).fetch())

    assert payload == {"status": "ok", "entries": []}
    assert seen[0].url.params["token"] == "s3cret"
    assert seen[0].url.path == "/api/entries"


def test_feed_http_error_is_unavailable_and_hides_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    with pytest.raises(FeedUnavailable) as exc:
        asyncio.run(_feed(handler).fetch())

    assert "503" in str(exc.value)
    assert "s3cret" not in str(exc.value)


def test_feed_transport_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FeedUnavailable):
        asyncio.run(_feed(handler).fetch())


def test_feed_non_json_body_is_shape_mismatch() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    with pytest.raises(ShapeMismatch):
        asyncio.run(_feed(handler).fetch())


def test_mailer_posts_rendered_email() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "msg_1"})

    mailer = ResendMailer("re_key", "alerts@example.com", transport=httpx.MockTransport(handler))
    asyncio.run(mailer.send("ops@example.com", [_alert(), _alert(threshold_type="Humidity")]))

    (req,) = seen
    assert req.headers["Authorization"] == "Bearer re_key"
    body = json.loads(req.content)
    assert body["from"] == "alerts@example.com"
    assert body["to"] == "ops@example.com"
    assert body["subject"] == "AirBox Alert: 2 Thresholds Exceeded"
    assert "41.24" in body["html"]
    assert "HUMIDITY Alert" in body["html"]


def test_mailer_without_api_key_skips_sending() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    mailer = ResendMailer("", "alerts@example.com", transport=httpx.MockTransport(handler))
    asyncio.run(mailer.send("ops@example.com", [_alert()]))


def test_mailer_error_raises_dispatch_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "invalid to"})

    mailer = ResendMailer("re_key", "alerts@example.com", transport=httpx.MockTransport(handler))
    with pytest.raises(DispatchFailure):
        asyncio.run(mailer.send("nobody", [_alert()]))


def test_render_escapes_device_metadata() -> None:
    html = render_html([_alert(sensor_name="<script>")])

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert render_subject([_alert()]) == "AirBox Alert: 1 Threshold Exceeded"
