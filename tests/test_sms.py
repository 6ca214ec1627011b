import asyncio
import json

import httpx

from utils import sms


def test_format_phone():
    assert sms.format_phone("98765 43210") == "919876543210"
    assert sms.format_phone("09876543210") == "919876543210"
    assert sms.format_phone("+447700900123") == "447700900123"
    assert sms.format_phone("919876543210") == "919876543210"


def test_deliver_otp_skips_without_gateway(monkeypatch):
    monkeypatch.setattr(sms, "SMS_API_URL", "")
    assert asyncio.run(sms.deliver_otp("9876543210", "482913", 10)) is False


def test_deliver_otp_posts_message(monkeypatch):
    monkeypatch.setattr(sms, "SMS_API_URL", "https://sms.example.test/v1/send")
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"successful": True})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await sms.deliver_otp("9876543210", "482913", 10, client=client)

    assert asyncio.run(run()) is True
    assert sent[0]["recipients"][0]["dest_addr"] == "919876543210"
    assert "482913" in sent[0]["message"]


def test_deliver_otp_failure_is_not_raised(monkeypatch):
    monkeypatch.setattr(sms, "SMS_API_URL", "https://sms.example.test/v1/send")

    def handler(request):
        return httpx.Response(500, json={"error": "down"})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await sms.deliver_otp("9876543210", "482913", 10, client=client)

    assert asyncio.run(run()) is False
