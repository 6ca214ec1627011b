import asyncio

import httpx
from starlette.requests import Request

from tests.factories import fake_phone, fake_signup
from utils import geolocation


def make_request(headers):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


def lookup(ip, handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await geolocation.lookup_country(ip, client=client)
    return asyncio.run(run())


def test_client_ip_prefers_first_forwarded_address():
    request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert geolocation.get_client_ip(request) == "203.0.113.7"


def test_client_ip_skips_loopback_headers():
    request = make_request({"X-Forwarded-For": "127.0.0.1", "CF-Connecting-IP": "198.51.100.4"})
    assert geolocation.get_client_ip(request) == "198.51.100.4"


def test_client_ip_falls_back_to_loopback():
    assert geolocation.get_client_ip(make_request({})) == "127.0.0.1"


def test_client_ip_skips_values_that_are_not_addresses():
    request = make_request({"X-Forwarded-For": "203.0.113.7\tx", "X-Real-IP": "x" * 80})
    assert geolocation.get_client_ip(request) == "127.0.0.1"

    request = make_request({"X-Forwarded-For": "unknown", "CF-Connecting-IP": "198.51.100.4"})
    assert geolocation.get_client_ip(request) == "198.51.100.4"

    request = make_request({"X-Forwarded-For": "fe80::1%" + "e" * 60})
    assert geolocation.get_client_ip(request) == "127.0.0.1"


def test_only_loopback_and_home_networks_are_local():
    for ip in ("127.0.0.1", "::1", "10.1.2.3", "192.168.1.20"):
        assert geolocation.is_local_address(ip), ip
    for ip in ("8.8.8.8", "203.0.113.7", "172.16.0.1", "2001:4860:4860::8888", "garbage"):
        assert not geolocation.is_local_address(ip), ip


def test_local_addresses_use_local_country_without_network():
    def handler(request):
        raise AssertionError("no lookup expected for local addresses")

    assert lookup("127.0.0.1", handler) == geolocation.LOCAL_LOCATION
    assert lookup("192.168.1.20", handler) == geolocation.LOCAL_LOCATION
    assert lookup("10.1.2.3", handler) == geolocation.LOCAL_LOCATION


def test_primary_provider_result():
    def handler(request):
        assert request.url.host == "ip-api.com"
        return httpx.Response(200, json={"status": "success", "country": "Germany", "countryCode": "DE"})

    assert lookup("8.8.8.8", handler) == geolocation.GeoLocation("Germany", "DE")


def test_backup_provider_used_when_primary_has_no_answer():
    def handler(request):
        if request.url.host == "ip-api.com":
            return httpx.Response(200, json={"status": "fail"})
        return httpx.Response(200, json={"country_name": "Kenya", "country_code": "KE"})

    assert lookup("8.8.8.8", handler) == geolocation.GeoLocation("Kenya", "KE")


def test_no_answer_anywhere_is_unknown():
    def handler(request):
        if request.url.host == "ip-api.com":
            return httpx.Response(200, json={"status": "fail"})
        return httpx.Response(429, json={})

    assert lookup("8.8.8.8", handler) == geolocation.UNKNOWN_LOCATION


def test_transport_errors_fall_back_to_unknown():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    assert lookup("8.8.8.8", handler) == geolocation.UNKNOWN_LOCATION


def test_server_error_falls_back_to_unknown():
    def handler(request):
        return httpx.Response(503)

    assert lookup("8.8.8.8", handler) == geolocation.UNKNOWN_LOCATION


def test_unusable_address_falls_back_to_unknown():
    def handler(request):
        if request.url.host == "ip-api.com":
            return httpx.Response(200, json={"status": "fail"})
        return httpx.Response(404)

    assert lookup("203.0.113.7\tx", handler) == geolocation.UNKNOWN_LOCATION


def test_malformed_forwarded_header_does_not_block_signup_or_signin(client):
    signup = fake_signup()
    bad_header = {"X-Forwarded-For": "203.0.113.7\tx"}

    res = client.post("/auth/send-signup-otp", json=signup, headers=bad_header)
    assert res.status_code == 200, res.text
    otp = res.json()["otp"]

    res = client.post("/auth/verify-signup-otp", json={**signup, "otp": otp})
    assert res.status_code == 201, res.text
    assert res.json()["user"]["ipAddress"] == "127.0.0.1"
    assert res.json()["user"]["country"] == "India"

    res = client.post(
        "/auth/signin",
        json={"phone": signup["phone"], "password": signup["password"]},
        headers=bad_header,
    )
    assert res.status_code == 200, res.text
    assert res.json()["user"]["ipAddress"] == "127.0.0.1"


def test_country_flag():
    assert geolocation.country_flag("IN") == "\U0001F1EE\U0001F1F3"
    assert geolocation.country_flag("Unknown") == "\U0001F30D"


def test_signup_with_unreachable_geolocation_still_issues(client, monkeypatch):
    async def failing_lookup(ip, client=None, timeout=5):
        return geolocation.UNKNOWN_LOCATION

    monkeypatch.setattr(geolocation, "lookup_country", failing_lookup)
    phone = fake_phone()

    res = client.post(
        "/auth/send-signup-otp",
        json={"phone": phone, "name": "Ravi", "password": "secret1"},
        headers={"X-Forwarded-For": "203.0.113.7"},
    )
    assert res.status_code == 200
    otp = res.json()["otp"]

    res = client.post(
        "/auth/verify-signup-otp",
        json={"phone": phone, "name": "Ravi", "password": "secret1", "otp": otp},
    )
    assert res.status_code == 201
    assert res.json()["user"]["country"] == "Unknown"
    assert res.json()["user"]["ipAddress"] == "203.0.113.7"


def test_ip_analysis_debug_endpoint(client):
    res = client.get("/debug/ip-analysis")
    assert res.status_code == 200
    analysis = res.json()["analysis"]
    assert analysis["extractedIp"] == "127.0.0.1"
    assert analysis["dataType"] == "MOCK/DEVELOPMENT"
    assert analysis["isRealUserIp"] is False
