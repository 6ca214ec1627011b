import ipaddress
import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from core.config import (
    DEFAULT_LOCAL_COUNTRY,
    DEFAULT_LOCAL_COUNTRY_CODE,
    GEOLOCATION_TIMEOUT_SECONDS,
)


logger = logging.getLogger(__name__)

PRIMARY_URL = "http://ip-api.com/json/{ip}?fields=status,country,countryCode"
BACKUP_URL = "https://ipapi.co/{ip}/json/"

LOOPBACK_IP = "127.0.0.1"

# Anything outside loopback and these ranges is looked up
LOCAL_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("192.168.0.0/16"),
)

# Checked in order; proxies, load balancers and CDNs
CLIENT_IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "cf-connecting-ip",
    "fastly-client-ip",
    "x-vercel-forwarded-for",
)


@dataclass(frozen=True)
class GeoLocation:
    country: str
    country_code: str


UNKNOWN_LOCATION = GeoLocation("Unknown", "Unknown")
LOCAL_LOCATION = GeoLocation(DEFAULT_LOCAL_COUNTRY, DEFAULT_LOCAL_COUNTRY_CODE)


def is_local_address(ip: str) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if address.is_loopback:
        return True
    return any(address in network for network in LOCAL_NETWORKS if network.version == address.version)


def _parse_ip(value: str):
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return None
    # Scoped IPv6 ("fe80::1%eth0") carries an unbounded zone name
    if getattr(address, "scope_id", None):
        return None
    return address


def get_client_ip(request: Request) -> str:
    """
    First non-loopback address from the forwarding headers, falling back
    to loopback when the request came straight from a local client.
    Values that are not IP addresses are skipped.
    """
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        # x-forwarded-for can carry a chain, the client is first
        address = _parse_ip(value.split(",")[0].strip())
        if address is not None and not address.is_loopback:
            return str(address)
    return LOOPBACK_IP


async def _query(client: httpx.AsyncClient, ip: str) -> GeoLocation | None:
    response = await client.get(PRIMARY_URL.format(ip=ip))
    response.raise_for_status()
    data = response.json()
    if data.get("status") == "success" and data.get("country"):
        return GeoLocation(data["country"], data.get("countryCode") or "Unknown")

    backup = await client.get(BACKUP_URL.format(ip=ip))
    if backup.is_success:
        data = backup.json()
        if data.get("country_name"):
            return GeoLocation(data["country_name"], data.get("country_code") or "Unknown")
    return None


async def lookup_country(
    ip: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
) -> GeoLocation:
    """
    Best-effort country for an IP. Never raises: local addresses get the
    configured local country, anything that goes wrong gets "Unknown".
    """
    if is_local_address(ip):
        return LOCAL_LOCATION

    try:
        if client is not None:
            location = await _query(client, ip)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                location = await _query(own_client, ip)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        logger.warning(f"Geolocation lookup failed for {ip}: {exc}")
        return UNKNOWN_LOCATION

    return location or UNKNOWN_LOCATION


def country_flag(country_code: str) -> str:
    """Regional-indicator emoji for a two-letter code, globe otherwise."""
    code = (country_code or "").upper()
    if len(code) != 2 or not code.isalpha() or not code.isascii():
        return "\U0001F30D"
    return "".join(chr(0x1F1E6 + ord(c) - ord("A")) for c in code)
