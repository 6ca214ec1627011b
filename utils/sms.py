import os
import logging
import httpx


logger = logging.getLogger(__name__)

SMS_API_URL = os.getenv("SMS_API_URL", "")
SMS_API_KEY = os.getenv("SMS_API_KEY", "")
SMS_SECRET_KEY = os.getenv("SMS_SECRET_KEY", "")
SMS_SENDER_ID = os.getenv("SMS_SENDER_ID", "ONBOARD")
SMS_COUNTRY_CODE = os.getenv("SMS_COUNTRY_CODE", "91")
SMS_TIMEOUT_SECONDS = 10


def format_phone(phone: str) -> str:
    """
    Normalize phone numbers to gateway format: <country code><number>
    - Strips spaces, dashes, etc.
    - If starts with 0, replace with the country code.
    - If starts with +, strip it.
    - Bare national numbers get the country code prefixed.
    """
    phone = phone.strip().replace(" ", "").replace("-", "")

    if phone.startswith("+"):
        return phone[1:]
    elif phone.startswith("0"):
        return SMS_COUNTRY_CODE + phone[1:]
    elif phone.startswith(SMS_COUNTRY_CODE) and len(phone) > 10:
        return phone
    else:
        return SMS_COUNTRY_CODE + phone


async def send_sms_single(message: str, dest_addr: str, client: httpx.AsyncClient | None = None) -> dict:
    """
    Send an SMS to a single recipient asynchronously.
    """
    payload = {
        "source_addr": SMS_SENDER_ID,
        "encoding": 0,
        "message": message,
        "recipients": [
            {
                "recipient_id": "1",
                "dest_addr": format_phone(dest_addr)
            }
        ]
    }

    if client is None:
        async with httpx.AsyncClient(timeout=SMS_TIMEOUT_SECONDS) as own_client:
            return await _post(own_client, payload)
    return await _post(client, payload)


async def _post(client: httpx.AsyncClient, payload: dict) -> dict:
    response = await client.post(
        SMS_API_URL,
        auth=(SMS_API_KEY, SMS_SECRET_KEY),
        headers={"Content-Type": "application/json"},
        json=payload
    )
    response.raise_for_status()
    return response.json()


async def deliver_otp(phone: str, otp: str, expires_in_minutes: int, client: httpx.AsyncClient | None = None) -> bool:
    """
    Fire-and-forget OTP delivery, run as a background task after the
    response. Failures are logged, never raised to the caller.
    """
    if not SMS_API_URL:
        logger.warning(f"SMS gateway not configured, OTP for {phone} not delivered")
        return False

    message = f"Your verification code is {otp}. It expires in {expires_in_minutes} minutes."
    try:
        await send_sms_single(message, phone, client=client)
    except (httpx.HTTPError, ValueError):
        logger.exception(f"Failed to deliver OTP SMS to {phone}")
        return False
    return True
