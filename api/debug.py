from fastapi import APIRouter, Request

from utils import geolocation


router = APIRouter(prefix="/debug", tags=["Debug"])


@router.get("/ip-analysis")
async def ip_analysis(request: Request):
    """
    Development aid: shows which address the forwarding headers resolve to
    and what the geolocation lookup makes of it. Only mounted in development.
    """
    extracted_ip = geolocation.get_client_ip(request)
    location = await geolocation.lookup_country(extracted_ip)
    is_mock = geolocation.is_local_address(extracted_ip)

    return {
        "analysis": {
            "extractedIp": extracted_ip,
            "headers": {h: request.headers.get(h) for h in geolocation.CLIENT_IP_HEADERS},
            "country": location.country,
            "countryCode": location.country_code,
            "flag": geolocation.country_flag(location.country_code),
            "dataType": "MOCK/DEVELOPMENT" if is_mock else "REAL/PRODUCTION",
            "isRealUserIp": not is_mock,
        }
    }
