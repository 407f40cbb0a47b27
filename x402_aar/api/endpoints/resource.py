from fastapi import APIRouter, Request
from starlette.responses import JSONResponse
import logging

from x402_aar.protocol.audit import log_error
from x402_aar.protocol.responder import OfferResponder, X_402_PAYMENT_HEADER

logger = logging.getLogger(__name__)

router = APIRouter()


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_responder(request: Request) -> OfferResponder:
    """The OfferResponder installed on the application at startup."""
    return request.app.state.responder


@router.get("/resource")
async def get_resource(request: Request) -> JSONResponse:
    """
    Pay-per-request demo resource.

    Without an X-402-PAYMENT header, returns 402 with X-402-OFFER and
    X-402-AAR-OFFER. With one, verifies the receipt and returns 200 or 402
    with X-402-AAR-ERROR.
    """
    client_ip = get_client_ip(request)
    payment_header = request.headers.get(X_402_PAYMENT_HEADER)

    try:
        return get_responder(request).handle(payment_header, client_ip=client_ip)
    except Exception as e:
        logger.error(f"x402: Unexpected error handling /resource for {client_ip}: {e}")
        log_error(
            client_ip=client_ip,
            error_type=type(e).__name__,
            error_message=str(e),
            context={"path": request.url.path},
        )
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "Internal server error"}
        )
