# x402_aar/main.py
from typing import Optional

from fastapi import FastAPI
import logging
import uvicorn

from x402_aar.core.config import settings, get_merchant_config
from x402_aar.api.endpoints import resource
from x402_aar.api.models.offer import MerchantConfig
from x402_aar.protocol.responder import OfferResponder

# Configure basic logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(merchant: Optional[MerchantConfig] = None) -> FastAPI:
    """
    Build the gateway application for one merchant.

    Args:
        merchant: Merchant offer template. Defaults to the one built from settings.
    """
    merchant = merchant or get_merchant_config(settings)

    application = FastAPI(title=settings.PROJECT_NAME)
    application.state.responder = OfferResponder(merchant)
    application.include_router(resource.router, tags=["x402"])

    @application.get("/", summary="Health Check", tags=["default"])
    def read_root():
        """ Basic health check endpoint. """
        logger.info("Root endpoint '/' accessed.")
        return {
            "status": "ok",
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "offerId": merchant.offer_id,
        }

    return application


app = create_app()


if __name__ == "__main__":
    logger.info(f"x402 AAR demo server listening on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
