# x402_aar/core/config.py
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional
from dotenv import load_dotenv

from x402_aar.api.models.offer import AcceptedAsset, MerchantConfig, OfferPolicy

# Load .env file if it exists
load_dotenv()

DEFAULT_ACCEPTED_ASSETS = [
    {"chain": "base", "asset": "0xaccepted_asset", "symbol": "USDC", "decimals": 6},
    {"chain": "base", "asset": "0xyourtoken", "symbol": "YTK", "decimals": 18},
]


class Settings(BaseSettings):
    PROJECT_NAME: str = "x402 AAR Demo Gateway"
    HOST: str = "127.0.0.1"
    PORT: int = 8787

    # Demo merchant
    X402_OFFER_ID: str = "0xabc123"
    X402_CHAIN: str = "base"
    X402_PAY_TO_ADDRESS: Optional[str] = "0xMERCHANT"
    X402_DESCRIPTION: str = "Demo resource pay-per-request"
    X402_PRICE_AMOUNT: str = "2500"
    X402_PRICE_ASSET: str = "0xaccepted_asset"

    # AAR offer terms (complex values are read from env as JSON)
    X402_ACCEPTED_ASSETS: List[AcceptedAsset] = [AcceptedAsset(**a) for a in DEFAULT_ACCEPTED_ASSETS]
    X402_ROUTE_URI: str = "https://router.example/aar/quote"
    X402_MIN_SETTLE_WINDOW_MS: int = 15000
    X402_DENY_ASSETS: List[str] = []
    X402_MAX_SLIPPAGE_BPS: int = 100
    X402_DEADLINE_MS: int = 30000

    # Reject receipts whose payTo differs from the merchant's (off in the demo)
    X402_ENFORCE_PAY_TO_MATCH: bool = False

    # Audit trail
    X402_AUDIT_ENABLED: bool = False
    X402_AUDIT_LOG_PATH: str = "logs/x402_audit.jsonl"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env


@lru_cache()  # Cache the settings object for performance
def get_settings() -> Settings:
    return Settings()


def get_merchant_config(config: Optional[Settings] = None) -> MerchantConfig:
    """Build the merchant offer template from settings."""
    config = config or get_settings()
    return MerchantConfig(
        offer_id=config.X402_OFFER_ID,
        chain=config.X402_CHAIN,
        pay_to=config.X402_PAY_TO_ADDRESS,
        description=config.X402_DESCRIPTION,
        price_amount=config.X402_PRICE_AMOUNT,
        price_asset=config.X402_PRICE_ASSET,
        accepted_assets=list(config.X402_ACCEPTED_ASSETS),
        route_uri=config.X402_ROUTE_URI,
        min_settle_window_ms=config.X402_MIN_SETTLE_WINDOW_MS,
        policy=OfferPolicy(
            deny_assets=list(config.X402_DENY_ASSETS),
            max_slippage_bps=config.X402_MAX_SLIPPAGE_BPS,
            deadline_ms=config.X402_DEADLINE_MS,
        ),
        enforce_pay_to_match=config.X402_ENFORCE_PAY_TO_MATCH,
    )


settings = get_settings()
