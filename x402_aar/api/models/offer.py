from pydantic import BaseModel, Field
from typing import Optional, List


class AcceptedAsset(BaseModel):
    """
    One settlement asset a merchant is willing to receive.
    Every field is optional on decode; offers may list just the asset address.
    """
    chain: Optional[str] = Field(None, description="Chain the asset lives on (e.g. 'base').")
    asset: Optional[str] = Field(None, description="Asset address; compared case-insensitively.")
    symbol: Optional[str] = Field(None, description="Ticker symbol (e.g. 'USDC').")
    decimals: Optional[int] = Field(None, description="Token decimals.")

    class Config:
        frozen = True


class OfferPolicy(BaseModel):
    """Quoting constraints carried in the AAR offer. Not enforced by the verifier."""
    deny_assets: List[str] = Field(default_factory=list, alias="denyAssets")
    max_slippage_bps: Optional[int] = Field(None, alias="maxSlippageBps")
    deadline_ms: Optional[int] = Field(None, alias="deadlineMs")

    class Config:
        populate_by_name = True
        frozen = True


class AAROffer(BaseModel):
    """
    Accept-Asset-Range offer sent in the X-402-AAR-OFFER header and used to
    verify the receipt that comes back.
    """
    offer_id: Optional[str] = Field(None, alias="offerId", description="Opaque offer identifier.")
    accepted_assets: List[AcceptedAsset] = Field(default_factory=list, alias="acceptedAssets")
    route_uri: Optional[str] = Field(None, alias="routeURI", description="Quote/settlement router endpoint.")
    min_settle_window_ms: Optional[int] = Field(None, alias="minSettleWindowMs")
    policy: Optional[OfferPolicy] = None
    pay_to: Optional[str] = Field(None, alias="payTo", description="Merchant treasury address (verifier hint).")

    class Config:
        populate_by_name = True
        frozen = True
        json_schema_extra = {
            "example": {
                "offerId": "0xabc123",
                "acceptedAssets": [
                    {"chain": "base", "asset": "0xaccepted_asset", "symbol": "USDC", "decimals": 6},
                    {"chain": "base", "asset": "0xyourtoken", "symbol": "YTK", "decimals": 18}
                ],
                "routeURI": "https://router.example/aar/quote",
                "minSettleWindowMs": 15000,
                "policy": {"denyAssets": [], "maxSlippageBps": 100, "deadlineMs": 30000},
                "payTo": "0xMERCHANT"
            }
        }


class StandardOffer(BaseModel):
    """Single-price offer sent in the X-402-OFFER header."""
    offer_id: str = Field(..., alias="offerId")
    description: str
    amount: str = Field(..., description="Price in the asset's smallest units (as string).")
    asset: str
    chain: str
    pay_to: Optional[str] = Field(None, alias="payTo")
    nonce: int = Field(..., description="Epoch milliseconds at which the offer was issued.")

    class Config:
        populate_by_name = True
        frozen = True


class MerchantConfig(BaseModel):
    """
    Static merchant offer template. Built once at startup and handed to the
    OfferResponder; read-only afterwards.
    """
    offer_id: str
    chain: str = "base"
    pay_to: Optional[str] = None
    description: str = "Demo resource pay-per-request"
    price_amount: str = "2500"
    price_asset: str
    accepted_assets: List[AcceptedAsset] = Field(default_factory=list)
    route_uri: Optional[str] = None
    min_settle_window_ms: Optional[int] = None
    policy: Optional[OfferPolicy] = None
    enforce_pay_to_match: bool = False

    class Config:
        frozen = True
