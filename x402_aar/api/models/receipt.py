from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

# Protocol version a receipt must declare in its "type" field
AAR_RECEIPT_TYPE = "x402-aar/v0.1"


class ReasonCode(str, Enum):
    """Machine-readable reasons a receipt fails verification."""
    INVALID_PAYMENT_HEADER_JSON = "INVALID_PAYMENT_HEADER_JSON"
    MISSING_RECEIPT = "MISSING_RECEIPT"
    MISSING_TYPE = "MISSING_TYPE"
    MISSING_OFFERID = "MISSING_OFFERID"
    MISSING_QUOTEID = "MISSING_QUOTEID"
    MISSING_CHAIN = "MISSING_CHAIN"
    MISSING_ASSET = "MISSING_ASSET"
    MISSING_AMOUNTOUT = "MISSING_AMOUNTOUT"
    MISSING_PAYTO = "MISSING_PAYTO"
    MISSING_TXHASH = "MISSING_TXHASH"
    BAD_TYPE = "BAD_TYPE"
    OFFER_ID_MISMATCH = "OFFER_ID_MISMATCH"
    WRONG_ASSET_OUT = "WRONG_ASSET_OUT"
    BAD_AMOUNT_OUT = "BAD_AMOUNT_OUT"
    WRONG_PAYTO = "WRONG_PAYTO"


class Receipt(BaseModel):
    """
    Client proof-of-payment claim carried in the X-402-PAYMENT header under "receipt".
    Only built once the receipt has passed every verification check.
    """
    type: str = Field(..., description=f"Protocol version, always '{AAR_RECEIPT_TYPE}'.")
    offer_id: str = Field(..., alias="offerId")
    quote_id: str = Field(..., alias="quoteId")
    chain: str
    asset: str
    amount_out: str = Field(..., alias="amountOut", description="Settled amount in smallest units (digits only).")
    pay_to: str = Field(..., alias="payTo")
    tx_hash: str = Field(..., alias="txHash")

    class Config:
        populate_by_name = True
        frozen = True


class Verdict(BaseModel):
    """Outcome of verifying a receipt against an offer."""
    ok: bool
    reason: Optional[ReasonCode] = None
    receipt: Optional[Receipt] = None

    class Config:
        frozen = True

    @classmethod
    def success(cls, receipt: Receipt) -> "Verdict":
        return cls(ok=True, receipt=receipt)

    @classmethod
    def failure(cls, reason: ReasonCode) -> "Verdict":
        return cls(ok=False, reason=reason)
