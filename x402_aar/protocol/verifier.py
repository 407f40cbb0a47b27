# x402_aar/protocol/verifier.py
"""
AAR receipt verification.

Checks a decoded X-402-PAYMENT receipt against the AAR offer it claims to
settle. This is a syntactic/semantic pre-check only: no signature, chain or
facilitator verification happens here. A full implementation would also:

1. Fetch the transaction by txHash on the receipt's chain
2. Confirm transfer logs (asset -> payTo, amountOut)
3. Confirm the router emitted the quoteId
4. Enforce the offer's deadline/slippage policy
"""
import logging
import re
from typing import Any, List, Mapping, Tuple, Union

from x402_aar.api.models.offer import AAROffer
from x402_aar.api.models.receipt import AAR_RECEIPT_TYPE, ReasonCode, Receipt, Verdict
from x402_aar.protocol.codec import decode_header

logger = logging.getLogger(__name__)

# Checked in this order; the first missing field is reported
REQUIRED_RECEIPT_FIELDS = (
    "type",
    "offerId",
    "quoteId",
    "chain",
    "asset",
    "amountOut",
    "payTo",
    "txHash",
)

NON_DIGIT_PATTERN = re.compile(r"[^0-9]")


def as_text(value: Any) -> str:
    """Render a decoded JSON value as text the way JavaScript's String() does."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if isinstance(value, dict):
        return "[object Object]"
    if isinstance(value, list):
        return ",".join("" if item is None else as_text(item) for item in value)
    return str(value)


def is_falsy(value: Any) -> bool:
    """JSON values a JavaScript truthiness test rejects: null, false, 0 and ''."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return not value
    return False


def offer_terms(offer: Union[AAROffer, Mapping[str, Any]]) -> Tuple[Any, List[Any], Any]:
    """
    Pull (offerId, accepted asset ids, payTo) out of an offer.

    Decoded offers are read as-is rather than validated, so an offer with
    unexpected value types still yields a verdict.
    """
    if isinstance(offer, AAROffer):
        return offer.offer_id, [asset.asset for asset in offer.accepted_assets], offer.pay_to

    entries = offer.get("acceptedAssets") or []
    if not isinstance(entries, list):
        entries = []
    assets = [entry.get("asset") if isinstance(entry, dict) else None for entry in entries]
    return offer.get("offerId"), assets, offer.get("payTo")


def missing_field_reason(field_name: str) -> ReasonCode:
    """Map a receipt field name to its MISSING_<FIELD> reason code."""
    return ReasonCode("MISSING_" + field_name.upper())


def verify_aar_receipt(
    payment_header: Any,
    offer: Union[AAROffer, Mapping[str, Any]],
    enforce_pay_to_match: bool = False
) -> Verdict:
    """
    Verify an X-402-PAYMENT header against an AAR offer.

    Checks run in a fixed order and the first failure wins:
    header decodes, receipt present, required fields present, protocol type,
    offer binding, accepted asset, amount format, and (optionally) payTo.

    Args:
        payment_header: Raw X-402-PAYMENT header value (URL-safe base64 JSON)
        offer: The AAR offer the receipt must settle (model or decoded JSON)
        enforce_pay_to_match: Reject receipts paying a different address than
            the offer's payTo. Off by default; the demo only computes the mismatch.

    Returns:
        Verdict with ok=True and the typed receipt, or ok=False and a reason
    """
    offer_id, accepted_assets, offer_pay_to = offer_terms(offer)

    parsed = decode_header(payment_header)
    if is_falsy(parsed):
        return Verdict.failure(ReasonCode.INVALID_PAYMENT_HEADER_JSON)

    receipt = parsed.get("receipt") if isinstance(parsed, dict) else None
    if is_falsy(receipt):
        return Verdict.failure(ReasonCode.MISSING_RECEIPT)

    # Non-object receipts have no fields
    if not isinstance(receipt, dict):
        receipt = {}

    for field_name in REQUIRED_RECEIPT_FIELDS:
        if receipt.get(field_name) is None:
            return Verdict.failure(missing_field_reason(field_name))

    if receipt["type"] != AAR_RECEIPT_TYPE:
        return Verdict.failure(ReasonCode.BAD_TYPE)

    # Offer binding
    if not is_falsy(offer_id) and receipt["offerId"] != offer_id:
        return Verdict.failure(ReasonCode.OFFER_ID_MISMATCH)

    accepted = {as_text(asset or "").lower() for asset in accepted_assets}
    if accepted and as_text(receipt["asset"]).lower() not in accepted:
        return Verdict.failure(ReasonCode.WRONG_ASSET_OUT)

    if NON_DIGIT_PATTERN.search(as_text(receipt["amountOut"])):
        return Verdict.failure(ReasonCode.BAD_AMOUNT_OUT)

    pay_to = as_text(receipt["payTo"])
    if not is_falsy(offer_pay_to) and not is_falsy(receipt["payTo"]) and pay_to.lower() != as_text(offer_pay_to).lower():
        if enforce_pay_to_match:
            return Verdict.failure(ReasonCode.WRONG_PAYTO)
        logger.info(f"x402: Receipt payTo {pay_to} differs from offer payTo {offer_pay_to} (not enforced)")

    return Verdict.success(Receipt(**{name: as_text(receipt[name]) for name in REQUIRED_RECEIPT_FIELDS}))
