# x402_aar/protocol/responder.py
"""
Offer responder for the x402 AAR flow.

Without a payment header the responder returns HTTP 402 carrying two offers:
- X-402-OFFER: a standard single-price offer
- X-402-AAR-OFFER: the Accept-Asset-Range offer (accepted assets + policy)

With a payment header the receipt is verified against the AAR offer and the
verdict is mapped to 200 (verified) or 402 (failed, with X-402-AAR-ERROR).
"""
import logging
import time
from typing import Optional

from starlette.responses import JSONResponse

from x402_aar.api.models.offer import AAROffer, MerchantConfig, StandardOffer
from x402_aar.api.models.receipt import Verdict
from x402_aar.protocol.audit import (
    log_payment_failed,
    log_payment_received,
    log_payment_required_sent,
    log_payment_verified,
)
from x402_aar.protocol.codec import encode_header
from x402_aar.protocol.verifier import verify_aar_receipt

logger = logging.getLogger(__name__)

# x402 AAR header names
X_402_PAYMENT_HEADER = "X-402-PAYMENT"
X_402_OFFER_HEADER = "X-402-OFFER"
X_402_AAR_OFFER_HEADER = "X-402-AAR-OFFER"
X_402_AAR_ERROR_HEADER = "X-402-AAR-ERROR"

VERIFY_FAIL_CODE = "VERIFY_FAIL"


def current_nonce() -> int:
    """Offer nonce: wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


class OfferResponder:
    """
    Builds offers for one merchant and answers paid/unpaid resource requests.

    The merchant template is passed in explicitly so a process can serve
    several merchants and tests can use their own.
    """

    def __init__(self, merchant: MerchantConfig):
        self.merchant = merchant

    @property
    def offer_id(self) -> str:
        return self.merchant.offer_id

    def build_standard_offer(self) -> StandardOffer:
        merchant = self.merchant
        return StandardOffer(
            offer_id=merchant.offer_id,
            description=merchant.description,
            amount=merchant.price_amount,
            asset=merchant.price_asset,
            chain=merchant.chain,
            pay_to=merchant.pay_to,
            nonce=current_nonce(),
        )

    def build_aar_offer(self) -> AAROffer:
        merchant = self.merchant
        return AAROffer(
            offer_id=merchant.offer_id,
            accepted_assets=list(merchant.accepted_assets),
            route_uri=merchant.route_uri,
            min_settle_window_ms=merchant.min_settle_window_ms,
            policy=merchant.policy,
            pay_to=merchant.pay_to,
        )

    def verify(self, payment_header: str) -> Verdict:
        """Verify a raw X-402-PAYMENT value against this merchant's AAR offer."""
        return verify_aar_receipt(
            payment_header,
            self.build_aar_offer(),
            enforce_pay_to_match=self.merchant.enforce_pay_to_match,
        )

    def payment_required(self, client_ip: Optional[str] = None) -> JSONResponse:
        """
        Create the HTTP 402 response carrying both offers.

        Returns:
            JSONResponse with 402 status, X-402-OFFER and X-402-AAR-OFFER headers
        """
        standard_offer = self.build_standard_offer()
        aar_offer = self.build_aar_offer()
        accepted = [asset.asset for asset in aar_offer.accepted_assets]

        logger.info(f"x402: Returning 402 with offerId={self.offer_id}")
        logger.info(f"x402: AAR acceptedAssets: {accepted}")
        log_payment_required_sent(
            client_ip=client_ip,
            offer_id=self.offer_id,
            accepted_assets=accepted,
            pay_to=self.merchant.pay_to,
        )

        return JSONResponse(
            status_code=402,
            content={
                "ok": False,
                "message": "Payment Required. Use x402 AAR flow.",
                "offerId": self.offer_id,
            },
            headers={
                X_402_OFFER_HEADER: encode_header(standard_offer),
                X_402_AAR_OFFER_HEADER: encode_header(aar_offer),
            }
        )

    def handle(self, payment_header: Optional[str], client_ip: Optional[str] = None) -> JSONResponse:
        """
        Answer a resource request.

        Args:
            payment_header: X-402-PAYMENT value, or None when absent
            client_ip: Requesting client, for the audit trail

        Returns:
            402 with offers (no payment), 200 (verified) or 402 with
            X-402-AAR-ERROR (verification failed)
        """
        if not payment_header:
            return self.payment_required(client_ip)

        log_payment_received(client_ip=client_ip, header_length=len(payment_header))
        verdict = self.verify(payment_header)

        if verdict.ok:
            receipt = verdict.receipt
            logger.info(f"x402: Payment verified for offerId={self.offer_id} tx={receipt.tx_hash}")
            log_payment_verified(
                client_ip=client_ip,
                offer_id=receipt.offer_id,
                quote_id=receipt.quote_id,
                chain=receipt.chain,
                asset=receipt.asset,
                amount_out=receipt.amount_out,
                tx_hash=receipt.tx_hash,
                pay_to=receipt.pay_to,
            )
            return JSONResponse(
                status_code=200,
                content={
                    "ok": True,
                    "message": "Payment verified (mock). Delivering resource.",
                    "offerId": self.offer_id,
                }
            )

        reason = verdict.reason.value
        logger.warning(f"x402: Payment verification failed: {reason}")
        log_payment_failed(client_ip=client_ip, reason=reason, stage="verify")
        return JSONResponse(
            status_code=402,
            content={
                "ok": False,
                "error": "Payment verification failed",
                "reason": reason,
            },
            headers={
                X_402_AAR_ERROR_HEADER: encode_header({"code": VERIFY_FAIL_CODE, "reason": reason}),
            }
        )
