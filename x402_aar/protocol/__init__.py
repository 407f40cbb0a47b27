# x402_aar/protocol/__init__.py
"""
x402 AAR (Accept-Asset-Range) protocol module.

Implements the pay-per-request flow: a resource answers unpaid requests with
HTTP 402 and encoded offers, and checks the receipt a client sends back.

Key components:
- codec: URL-safe base64 JSON header encoding/decoding
- verifier: receipt-vs-offer verification with reason codes
- responder: builds offers and maps verdicts to HTTP responses
- audit: JSON-lines audit trail of payment events

Configuration is loaded from environment variables via x402_aar.core.config.
"""

__version__ = "0.1.0"
