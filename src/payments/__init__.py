"""
x402 Payments

Pay-per-request gating for the analysis endpoint, on top of the x402 SDK:
- Requirements: the 402 offer built from price and network settings
- Verification: header -> verdict, verdict -> settlement
"""

from x402.http import encode_payment_required_header

from .requirements import (
    X402_VERSION,
    PaymentConfigError,
    create_payment_requirements,
    to_caip2,
    to_wire,
)
from .verification import (
    SettlementResult,
    VerificationResult,
    get_facilitator,
    settle_payment,
    verify_payment,
)

__all__ = [
    "X402_VERSION",
    "PaymentConfigError",
    "create_payment_requirements",
    "encode_payment_required_header",
    "to_caip2",
    "to_wire",
    "SettlementResult",
    "VerificationResult",
    "get_facilitator",
    "settle_payment",
    "verify_payment",
]
