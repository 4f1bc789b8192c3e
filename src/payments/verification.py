"""
Payment Verification and Settlement

Turns a client's payment header into a verdict (before the job is
accepted) and into an on-chain transfer (right after acceptance), using
the x402 SDK's HTTP facilitator client. Neither function raises: failures
come back as results so the API can answer 402 or just log.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from x402.http import FacilitatorConfig, HTTPFacilitatorClient, decode_payment_signature_header
from x402.schemas import PaymentRequired

logger = logging.getLogger(__name__)

DEFAULT_FACILITATOR_URL = "https://x402.org/facilitator"


@dataclass
class VerificationResult:
    """Outcome of verifying a payment header."""
    is_valid: bool
    payer: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SettlementResult:
    """Outcome of settling a verified payment."""
    success: bool
    tx_hash: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None
    error: Optional[str] = None


@lru_cache
def get_facilitator(url: Optional[str] = None) -> HTTPFacilitatorClient:
    """One facilitator client per URL for the life of the process."""
    url = url or DEFAULT_FACILITATOR_URL
    logger.info(f"[x402] Using facilitator {url}")
    return HTTPFacilitatorClient(FacilitatorConfig(url=url))


async def verify_payment(
    payment_header: Optional[str],
    payment_required: PaymentRequired,
    facilitator: Optional[HTTPFacilitatorClient] = None,
    facilitator_url: Optional[str] = None,
) -> VerificationResult:
    """
    Verify a payment header with the facilitator.

    Args:
        payment_header: Value of PAYMENT-SIGNATURE or X-PAYMENT
        payment_required: Offer from create_payment_requirements
        facilitator: Client to use (the shared one for facilitator_url otherwise)
        facilitator_url: Facilitator base URL

    Returns:
        VerificationResult; is_valid is False on any problem
    """
    if not payment_header:
        return VerificationResult(is_valid=False, error="No payment signature provided")

    try:
        payload = decode_payment_signature_header(payment_header)
        client = facilitator or get_facilitator(facilitator_url)
        # A single offer is published per endpoint
        result = await client.verify(payload, payment_required.accepts[0])

        if result.is_valid:
            return VerificationResult(is_valid=True, payer=result.payer)

        return VerificationResult(
            is_valid=False,
            payer=result.payer,
            error=result.invalid_reason or "Payment verification failed",
        )

    except Exception as e:
        logger.error(f"[x402] Payment verification error: {e}")
        return VerificationResult(is_valid=False, error=str(e) or "Verification failed")


async def settle_payment(
    payment_header: str,
    payment_required: PaymentRequired,
    facilitator: Optional[HTTPFacilitatorClient] = None,
    facilitator_url: Optional[str] = None,
) -> SettlementResult:
    """
    Settle a verified payment on-chain through the facilitator.

    Returns:
        SettlementResult with the transaction hash on success
    """
    try:
        payload = decode_payment_signature_header(payment_header)
        client = facilitator or get_facilitator(facilitator_url)
        result = await client.settle(payload, payment_required.accepts[0])

        if result.success:
            return SettlementResult(
                success=True,
                tx_hash=result.transaction,
                network=result.network,
                payer=result.payer,
            )

        return SettlementResult(
            success=False,
            error=result.error_reason or "Settlement failed",
        )

    except Exception as e:
        logger.error(f"[x402] Payment settlement error: {e}")
        return SettlementResult(success=False, error=str(e) or "Settlement failed")
