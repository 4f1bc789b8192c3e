"""
x402 v2 Payment Requirements

Builds the PaymentRequired offer a paid endpoint returns with a 402.
Protocol types and the base64 header encoding come from the x402 SDK;
this module only turns our price and network settings into an offer.
"""

import math
from typing import Any, Optional

from x402.schemas import PaymentRequired

X402_VERSION = 2

# CAIP-2 chain ids
NETWORKS = {
    "base": "eip155:8453",
    "base-sepolia": "eip155:84532",
}

# USDC contracts (6 decimals)
USDC_BASE_MAINNET = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
USDC_BASE_SEPOLIA = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
USDC_DECIMALS = 6

MAX_TIMEOUT_SECONDS = 300

# EIP-712 domain of the USDC contract, needed for EIP-3009 signatures
USDC_EIP712_DOMAIN = {"name": "USD Coin", "version": "2"}


class PaymentConfigError(Exception):
    """Raised when the server is not configured to accept payments."""


def to_caip2(network: str) -> str:
    """Map a network alias to its CAIP-2 id. CAIP-2 ids pass through."""
    return NETWORKS.get(network, network)


def usdc_asset(caip2_network: str) -> str:
    """USDC contract for a network; anything but Base mainnet is Sepolia."""
    return USDC_BASE_MAINNET if caip2_network == NETWORKS["base"] else USDC_BASE_SEPOLIA


def to_atomic_amount(price: Any) -> str:
    """
    Convert a USD price ("$0.50", "0.50" or 0.5) to USDC atomic units.

    Rounds down, as the amount is a ceiling the payer signs for.
    """
    if isinstance(price, str):
        price = price.strip().lstrip("$")
    return str(math.floor(float(price) * 10 ** USDC_DECIMALS))


def create_payment_requirements(
    price: Any,
    network: str,
    resource_url: str,
    description: str,
    pay_to: Optional[str],
) -> PaymentRequired:
    """
    Create the x402 v2 PaymentRequired offer.

    Args:
        price: Price in USD
        network: "base", "base-sepolia" or a CAIP-2 id
        resource_url: URL of the paid resource
        description: Human-readable description of what is paid for
        pay_to: Receiving wallet address

    Raises:
        PaymentConfigError: When no receiving address is configured

    Returns:
        PaymentRequired with a single "exact" scheme offer
    """
    if not pay_to:
        raise PaymentConfigError("PAYMENT_RECEIVING_ADDRESS not configured")

    caip2_network = to_caip2(network)

    return PaymentRequired.model_validate({
        "x402Version": X402_VERSION,
        "error": "Payment required",
        "resource": {
            "url": resource_url,
            "description": description,
            "mimeType": "application/json",
        },
        "accepts": [
            {
                "scheme": "exact",
                "network": caip2_network,
                "asset": usdc_asset(caip2_network),
                "amount": to_atomic_amount(price),
                "payTo": pay_to,
                "maxTimeoutSeconds": MAX_TIMEOUT_SECONDS,
                "extra": dict(USDC_EIP712_DOMAIN),
            },
        ],
    })


def to_wire(payment_required: PaymentRequired) -> dict:
    """The offer as camelCase JSON, as it appears in a 402 body."""
    return payment_required.model_dump(mode="json", by_alias=True, exclude_none=True)
