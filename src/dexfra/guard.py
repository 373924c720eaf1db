"""Offer selection and spending ceiling enforcement."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from .errors import CeilingExceededError, InvalidChallengeError
from .money import ceiling_to_base_units
from .protocol import PaymentOffer

logger = logging.getLogger(__name__)


def select_offer(offers: Sequence[PaymentOffer], preferred_network: str) -> PaymentOffer:
    """First offer on the preferred network (case-insensitive), else the first offer."""
    if not offers:
        raise InvalidChallengeError("No payment requirements to select from")
    target = preferred_network.lower()
    for offer in offers:
        if offer.network.lower() == target:
            return offer
    logger.debug("No offer on %s; falling back to %s", preferred_network, offers[0].network)
    return offers[0]


def enforce_ceiling(offer: PaymentOffer, max_amount: Optional[Decimal | float | int | str]) -> None:
    """
    Raise CeilingExceededError if the offer asks for more than ``max_amount``.

    ``max_amount`` is in USDC; comparison happens on integer base units.
    ``None`` means no ceiling: every amount passes.
    """
    if max_amount is None:
        return
    max_base_units = ceiling_to_base_units(max_amount)
    required = offer.required_base_units
    if required > max_base_units:
        raise CeilingExceededError(required=str(required), max=str(max_base_units))
