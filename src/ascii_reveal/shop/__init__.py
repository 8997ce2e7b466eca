"""Shop checkout collaborator contract."""

from ascii_reveal.shop.checkout import (
    CheckoutRequest,
    CheckoutSession,
    PaymentSessionService,
    create_checkout,
)

__all__ = ["CheckoutRequest", "CheckoutSession", "PaymentSessionService", "create_checkout"]
