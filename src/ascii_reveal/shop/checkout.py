"""Checkout request validation and payment session delegation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Protocol

from ascii_reveal.errors import CheckoutValidationError, PaymentProviderError

_REQUIRED_FIELDS = ("productId", "title", "price")


@dataclass(frozen=True)
class CheckoutRequest:
    """A single "buy now" line item."""

    product_id: str
    title: str
    price: Decimal
    image_url: Optional[str] = None

    @property
    def unit_amount(self) -> int:
        """Price in the currency's minor unit (cents)."""

        return int((self.price * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CheckoutRequest":
        missing = [name for name in _REQUIRED_FIELDS if not payload.get(name)]
        if missing:
            raise CheckoutValidationError(f"Missing required fields: {', '.join(missing)}")
        raw_price = payload["price"]
        if isinstance(raw_price, bool):
            raise CheckoutValidationError("price must be a number.")
        try:
            price = Decimal(str(raw_price))
        except InvalidOperation as exc:
            raise CheckoutValidationError(f"price must be a number, got {raw_price!r}.") from exc
        if not price.is_finite() or price <= 0:
            raise CheckoutValidationError(f"price must be positive, got {raw_price!r}.")
        image = payload.get("image") or payload.get("imageURL")
        return cls(
            product_id=str(payload["productId"]),
            title=str(payload["title"]),
            price=price,
            image_url=str(image) if image else None,
        )


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str

    def to_json(self) -> Dict[str, str]:
        return {"sessionId": self.session_id, "url": self.redirect_url}


class PaymentSessionService(Protocol):
    """Hosted-checkout provider. Raises PaymentProviderError on failure."""

    def create_session(self, request: CheckoutRequest, success_url: str, cancel_url: str) -> CheckoutSession:
        ...


def create_checkout(
    payload: Mapping[str, Any],
    service: PaymentSessionService,
    site_url: str,
) -> CheckoutSession:
    """Validate a checkout payload and ask the provider for a hosted session."""

    request = CheckoutRequest.from_payload(payload)
    success_url = f"{site_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{site_url}/checkout/cancel"
    session = service.create_session(request, success_url=success_url, cancel_url=cancel_url)
    if not session.redirect_url:
        raise PaymentProviderError(f"Provider returned no redirect URL for session {session.session_id}.")
    return session
