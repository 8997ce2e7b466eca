"""Error taxonomy for the renderer and its collaborators."""

from __future__ import annotations


class AsciiRevealError(Exception):
    """Base class for package errors."""


class ImageLoadError(AsciiRevealError):
    """Source image could not be fetched, decoded, or read pixel by pixel."""


class InvalidConfigurationError(AsciiRevealError, ValueError):
    """Renderer configuration is out of range.

    Raised at configuration time; values are never clamped.
    """


class CheckoutValidationError(AsciiRevealError, ValueError):
    """Checkout payload is missing fields or carries an invalid price."""


class PaymentProviderError(AsciiRevealError):
    """Payment session service failed to create a session."""
