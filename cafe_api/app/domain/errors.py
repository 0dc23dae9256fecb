"""Error taxonomy for the order and payment pipeline.

Every error carries a stable ``code`` used as the i18n catalog key, an HTTP
status class and the parameters needed to render a localized message. An
optional ``hint`` is a key into the catalog's hints, rendered with the same
parameters. Route handlers never build messages themselves; the application
exception handler renders them from :mod:`cafe_api.app.i18n`.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for errors raised by the order pipeline."""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, detail: str | None = None, *, hint: str | None = None, **params: Any) -> None:
        super().__init__(detail or self.code)
        self.detail = detail
        self.hint = hint
        self.params = params


class ValidationError(DomainError):
    """Client-caused input problem. Never retried."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(DomainError):
    """The request is valid but collides with concurrent state."""

    code = "CONFLICT"
    status_code = 409


class CompensationFailed(DomainError):
    """A compensating delete failed and left an orphan order header."""

    code = "COMPENSATION_FAILED"
    status_code = 500


class MissingFields(ValidationError):
    code = "MISSING_FIELDS"


class InvalidTable(ValidationError):
    code = "INVALID_TABLE"


class InvalidMenuItem(ValidationError):
    code = "INVALID_MENU_ITEM"


class MenuItemUnavailable(InvalidMenuItem):
    code = "MENU_ITEM_UNAVAILABLE"


class InvalidCustomization(ValidationError):
    code = "INVALID_CUSTOMIZATION"


class PromoNotFound(ValidationError):
    code = "PROMO_NOT_FOUND"


class PromoExpired(PromoNotFound):
    code = "PROMO_EXPIRED"


class BelowMinimumPurchase(ValidationError):
    code = "BELOW_MINIMUM_PURCHASE"


class UsageLimitReached(ValidationError):
    code = "USAGE_LIMIT_REACHED"


class PromoUsageRaceLost(UsageLimitReached):
    """Validation passed but a concurrent redemption took the last use."""

    status_code = 409


class TableOccupied(ConflictError):
    code = "TABLE_OCCUPIED"


class InvalidTransition(ConflictError):
    code = "INVALID_TRANSITION"


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"


class OrderItemNotFound(NotFoundError):
    code = "ORDER_ITEM_NOT_FOUND"


class PaymentNotFound(NotFoundError):
    code = "PAYMENT_NOT_FOUND"


class PaymentMethodInvalid(ValidationError):
    code = "PAYMENT_METHOD_INVALID"


class AmountMismatch(ValidationError):
    code = "AMOUNT_MISMATCH"


class OrderNotPayable(ValidationError):
    code = "ORDER_NOT_PAYABLE"


class ProofNotAccepted(ValidationError):
    code = "PROOF_NOT_ACCEPTED"


class InvalidProofImage(ValidationError):
    code = "INVALID_PROOF_IMAGE"


class ProofTooLarge(InvalidProofImage):
    code = "PROOF_TOO_LARGE"
    status_code = 413


class ProofTypeNotAllowed(InvalidProofImage):
    code = "PROOF_TYPE_NOT_ALLOWED"
    status_code = 415


class RatingOutOfRange(ValidationError):
    code = "RATING_OUT_OF_RANGE"


class DuplicateRating(ConflictError):
    code = "DUPLICATE_RATING"
