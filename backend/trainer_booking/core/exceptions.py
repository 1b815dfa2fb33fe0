# backend/trainer_booking/core/exceptions.py
"""
Domain-specific exceptions for the trainer booking service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message or "An error occurred processing your request",
            "code": self.code,
            "details": self.details if self.details else {},
        }


# Specific business exceptions


class InvalidSlotException(ValidationException):
    """Raised when a requested time slot is malformed or not offered by the trainer."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "The selected time slot is not offered by this trainer",
            code="INVALID_SLOT",
            details=details or {},
        )


class DateUnavailableException(ValidationException):
    """Raised when the requested date is in the past or not on one of the slot days."""

    def __init__(self, booking_date: str, reason: str):
        super().__init__(
            message=f"Date {booking_date} is not available for booking: {reason}",
            code="DATE_UNAVAILABLE",
            details={"booking_date": booking_date, "reason": reason},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "You already have a booking for this slot. Please choose another.",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class PaymentProviderException(ServiceException):
    """Raised when Stripe cannot be reached or rejects a request. Safe to retry."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        merged = {"retryable": True}
        merged.update(details or {})
        super().__init__(message=message, code="PAYMENT_PROVIDER_ERROR", details=merged)


class WebhookAuthenticationException(ValidationException):
    """Raised when an inbound webhook fails signature verification."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message=message, code="WEBHOOK_SIGNATURE_INVALID")


class WebhookPayloadException(ValidationException):
    """Raised when an authentic webhook carries an unusable payload."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="WEBHOOK_PAYLOAD_INVALID", details=details or {})


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
