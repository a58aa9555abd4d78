"""
Standardized exception hierarchy for stepledger
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class StepLedgerError(Exception):
    """
    Base exception for all stepledger errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise StepLedgerError(
            message="Failed to save step record",
            user_id="uid-123",
            operation="sync_window",
            context={"date": "2024-06-08"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    # Expected outcomes log below ERROR
    log_level = logging.ERROR

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Input)
# ==========================================

class ValidationError(StepLedgerError):
    """
    Raised when input fails validation

    Examples:
    - Negative step totals
    - Malformed YYYY-MM-DD dates

    Example:
        raise ValidationError(
            message="Total steps cannot be negative",
            field="total_steps",
            value=-5
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Document Store Errors
# ==========================================

class StoreError(StepLedgerError):
    """
    Base class for document store errors
    """
    pass


class StoreWriteError(StoreError):
    """Document store write failed"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        key: Optional[str] = None,
        **kwargs
    ):
        self.collection = collection
        self.key = key
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"collection": collection, "key": key},
            **kwargs
        )


# ==========================================
# Health Source Errors
# ==========================================

class ExternalSourceError(StepLedgerError):
    """
    Base class for on-device data source failures
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        **kwargs
    ):
        self.source = source
        context = kwargs.pop("context", None) or {}
        context.setdefault("source", source)
        super().__init__(
            message=message,
            user_message=f"We're having trouble reading from {source or 'your health data'}. Please try again later.",
            context=context,
            **kwargs
        )


class SourceReadError(ExternalSourceError):
    """Health source query failed (recovered locally as zero steps)"""

    log_level = logging.WARNING

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        self.query = query
        super().__init__(
            message=message,
            source="HealthSource",
            context={"query": query},
            **kwargs
        )


# ==========================================
# Authentication & Authorization
# ==========================================

class AuthenticationError(StepLedgerError):
    """No authenticated identity"""

    def __init__(
        self,
        message: str = "User must be authenticated to perform this operation",
        **kwargs
    ):
        super().__init__(
            message=message,
            user_message="Please sign in to continue.",
            **kwargs
        )


class AuthorizationError(StepLedgerError):
    """Authenticated identity differs from the target user"""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        resource: Optional[str] = None,
        **kwargs
    ):
        self.resource = resource
        super().__init__(
            message=message,
            user_message=f"You don't have permission to access {resource or 'this resource'}.",
            context={"resource": resource},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(StepLedgerError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Domain Invariant Violations (business outcomes)
# ==========================================

class DomainInvariantViolation(StepLedgerError):
    """A business rule refused the operation; callers handle this as a normal outcome"""

    log_level = logging.INFO


class BonusAlreadyClaimedError(DomainInvariantViolation):
    """Today's daily bonus was already claimed"""

    def __init__(self, message: str = "Daily bonus already claimed today", **kwargs):
        super().__init__(
            message=message,
            user_message="You've already claimed today's bonus. Come back tomorrow!",
            **kwargs
        )


class NoBonusesRemainingError(DomainInvariantViolation):
    """Monthly bonus allotment is used up"""

    def __init__(self, message: str = "No daily bonuses remaining this month", **kwargs):
        super().__init__(
            message=message,
            user_message="You've used all of this month's bonuses.",
            **kwargs
        )
