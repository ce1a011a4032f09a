"""Exception hierarchy for kernelshap.

Every error carries a stable ``ErrorCode`` and a ``details`` mapping that
serializes with ``to_dict``. Validation errors additionally carry a
``ValidationReason`` so callers can branch on the failure without matching
on exception classes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    # General errors (1xxx)
    UNKNOWN_ERROR = "KS1001"
    CONFIGURATION_ERROR = "KS1002"

    # Validation errors (4xxx)
    VALIDATION_ERROR = "KS4000"
    EMPTY_BACKGROUND = "KS4001"
    FEATURE_COUNT_MISMATCH = "KS4002"
    OUTPUT_COUNT_MISMATCH = "KS4003"
    NON_NUMERIC_FEATURE = "KS4004"

    # Prediction provider errors (7xxx)
    PREDICTION_PROVIDER_ERROR = "KS7000"
    PREDICTION_COUNT_MISMATCH = "KS7001"


class ValidationReason(str, Enum):
    """Specific reason a validation failed."""

    EMPTY_BACKGROUND = "empty_background"
    FEATURE_COUNT_MISMATCH = "feature_count_mismatch"
    OUTPUT_COUNT_MISMATCH = "output_count_mismatch"
    NON_NUMERIC_FEATURE = "non_numeric_feature"
    INVALID_CONFIG = "invalid_config"


class KernelShapException(Exception):
    """Base class for kernelshap errors.

    Subclasses set ``message`` and ``error_code`` as class attributes; both
    can be overridden per instance.
    """

    message: str = "KernelSHAP error"
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message if message is not None else type(self).message
        self.error_code = error_code if error_code is not None else type(self).error_code
        self.details: dict[str, Any] = dict(details) if details else {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, suitable for structured logs and API payloads."""
        payload: dict[str, Any] = {"code": self.error_code.value, "message": self.message}
        payload["details"] = self.details or None
        return {"error": payload}

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"error_code={self.error_code.value}, details={self.details!r})"
        )


# ----------------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------------


class ValidationError(KernelShapException):
    """Input or configuration rejected before any prediction is made.

    Args:
        message: Error message.
        field: Offending field, argument or instance position.
        value: Offending value, stored as its string form.
        constraint: The rule that was broken.
        reason: Overrides the class's ``ValidationReason``.
    """

    message = "Invalid input"
    error_code = ErrorCode.VALIDATION_ERROR
    reason: ValidationReason = ValidationReason.INVALID_CONFIG

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        reason: ValidationReason | None = None,
        **kwargs: Any,
    ) -> None:
        self.reason = reason if reason is not None else type(self).reason

        details: dict[str, Any] = {"reason": self.reason.value}
        details.update(kwargs.pop("details", None) or {})
        if field is not None:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if constraint is not None:
            details["constraint"] = constraint

        super().__init__(message, details=details, **kwargs)


class ConfigurationError(ValidationError):
    """Explainer configuration is invalid."""

    message = "Invalid explainer configuration"
    error_code = ErrorCode.CONFIGURATION_ERROR
    reason = ValidationReason.INVALID_CONFIG


class EmptyBackgroundError(ValidationError):
    """Background dataset has no rows."""

    message = "Background dataset must contain at least one row"
    error_code = ErrorCode.EMPTY_BACKGROUND
    reason = ValidationReason.EMPTY_BACKGROUND


class FeatureCountMismatchError(ValidationError):
    """An instance does not have the background's feature count."""

    message = "Feature count does not match the background"
    error_code = ErrorCode.FEATURE_COUNT_MISMATCH
    reason = ValidationReason.FEATURE_COUNT_MISMATCH


class OutputCountMismatchError(ValidationError):
    """Output vectors of one explain call disagree in length."""

    message = "Output count is inconsistent"
    error_code = ErrorCode.OUTPUT_COUNT_MISMATCH
    reason = ValidationReason.OUTPUT_COUNT_MISMATCH


class InvalidFeatureValueError(ValidationError):
    """A feature or output value is not numeric."""

    message = "Feature value must be numeric"
    error_code = ErrorCode.NON_NUMERIC_FEATURE
    reason = ValidationReason.NON_NUMERIC_FEATURE


# ----------------------------------------------------------------------------
# Prediction provider
# ----------------------------------------------------------------------------


class PredictionProviderError(KernelShapException):
    """The prediction provider raised or misbehaved.

    The provider's own exception, if any, is chained as ``__cause__``. Calls
    are not retried.

    Args:
        message: Error message.
        batch_size: Rows in the request that failed.
    """

    message = "Prediction provider failed"
    error_code = ErrorCode.PREDICTION_PROVIDER_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        batch_size: int | None = None,
        **kwargs: Any,
    ) -> None:
        details = dict(kwargs.pop("details", None) or {})
        if batch_size is not None:
            details["batch_size"] = batch_size
        super().__init__(message, details=details, **kwargs)


class PredictionCountMismatchError(PredictionProviderError):
    """The provider returned a different number of outputs than inputs."""

    message = "Prediction provider returned the wrong number of outputs"
    error_code = ErrorCode.PREDICTION_COUNT_MISMATCH
