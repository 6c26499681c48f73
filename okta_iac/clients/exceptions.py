"""Exception classes for API clients and reconciliation."""

from typing import Any, Optional


class APIError(Exception):
    """Base exception for API-related errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code if available
            response_text: Response body text if available
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_text = response_text

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.response_text:
            # Truncate response text for readability
            response_preview = self.response_text[:200]
            if len(self.response_text) > 200:
                response_preview += "..."
            parts.append(f"Response: {response_preview}")
        return " | ".join(parts)


class AuthenticationError(APIError):
    """Raised when authentication fails (401)."""
    pass


class RateLimitError(APIError):
    """Raised when rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message, status_code, response_text)
        self.retry_after = retry_after


class ClientError(APIError):
    """Raised for 4xx client errors."""
    pass


class ServerError(APIError):
    """Raised for 5xx server errors."""
    pass


class NetworkError(APIError):
    """Raised for network-related errors."""
    pass


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class ValidationError(APIError):
    """Raised when response data has an unexpected shape."""
    pass


class ResourceNotFoundError(ClientError):
    """Raised when a requested resource is not found (404)."""
    pass


class OktaError(APIError):
    """Okta-specific error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        error_id: Optional[str] = None,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ) -> None:
        """Initialize Okta error.

        Args:
            message: Error message
            error_code: Okta error code (e.g. E0000007)
            error_id: Okta error ID for support
            status_code: HTTP status code
            response_text: Response body text
        """
        super().__init__(message, status_code, response_text)
        self.error_code = error_code
        self.error_id = error_id


class ReconcileError(Exception):
    """Base exception for reconciliation errors."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        object_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.resource_type = resource_type
        self.object_id = object_id


class FeatureUnavailableError(ReconcileError):
    """Raised when the org does not support a feature an operation needs."""

    def __init__(self, feature: str, resource_type: Optional[str] = None) -> None:
        subject = resource_type or "this operation"
        super().__init__(
            f"{subject} requires the '{feature}' feature, "
            "which is not available for this organization",
            resource_type=resource_type,
        )
        self.feature = feature


class AmbiguousMatchError(ReconcileError):
    """Raised when a natural-key lookup matches more than one object."""

    def __init__(self, name: str, object_type: str, matches: int) -> None:
        super().__init__(
            f"Found {matches} objects named '{name}' with type '{object_type}'; "
            "use a unique name or reference the object by id",
        )
        self.name = name
        self.object_type = object_type
        self.matches = matches


class RemoteCallError(ReconcileError):
    """Raised when a remote call fails during a specific reconciliation step."""

    def __init__(
        self,
        step: str,
        cause: Exception,
        resource_type: Optional[str] = None,
        object_id: Optional[str] = None,
    ) -> None:
        label = resource_type or "resource"
        super().__init__(
            f"failed to {step} for {label}: {cause}",
            resource_type=resource_type,
            object_id=object_id,
        )
        self.step = step
        self.cause = cause


class PartialSuccessError(RemoteCallError):
    """Raised when the main object was mutated but a follow-up step failed.

    The state recorded so far (including the identifier) is attached so the
    caller keeps tracking the remote object.
    """

    def __init__(
        self,
        step: str,
        cause: Exception,
        state: Any,
        resource_type: Optional[str] = None,
        object_id: Optional[str] = None,
    ) -> None:
        super().__init__(step, cause, resource_type=resource_type, object_id=object_id)
        self.state = state
