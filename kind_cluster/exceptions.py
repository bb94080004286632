"""Custom exceptions for kind cluster management."""

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class KindClusterError(Exception):
    """Base exception for all kind cluster errors."""

    def __init__(self, message: str, details: str | None = None):
        """Initialize the exception.

        Args:
            message: Short summary of the failure
            details: Additional details naming the resource and cause
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message

    def with_context(self, context: str) -> "KindClusterError":
        """Prefix the message with the enclosing operation and return self."""
        self.message = f"{context}: {self.message}"
        self.args = (self.format_message(),)
        return self


class ValidationError(KindClusterError):
    """Exception raised for validation errors."""

    pass


class PortOutOfRangeError(ValidationError):
    """Raised when a port value does not fit a signed 32-bit integer."""

    def __init__(self, field: str, value: int):
        self.field = field
        self.value = value
        super().__init__(
            f"{field} value {value} (must be between {INT32_MIN} and {INT32_MAX}): "
            "port value out of valid range"
        )


class ConfigurationError(KindClusterError):
    """Exception raised for configuration errors."""

    pass


class TomlNormalizationError(KindClusterError):
    """Exception describing a TOML document that could not be normalized."""

    pass


class ProvisioningError(KindClusterError):
    """Exception raised when the kind provisioning engine fails."""

    pass


class ClusterReadError(KindClusterError):
    """Exception raised when connection details cannot be read from a cluster."""

    pass


class DeletionError(KindClusterError):
    """Exception raised when a cluster could not be deleted."""

    pass


class DeleteTimeoutError(DeletionError):
    """Exception raised when cluster deletion does not finish in time."""

    pass


class CredentialStoreError(KindClusterError):
    """Exception raised for kubeconfig read/write errors."""

    pass


class UpdateNotSupportedError(KindClusterError):
    """Exception raised when an in-place update is requested."""

    pass


class StateError(KindClusterError):
    """Exception raised for resource state storage errors."""

    pass
