"""
Domain-specific exceptions.

Custom exceptions for validation, security and upstream failures of the
inventory insights pipeline.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize domain error.

        Args:
            message: Error message describing the issue.
        """
        self.message = message
        super().__init__(self.message)


class DomainValidationError(DomainError):
    """
    Exception raised when request parameters fail validation.

    No catalog mutation is attempted once this has been raised.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        """
        Initialize validation error.

        Args:
            message: Human readable message.
            field: Name of the offending input field, when there is one.
        """
        super().__init__(message)
        self.field = field


class SecurityCheckError(DomainError):
    """Exception raised when the anti-forgery token is missing or invalid."""

    def __init__(self, message: str = "Security check failed") -> None:
        super().__init__(message)


class UpstreamError(DomainError):
    """Exception raised when the catalog, the term store or the network fails."""

    def __init__(self, operation: str, reason: str) -> None:
        """
        Initialize upstream error.

        Args:
            operation: The catalog operation that failed.
            reason: The reason for the failure.
        """
        super().__init__(f"Catalog operation '{operation}' failed: {reason}")
        self.operation = operation
        self.reason = reason


class ProductNotFoundError(DomainError):
    """Exception raised when a product is not found."""

    def __init__(self, product_id: int) -> None:
        """
        Initialize product not found error.

        Args:
            product_id: The ID of the product that was not found.
        """
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id


class RecentSearchNotFoundError(DomainError):
    """Exception raised when a recent search index does not exist."""

    def __init__(self, index: int) -> None:
        super().__init__(f"No recent search at position {index}")
        self.index = index
