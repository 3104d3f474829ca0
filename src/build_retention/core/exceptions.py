"""
Build Retention Exception Hierarchy.

Defines all custom exceptions used across the retention engine, the
repository services it calls into, and the trigger surfaces.
"""

from typing import Any


class RetentionError(Exception):
    """
    Base exception for all Build Retention errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a RetentionError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RetentionError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - The policy file is missing or malformed
    - An environment override cannot be parsed
    - Policy values are invalid
    """

    def __init__(
        self,
        message: str,
        *,
        config_file: str | None = None,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            config_file: Path to configuration file if applicable
            env_var: Environment variable name if applicable
            config_key: Configuration key if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.config_file = config_file
        self.env_var = env_var
        self.config_key = config_key


class LookupFailure(RetentionError):
    """
    Raised when the repository service cannot resolve a path.

    The retention engine treats this as "nothing to process" for the
    affected subtree rather than a fatal error.
    """

    def __init__(
        self,
        message: str,
        *,
        repo_key: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if repo_key:
            details["repo_key"] = repo_key
        if path is not None:
            details["path"] = path

        super().__init__(message, details=details)
        self.repo_key = repo_key
        self.path = path


class ItemNotFoundError(LookupFailure):
    """Raised when a requested item does not exist in a repository."""

    def __init__(
        self,
        message: str = "Item not found",
        *,
        repo_key: str | None = None,
        path: str | None = None,
    ):
        super().__init__(message, repo_key=repo_key, path=path)


class ServiceOperationError(RetentionError):
    """
    A delete or move failed at the repository service boundary.

    Reported for the single candidate it concerns; sibling candidates
    are still processed.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        source: str | None = None,
        target: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ServiceOperationError.

        Args:
            message: Human-readable error message
            operation: Repository operation that failed (delete, move, create)
            source: Path the operation acted on
            target: Destination path for moves
            details: Optional structured data for debugging
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        if source:
            details["source"] = source
        if target:
            details["target"] = target

        super().__init__(message, details=details)
        self.operation = operation
        self.source = source
        self.target = target


class UnrecognizedActionError(RetentionError):
    """Raised when an action value is neither delete nor archive."""

    def __init__(self, action: object):
        super().__init__(
            f"Not a valid action: {action!r}",
            details={"action": str(action)},
        )
        self.action = action


def format_exception(error: Exception) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, RetentionError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
