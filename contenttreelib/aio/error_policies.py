"""
Error handling policies for ContentTreeLib.

Derived-state maintenance (plugin reconciliation, default re-application)
runs after the primary write has already succeeded. These policies decide
whether a failure in that follow-up work propagates to the caller or is
recorded and skipped.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List


logger = logging.getLogger(__name__)


def _describe(node: Any) -> str:
    """Short label for the node an operation was working on."""
    if node is None:
        return 'unknown'
    if hasattr(node, 'display_name'):
        return node.display_name()
    return str(node)


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for handling errors raised
    by a wrapped collaborator.
    """

    @abstractmethod
    async def handle(self, error: Exception, operation: str, node: Any, *args, **kwargs) -> Any:
        """
        Handle an error raised by a wrapped operation.

        Args:
            error: The exception that was raised
            operation: Name of the method that failed (e.g. 'update_enabled_plugins')
            node: The content node being processed when the error occurred
            *args: Additional positional arguments from the failed call
            **kwargs: Additional keyword arguments from the failed call

        Returns:
            The value to hand back in place of the operation's result,
            or re-raises to stop the calling operation.
        """
        pass

    def _record(self, error: Exception, operation: str, node: Any) -> Dict[str, Any]:
        return {
            'node_id': getattr(node, 'id', None),
            'operation': operation,
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error)
        }


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error.

    This is the default: a failed reconciliation surfaces to the caller
    of insert/update/delete even though the primary write has landed.
    """

    async def handle(self, error: Exception, operation: str, node: Any, *args, **kwargs) -> Any:
        """Re-raise the error immediately."""
        raise error


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that logs errors and lets the calling operation finish.

    Errors are kept for later inspection.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log a warning for every error
        """
        self.errors: List[Dict[str, Any]] = []
        self.verbose = verbose

    async def handle(self, error: Exception, operation: str, node: Any, *args, **kwargs) -> Any:
        self.errors.append(self._record(error, operation, node))
        if self.verbose:
            logger.warning("Error in %s for '%s': %s", operation, _describe(node), error)
        return None

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        by_type: Dict[str, int] = {}
        for record in self.errors:
            by_type[record['error_type']] = by_type.get(record['error_type'], 0) + 1
        return {
            'total_errors': len(self.errors),
            'by_type': by_type,
            'errors': self.errors
        }


class CollectErrorsPolicy(ErrorPolicy):
    """
    Policy that collects all errors without logging, for batch processing.

    Useful when a bulk operation (e.g. adding a language) should report
    every reconciliation failure at the end.
    """

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    async def handle(self, error: Exception, operation: str, node: Any, *args, **kwargs) -> Any:
        self.errors.append(self._record(error, operation, node))
        return None


class ThresholdPolicy(ErrorPolicy):
    """
    Policy that tolerates errors up to a threshold, then fails fast.

    Some failures are expected (e.g. a flaky registry), but too many
    indicate a systemic problem that should halt processing.
    """

    def __init__(self, max_errors: int = 10, verbose: bool = True):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum errors to tolerate before failing
            verbose: If True, log a warning for every tolerated error
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.verbose = verbose
        self.errors: List[Exception] = []

    async def handle(self, error: Exception, operation: str, node: Any, *args, **kwargs) -> Any:
        """Handle error if under threshold, otherwise raise."""
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise RuntimeError(f"Error threshold exceeded ({self.max_errors} errors)") from error

        if self.verbose:
            logger.warning(
                "[%d/%d] Error in %s for '%s': %s",
                self.error_count, self.max_errors, operation, _describe(node), error
            )
        return None
