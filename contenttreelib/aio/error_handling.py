"""
Error handling proxy for ContentTreeLib.

This module provides ErrorHandlingProxy, which wraps a collaborator and
delegates failures of its coroutine methods to a pluggable ErrorPolicy.
"""

import asyncio
import functools
from typing import Any, List, Optional

from .error_policies import ContinueOnErrorsPolicy, ErrorPolicy, FailFastPolicy


class ErrorHandlingProxy:
    """
    Wraps an object and handles errors from its async methods through a policy.

    Uses the dynamic proxy pattern: every attribute lookup that misses on
    the proxy is forwarded to the wrapped object, and callables are
    wrapped so that a failing coroutine is handed to the policy. The first
    positional argument is reported to the policy as the node.

    Example:
        reconciler = ErrorHandlingProxy(PluginUsageReconciler(store, registry),
                                        CollectErrorsPolicy())
        await reconciler.update_enabled_plugins(node)
    """

    def __init__(self, target: Any, policy: Optional[ErrorPolicy] = None):
        """
        Initialize the proxy.

        Args:
            target: The object to wrap
            policy: Error handling policy (defaults to FailFastPolicy)
        """
        self._target = target
        self._policy = policy or FailFastPolicy()

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._target, name)

        # Properties and plain attributes pass through
        if not callable(attr):
            return attr

        @functools.wraps(attr)
        def wrapper(*args, **kwargs):
            result = attr(*args, **kwargs)
            if asyncio.iscoroutine(result):
                return self._handle_coroutine(result, name, *args, **kwargs)
            return result

        return wrapper

    async def _handle_coroutine(self, coro, operation: str, *args, **kwargs) -> Any:
        """
        Await a wrapped coroutine, routing any failure through the policy.

        Args:
            coro: The coroutine to execute
            operation: Name of the method being called
            *args: Original method arguments
            **kwargs: Original method keyword arguments

        Returns:
            The coroutine's result, or whatever the policy returns
        """
        try:
            return await coro
        except Exception as e:
            node = args[0] if args else None
            return await self._policy.handle(e, operation, node, *args, **kwargs)

    def get_policy(self) -> ErrorPolicy:
        return self._policy

    def set_policy(self, policy: ErrorPolicy) -> None:
        self._policy = policy

    def get_target(self) -> Any:
        """Get the wrapped object."""
        return self._target

    def get_chain(self) -> List[str]:
        """
        Return the class names from this proxy down to the innermost target.

        Returns:
            List of class names
        """
        chain = []
        current = self
        while current is not None:
            chain.append(current.__class__.__name__)
            current = current._target if isinstance(current, ErrorHandlingProxy) else None
        return chain

    def __repr__(self) -> str:
        return f"ErrorHandlingProxy({self._target!r}, policy={self._policy.__class__.__name__})"


def create_resilient_proxy(target: Any, strict: bool = False, verbose: bool = True) -> ErrorHandlingProxy:
    """
    Convenience function to create an error-handling proxy.

    Args:
        target: The object to wrap
        strict: If True, use FailFastPolicy; if False, use ContinueOnErrorsPolicy
        verbose: If True, log warnings for errors (only applies when strict=False)

    Returns:
        An ErrorHandlingProxy configured appropriately
    """
    if strict:
        policy = FailFastPolicy()
    else:
        policy = ContinueOnErrorsPolicy(verbose=verbose)
    return ErrorHandlingProxy(target, policy)
