"""
Exception types raised by the ENS SDK.
"""

from __future__ import annotations


class ENSError(Exception):
    """Base class for all SDK errors."""


class InvalidNameError(ENSError, ValueError):
    """Malformed name, label, encoded labelhash or content URI."""


class ContractCallError(ENSError):
    """A contract call or transaction was reverted by the remote contract."""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method} reverted: {message}")
        self.method = method
        self.message = message


class NotFoundError(ENSError, LookupError):
    """A record the operation depends on (resolver, reverse registrar) is not set."""


class PreconditionError(ENSError):
    """An operation was attempted before its on-chain precondition holds."""
