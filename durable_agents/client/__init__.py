"""Outbound client module."""

from .retry_client import CallResult, IRetryClient, RetryClient

__all__ = ["CallResult", "IRetryClient", "RetryClient"]
