"""
Domain Services Package

Architectural Intent:
- Contains domain services shared by the ticket lifecycle use cases
"""

from sdm_relay.domain.services.retry_policy import (
    RetryPolicy,
    RetryExhausted,
    no_backoff,
    exponential_backoff,
    retry_everything,
)

__all__ = [
    "RetryPolicy",
    "RetryExhausted",
    "no_backoff",
    "exponential_backoff",
    "retry_everything",
]
