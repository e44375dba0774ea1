"""
Common utilities for will-ledger.

Modules:
- errors: typed error hierarchy shared by the store adapters and registry
- logger: JSON-line logging setup
- payload: versioned opaque payload sealing
- rate_limiter: sliding-window throttle for the HTTP gateway
"""

__all__ = [
    "errors",
    "logger",
    "payload",
    "rate_limiter",
]
