"""
Will lifecycle on top of the storage layer.

Modules:
- registry: create / list / activate / revoke, stats and search
- config: environment-driven store selection
- handler: event-dict entry point returning typed results
"""

__all__ = [
    "registry",
    "config",
    "handler",
]
