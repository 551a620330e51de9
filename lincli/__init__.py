"""lincli - Linear command-line client.

This package resolves human-friendly Linear identifiers (team keys,
workflow-state names, estimate labels) into API UUIDs, backed by a
persisted per-organization cache and a TTL response cache.
"""

__version__ = "0.4.0"
SCRIPT_NAME = "lin"

__all__ = [
    "__version__",
    "SCRIPT_NAME",
]
