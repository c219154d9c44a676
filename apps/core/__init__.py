"""
Core app - Shared abstractions and utilities.

This app provides framework-agnostic building blocks for:
- Domain error taxonomy (exceptions)
- String similarity primitives used by address matching (similarity)
- Ordered fallback execution (strategies)

Nothing in here touches the database directly.
"""
