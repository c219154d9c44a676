"""
Ordered fallback execution.

Replaces nested try/except fallback chains with an explicit list:

    user = try_in_order([
        ("existing mapping", lookup_by_mapping),
        ("matching email", link_by_email),
        ("new profile", create_profile),
    ], identity)

Each strategy returns a result, or None to pass. A strategy raising one of
the `recoverable` exceptions is logged and skipped; if every strategy passes
or fails, the last recoverable error is re-raised (or None is returned when
nothing raised).
"""
import logging
from typing import Any, Callable, Optional, Sequence, Tuple, Type

from django.db import DatabaseError

from .exceptions import UpstreamError

logger = logging.getLogger(__name__)

Strategy = Tuple[str, Callable[..., Any]]


def try_in_order(
    strategies: Sequence[Strategy],
    *args,
    recoverable: Tuple[Type[BaseException], ...] = (DatabaseError, UpstreamError),
    **kwargs,
) -> Optional[Any]:
    last_error: Optional[BaseException] = None

    for name, strategy in strategies:
        try:
            result = strategy(*args, **kwargs)
        except recoverable as e:
            logger.warning(f"Strategy '{name}' failed: {e}")
            last_error = e
            continue

        if result is not None:
            logger.info(f"Strategy '{name}' succeeded")
            return result
        logger.debug(f"Strategy '{name}' returned nothing, trying next")

    if last_error is not None:
        raise last_error
    return None
