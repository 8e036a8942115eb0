from ._logging import logger
from .config import get_settings


def clamp_limit(limit: int, max_limit: int) -> tuple[int, bool]:
    """
    Normalizes a requested page size against a maximum.

    - limit <= 0 is replaced with the default page size
    - limit > max_limit is clamped to max_limit

    Returns:
        (normalized_limit, unmodified) where unmodified is False when the
        requested value was substituted or clamped.
    """
    if limit <= 0:
        default_limit = get_settings().default_limit
        logger.debug(
            "Limit substituted with default",
            extra={"requested_limit": limit, "applied_limit": default_limit},
        )
        return default_limit, False
    if limit > max_limit:
        logger.debug(
            "Limit clamped to maximum",
            extra={"requested_limit": limit, "applied_limit": max_limit},
        )
        return max_limit, False
    return limit, True


def normalize_limit_max(limit: int, max_limit: int) -> int:
    """Like clamp_limit, but drops the 'unmodified' flag."""
    normalized, _ = clamp_limit(limit, max_limit)
    return normalized


def normalize_limit(limit: int) -> int:
    """Normalizes a requested page size against the system-wide maximum."""
    return normalize_limit_max(limit, get_settings().max_limit)
