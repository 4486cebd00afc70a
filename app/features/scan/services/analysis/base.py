import copy
import functools
import logging
import math
import re
from typing import Any, Callable, Optional

from celery.exceptions import SoftTimeLimitExceeded

from app.features.scan.exceptions import AnalysisTimeoutError

logger = logging.getLogger(__name__)

# Run-level deadlines must reach the worker, no step may absorb them
NEVER_DEGRADE = (SoftTimeLimitExceeded, AnalysisTimeoutError)

_INLINE_FONT_SIZE = re.compile(r"font-size:\s*(\d+)")
_INLINE_FONT_SIZE_PX = re.compile(r"font-size:\s*(\d+)px")
_INLINE_DIMENSION_PX = re.compile(r"(?:width|height):\s*(\d+)px")


def degrades_to(fallback: Any) -> Callable:
    """
    Turn any fault raised by a step into its fallback output.

    Page conditions such as a missing <body> are normal, so a failing step is
    logged at warning level and the run carries on with the fallback value.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except NEVER_DEGRADE:
                raise
            except Exception as e:
                logger.warning(f"{func.__name__} degraded: {e}", exc_info=True)
                return copy.deepcopy(fallback)
        return wrapper
    return decorator


def inline_font_size(style: Optional[str], px_only: bool = False) -> Optional[int]:
    """First font-size declared in an inline style attribute."""
    pattern = _INLINE_FONT_SIZE_PX if px_only else _INLINE_FONT_SIZE
    match = pattern.search(style or "")
    return int(match.group(1)) if match else None


def inline_dimension_px(style: Optional[str]) -> Optional[int]:
    """First pixel width/height declared in an inline style attribute."""
    match = _INLINE_DIMENSION_PX.search(style or "")
    return int(match.group(1)) if match else None


def clamp_score(score: int) -> int:
    return max(0, min(100, score))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (round() would bank it to even)."""
    return int(math.floor(value + 0.5))
