"""Version specifier utilities.

Only exact ``major.minor.patch`` versions are considered pinned. Ranges,
tags, prereleases (``1.0.0-rc.0``) and build metadata are left alone.
"""

from __future__ import annotations

import re

EXACT_VERSION = re.compile(r"\d+\.\d+\.\d+")

RANGE_PREFIXES = {"minor": "^", "patch": "~"}


def is_exact_version(spec: str) -> bool:
    """Check whether a version specifier pins a single release version.

    Examples:
        "4.0.3" → True
        "^4.0.3", "~4.0.3", ">=4.0.3" → False
        "28.2.0-rc.0" → False
    """
    return EXACT_VERSION.fullmatch(spec) is not None


def unpin_version(spec: str, range_type: str) -> str:
    """Turn an exact version into a range.

    Examples:
        unpin_version("4.0.3", "minor") → "^4.0.3"
        unpin_version("4.0.3", "patch") → "~4.0.3"
    """
    return f"{RANGE_PREFIXES[range_type]}{spec}"
