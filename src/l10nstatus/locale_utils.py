"""Locale utilities backed by Babel.

Converts configured language identifiers (BCP-47 style, e.g. "pt-BR") to the
POSIX form Babel expects, and derives human-readable display names for
locales that do not carry an explicit label.

Python 3.13+.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from babel import Locale

__all__ = [
    "get_babel_locale",
    "get_display_name",
    "normalize_locale",
]

logger = logging.getLogger(__name__)


def normalize_locale(locale_code: str) -> str:
    """Convert BCP-47 locale code to POSIX format for Babel.

    Example:
        >>> normalize_locale("pt-BR")
        'pt_BR'
        >>> normalize_locale("en")
        'en'
    """
    return locale_code.replace("-", "_")


@functools.lru_cache(maxsize=128)
def get_babel_locale(locale_code: str) -> Locale:
    """Get a Babel Locale object with caching.

    Thread-safe via lru_cache internal locking.

    Raises:
        babel.core.UnknownLocaleError: If locale is not recognized
        ValueError: If locale format is invalid
    """
    # Lazy import: Babel loads CLDR data at import time; defer until needed
    from babel import Locale  # noqa: PLC0415

    return Locale.parse(normalize_locale(locale_code))


@functools.lru_cache(maxsize=128)
def get_display_name(locale_code: str) -> str:
    """Return the locale's name written in its own language.

    Falls back to the code itself for identifiers unknown to CLDR, so custom
    language codes (e.g. "pt-internal") remain usable.

    Example:
        >>> get_display_name("pt-BR")
        'português (Brasil)'
    """
    from babel.core import UnknownLocaleError  # noqa: PLC0415

    try:
        locale = get_babel_locale(locale_code)
    except (UnknownLocaleError, ValueError) as e:
        logger.warning("Unknown locale '%s': %s. Using the code as display name", locale_code, e)
        return locale_code

    name = locale.get_display_name(locale)
    return name if name else locale_code
