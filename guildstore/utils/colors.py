"""
Chat color-code translation.

Guild prefixes are typed by players with an alternate color character
(`&a[Alpha]`) and displayed with the section sign the game client renders
(`§a[Alpha]`).

Usage:
    >>> translate_color_codes("&a[Alpha]")
    '§a[Alpha]'
    >>> strip_color_codes("§a[Alpha]")
    '[Alpha]'
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Pattern

from guildstore.core.config.config import Config

COLOR_CHAR = "§"
COLOR_CODES = "0123456789AaBbCcDdEeFfKkLlMmNnOoRrXx"

_STRIP_PATTERN = re.compile(COLOR_CHAR + "[" + COLOR_CODES + "]")


@lru_cache(maxsize=8)
def _alternate_pattern(alt_char: str) -> Pattern[str]:
    return re.compile(re.escape(alt_char) + "([" + COLOR_CODES + "])")


def translate_color_codes(text: str, alt_char: Optional[str] = None) -> str:
    """
    Replace `<alt_char><code>` pairs with the section-sign form.

    Only valid color/format codes are translated and the code is lowercased;
    an alternate character followed by anything else is left as typed.
    """
    alt = alt_char or Config.COLOR_CODE_CHAR
    return _alternate_pattern(alt).sub(lambda m: COLOR_CHAR + m.group(1).lower(), text)


def strip_color_codes(text: str) -> str:
    """Remove section-sign color codes, leaving the plain text."""
    return _STRIP_PATTERN.sub("", text)
