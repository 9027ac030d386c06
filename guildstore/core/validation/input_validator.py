"""
Input Validation Layer for Guildstore

Purpose
-------
Validate and normalize the few raw inputs that reach the guild layer: guild
names (which double as storage keys), player identifiers, and currency amounts.

Responsibilities
----------------
- Reject guild names that cannot be a record key inside the storage root
  (path separators, reserved characters, leading dots, empty names)
- Convert player identifiers to `uuid.UUID`
- Convert currency amounts to exact rationals, rejecting NaN and infinities
- Raise ValidationError with clear messages; never silently coerce

Non-Responsibilities
--------------------
- Business rules (membership, default ranks: handled by the Guild aggregate)
- Persistence (handled by the record store)

Observability
-------------
Every validation failure is logged at debug level with the field name, the
raw value (repr) and the reason.
"""

from __future__ import annotations

import math
import re
import uuid
from decimal import Decimal
from fractions import Fraction
from typing import Any, NoReturn, Optional

from guildstore.core.logging.logger import get_logger
from guildstore.modules.shared.exceptions import ValidationError

logger = get_logger(__name__)

MAX_GUILD_NAME_LENGTH = 64
_FORBIDDEN_NAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def _raise_validation_error(field_name: str, value: Any, message: str) -> NoReturn:
    """Log and raise a ValidationError."""
    try:
        raw_value = repr(value)[:200]
    except ValueError:
        # int repr is capped by sys.set_int_max_str_digits
        raw_value = f"<{type(value).__name__}>"
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": raw_value,
            "reason": message,
        },
    )
    raise ValidationError(field_name, message)


class InputValidator:
    """
    Stateless validation helpers.

    All methods return the validated (normalized) value or raise
    ValidationError.
    """

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> str:
        """
        Validate a string with optional length bounds.

        Args:
            value: Value to validate (must already be a str)
            field_name: Name of field for error messages
            min_length: Minimum string length
            max_length: Maximum string length

        Returns:
            The stripped string

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")
        if not isinstance(value, str):
            _raise_validation_error(field_name, value, "Must be a string")

        str_value = value.strip()

        if min_length is not None and len(str_value) < min_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Must be at least {min_length} characters",
            )

        if max_length is not None and len(str_value) > max_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Cannot exceed {max_length} characters",
            )

        return str_value

    @staticmethod
    def validate_guild_name(value: Any, field_name: str = "guild_name") -> str:
        """
        Validate a guild name for use as a record key.

        The name becomes `<root>/<name><suffix>`, so it must not contain path
        separators or characters reserved on common filesystems, and must not
        start with a dot.
        """
        name = InputValidator.validate_string(
            value, field_name, min_length=1, max_length=MAX_GUILD_NAME_LENGTH
        )
        if name != value:
            _raise_validation_error(field_name, value, "Leading or trailing whitespace")
        if _FORBIDDEN_NAME_CHARS.search(name):
            _raise_validation_error(field_name, value, "Contains invalid characters")
        if name.startswith("."):
            _raise_validation_error(field_name, value, "Cannot start with '.'")
        return name

    @staticmethod
    def validate_player_id(value: Any, field_name: str = "player") -> uuid.UUID:
        """Convert a UUID or its string form to `uuid.UUID`."""
        if isinstance(value, uuid.UUID):
            return value
        if isinstance(value, str):
            try:
                return uuid.UUID(value)
            except ValueError:
                _raise_validation_error(field_name, value, "Not a valid UUID")
        _raise_validation_error(field_name, value, "Must be a UUID")

    @staticmethod
    def validate_amount(value: Any, field_name: str = "amount") -> Fraction:
        """
        Convert a currency amount to an exact Fraction.

        Floats convert exactly (no rounding), so amounts added and then
        subtracted cancel out. Amounts beyond the float range are refused,
        since balances are also stored as floats.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, Fraction)):
            _raise_validation_error(field_name, value, "Must be a number")
        if isinstance(value, float) and not math.isfinite(value):
            _raise_validation_error(field_name, value, "Must be finite")
        if isinstance(value, Decimal) and not value.is_finite():
            _raise_validation_error(field_name, value, "Must be finite")

        amount = Fraction(value)
        try:
            float(amount)
        except OverflowError:
            _raise_validation_error(field_name, value, "Out of range")
        return amount
