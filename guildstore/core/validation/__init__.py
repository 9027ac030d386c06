"""Input validation helpers."""

from guildstore.core.validation.input_validator import InputValidator

__all__ = ["InputValidator"]
