"""Framing plan validation.

- integrity: beam references, duplicate columns, orphans, span limits,
  clone and suspension links
"""

from framing_builder.validators.integrity import ValidationError, validate_plan

__all__ = ["ValidationError", "validate_plan"]
