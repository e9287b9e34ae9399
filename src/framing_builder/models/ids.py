"""Element id generation.

Columns and beams are keyed by IFC-compatible GlobalIds (22-character
compressed GUIDs). The ids are opaque: nothing in the engine parses them,
they only have to be stable and unique for the lifetime of an element.
"""

from __future__ import annotations

import uuid

import ifcopenshell.guid


def generate_id() -> str:
    """Generate a new element id (IFC GlobalId, 22 characters)."""
    return ifcopenshell.guid.compress(uuid.uuid4().hex)
