"""
Centralized validation utilities for record ID patterns.

Concept, relationship and lock IDs are generated via uuid4().hex[:12],
which produces 12 lowercase hex characters.
"""

from __future__ import annotations

import re

RECORD_ID_PATTERN = re.compile(r"^[0-9a-f]{12}$")

# Document IDs come from the upstream ingestion system and are opaque;
# only reject values that could not be a sane identifier.
DOCUMENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-:.]{1,128}$")


def is_valid_record_id(value: str) -> bool:
    """
    Check if a string is a valid record ID (12 hex characters).

    Args:
        value: The string to validate

    Returns:
        True if the value matches the record ID format, False otherwise
    """
    return bool(RECORD_ID_PATTERN.match(value))


def is_valid_document_id(value: str) -> bool:
    """
    Check if a string is an acceptable opaque document ID.

    Args:
        value: The string to validate

    Returns:
        True if the value is non-empty and uses only safe characters
    """
    return bool(DOCUMENT_ID_PATTERN.match(value))
