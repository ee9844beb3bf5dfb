"""Storage-safe path derivation for client and section names."""

import os
import re
import secrets
import time

# Everything outside letters, digits, space, underscore and hyphen is deleted
_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9 _\-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_EXTENSION_DISALLOWED = re.compile(r"[^a-z0-9]")


def sanitize_segment(value: str) -> str:
    """
    Reduce free text to a single storage-safe path segment.

    Disallowed characters are deleted (not escaped), then the result is
    trimmed, whitespace runs become one underscore, and it is lowercased.
    Deleting is lossy: "A/B" and "AB" map to the same segment.

    Args:
        value: Free-text client or section name

    Returns:
        Segment containing only [a-z0-9_-] (possibly empty)
    """
    stripped = _DISALLOWED_CHARS.sub("", value).strip()
    return _WHITESPACE_RUN.sub("_", stripped).lower()


def sanitize_path(client_name: str, section: str) -> str:
    """
    Derive the ``client/section`` folder path for an upload section.

    Args:
        client_name: Client (tenant customer) name
        section: Section label

    Returns:
        Deterministic path with exactly one "/" separator
    """
    return f"{sanitize_segment(client_name)}/{sanitize_segment(section)}"


def unique_filename(original_name: str, timestamp_ms: int | None = None) -> str:
    """
    Build a collision-resistant stored name for an uploaded file.

    Format: ``{sanitized_base}_{epoch_ms}_{8 hex}{.ext}``. Directory parts
    of the original name are discarded.

    Args:
        original_name: File name sent by the client
        timestamp_ms: Epoch milliseconds to embed, defaults to the current time
    """
    # Clients on Windows may send backslash-separated names
    basename = os.path.basename(original_name.replace("\\", "/"))
    base, ext = os.path.splitext(basename)

    safe_base = sanitize_segment(base) or "file"
    safe_ext = _EXTENSION_DISALLOWED.sub("", ext.lower())
    suffix = f".{safe_ext}" if safe_ext else ""

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{safe_base}_{timestamp_ms}_{secrets.token_hex(4)}{suffix}"


# Owner ids come from the identity provider and become the first path segment
OWNER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,100}$")


def is_valid_owner_id(owner_id: object) -> bool:
    """Check that an owner id is a non-empty, separator-free identifier."""
    return isinstance(owner_id, str) and OWNER_ID_PATTERN.fullmatch(owner_id) is not None
