"""Storage key generation."""
import re
import secrets
from pathlib import PurePath

KEY_BYTES = 16
MAX_EXTENSION_LENGTH = 16

_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9_-]+$")


def extension_of(filename: str) -> str:
    """Return the filename's suffix if it is safe to embed in a key, else ''."""
    suffix = PurePath(filename).suffix
    if len(suffix) > MAX_EXTENSION_LENGTH or not _SAFE_EXTENSION.match(suffix):
        return ""
    return suffix


def new_key(extension: str = "") -> str:
    """128 random bits, hex encoded, plus the original extension.

    No collision check: the probability is negligible at 128 bits.
    """
    return secrets.token_hex(KEY_BYTES) + extension
