"""Content-addressed cache keys for translation results."""
from __future__ import annotations

import hashlib

# Separator between source text and model identifier in the hashed payload
KEY_SEPARATOR = ":"


def derive_key(source_text: str, model: str) -> str:
    """Derive the cache key for a (source text, model) pair.

    The key is the SHA-256 hex digest of ``source_text + ":" + model``
    encoded as UTF-8, so the same text translated by different models never
    shares an entry.

    Args:
        source_text: Text submitted for translation
        model: Model identifier used for the translation

    Returns:
        64-character lowercase hex digest
    """
    payload = f"{source_text}{KEY_SEPARATOR}{model}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
