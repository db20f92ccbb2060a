"""Tests for cache key derivation."""

import hashlib

from translation_preview.cache.keys import derive_key


def test_key_is_sha256_of_text_and_model():
    expected = hashlib.sha256("Hello world:LongCat-Flash-Chat-2512".encode("utf-8")).hexdigest()
    assert derive_key("Hello world", "LongCat-Flash-Chat-2512") == expected


def test_key_is_deterministic():
    assert derive_key("# Title\n\nBody", "m1") == derive_key("# Title\n\nBody", "m1")


def test_different_models_never_share_a_key():
    texts = ["", "a", "# Heading", "中文文本", "x" * 5000]
    models = ["mock-model", "real-model", "LongCat-Flash-Chat-2512"]
    keys = {derive_key(t, m) for t in texts for m in models}
    assert len(keys) == len(texts) * len(models)


def test_unicode_text_is_hashed_as_utf8():
    key = derive_key("翻译", "m")
    assert len(key) == 64
    assert key == hashlib.sha256("翻译:m".encode("utf-8")).hexdigest()
