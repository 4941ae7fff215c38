import re

from fileshare.services.key_generator import extension_of, new_key


def test_key_is_128_bit_hex_plus_extension() -> None:
    key = new_key(".txt")
    assert re.fullmatch(r"[0-9a-f]{32}\.txt", key)


def test_key_without_extension() -> None:
    assert re.fullmatch(r"[0-9a-f]{32}", new_key())


def test_keys_are_unique() -> None:
    keys = {new_key(".bin") for _ in range(1000)}
    assert len(keys) == 1000


def test_extension_of_keeps_last_suffix() -> None:
    assert extension_of("report.final.pdf") == ".pdf"
    assert extension_of("archive.tar.gz") == ".gz"
    assert extension_of("README") == ""


def test_extension_of_drops_unsafe_suffixes() -> None:
    assert extension_of("photo.jp g") == ""
    assert extension_of("x." + "a" * 40) == ""
    assert extension_of("evil.%2e%2e") == ""
    assert extension_of("") == ""
