"""Unit tests for code generation and validation rules."""

import pytest

from shortlinks.codes import ALPHABET, CODE_PATTERN, generate_code, is_valid_code, validate_code, validate_target
from shortlinks.exceptions import InvalidCodeFormat, InvalidTarget


def test_generate_code_default_length() -> None:
    assert len(generate_code()) == 6


def test_generate_code_only_alphanumeric() -> None:
    for _ in range(200):
        code = generate_code()
        assert all(c in ALPHABET for c in code)
        assert CODE_PATTERN.fullmatch(code)


def test_generate_code_uniqueness() -> None:
    codes = {generate_code() for _ in range(1000)}
    # 62^6 possibilities, a collision in 1000 draws is vanishingly unlikely
    assert len(codes) == 1000


def test_alphabet_has_62_distinct_characters() -> None:
    assert len(set(ALPHABET)) == 62


@pytest.mark.parametrize("code", ["abcdef", "ABCDEFG", "a1B2c3D4", "000000"])
def test_valid_codes(code: str) -> None:
    assert is_valid_code(code)
    assert validate_code(code) == code


@pytest.mark.parametrize("code", ["", "abc", "abcde", "abcdefghi", "abc-de", "abc de", "ábcdef", None])
def test_invalid_codes(code) -> None:
    assert not is_valid_code(code)


def test_validate_code_raises() -> None:
    with pytest.raises(InvalidCodeFormat):
        validate_code("abc")


@pytest.mark.parametrize(
    "target",
    [
        "https://example.com",
        "https://example.com/path?q=1",
        "http://localhost:8080/dashboard",
    ],
)
def test_valid_targets(target: str) -> None:
    assert validate_target(target) == target


def test_validate_target_strips_whitespace() -> None:
    assert validate_target("  https://example.com  ") == "https://example.com"


@pytest.mark.parametrize("target", [None, "", "   ", "not-a-url", "example.com", "//example.com"])
def test_invalid_targets(target) -> None:
    with pytest.raises(InvalidTarget):
        validate_target(target)
