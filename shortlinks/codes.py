"""Short code and target URL rules shared by the allocator and redirect engine.

Key Behaviours
===============
- A code is 6 to 8 characters from ``A-Z a-z 0-9``.
- Generated codes are always 6 characters, drawn uniformly from the
  62-character alphabet with nanoid, using a cryptographically secure random source.
- Targets must be absolute URLs with a scheme and host.
- Codes equal to paths the service serves itself are reserved.
"""

import re

import validators
from nanoid import generate

from shortlinks.exceptions import InvalidCodeFormat, InvalidTarget

__all__ = [
    "ALPHABET",
    "CODE_PATTERN",
    "GENERATED_CODE_LENGTH",
    "RESERVED_CODES",
    "generate_code",
    "is_valid_code",
    "validate_code",
    "validate_target",
]

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
CODE_MIN_LENGTH = 6
CODE_MAX_LENGTH = 8
GENERATED_CODE_LENGTH = 6
CODE_PATTERN = re.compile(rf"^[A-Za-z0-9]{{{CODE_MIN_LENGTH},{CODE_MAX_LENGTH}}}$")

# Paths routed before /{code}; a link with one of these codes could never be visited.
RESERVED_CODES = frozenset({"healthz", "metrics"})


def generate_code() -> str:
    return generate(ALPHABET, GENERATED_CODE_LENGTH)


def is_valid_code(code: object) -> bool:
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None


def validate_code(code: object) -> str:
    if not is_valid_code(code):
        raise InvalidCodeFormat("Code must be 6-8 alphanumeric characters.")
    return code


def validate_target(target: object) -> str:
    if target is None:
        raise InvalidTarget("Target URL is required")
    if not isinstance(target, str):
        raise InvalidTarget("Target URL must be a string")
    if not target.strip():
        raise InvalidTarget("Target URL is required")
    target = target.strip()
    # validators.url returns a falsy ValidationError instead of raising
    if not validators.url(target, simple_host=True, strict_query=False):
        raise InvalidTarget("Invalid URL format")
    return target
