"""
Normalizer — canonical form and fingerprints for code fragments.

Two fragments that differ only in literals, numbers, or the names bound by
const/let/var normalize to the same text. The declaration keyword is kept so
that the shape of the code survives.
"""

import re
from typing import Set

STRING_PLACEHOLDER = "<STRING>"
NUMBER_PLACEHOLDER = "<NUMBER>"
VAR_PLACEHOLDER = "<VAR>"

DECLARATION_KEYWORDS = ("const", "let", "var")

# Order matters: single, double, then backtick-delimited literals.
_STRING_LITERALS = (
    re.compile(r"'[^']*'"),
    re.compile(r'"[^"]*"'),
    re.compile(r"`[^`]*`"),
)
_NUMBER = re.compile(r"\b\d+(?:\.\d+)?\b", re.ASCII)
_DECLARATIONS = tuple(
    (re.compile(rf"\b{keyword}\s+([A-Za-z0-9_]+)"), f"{keyword} {VAR_PLACEHOLDER}")
    for keyword in DECLARATION_KEYWORDS
)
_WHITESPACE = re.compile(r"\s+")
_TOKEN_SEPARATORS = re.compile(r"[\s.,;:(){}\[\]<>]+")

_HASH_SEED = 5381
_HASH_MASK = 0xFFFFFFFF


def normalize_code(code: str) -> str:
    """Canonicalize a code fragment for comparison. Idempotent."""
    normalized = code
    for literal in _STRING_LITERALS:
        normalized = literal.sub(STRING_PLACEHOLDER, normalized)
    normalized = _NUMBER.sub(NUMBER_PLACEHOLDER, normalized)
    for declaration, replacement in _DECLARATIONS:
        normalized = declaration.sub(replacement, normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip()


def tokenize(code: str) -> Set[str]:
    """Split on whitespace and punctuation into a set of tokens."""
    return {token for token in _TOKEN_SEPARATORS.split(code) if token}


def count_lines(code: str) -> int:
    if not code:
        return 0
    return code.count("\n") + 1


def hash_code(text: str) -> str:
    """
    32-bit rolling hash (djb2, h * 33 + c) over UTF-16 code units, as hex.

    Bucketing aid only. Collisions are possible and must be resolved by an
    exact or near-duplicate comparison; never use this as identity.
    """
    h = _HASH_SEED
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 33 + unit) & _HASH_MASK
    return format(h, "x")
