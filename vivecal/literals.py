"""
Numeric field decoding.

Decodes runs of PRIMITIVE tokens into float arrays. Any non-numeric token
inside a recognized field aborts the whole parse.
"""

import math
from typing import Sequence

import numpy as np

from .errors import ConfigParseError
from .tokens import Token, TokenKind

# Longest numeric literal accepted, in bytes (a 128-byte buffer with terminator)
MAX_LITERAL_LEN = 127


def parse_float(tok: Token, max_literal_len: int = MAX_LITERAL_LEN) -> float:
    """
    Decode a single numeric literal.

    Args:
        tok: Token to decode, must be PRIMITIVE
        max_literal_len: Longest literal (in bytes) accepted

    Returns:
        The literal as a float

    Raises:
        ConfigParseError: if the token is not a primitive, is too long, or
            is not a finite decimal number
    """
    if tok.kind != TokenKind.PRIMITIVE:
        raise ConfigParseError(f"Expected a numeric literal, got {tok.kind.value}")
    if len(tok.text.encode('utf-8')) > max_literal_len:
        raise ConfigParseError(f"Numeric literal longer than {max_literal_len} bytes")
    try:
        value = float(tok.text)
    except ValueError as e:
        raise ConfigParseError(f"Not a number: {tok.text!r}") from e
    if not math.isfinite(value):
        raise ConfigParseError(f"Non-finite number: {tok.text!r}")
    return value


def parse_float_array(tokens: Sequence[Token], count: int,
                      max_literal_len: int = MAX_LITERAL_LEN) -> np.ndarray:
    """
    Decode `count` consecutive numeric tokens into a new array.

    Args:
        tokens: Tokens to decode (at least `count` of them)
        count: Number of values expected
        max_literal_len: Longest literal (in bytes) accepted

    Returns:
        float64 array of exactly `count` values
    """
    if len(tokens) < count:
        raise ConfigParseError(f"Expected {count} values, found {len(tokens)}")
    values = np.empty(count, dtype=float)
    parse_float_array_in_place(tokens[:count], values, max_literal_len)
    return values


def parse_float_array_in_place(tokens: Sequence[Token], out: np.ndarray,
                               max_literal_len: int = MAX_LITERAL_LEN) -> None:
    """Decode tokens into caller storage; out must have len(tokens) slots."""
    if len(tokens) != len(out):
        raise ConfigParseError(f"Expected {len(out)} values, found {len(tokens)}")
    # All or nothing: `out` is untouched if any literal fails
    decoded = [parse_float(tok, max_literal_len) for tok in tokens]
    out[:] = decoded
