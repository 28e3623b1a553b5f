"""
JSON Token Tree

Turns a raw configuration buffer into a pre-order tree of typed tokens,
the same shape a jsmn-style tokenizer produces: every token has a kind
(OBJECT, ARRAY, STRING, PRIMITIVE), a child count, and for leaves the raw
literal text. Number literals are kept as written so the field parser can
apply its own length and format rules.

Object tokens hold their members as a flat [key0, value0, key1, value1, ...]
child list, so member order and duplicate keys survive.
"""

import json
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple, Union

from .errors import TokenizeError

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096

Buffer = Union[bytes, bytearray, memoryview, str]


class TokenKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    PRIMITIVE = "primitive"


@dataclass
class Token:
    """One node of the token tree."""
    kind: TokenKind
    text: str = ""
    children: List['Token'] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Member count for objects, element count for arrays, 0 for leaves."""
        if self.kind == TokenKind.OBJECT:
            return len(self.children) // 2
        if self.kind == TokenKind.ARRAY:
            return len(self.children)
        return 0

    @property
    def is_leaf(self) -> bool:
        return self.kind in (TokenKind.STRING, TokenKind.PRIMITIVE)

    def members(self) -> Iterator[Tuple['Token', 'Token']]:
        """Yield (key, value) pairs of an object token."""
        for i in range(0, len(self.children), 2):
            yield self.children[i], self.children[i + 1]

    def count(self) -> int:
        """Number of tokens in this subtree, including this one."""
        total = 0
        stack = [self]
        while stack:
            tok = stack.pop()
            total += 1
            stack.extend(tok.children)
        return total


class _Literal(str):
    """Raw text of a JSON number, as written in the source."""


class _Members(list):
    """Ordered (key, value) pairs of a JSON object."""


class _TokenBuilder:
    """Converts a decoded document into Tokens while enforcing the budget."""

    def __init__(self, max_tokens: int):
        self.max_tokens = max_tokens
        self.produced = 0

    def _new(self, kind: TokenKind, text: str = "") -> Token:
        self.produced += 1
        if self.produced > self.max_tokens:
            raise TokenizeError(f"Config exceeds token budget of {self.max_tokens}")
        return Token(kind, text)

    def build(self, value) -> Token:
        if isinstance(value, _Members):
            tok = self._new(TokenKind.OBJECT)
            for key, member in value:
                tok.children.append(self._new(TokenKind.STRING, key))
                tok.children.append(self.build(member))
            return tok
        if isinstance(value, list):
            tok = self._new(TokenKind.ARRAY)
            tok.children.extend(self.build(v) for v in value)
            return tok
        if isinstance(value, _Literal):
            return self._new(TokenKind.PRIMITIVE, str(value))
        if isinstance(value, str):
            return self._new(TokenKind.STRING, value)
        if value is None:
            return self._new(TokenKind.PRIMITIVE, "null")
        # Only booleans remain
        return self._new(TokenKind.PRIMITIVE, "true" if value else "false")


def tokenize(buffer: Buffer, max_tokens: int = MAX_TOKENS) -> Token:
    """
    Tokenize a JSON configuration buffer.

    Args:
        buffer: UTF-8 encoded JSON document (str is accepted as-is)
        max_tokens: Hard upper bound on the number of tokens produced

    Returns:
        Root token of the document

    Raises:
        TokenizeError: on undecodable bytes, malformed JSON, or when the
            document needs more than max_tokens tokens
    """
    if isinstance(buffer, str):
        text = buffer
    else:
        try:
            text = bytes(buffer).decode('utf-8')
        except UnicodeDecodeError as e:
            raise TokenizeError(f"Config is not valid UTF-8: {e}") from e

    try:
        doc = json.loads(
            text,
            object_pairs_hook=_Members,
            parse_float=_Literal,
            parse_int=_Literal,
            parse_constant=_Literal,
        )
        builder = _TokenBuilder(max_tokens)
        root = builder.build(doc)
    except json.JSONDecodeError as e:
        raise TokenizeError(f"Failed to parse JSON: {e}") from e
    except RecursionError as e:
        raise TokenizeError("JSON nesting too deep to tokenize") from e

    logger.debug("Tokenized config into %d tokens", builder.produced)
    return root
