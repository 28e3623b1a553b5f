"""
Context stack for the token walk.

Each object member the walker enters gets its own frame pointing at the
frame of the enclosing member. Frames are never mutated after creation.
"""

from dataclasses import dataclass
from typing import Optional

from .tokens import Token, TokenKind


@dataclass(frozen=True)
class ContextFrame:
    """Key/value token pair of one object member, linked to its parent."""
    key: Token
    value: Token
    previous: Optional['ContextFrame'] = None

    def key_is(self, name: str) -> bool:
        return self.key.kind == TokenKind.STRING and self.key.text == name

    def parent_key_is(self, name: str) -> bool:
        """True if the immediately enclosing member is keyed `name`."""
        return self.previous is not None and self.previous.key_is(name)
