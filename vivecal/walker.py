"""
Tree Walker

Visits the token tree in pre-order, handing every array to the field
dispatcher together with its context frame. Returns how many tokens each
subtree consumed so the caller can check the walk against the token budget.
"""

from typing import Optional

from .context import ContextFrame
from .dispatch import ParseScratch, dispatch_array
from .errors import ConfigParseError
from .tokens import Token, TokenKind


def walk_tokens(tok: Token, scratch: ParseScratch, frame: Optional[ContextFrame] = None,
                budget: Optional[int] = None, depth: int = 0) -> int:
    """
    Walk a token subtree, dispatching recognized fields into `scratch`.

    Args:
        tok: Root of the subtree to walk
        scratch: Record and IMU hint being filled
        frame: Context frame of the innermost enclosing object member
        budget: Tokens still available to this subtree (defaults to the
            tokenizer limit)
        depth: Current nesting depth

    Returns:
        Number of tokens consumed, including `tok` itself
    """
    if budget is None:
        budget = scratch.limits.max_tokens
    if budget <= 0:
        raise ConfigParseError("Token walk ran past the end of the token stream")
    if depth > scratch.limits.max_depth:
        raise ConfigParseError(f"Config nesting deeper than {scratch.limits.max_depth}")

    if tok.is_leaf:
        return 1

    consumed = 1
    if tok.kind == TokenKind.OBJECT:
        for key, value in tok.members():
            entry = ContextFrame(key=key, value=value, previous=frame)
            consumed += walk_tokens(key, scratch, entry, budget - consumed, depth + 1)
            consumed += walk_tokens(value, scratch, entry, budget - consumed, depth + 1)
    else:
        dispatch_array(tok, frame, scratch)
        for element in tok.children:
            consumed += walk_tokens(element, scratch, frame, budget - consumed, depth + 1)
    return consumed
