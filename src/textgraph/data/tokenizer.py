"""Word tokenizer for the query / paragraph text fed into the attention graph.

Tokens are lowercased, stripped of anything that is not a word character or
whitespace, and split on whitespace runs. Underscores and digits count as word
characters, so ``foo_bar`` survives intact.
"""
from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

NON_WORD_RE = re.compile(r"[^\w\s]")
WHITESPACE_RE = re.compile(r"\s+")

DISPLAY_LIMIT = 20


def tokenize(text: Optional[str]) -> List[str]:
    """Split ``text`` into ordered lowercase word tokens.

    Empty or ``None`` input yields an empty list rather than an error.
    """
    if not text:
        return []
    cleaned = NON_WORD_RE.sub("", text.lower())
    return [tok for tok in WHITESPACE_RE.split(cleaned) if tok]


def tokenize_pair(paragraph: Optional[str], query: Optional[str]) -> Tuple[List[str], List[str]]:
    """Tokenize the context paragraph and the query in one go."""
    return tokenize(paragraph), tokenize(query)


def display_tokens(tokens: Sequence[str], limit: int = DISPLAY_LIMIT) -> List[str]:
    # paragraph tokens are only shown, never scored
    return list(tokens[:limit])
