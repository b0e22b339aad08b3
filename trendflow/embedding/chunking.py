"""
Passage chunking by greedy sentence accumulation.

Sentences end at runs of ``.``, ``!``, ``?`` or their full-width CJK
forms; a trailing fragment without a terminator is still a sentence.
Sentences are packed into passages of at most ``max_length`` characters
(joined by single spaces). A sentence longer than ``max_length`` becomes
a passage on its own rather than being cut mid-sentence.
"""

import re

DEFAULT_MAX_PASSAGE_LENGTH = 500

_SENTENCE_RE = re.compile(r"[^.!?。！？]+(?:[.!?。！？]+|$)")


def split_sentences(text: str) -> list[str]:
    """Split text into whitespace-normalized sentences, dropping blanks."""
    if not text or not text.strip():
        return []

    sentences = [" ".join(match.split()) for match in _SENTENCE_RE.findall(text)]
    sentences = [s for s in sentences if s]
    if not sentences:
        # Only terminators, e.g. "?!"
        return [" ".join(text.split())]
    return sentences


def split_into_passages(text: str, max_length: int = DEFAULT_MAX_PASSAGE_LENGTH) -> list[str]:
    """
    Pack sentences into passages no longer than ``max_length``.

    The running passage is flushed when appending the next sentence would
    push it past ``max_length``; the sentence then starts a new passage.
    Whatever remains at the end is flushed as the last passage.

    Args:
        text: Raw text (title and body of a record)
        max_length: Maximum characters per passage

    Returns:
        Passages in original order; empty for blank input
    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")

    passages: list[str] = []
    current = ""

    for sentence in split_sentences(text):
        candidate = f"{current} {sentence}" if current else sentence
        if current and len(candidate) > max_length:
            passages.append(current)
            current = sentence
        else:
            current = candidate

    if current:
        passages.append(current)
    return passages
