"""
Optionist token sources.

A token source hands the parser one string token at a time. Every source
offers the same small capability set and nothing else:

- current(): peek the current token without consuming it (None at the end).
- advance(): consume the current token (no-op at the end).
- next(): current() followed by advance().

Variants
- ArgvSource: an in-memory sequence of tokens (e.g. sys.argv[1:]); rewindable,
  and its index tells how many tokens were consumed so far.
- StringSource: one string split on a set of delimiter characters; rewindable.
- StreamSource: a text stream read line by line, whitespace-separated, with
  comment lines skipped; forward-only.

The variants are a closed set; they do not share a base class. The parser only
relies on current()/advance(), so any object with those methods can be used.
"""
import re
from collections import deque

from .utils import Unset, coalesce

WHITESPACE = " \t\n\r\v\f"


def _tokenize(text, delimiters):
    if not delimiters:
        return [text] if text else []
    return [token for token in re.split("[%s]+" % re.escape(delimiters), text) if token]


class ArgvSource:
    """
    Iterate through an array of tokens.

    The array ends at its last element, at the first None element, or after
    `count` elements when a count is given (whichever comes first).
    """

    def __init__(self, tokens, count=Unset, /):
        tokens = list(tokens)
        if None in tokens:
            del tokens[tokens.index(None):]
        if count is not Unset:
            if not isinstance(count, int) or count < 0:
                raise ValueError("ArgvSource() count must be a non-negative integer")
            del tokens[count:]
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("ArgvSource() tokens must be strings")
        self._tokens = tokens
        self._index = 0

    @property
    def index(self):
        """position of the current token (equals the number of consumed tokens)."""
        return self._index

    def current(self):
        return self._tokens[self._index] if self._index < len(self._tokens) else None

    def advance(self):
        if self._index < len(self._tokens):
            self._index += 1

    def next(self):
        token = self.current()
        self.advance()
        return token

    def rewind(self):
        self._index = 0

    def remaining(self):
        """the tokens not consumed yet, in order."""
        return self._tokens[self._index:]

    def __iter__(self):
        while (token := self.next()) is not None:
            yield token

    def __repr__(self):
        return "%s(%r, index=%d)" % (type(self).__name__, self._tokens, self._index)


class StringSource:
    """
    Iterate through a string containing delimiter-separated tokens.

    Runs of delimiters count as one separator and empty tokens are dropped.
    The delimiter set defaults to ASCII whitespace; assigning new delimiters
    takes effect on the next rewind().
    """

    def __init__(self, text, delimiters=Unset, /):
        if not isinstance(text, str):
            raise TypeError("StringSource() text must be a string")
        self._text = text
        self.delimiters = delimiters
        self.rewind()

    @property
    def delimiters(self):
        return self._delimiters

    @delimiters.setter
    def delimiters(self, delimiters):
        delimiters = coalesce(delimiters, WHITESPACE)
        if delimiters is None:
            delimiters = WHITESPACE
        if not isinstance(delimiters, str):
            raise TypeError("StringSource delimiters must be a string")
        self._delimiters = delimiters

    def current(self):
        return self._tokens[self._index] if self._index < len(self._tokens) else None

    def advance(self):
        if self._index < len(self._tokens):
            self._index += 1

    def next(self):
        token = self.current()
        self.advance()
        return token

    def rewind(self):
        self._tokens = _tokenize(self._text, self._delimiters)
        self._index = 0

    def __iter__(self):
        while (token := self.next()) is not None:
            yield token

    def __repr__(self):
        return "%s(%r, delimiters=%r)" % (type(self).__name__, self._text, self._delimiters)


class StreamSource:
    """
    Iterate over whitespace-separated tokens read from a text stream.

    Each line is a set of tokens. A line whose first non-whitespace character
    is the comment marker ("#" by default) is ignored, and so are blank lines.
    The buffer of the current line is refilled in place, so a stream source
    must not be shared between parsers scanning concurrently.
    """

    def __init__(self, stream, comment="#", /):
        if not hasattr(stream, "readline"):
            raise TypeError("StreamSource() stream must provide readline()")
        if comment is not None and (not isinstance(comment, str) or len(comment) > 1):
            raise TypeError("StreamSource() comment must be a single character or None")
        self._stream = stream
        self._comment = comment
        self._tokens = deque()

    @property
    def comment(self):
        return self._comment

    def _fill(self):
        # Read until a line with at least one token shows up, or the stream ends.
        while line := self._stream.readline():
            line = line.lstrip()
            if line and line[0] != self._comment:
                self._tokens.extend(line.split())
                if self._tokens:
                    return

    def current(self):
        if not self._tokens:
            self._fill()
        return self._tokens[0] if self._tokens else None

    def advance(self):
        if not self._tokens:
            self._fill()
        if self._tokens:
            self._tokens.popleft()

    def next(self):
        token = self.current()
        self.advance()
        return token

    def __iter__(self):
        while (token := self.next()) is not None:
            yield token

    def __repr__(self):
        return "%s(%r, comment=%r)" % (type(self).__name__, self._stream, self._comment)


__all__ = (
    "ArgvSource",
    "StringSource",
    "StreamSource",
)
