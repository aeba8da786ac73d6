"""Zero-copy scanning primitives used by the tokenizer.

A :class:`Cursor` is an immutable view over the remaining part of a string.
Matchers built by :class:`Chomp` look at ``(text, offset)`` and report where
a match ends, so no substring is created until a token is actually taken.
"""

from typing import Callable, Iterable, Optional, Tuple

Matcher = Callable[[str, int], Optional[int]]

MINUS_SIGNS = ('-', '−')


class Location:
    def __init__(self, lineno: int, column: int, offset: int):
        self.lineno = lineno
        self.column = column
        self.offset = offset

    def __repr__(self):
        return f'{self.lineno}:{self.column}'


def _scan_while(predicate: Callable[[str], bool], text: str, offset: int) -> int:
    end = offset
    while end < len(text) and predicate(text[end]):
        end += 1
    return end


class Chomp:
    """Factory of matchers. Matchers can be combined with ``|``; the first one that matches wins."""

    def __init__(self, matcher: Matcher):
        self.matcher: Matcher = matcher

    def __call__(self, text: str, offset: int) -> Optional[int]:
        return self.matcher(text, offset)

    def __or__(self, other: 'Chomp') -> 'Chomp':
        def either(text: str, offset: int) -> Optional[int]:
            end = self(text, offset)
            if end is None:
                end = other(text, offset)
            return end

        return Chomp(either)

    @classmethod
    def predicate(cls, predicate: Callable[[str], bool]) -> 'Chomp':
        return cls(lambda text, offset: _scan_while(predicate, text, offset))

    @classmethod
    def whitespace(cls) -> 'Chomp':
        return cls.predicate(str.isspace)

    @classmethod
    def alphanumeric(cls) -> 'Chomp':
        return cls.predicate(str.isalnum)

    @classmethod
    def alphanumeric_extended(cls) -> 'Chomp':
        return cls.predicate(lambda c: c.isalnum() or c == '_')

    @classmethod
    def literal(cls, pattern: str) -> 'Chomp':
        """Match ``pattern`` only if it is not immediately followed by a letter or ``_``."""

        def matcher(text: str, offset: int) -> Optional[int]:
            if not text.startswith(pattern, offset):
                return None
            end = offset + len(pattern)
            if end < len(text) and (text[end].isalpha() or text[end] == '_'):
                return None
            return end

        return cls(matcher)

    @classmethod
    def literal_substring(cls, pattern: str) -> 'Chomp':
        return cls(lambda text, offset: offset + len(pattern) if text.startswith(pattern, offset) else None)

    @classmethod
    def char(cls, c: str) -> 'Chomp':
        return cls.char_any((c,))

    @classmethod
    def char_any(cls, chars: Iterable[str]) -> 'Chomp':
        chars = frozenset(chars)
        return cls(lambda text, offset: offset + 1 if offset < len(text) and text[offset] in chars else None)

    @classmethod
    def number(cls, signed: bool = False) -> 'Chomp':
        """Decimal number with at most one point and, when ``signed``, an optional leading minus."""

        def matcher(text: str, offset: int) -> Optional[int]:
            end = offset
            if signed and end < len(text) and text[end] in MINUS_SIGNS:
                end += 1
            seen_point = False
            seen_digit = False
            while end < len(text):
                c = text[end]
                if '0' <= c <= '9':
                    seen_digit = True
                elif c == '.' and not seen_point:
                    seen_point = True
                else:
                    break
                end += 1
            if not seen_digit:
                return None
            return end

        return cls(matcher)


class Cursor:
    __slots__ = ('text', 'offset')

    def __init__(self, text: str, offset: int = 0):
        self.text: str = text
        self.offset: int = offset

    def __repr__(self):
        return f'Cursor({self.as_str()!r})'

    def is_empty(self) -> bool:
        return self.offset >= len(self.text)

    def as_str(self) -> str:
        return self.text[self.offset:]

    def location(self) -> Location:
        lineno = self.text.count('\n', 0, self.offset) + 1
        line_start = self.text.rfind('\n', 0, self.offset) + 1
        return Location(lineno, self.offset - line_start + 1, self.offset)

    def chomp(self, chomp: Chomp) -> 'Cursor':
        _, cursor = self.nibble(chomp)
        return cursor

    def can_nibble(self, chomp: Chomp) -> bool:
        end = chomp(self.text, self.offset)
        return end is not None and end > self.offset

    def nibble(self, chomp: Chomp) -> Tuple[Optional[str], 'Cursor']:
        end = chomp(self.text, self.offset)
        if end is None or end == self.offset:
            return None, self
        return self.text[self.offset:end], Cursor(self.text, end)
