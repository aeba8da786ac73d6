import logging
from enum import Enum
from typing import Any, Iterator, List, Optional, Union

from .cursor import Chomp, Cursor, Location, MINUS_SIGNS
from .exceptions import LexerError, ErrorCode

logger = logging.getLogger(__name__)


class TokenType(Enum):
    # reserved word
    LET = 'let'
    IF = 'if'
    ELSE = 'else'

    SIN = 'sin'
    COS = 'cos'
    SQRT = 'sqrt'
    LOG = 'log'
    RAND = 'rand'
    ROUND = 'round'
    FLOOR = 'floor'

    PI = 'pi'
    E = 'e'

    # symbols
    # double character symbols
    EQUAL = '=='
    NOT_EQUAL = '!='
    LESS_EQUAL = '<='
    GREATER_EQUAL = '>='
    ARROW = '=>'

    # single character symbols
    LPAREN = '('
    RPAREN = ')'

    LBRACE = '{'
    RBRACE = '}'

    COMMA = ','
    SEMI = ';'

    ASSIGN = '='

    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = '%'
    POW = '^'

    LESS = '<'
    GREATER = '>'

    # other
    NUMBER = 'NUMBER'
    ID = 'ID'
    EOF = 'EOF'

    @classmethod
    def _build_reserved_dict(cls, start, end):
        token_list = list(cls)
        start_index = token_list.index(start)
        end_index = token_list.index(end)
        return {
            token_type.value: token_type
            for token_type in token_list[start_index:end_index + 1]
        }

    @classmethod
    def reserved_word(cls):
        return cls._build_reserved_dict(TokenType.LET, TokenType.E)

    @classmethod
    def double_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.EQUAL, TokenType.ARROW)

    @classmethod
    def single_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.LPAREN, TokenType.GREATER)


# 计算器键盘上的别名
word_aliases = {
    'E': TokenType.E,
    'mod': TokenType.MOD,
}

char_aliases = {
    'π': TokenType.PI,
    '𝜋': TokenType.PI,
    '×': TokenType.MUL,
    '÷': TokenType.DIV,
    '−': TokenType.SUB,
}

# 在这些 token 之后，'-' 是减号而不是数字的符号
operand_end_token_types = frozenset([
    TokenType.NUMBER,
    TokenType.ID,
    TokenType.PI,
    TokenType.E,
    TokenType.RPAREN,
    TokenType.RBRACE,
])

closing_token_types = {
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACE: TokenType.RBRACE,
}

WHITESPACE = Chomp.whitespace()
IDENTIFIER = Chomp.alphanumeric_extended()
SIGNED_NUMBER = Chomp.number(signed=True)
UNSIGNED_NUMBER = Chomp.number(signed=False)

word_chomps = [
    (Chomp.literal(word), token_type)
    for word, token_type in list(TokenType.reserved_word().items()) + list(word_aliases.items())
]

symbol_chomps = [
    (Chomp.literal_substring(symbol), token_type)
    for symbol, token_type in list(TokenType.double_character_symbols().items()) +
    list(TokenType.single_character_symbols().items()) + list(char_aliases.items())
]


class Token:
    def __init__(self, token_type: TokenType, value: Any, start: Location, end: Location):
        self.type = token_type
        self.value = value
        self.start = start
        self.end = end

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.type == other.type and self.value == other.value

    def __repr__(self):
        return f'Token({self.type}, {self.value!r}, position={self.start!r} to {self.end!r})'

    def __str__(self):
        if self.type == TokenType.NUMBER:
            return format(self.value, 'g')
        return str(self.value)


class Lexer:
    def __init__(self, source: Union[str, Cursor]):
        if isinstance(source, str):
            source = Cursor(source)
        self.cursor: Cursor = source
        self.previous_token: Optional[Token] = None
        self.closing_stack: List[TokenType] = list()

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.get_next_token()
            if token.type == TokenType.EOF:
                return
            yield token

    def location(self) -> Location:
        return self.cursor.location()

    def accepts_sign(self) -> bool:
        return self.previous_token is None or self.previous_token.type not in operand_end_token_types

    def get_next_token(self) -> Token:
        self.cursor = self.cursor.chomp(WHITESPACE)
        if self.cursor.is_empty():
            # 输入结束后补全未闭合的括号
            if self.closing_stack:
                token_type = self.closing_stack.pop()
                logger.debug('auto-closing unmatched %r', token_type.value)
                location = self.location()
                return Token(token_type, token_type.value, location, location)
            return Token(TokenType.EOF, None, self.location(), self.location())

        token = self.scan_token()
        if token.type in closing_token_types:
            self.closing_stack.append(closing_token_types[token.type])
        elif self.closing_stack and self.closing_stack[-1] == token.type:
            self.closing_stack.pop()
        self.previous_token = token
        return token

    def scan_token(self) -> Token:
        start = self.location()

        for chomp, token_type in word_chomps:
            matched, cursor = self.cursor.nibble(chomp)
            if matched is not None:
                self.cursor = cursor
                return Token(token_type, token_type.value, start, self.location())

        matched, cursor = self.cursor.nibble(SIGNED_NUMBER if self.accepts_sign() else UNSIGNED_NUMBER)
        if matched is not None:
            self.cursor = cursor
            if matched[0] in MINUS_SIGNS:
                matched = '-' + matched[1:]
            return Token(TokenType.NUMBER, float(matched), start, self.location())

        for chomp, token_type in symbol_chomps:
            matched, cursor = self.cursor.nibble(chomp)
            if matched is not None:
                self.cursor = cursor
                return Token(token_type, token_type.value, start, self.location())

        matched, cursor = self.cursor.nibble(IDENTIFIER)
        if matched is not None:
            self.cursor = cursor
            return Token(TokenType.ID, matched, start, self.location())

        raise LexerError(
            error_code=ErrorCode.LEXER_ERROR,
            message=f'Could not parse: {self.cursor.as_str()}',
            location=start,
        )


def tokenize(source: Union[str, Cursor]) -> Iterator[Token]:
    return iter(Lexer(source))
