import math
import logging
from typing import Callable, Iterable, List, Optional

from .exceptions import ParserError, ErrorCode
from .lexer import Token, TokenType

logger = logging.getLogger(__name__)


class OperatorInfo:
    def __init__(self, token_type: TokenType, precedence: int, implicit: bool = False):
        self.token_type: TokenType = token_type
        self.value: str = token_type.value
        self.precedence: int = precedence
        self.implicit: bool = implicit  # True 为省略乘号时插入的乘法

    def __repr__(self):
        return self.value


# 同一优先级从左到右结合
binary_operator_list = [
    OperatorInfo(TokenType.EQUAL, 0),  # ==
    OperatorInfo(TokenType.NOT_EQUAL, 0),  # !=
    OperatorInfo(TokenType.LESS, 0),  # <
    OperatorInfo(TokenType.LESS_EQUAL, 0),  # <=
    OperatorInfo(TokenType.GREATER, 0),  # >
    OperatorInfo(TokenType.GREATER_EQUAL, 0),  # >=

    OperatorInfo(TokenType.ADD, 1),  # +
    OperatorInfo(TokenType.SUB, 1),  # -

    OperatorInfo(TokenType.MUL, 2),  # *
    OperatorInfo(TokenType.DIV, 2),  # /

    OperatorInfo(TokenType.POW, 3),  # ^
    OperatorInfo(TokenType.MOD, 3),  # %
]

binary_operators = {operator_info.token_type: operator_info for operator_info in binary_operator_list}

implicit_multiplication = OperatorInfo(TokenType.MUL, 2, implicit=True)

func_0_list = [TokenType.RAND]
func_1_list = [TokenType.SIN, TokenType.COS, TokenType.SQRT, TokenType.LOG, TokenType.ROUND, TokenType.FLOOR]

literal_const = {
    TokenType.PI: math.pi,
    TokenType.E: math.e,
}

# 只有字面量后面可以直接跟标识符，如 3x
literal_token_types = (TokenType.NUMBER,) + tuple(literal_const)


class Expression:
    pass


class Literal(Expression):
    def __init__(self, value: float):
        self.value: float = value

    def __repr__(self):
        return repr(self.value)


class Local(Expression):
    def __init__(self, name: str):
        self.name: str = name

    def __repr__(self):
        return self.name


class Block(Expression):
    def __init__(self, body: List[Expression] = None):
        if body is None:
            body = list()
        self.body: List[Expression] = body

    def __repr__(self):
        return '{' + ';'.join(map(repr, self.body)) + '}'


class Sequence(Block):
    """Top-level statements separated by ``;``; unlike a block it opens no scope."""

    def __repr__(self):
        return ';'.join(map(repr, self.body))


class FuncDeclaration(Expression):
    def __init__(self, params: List[str], body: Expression):
        self.params: List[str] = params
        self.body: Expression = body

    def __repr__(self):
        return f'({", ".join(self.params)})=>{self.body!r}'


class If(Expression):
    def __init__(self, test: Expression, consequent: Expression):
        self.test: Expression = test
        self.consequent: Expression = consequent

    def __repr__(self):
        return f'if({self.test!r}){self.consequent!r}'


class IfElse(If):
    def __init__(self, test: Expression, consequent: Expression, alternate: Expression):
        super().__init__(test, consequent)
        self.alternate: Expression = alternate

    def __repr__(self):
        return f'if({self.test!r}){self.consequent!r}else{self.alternate!r}'


class AssignOp(Expression):
    def __init__(self, name: str, value: Expression):
        self.name: str = name
        self.value: Expression = value

    def __repr__(self):
        return f'let {self.name}={self.value!r}'


class BinaryOp(Expression):
    def __init__(self, left: Expression, operator: OperatorInfo, right: Expression):
        self.left: Expression = left
        self.operator: OperatorInfo = operator
        self.right: Expression = right

    def __repr__(self):
        return f'({self.left!r}{self.operator.value}{self.right!r})'


class Func0(Expression):
    def __init__(self, func: TokenType):
        self.func: TokenType = func

    def __repr__(self):
        return f'{self.func.value}()'


class Func1(Expression):
    def __init__(self, func: TokenType, argument: Expression):
        self.func: TokenType = func
        self.argument: Expression = argument

    def __repr__(self):
        return f'{self.func.value}({self.argument!r})'


class FuncLocal(Expression):
    def __init__(self, name: str, arguments: List[Expression] = None):
        if arguments is None:
            arguments = list()
        self.name: str = name
        self.arguments: List[Expression] = arguments

    def __repr__(self):
        return f'{self.name}({", ".join(map(repr, self.arguments))})'


class Parser:
    def __init__(self, tokens: Iterable[Token]):
        self.tokens: List[Token] = list(tokens)
        self.position: int = 0

    @property
    def current_token(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    @property
    def previous_token(self) -> Optional[Token]:
        if self.position > 0:
            return self.tokens[self.position - 1]
        return None

    def peek(self) -> Optional[TokenType]:
        token = self.current_token
        return token.type if token is not None else None

    def error(self,
              error_code: ErrorCode = ErrorCode.UNEXPECTED_TOKEN,
              expect_token_type: TokenType = None,
              message: str = None):
        token = self.current_token
        location = token.start if token is not None else None
        if message is None:
            found = f"'{token}'" if token is not None else 'end of input'
            if expect_token_type is None:
                message = f'unexpected {found}'
            else:
                message = f"expect '{expect_token_type.value}', but {found} was given"
        raise ParserError(error_code=error_code, message=message, location=location)

    def advance_token(self) -> Token:
        token = self.current_token
        if token is None:
            self.error()
        self.position += 1
        return token

    def try_consume(self, token_type: TokenType) -> Optional[Token]:
        if self.peek() == token_type:
            return self.advance_token()
        return None

    def token_match(self, token_type: TokenType) -> Token:
        token = self.try_consume(token_type)
        if token is None:
            self.error(expect_token_type=token_type)
        return token

    def speculate(self, parse: Callable[[], Optional[Expression]]) -> Optional[Expression]:
        """Run ``parse``; if it reports no match, rewind to where it started."""
        position = self.position
        ast_node = parse()
        if ast_node is None:
            self.position = position
        return ast_node

    def parse(self) -> Expression:
        try:
            return self.parse_statements()
        except RecursionError:
            token = self.current_token
            raise ParserError(
                error_code=ErrorCode.NESTING_TOO_DEEP,
                location=token.start if token is not None else None,
            ) from None

    def parse_statements(self) -> Expression:
        statements = list()
        while True:
            statement = self.parse_expression()
            if statement is None:
                break
            statements.append(statement)
            if self.try_consume(TokenType.SEMI) is None:
                break

        if self.current_token is not None:
            remaining = ' '.join(map(str, self.tokens[self.position:]))
            self.error(error_code=ErrorCode.REMAINING_TOKENS, message=remaining)
        if not statements:
            raise ParserError(error_code=ErrorCode.EMPTY_PROGRAM)
        logger.debug('parsed %d statement(s)', len(statements))
        if len(statements) == 1:
            return statements[0]
        return Sequence(statements)

    def parse_required_expression(self) -> Expression:
        ast_node = self.parse_expression()
        if ast_node is None:
            self.error()
        return ast_node

    def parse_expression(self) -> Optional[Expression]:
        left = self.parse_primary()
        if left is None:
            return None
        return self.parse_binary(left, 0)

    def peek_binary_operator(self) -> Optional[OperatorInfo]:
        token_type = self.peek()
        if token_type in binary_operators:
            return binary_operators[token_type]
        if token_type == TokenType.LPAREN:
            return implicit_multiplication
        if token_type == TokenType.ID:
            if self.previous_token.type in literal_token_types:
                return implicit_multiplication
            self.error(error_code=ErrorCode.AMBIGUOUS_OPERAND,
                       message=f"'{self.previous_token}' followed by '{self.current_token}'")
        return None

    def parse_binary(self, left: Expression, min_precedence: int) -> Expression:
        while True:
            operator = self.peek_binary_operator()
            if operator is None or operator.precedence < min_precedence:
                break
            if not operator.implicit:
                self.advance_token()
            right = self.parse_primary()
            if right is None:
                self.error()

            while True:
                next_operator = self.peek_binary_operator()
                if next_operator is None or next_operator.precedence <= operator.precedence:
                    break
                right = self.parse_binary(right, operator.precedence + 1)

            left = BinaryOp(left, operator, right)
        return left

    def parse_primary(self) -> Optional[Expression]:
        token_type = self.peek()
        if token_type == TokenType.LBRACE:
            return self.parse_block()
        elif token_type == TokenType.LPAREN:
            # 先尝试解析为函数声明，失败则回退为括号表达式
            ast_node = self.speculate(self.parse_func_declaration)
            if ast_node is None:
                ast_node = self.parse_parens()
            return ast_node
        elif token_type == TokenType.LET:
            return self.parse_assignment()
        elif token_type == TokenType.IF:
            return self.parse_if()
        elif token_type == TokenType.NUMBER:
            return Literal(self.advance_token().value)
        elif token_type in literal_const:
            return Literal(literal_const[self.advance_token().type])
        elif token_type == TokenType.ID:
            return self.parse_identifier()
        elif token_type in func_0_list:
            func = self.advance_token().type
            self.token_match(TokenType.LPAREN)
            self.token_match(TokenType.RPAREN)
            return Func0(func)
        elif token_type in func_1_list:
            func = self.advance_token().type
            self.token_match(TokenType.LPAREN)
            argument = self.parse_required_expression()
            self.token_match(TokenType.RPAREN)
            return Func1(func, argument)
        return None

    def parse_block(self) -> Block:
        self.token_match(TokenType.LBRACE)
        ast_node = Block()
        while self.peek() != TokenType.RBRACE:
            ast_node.body.append(self.parse_required_expression())
            if self.try_consume(TokenType.SEMI) is None:
                break
        self.token_match(TokenType.RBRACE)
        return ast_node

    def parse_parens(self) -> Expression:
        self.token_match(TokenType.LPAREN)
        ast_node = self.parse_required_expression()
        self.token_match(TokenType.RPAREN)
        return ast_node

    def parse_func_declaration(self) -> Optional[FuncDeclaration]:
        self.token_match(TokenType.LPAREN)
        params = list()
        while self.peek() != TokenType.RPAREN:
            param = self.try_consume(TokenType.ID)
            if param is None:
                return None
            params.append(param.value)
            if self.try_consume(TokenType.COMMA) is None:
                break
        if self.try_consume(TokenType.RPAREN) is None or self.try_consume(TokenType.ARROW) is None:
            return None
        return FuncDeclaration(params, self.parse_required_expression())

    def parse_assignment(self) -> AssignOp:
        self.token_match(TokenType.LET)
        name = self.token_match(TokenType.ID).value
        self.token_match(TokenType.ASSIGN)
        return AssignOp(name, self.parse_required_expression())

    def parse_if(self) -> If:
        self.token_match(TokenType.IF)
        self.token_match(TokenType.LPAREN)
        test = self.parse_required_expression()
        self.token_match(TokenType.RPAREN)
        consequent = self.parse_required_expression()
        if self.try_consume(TokenType.ELSE) is None:
            return If(test, consequent)
        return IfElse(test, consequent, self.parse_required_expression())

    def parse_identifier(self) -> Expression:
        name = self.token_match(TokenType.ID).value
        if self.try_consume(TokenType.LPAREN) is None:
            return Local(name)
        ast_node = FuncLocal(name)
        while self.peek() != TokenType.RPAREN:
            ast_node.arguments.append(self.parse_required_expression())
            if self.try_consume(TokenType.COMMA) is None:
                break
        self.token_match(TokenType.RPAREN)
        return ast_node
