import math
from decimal import Decimal
from enum import Enum

from .exceptions import CompileError, ErrorCode
from .parser import (
    Expression, Literal, Local, Block, Sequence, FuncDeclaration, If, IfElse, AssignOp, BinaryOp,
    Func0, Func1, FuncLocal,
)


class FormatMode(Enum):
    MINIFIED = 'minified'
    SPACED = 'spaced'
    INDENTED = 'indented'


INDENT = '    '

# 作为运算数时必须加括号，否则会吞掉后面的运算符
open_ended_nodes = (AssignOp, If, FuncDeclaration)


def format_number(value: float) -> str:
    if math.isinf(value):
        # 溢出的字面量，重新解析后仍为 inf
        text = format(Decimal('1e309'), 'f')
        return '-' + text if value < 0 else text
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if 'e' in text:
        text = format(Decimal(text), 'f')
    return text


class PrettyPrinter:
    def __init__(self, mode: FormatMode = FormatMode.SPACED):
        self.mode: FormatMode = mode

    @property
    def space(self) -> str:
        return '' if self.mode == FormatMode.MINIFIED else ' '

    def separator(self, indent: int) -> str:
        if self.mode == FormatMode.INDENTED:
            return ';\n' + INDENT * indent
        return ';' + self.space

    def format(self, ast_node: Expression, indent: int = 0) -> str:
        s = self.space
        if isinstance(ast_node, Literal):
            return format_number(ast_node.value)
        elif isinstance(ast_node, Local):
            return ast_node.name
        elif isinstance(ast_node, Sequence):
            return self.separator(indent).join(self.format(statement, indent) for statement in ast_node.body)
        elif isinstance(ast_node, Block):
            if not ast_node.body:
                return '{}'
            body = self.separator(indent + 1).join(self.format(statement, indent + 1) for statement in ast_node.body)
            if self.mode == FormatMode.INDENTED:
                return '{\n' + INDENT * (indent + 1) + body + '\n' + INDENT * indent + '}'
            return '{' + s + body + s + '}'
        elif isinstance(ast_node, FuncDeclaration):
            params = (',' + s).join(ast_node.params)
            return f'({params}){s}=>{s}{self.format(ast_node.body, indent)}'
        elif isinstance(ast_node, IfElse):
            consequent = self.format_consequent(ast_node.consequent, indent, has_else=True)
            return (f'if{s}({self.format(ast_node.test, indent)}){s}{consequent} '
                    f'else {self.format(ast_node.alternate, indent)}')
        elif isinstance(ast_node, If):
            consequent = self.format_consequent(ast_node.consequent, indent)
            return f'if{s}({self.format(ast_node.test, indent)}){s}{consequent}'
        elif isinstance(ast_node, AssignOp):
            return f'let {ast_node.name}{s}={s}{self.format(ast_node.value, indent)}'
        elif isinstance(ast_node, BinaryOp):
            # 不需要括号的左侧运算链逐层展开
            chain = [ast_node]
            while isinstance(ast_node.left, BinaryOp) and \
                    ast_node.left.operator.precedence >= ast_node.operator.precedence:
                ast_node = ast_node.left
                chain.append(ast_node)
            text = self.format_operand(ast_node.left, indent, ast_node.operator.precedence)
            for binary_op in reversed(chain):
                right = self.format_operand(binary_op.right, indent, binary_op.operator.precedence + 1)
                text = f'{text}{s}{binary_op.operator.value}{s}{right}'
            return text
        elif isinstance(ast_node, Func0):
            return f'{ast_node.func.value}()'
        elif isinstance(ast_node, Func1):
            return f'{ast_node.func.value}({self.format(ast_node.argument, indent)})'
        elif isinstance(ast_node, FuncLocal):
            arguments = (',' + s).join(self.format(argument, indent) for argument in ast_node.arguments)
            return f'{ast_node.name}({arguments})'
        raise TypeError(f'cannot format {ast_node!r}')

    def format_operand(self, ast_node: Expression, indent: int, min_precedence: int = 0) -> str:
        text = self.format(ast_node, indent)
        if isinstance(ast_node, open_ended_nodes) or \
                (isinstance(ast_node, BinaryOp) and ast_node.operator.precedence < min_precedence):
            return f'({text})'
        return text

    def format_consequent(self, ast_node: Expression, indent: int, has_else: bool = False) -> str:
        if has_else:
            text = self.format_operand(ast_node, indent)
        else:
            text = self.format(ast_node, indent)
        # ) 之后的负号会被当作减号
        if text.startswith('-'):
            return f'({text})'
        return text


def pretty_print(ast: Expression, mode: FormatMode = FormatMode.SPACED) -> str:
    try:
        return PrettyPrinter(mode).format(ast)
    except RecursionError:
        raise CompileError(ErrorCode.NESTING_TOO_DEEP) from None
