import logging
from enum import Enum
from typing import List, Tuple, Union

from .parser import (
    Expression, Literal, Local, Block, Sequence, FuncDeclaration, If, IfElse, AssignOp, BinaryOp,
    Func0, Func1, FuncLocal,
)
from .lexer import TokenType
from .exceptions import CodeGeneratorError, ErrorCode

logger = logging.getLogger(__name__)


class ArgumentType(Enum):
    NONE = 'none'
    NUMBER = 'number'
    NAME = 'name'
    ROUTINE = 'routine'
    BRANCHES = 'branches'


class OPCode:
    def __init__(self, name: str, argument_type: ArgumentType):
        self.name: str = name
        self.argument_type: ArgumentType = argument_type

    def __repr__(self):
        return self.name


class OPCodes(Enum):
    PUSH = OPCode('PUSH', ArgumentType.NUMBER)  # push(number)
    PUSH_RANDOM = OPCode('PUSH_RANDOM', ArgumentType.NONE)  # push(random in [0, 1))
    LOAD_LOCAL = OPCode('LOAD_LOCAL', ArgumentType.NAME)  # push(name)，未定义时 push(0)
    ASSIGN = OPCode('ASSIGN', ArgumentType.NAME)  # name = TOS，优先写入已定义该变量的作用域
    SHADOW_ASSIGN = OPCode('SHADOW_ASSIGN', ArgumentType.NAME)  # name = TOS，只写入最内层作用域

    ADD = OPCode('ADD', ArgumentType.NONE)  # TOS = TOS1 + TOS
    SUB = OPCode('SUB', ArgumentType.NONE)  # TOS = TOS1 - TOS
    MUL = OPCode('MUL', ArgumentType.NONE)  # TOS = TOS1 * TOS
    DIV = OPCode('DIV', ArgumentType.NONE)  # TOS = TOS1 / TOS
    MOD = OPCode('MOD', ArgumentType.NONE)  # TOS = TOS1 % TOS
    POW = OPCode('POW', ArgumentType.NONE)  # TOS = TOS1 ^ TOS
    COMPARE_OP = OPCode('COMPARE_OP', ArgumentType.NUMBER)  # TOS = TOS1 (cmp_op[index]) TOS

    SIN = OPCode('SIN', ArgumentType.NONE)  # TOS = sin(TOS)，角度制
    COS = OPCode('COS', ArgumentType.NONE)  # TOS = cos(TOS)，角度制
    LOG = OPCode('LOG', ArgumentType.NONE)  # TOS = log10(TOS)
    ROUND = OPCode('ROUND', ArgumentType.NONE)  # TOS = round(TOS)
    FLOOR = OPCode('FLOOR', ArgumentType.NONE)  # TOS = floor(TOS)

    PUSH_ROUTINE = OPCode('PUSH_ROUTINE', ArgumentType.ROUTINE)  # push(routine)
    CALL_ROUTINE = OPCode('CALL_ROUTINE', ArgumentType.NONE)  # 弹出 routine，在新的作用域中执行
    SKIP_IF_NOT = OPCode('SKIP_IF_NOT', ArgumentType.ROUTINE)  # if (pop()) run(routine)
    IF_ELSE = OPCode('IF_ELSE', ArgumentType.BRANCHES)  # run(then if pop() else else)
    ENTER = OPCode('ENTER', ArgumentType.NONE)  # 进入新的作用域
    LEAVE = OPCode('LEAVE', ArgumentType.NONE)  # 离开当前作用域

    def __repr__(self):
        return repr(self.value)


cmp_op = ['<', '<=', '==', '!=', '>', '>=']

binary_operator_to_opcodes = {
    '+': OPCodes.ADD,
    '-': OPCodes.SUB,
    '*': OPCodes.MUL,
    '/': OPCodes.DIV,
    '%': OPCodes.MOD,
    '^': OPCodes.POW,
}

func_to_opcodes = {
    TokenType.RAND: OPCodes.PUSH_RANDOM,
    TokenType.SIN: OPCodes.SIN,
    TokenType.COS: OPCodes.COS,
    TokenType.LOG: OPCodes.LOG,
    TokenType.ROUND: OPCodes.ROUND,
    TokenType.FLOOR: OPCodes.FLOOR,
}

T_Argument = Union[None, float, int, str, List['Code'], Tuple[List['Code'], List['Code']]]


class Code:
    def __init__(self, opcode: OPCodes, argument: T_Argument = None):
        self.opcode: OPCodes = opcode
        self.argument: T_Argument = argument

    def __eq__(self, other):
        if not isinstance(other, Code):
            return NotImplemented
        return self.opcode == other.opcode and self.argument == other.argument

    def __repr__(self):
        if self.opcode.value.argument_type == ArgumentType.NONE:
            return repr(self.opcode)
        elif self.opcode == OPCodes.COMPARE_OP:
            return f'{self.opcode!r} {self.argument!r} ({cmp_op[self.argument]})'
        elif self.opcode.value.argument_type == ArgumentType.NUMBER:
            return f'{self.opcode!r} {self.argument!r}'
        elif self.opcode.value.argument_type == ArgumentType.NAME:
            return f'{self.opcode!r} {self.argument}'
        elif self.opcode.value.argument_type == ArgumentType.ROUTINE:
            return f'{self.opcode!r} ({len(self.argument)} codes)'
        elif self.opcode.value.argument_type == ArgumentType.BRANCHES:
            then_code_list, else_code_list = self.argument
            return f'{self.opcode!r} ({len(then_code_list)} codes, {len(else_code_list)} codes)'
        else:
            raise TypeError()


def disassemble(code_list: List[Code], indent: int = 0) -> str:
    """Render a code list as text, one code per line, nested routines indented below their code."""
    lines = list()
    padding = '    ' * indent
    for index, code in enumerate(code_list):
        lines.append(f'{padding}{index:>3} {code!r}')
        if code.opcode.value.argument_type == ArgumentType.ROUTINE:
            lines.append(disassemble(code.argument, indent + 1))
        elif code.opcode.value.argument_type == ArgumentType.BRANCHES:
            for label, branch in zip(('then', 'else'), code.argument):
                lines.append(f'{padding}    {label}:')
                lines.append(disassemble(branch, indent + 2))
    return '\n'.join(line for line in lines if line)


class CodeGenerator:
    def __init__(self, ast: Expression):
        self.ast: Expression = ast

    def generate(self) -> List[Code]:
        try:
            code_list = self.gen_code(self.ast)
        except RecursionError:
            raise CodeGeneratorError(ErrorCode.NESTING_TOO_DEEP) from None
        logger.debug('generated %d top-level codes', len(code_list))
        return code_list

    def gen_code(self, ast_node: Expression) -> List[Code]:
        code_list = list()
        if isinstance(ast_node, Literal):
            # Literal
            code_list.append(Code(OPCodes.PUSH, ast_node.value))
        elif isinstance(ast_node, Local):
            # Local
            code_list.append(Code(OPCodes.LOAD_LOCAL, ast_node.name))
        elif isinstance(ast_node, Sequence):
            # 顶层语句序列，不创建作用域
            for statement in ast_node.body:
                code_list += self.gen_code(statement)
        elif isinstance(ast_node, Block):
            # {}
            code_list.append(Code(OPCodes.ENTER))
            for statement in ast_node.body:
                code_list += self.gen_code(statement)
            code_list.append(Code(OPCodes.LEAVE))
        elif isinstance(ast_node, FuncDeclaration):
            # (params) => body
            routine = [Code(OPCodes.SHADOW_ASSIGN, param) for param in ast_node.params]
            routine += self.gen_code(ast_node.body)
            code_list.append(Code(OPCodes.PUSH_ROUTINE, routine))
        elif isinstance(ast_node, IfElse):
            # if (<cond>) <then> else <else>
            code_list += self.gen_code(ast_node.test)
            code_list.append(Code(OPCodes.IF_ELSE, (self.gen_code(ast_node.consequent),
                                                    self.gen_code(ast_node.alternate))))
        elif isinstance(ast_node, If):
            # if (<cond>) <then>
            code_list += self.gen_code(ast_node.test)
            code_list.append(Code(OPCodes.SKIP_IF_NOT, self.gen_code(ast_node.consequent)))
        elif isinstance(ast_node, AssignOp):
            # let
            code_list += self.gen_code(ast_node.value)
            code_list.append(Code(OPCodes.ASSIGN, ast_node.name))
        elif isinstance(ast_node, BinaryOp):
            # 二元运算，沿左侧运算数展开，长算式不递归
            chain = list()
            while isinstance(ast_node, BinaryOp):
                chain.append(ast_node)
                ast_node = ast_node.left
            code_list += self.gen_code(ast_node)
            for binary_op in reversed(chain):
                code_list += self.gen_code(binary_op.right)
                operator = binary_op.operator.value
                if operator in cmp_op:
                    code_list.append(Code(OPCodes.COMPARE_OP, cmp_op.index(operator)))
                else:
                    code_list.append(Code(binary_operator_to_opcodes[operator]))
        elif isinstance(ast_node, Func0):
            code_list.append(Code(func_to_opcodes[ast_node.func]))
        elif isinstance(ast_node, Func1):
            code_list += self.gen_code(ast_node.argument)
            if ast_node.func == TokenType.SQRT:
                code_list += [
                    Code(OPCodes.PUSH, 0.5),
                    Code(OPCodes.POW),
                ]
            else:
                code_list.append(Code(func_to_opcodes[ast_node.func]))
        elif isinstance(ast_node, FuncLocal):
            # 函数调用，参数逆序入栈
            for argument in reversed(ast_node.arguments):
                code_list += self.gen_code(argument)
            code_list += [
                Code(OPCodes.LOAD_LOCAL, ast_node.name),
                Code(OPCodes.CALL_ROUTINE),
            ]
        else:
            raise CodeGeneratorError(ErrorCode.UNEXPECTED_AST_NODE, message=repr(ast_node))
        return code_list
