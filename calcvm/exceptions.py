from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .cursor import Location


class ErrorCode(Enum):
    # LexerError
    LEXER_ERROR = 'could not interpret input tokens'

    # ParserError
    UNEXPECTED_TOKEN = 'could not compile program'
    REMAINING_TOKENS = 'failed to compile remaining tokens'
    EMPTY_PROGRAM = 'empty program expression!'
    AMBIGUOUS_OPERAND = 'missing operator between operands'
    NESTING_TOO_DEEP = 'expression is nested too deeply'

    # CodeGeneratorError
    UNEXPECTED_AST_NODE = 'Unexpected ast node'

    # VMError
    STACK_UNDERFLOW = 'missing operand'
    SCOPE_UNDERFLOW = 'cannot leave the global scope'
    RECURSION_LIMIT = 'maximum recursion depth exceeded'
    UNEXPECTED_OPCODE = 'Unexpected opcode'

    # diagnostics, recorded by the VM but never raised
    UNDEFINED_VARIABLE = 'undefined variable'
    NOT_CALLABLE = 'value is not callable'


class InterpreterError(Exception):
    def __init__(self, error_code: ErrorCode, message: str = '', location: Optional['Location'] = None):
        self.error_code = error_code
        self.message = message
        self.location = location
        # 在message前添加异常类名
        text = f'{self.__class__.__name__}: {error_code.value}'
        if message:
            text += f': {message}'
        super().__init__(text)


class CompileError(InterpreterError):
    pass


class LexerError(CompileError):
    pass


class ParserError(CompileError):
    pass


class CodeGeneratorError(CompileError):
    pass


class VMError(InterpreterError):
    pass
