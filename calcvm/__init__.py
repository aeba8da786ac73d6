import logging
from typing import List, Optional

from .cursor import Cursor, Chomp, Location
from .lexer import Lexer, Token, TokenType, tokenize
from .parser import Parser, Expression
from .codegen import CodeGenerator, Code, OPCodes, disassemble
from .vm import VM
from .pretty import FormatMode, pretty_print
from .exceptions import InterpreterError, CompileError, LexerError, ParserError, VMError, ErrorCode

# 词法解析 -> 语法解析 -> 代码生成 -> 虚拟机
# lexer -> parser -> codegen -> vm

logger = logging.getLogger(__name__)

Program = List[Code]


def parse_source(source: str) -> Expression:
    tokens = list(tokenize(source))
    logger.debug('tokenized %d token(s)', len(tokens))
    return Parser(tokens).parse()


def compile_source(source: str) -> Program:
    return CodeGenerator(parse_source(source)).generate()


def format_source(source: str, mode: FormatMode = FormatMode.SPACED) -> str:
    return pretty_print(parse_source(source), mode)


def compute(vm: VM, source: str) -> Optional[float]:
    vm.run(compile_source(source))
    return vm.pop_result()
