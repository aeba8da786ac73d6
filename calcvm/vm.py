import math
import random
import logging
from typing import Callable, Dict, List, Optional

from .calc_data import NumberData, RoutineData, ScopeFrame, T_Data, to_number
from .codegen import Code, OPCodes, cmp_op
from .exceptions import VMError, ErrorCode

logger = logging.getLogger(__name__)


def _is_odd_integer(x: NumberData) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1


# 以下运算遵循 IEEE-754，不抛出 Python 异常
def ieee_div(lhs: NumberData, rhs: NumberData) -> NumberData:
    try:
        return lhs / rhs
    except ZeroDivisionError:
        if lhs == 0 or math.isnan(lhs):
            return math.nan
        return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)


def ieee_mod(lhs: NumberData, rhs: NumberData) -> NumberData:
    try:
        return math.fmod(lhs, rhs)
    except ValueError:
        return math.nan


def ieee_pow(lhs: NumberData, rhs: NumberData) -> NumberData:
    try:
        return math.pow(lhs, rhs)
    except OverflowError:
        if lhs < 0 and _is_odd_integer(rhs):
            return -math.inf
        return math.inf
    except ValueError:
        if lhs == 0:
            # 0 的负数次幂
            if _is_odd_integer(-rhs):
                return math.copysign(math.inf, lhs)
            return math.inf
        return math.nan


def degree_sin(x: NumberData) -> NumberData:
    if not math.isfinite(x):
        return math.nan
    return math.sin(math.radians(x))


def degree_cos(x: NumberData) -> NumberData:
    if not math.isfinite(x):
        return math.nan
    return math.cos(math.radians(x))


def ieee_log10(x: NumberData) -> NumberData:
    if x == 0:
        return -math.inf
    if x < 0 or math.isnan(x):
        return math.nan
    return math.log10(x)


def round_half_away(x: NumberData) -> NumberData:
    if not math.isfinite(x):
        return x
    magnitude = math.floor(abs(x))
    if abs(x) - magnitude >= 0.5:
        magnitude += 1
    return math.copysign(float(magnitude), x)


def ieee_floor(x: NumberData) -> NumberData:
    if not math.isfinite(x):
        return x
    return float(math.floor(x))


BINARY_OPCODES: Dict[OPCodes, Callable[[NumberData, NumberData], NumberData]] = {
    OPCodes.ADD: lambda lhs, rhs: lhs + rhs,
    OPCodes.SUB: lambda lhs, rhs: lhs - rhs,
    OPCodes.MUL: lambda lhs, rhs: lhs * rhs,
    OPCodes.DIV: ieee_div,
    OPCodes.MOD: ieee_mod,
    OPCodes.POW: ieee_pow,
}
UNARY_OPCODES: Dict[OPCodes, Callable[[NumberData], NumberData]] = {
    OPCodes.SIN: degree_sin,
    OPCodes.COS: degree_cos,
    OPCodes.LOG: ieee_log10,
    OPCodes.ROUND: round_half_away,
    OPCodes.FLOOR: ieee_floor,
}
COMPARE_OPERATORS: Dict[str, Callable[[NumberData, NumberData], bool]] = {
    '<': lambda lhs, rhs: lhs < rhs,
    '<=': lambda lhs, rhs: lhs <= rhs,
    '==': lambda lhs, rhs: lhs == rhs,
    '!=': lambda lhs, rhs: lhs != rhs,
    '>': lambda lhs, rhs: lhs > rhs,
    '>=': lambda lhs, rhs: lhs >= rhs,
}


class VM:
    """Stack machine that keeps its variables between runs.

    A VM is meant to live as long as a calculator session: every ``run`` shares the
    global scope frame, so ``let`` bindings made by one run are visible to the next.
    It is not safe to share between threads.
    """

    def __init__(self, seed: Optional[int] = None):
        self.operate_stack: List[T_Data] = list()
        self.scope_stack: List[ScopeFrame] = [ScopeFrame()]
        self.random: random.Random = random.Random(seed)
        self.diagnostics: List[str] = list()

    @property
    def global_scope(self) -> ScopeFrame:
        return self.scope_stack[0]

    def run(self, code_list: List[Code]):
        self.operate_stack = list()
        self.diagnostics = list()
        depth = len(self.scope_stack)
        try:
            self.run_code_list(code_list)
        except RecursionError:
            raise VMError(ErrorCode.RECURSION_LIMIT)
        finally:
            # 出错时丢弃未离开的作用域，已写入的变量保留
            del self.scope_stack[depth:]

    def pop_result(self) -> Optional[NumberData]:
        if not self.operate_stack:
            return None
        return to_number(self.operate_stack.pop())

    def diagnose(self, error_code: ErrorCode, message: str):
        diagnostic = f'{error_code.value}: {message}'
        self.diagnostics.append(diagnostic)
        logger.warning(diagnostic)

    def pop(self, code: Code) -> T_Data:
        if not self.operate_stack:
            raise VMError(ErrorCode.STACK_UNDERFLOW, f'{code!r} requires an operand')
        return self.operate_stack.pop()

    def pop_number(self, code: Code) -> NumberData:
        return to_number(self.pop(code))

    def load_local(self, name: str) -> T_Data:
        for scope in reversed(self.scope_stack):
            if name in scope:
                return scope[name]
        self.diagnose(ErrorCode.UNDEFINED_VARIABLE, name)
        return 0.0

    def assign(self, name: str, value: T_Data):
        for scope in reversed(self.scope_stack):
            if name in scope:
                scope[name] = value
                return
        self.scope_stack[-1][name] = value

    def call_routine(self, value: T_Data):
        if not isinstance(value, RoutineData):
            self.diagnose(ErrorCode.NOT_CALLABLE, repr(value))
            return
        depth = len(self.scope_stack)
        self.scope_stack.append(ScopeFrame())
        try:
            self.run_code_list(value.code_list)
        finally:
            del self.scope_stack[depth:]

    def run_code_list(self, code_list: List[Code]):
        for code in code_list:
            opcode = code.opcode
            if opcode == OPCodes.PUSH:
                self.operate_stack.append(code.argument)
            elif opcode == OPCodes.PUSH_RANDOM:
                self.operate_stack.append(self.random.random())
            elif opcode == OPCodes.LOAD_LOCAL:
                self.operate_stack.append(self.load_local(code.argument))
            elif opcode == OPCodes.ASSIGN:
                self.assign(code.argument, self.pop(code))
            elif opcode == OPCodes.SHADOW_ASSIGN:
                self.scope_stack[-1][code.argument] = self.pop(code)
            elif opcode in BINARY_OPCODES:
                rhs = self.pop_number(code)
                lhs = self.pop_number(code)
                self.operate_stack.append(BINARY_OPCODES[opcode](lhs, rhs))
            elif opcode == OPCodes.COMPARE_OP:
                rhs = self.pop_number(code)
                lhs = self.pop_number(code)
                result = COMPARE_OPERATORS[cmp_op[code.argument]](lhs, rhs)
                self.operate_stack.append(1.0 if result else 0.0)
            elif opcode in UNARY_OPCODES:
                self.operate_stack.append(UNARY_OPCODES[opcode](self.pop_number(code)))
            elif opcode == OPCodes.PUSH_ROUTINE:
                self.operate_stack.append(RoutineData(code.argument))
            elif opcode == OPCodes.CALL_ROUTINE:
                self.call_routine(self.pop(code))
            elif opcode == OPCodes.SKIP_IF_NOT:
                if self.pop_number(code) != 0:
                    self.run_code_list(code.argument)
            elif opcode == OPCodes.IF_ELSE:
                then_code_list, else_code_list = code.argument
                if self.pop_number(code) != 0:
                    self.run_code_list(then_code_list)
                else:
                    self.run_code_list(else_code_list)
            elif opcode == OPCodes.ENTER:
                self.scope_stack.append(ScopeFrame())
            elif opcode == OPCodes.LEAVE:
                if len(self.scope_stack) == 1:
                    raise VMError(ErrorCode.SCOPE_UNDERFLOW)
                self.scope_stack.pop()
            else:
                raise VMError(ErrorCode.UNEXPECTED_OPCODE, repr(code))
