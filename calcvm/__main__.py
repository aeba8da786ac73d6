"""Evaluates calculator expressions given on the command line, in order, on one VM, so ``let``
bindings made by an expression are visible to the ones after it.
"""

import sys
import logging
import argparse

from . import compile_source, format_source, disassemble, FormatMode, VM
from .console import ErrorHandler
from .pretty import format_number


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog='calcvm',
        description='Compile and evaluate calculator expressions',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  calcvm "2 + 3 * 5"
  calcvm "let f = (x) => x^2" "f(12)"
  calcvm --format indented "let calc = (x) => { let y = 2(x + 1); y^2 + y + 3 }"
        """,
    )
    parser.add_argument('expressions', nargs='+', metavar='EXPR', help='expression to evaluate')
    parser.add_argument('-s', '--seed', type=int, help='seed for rand()')
    parser.add_argument(
        '-f',
        '--format',
        choices=[mode.value for mode in FormatMode],
        help='print the expression reformatted instead of evaluating it',
    )
    parser.add_argument('-b', '--bytecode', action='store_true', help='print the compiled codes before running')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format='[%(levelname)s %(name)s] %(message)s',
    )

    vm = VM(seed=args.seed)
    status = 0
    for expression in args.expressions:
        with ErrorHandler(expression) as error_handler:
            if args.format is not None:
                print(format_source(expression, FormatMode(args.format)))
                continue

            program = compile_source(expression)
            if args.bytecode:
                print(disassemble(program))
            vm.run(program)
            for diagnostic in vm.diagnostics:
                error_handler.warn(diagnostic)

            result = vm.pop_result()
            print(f'result = {format_number(result)}' if result is not None else 'result = undefined')
        if error_handler.failed:
            status = 1
    return status


if __name__ == '__main__':
    sys.exit(main())
