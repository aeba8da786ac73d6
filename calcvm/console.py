"""Error display for the command line. Compile and runtime errors raised inside an :class:`ErrorHandler`
block are printed with the offending part of the expression highlighted instead of propagating.
"""

import sys
from typing import Optional

from termcolor import colored

from .cursor import Location
from .exceptions import InterpreterError, VMError


class ErrorHandler:
    """Context manager that reports calcvm errors for one expression and suppresses them."""
    ERROR = 'red'
    WARNING = 'magenta'

    def __init__(self, source: str = '', file=None):
        self.source = source
        self.file = file if file is not None else sys.stderr
        self.failed = False

    @staticmethod
    def diagnose(source: str, location: Location, color: str) -> str:
        """Returns the line of ``source`` containing ``location`` with a caret under it."""
        lines = source.splitlines() or ['']
        line = lines[min(location.lineno, len(lines)) - 1]
        column = min(location.column - 1, len(line))

        diagnosis = '  ' + line[:column]
        diagnosis += colored(line[column:], color, attrs=['bold']) + '\n'
        diagnosis += '  ' + ' ' * column + colored('^', color, attrs=['bold'])
        return diagnosis

    def warn(self, message: str):
        print(colored('warning: ', ErrorHandler.WARNING, attrs=['bold']) + message, file=self.file)

    def throw(self, error: InterpreterError):
        self.failed = True
        label = 'runtime error: ' if isinstance(error, VMError) else 'error: '
        print(colored(label, ErrorHandler.ERROR, attrs=['bold']) + str(error), file=self.file)

        location: Optional[Location] = error.location
        if location is not None and self.source:
            print(ErrorHandler.diagnose(self.source, location, ErrorHandler.ERROR), file=self.file)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and issubclass(exc_type, InterpreterError):
            self.throw(exc_val)
            return True
        return False
