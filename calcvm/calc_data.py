from typing import Dict, List, Union

from .codegen import Code


NumberData = float


class RoutineData:
    """A closure value: only its compiled codes, no captured environment."""

    def __init__(self, code_list: List[Code]):
        self.code_list: List[Code] = code_list

    def __eq__(self, other):
        if not isinstance(other, RoutineData):
            return NotImplemented
        return self.code_list == other.code_list

    def __repr__(self):
        return f'routine({len(self.code_list)} codes)'


T_Data = Union[NumberData, RoutineData]


class ScopeFrame(Dict[str, T_Data]):
    pass


def to_number(data: T_Data) -> NumberData:
    # routine 非空为 1.0，空为 0.0
    if isinstance(data, RoutineData):
        return 1.0 if data.code_list else 0.0
    return data
