""" Error taxonomy for the narrative engine.

NarrativeError is raised at internal seams (validation helpers, parsers) and
caught at public operation boundaries which log and report failure to the
caller. Nothing here is fatal to a running game.
"""

import enum
from typing import Any

class NarrativeErrorCase(enum.Enum):
    # bad authored content, e.g. duplicate event ids
    CONFIG = enum.auto()
    # reference to an event id that doesn't exist
    LOOKUP = enum.auto()
    # bad input from a caller, e.g. choice index out of range
    VALIDATION = enum.auto()
    # operation not valid in the current session state
    STATE = enum.auto()
    # malformed effect token
    PARSE = enum.auto()

class NarrativeError(Exception):
    def __init__(self, case:NarrativeErrorCase, *args:Any, **kwargs:Any) -> None:
        super().__init__(*args, **kwargs)
        self.case = case
