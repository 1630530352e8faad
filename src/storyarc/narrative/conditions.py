""" Event trigger conditions and their evaluation.

A condition compares one live value against a threshold. The live value comes
from a metrics snapshot, the clock, or the flag store (1 if the flag is set,
0 otherwise). A condition set is satisfied only if every condition is.
"""

import enum
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional, TypeAlias, assert_never

from storyarc import util, config

class Comparison(enum.Enum):
    LT = "<"
    GT = ">"
    EQ = "=="
    LE = "<="
    GE = ">="
    NE = "!="

    def compare(self, lhs:float, rhs:float) -> bool:
        match self:
            case Comparison.LT:
                return lhs < rhs
            case Comparison.GT:
                return lhs > rhs
            case Comparison.EQ:
                return util.isclose(lhs, rhs)
            case Comparison.LE:
                return lhs <= rhs
            case Comparison.GE:
                return lhs >= rhs
            case Comparison.NE:
                return not util.isclose(lhs, rhs)
            case _:
                assert_never(self)

class Metric(enum.Enum):
    HEALTH = "health"
    VALENCE = "valence"
    AROUSAL = "arousal"
    GOLD = "gold"
    WORK_SKILL = "work_skill"
    EMOTION_STABILITY = "emotion_stability"
    HUNGER = "hunger"
    CONSECUTIVE_WORK_DAYS = "consecutive_work_days"
    TOTAL_GOLD_EARNED = "total_gold_earned"

@dataclass(frozen=True)
class MetricsSnapshot:
    """ Read-only view of the player's numbers at one moment.

    Anything a provider doesn't track reads as zero.
    """
    health:float = 0.
    valence:float = 0.
    arousal:float = 0.
    gold:float = 0.
    work_skill:float = 0.
    emotion_stability:float = 0.
    hunger:float = 0.
    consecutive_work_days:float = 0.
    total_gold_earned:float = 0.

    def value(self, metric:Metric) -> float:
        return getattr(self, metric.value)

@dataclass(frozen=True)
class ClockSnapshot:
    day_of_week:int = 1
    week:int = 1
    time_slot:str = ""

@dataclass(frozen=True)
class MetricCondition:
    metric:Metric
    op:Comparison
    value:float

@dataclass(frozen=True)
class DayOfWeekCondition:
    op:Comparison
    value:float

@dataclass(frozen=True)
class TimeOfDayCondition:
    op:Comparison
    value:float

@dataclass(frozen=True)
class FlagCondition:
    flag:str
    op:Comparison = Comparison.EQ
    value:float = 1.

Condition: TypeAlias = MetricCondition | DayOfWeekCondition | TimeOfDayCondition | FlagCondition

def _no_flags(flag:str) -> bool:
    return False

@dataclass(frozen=True)
class EvaluationContext:
    metrics:MetricsSnapshot = field(default_factory=MetricsSnapshot)
    has_flag:Callable[[str], bool] = _no_flags
    clock:ClockSnapshot = field(default_factory=ClockSnapshot)

def time_slot_ordinal(slot_name:str, time_slots:Optional[Sequence[Sequence[str]]]=None) -> int:
    """ ordinal of a named time of day slot, -1 if the name is unknown

    time_slots is a list of alias lists indexed by ordinal, defaulting to the
    configured clock slots.
    """
    if time_slots is None:
        time_slots = config.Settings.clock.time_slots
    for i, aliases in enumerate(time_slots):
        if slot_name in aliases:
            return i
    return -1

def evaluate(condition:Condition, context:EvaluationContext) -> bool:
    match condition:
        case MetricCondition(metric=metric, op=op, value=value):
            return op.compare(context.metrics.value(metric), value)
        case DayOfWeekCondition(op=op, value=value):
            return op.compare(context.clock.day_of_week, value)
        case TimeOfDayCondition(op=op, value=value):
            ordinal = time_slot_ordinal(context.clock.time_slot)
            if ordinal < 0:
                return False
            return op.compare(ordinal, value)
        case FlagCondition(flag=flag, op=op, value=value):
            return op.compare(1. if context.has_flag(flag) else 0., value)
        case _:
            assert_never(condition)

def evaluate_all(conditions:Iterable[Condition], context:EvaluationContext) -> bool:
    """ AND of all conditions, true for no conditions """
    return all(evaluate(c, context) for c in conditions)
