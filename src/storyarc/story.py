""" Story lines and their phases over the month.

Each of the five story lines moves through four phases on a fixed calendar.
Transitions are purely a function of the day of the month, phases never move
backwards, and each checkpoint raises a named milestone when it's reached.

Separately, each line keeps a history of the story choices the player made
on it. The valence change of the latest choice sets the line's status
(positive, neutral or negative), and the statuses together give an overall
reading of how the month is going.
"""

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, TypeAlias

from storyarc import util, config
from storyarc.base import Observable
from storyarc.narrative.catalog import EventCatalog

class StoryLine(enum.Enum):
    CAREER = "career"
    MENTAL_HEALTH = "mental_health"
    RELATIONSHIP = "relationship"
    FINANCIAL = "financial"
    SELF_AWARENESS = "self_awareness"

class CareerPhase(enum.Enum):
    EXPLORATION = "exploration"
    DEVELOPMENT = "development"
    CRITICAL_TURNING = "critical_turning"
    HARVEST = "harvest"

class MentalHealthPhase(enum.Enum):
    STABLE = "stable"
    FLUCTUATION = "fluctuation"
    CRITICAL_TURNING = "critical_turning"
    NEW_BALANCE = "new_balance"

class RelationshipPhase(enum.Enum):
    ISOLATION = "isolation"
    CONNECTION = "connection"
    CRITICAL_TURNING = "critical_turning"
    NEW_RELATIONSHIP = "new_relationship"

class FinancialPhase(enum.Enum):
    POVERTY = "poverty"
    STABILITY = "stability"
    CRITICAL_TURNING = "critical_turning"
    COMFORT = "comfort"

class SelfAwarenessPhase(enum.Enum):
    CONFUSION = "confusion"
    REFLECTION = "reflection"
    RECOGNITION = "recognition"
    FUTURE = "future"

StoryPhase: TypeAlias = CareerPhase | MentalHealthPhase | RelationshipPhase | FinancialPhase | SelfAwarenessPhase

PHASE_TYPES:dict[StoryLine, type[enum.Enum]] = {
    StoryLine.CAREER: CareerPhase,
    StoryLine.MENTAL_HEALTH: MentalHealthPhase,
    StoryLine.RELATIONSHIP: RelationshipPhase,
    StoryLine.FINANCIAL: FinancialPhase,
    StoryLine.SELF_AWARENESS: SelfAwarenessPhase,
}

@dataclass(frozen=True)
class Checkpoint:
    day:int
    phase:StoryPhase
    milestone:str

PHASE_TABLES:dict[StoryLine, tuple[Checkpoint, ...]] = {
    StoryLine.CAREER: (
        Checkpoint(1, CareerPhase.EXPLORATION, "career_exploration_begins"),
        Checkpoint(8, CareerPhase.DEVELOPMENT, "career_development_begins"),
        Checkpoint(15, CareerPhase.CRITICAL_TURNING, "career_turning_point"),
        Checkpoint(22, CareerPhase.HARVEST, "career_harvest"),
    ),
    StoryLine.MENTAL_HEALTH: (
        Checkpoint(1, MentalHealthPhase.STABLE, "mental_health_baseline"),
        Checkpoint(8, MentalHealthPhase.FLUCTUATION, "mental_health_fluctuation_begins"),
        Checkpoint(15, MentalHealthPhase.CRITICAL_TURNING, "mental_health_crisis_or_recovery"),
        Checkpoint(22, MentalHealthPhase.NEW_BALANCE, "mental_health_new_balance"),
    ),
    StoryLine.RELATIONSHIP: (
        Checkpoint(1, RelationshipPhase.ISOLATION, "relationship_starts_alone"),
        Checkpoint(8, RelationshipPhase.CONNECTION, "relationship_first_connection"),
        Checkpoint(15, RelationshipPhase.CRITICAL_TURNING, "relationship_deepening_or_breaking"),
        Checkpoint(22, RelationshipPhase.NEW_RELATIONSHIP, "relationship_new_bonds"),
    ),
    StoryLine.FINANCIAL: (
        Checkpoint(1, FinancialPhase.POVERTY, "financial_tight_budget"),
        Checkpoint(8, FinancialPhase.STABILITY, "financial_stabilizing"),
        Checkpoint(15, FinancialPhase.CRITICAL_TURNING, "financial_opportunity_or_crisis"),
        Checkpoint(22, FinancialPhase.COMFORT, "financial_comfortable"),
    ),
    # self awareness reflects at the end of each week rather than the start
    StoryLine.SELF_AWARENESS: (
        Checkpoint(1, SelfAwarenessPhase.CONFUSION, "self_awareness_confusion"),
        Checkpoint(7, SelfAwarenessPhase.REFLECTION, "self_awareness_first_reflection"),
        Checkpoint(15, SelfAwarenessPhase.RECOGNITION, "self_awareness_recognition"),
        Checkpoint(28, SelfAwarenessPhase.FUTURE, "self_awareness_final_reflection"),
    ),
}

class StoryLineStatus(enum.IntEnum):
    VERY_NEGATIVE = -2
    NEGATIVE = -1
    NEUTRAL = 0
    POSITIVE = 1
    VERY_POSITIVE = 2

class OverallStoryStatus(enum.Enum):
    VERY_NEGATIVE = "very_negative"
    NEGATIVE = "negative"
    BALANCED = "balanced"
    POSITIVE = "positive"
    VERY_POSITIVE = "very_positive"

# valence change a choice needs before it moves its line off neutral
STATUS_VALENCE_THRESHOLD = 1.
# positive lines for the month to read as very positive
VERY_POSITIVE_LINES = 3

@dataclass(frozen=True)
class StoryChoice:
    event_id:str
    choice_id:str
    day:int
    valence_delta:float = 0.

def status_for_valence(valence_delta:float) -> StoryLineStatus:
    if valence_delta > STATUS_VALENCE_THRESHOLD:
        return StoryLineStatus.POSITIVE
    elif valence_delta < -STATUS_VALENCE_THRESHOLD:
        return StoryLineStatus.NEGATIVE
    return StoryLineStatus.NEUTRAL

class StoryObserver:
    def phase_changed(self, line:StoryLine, old_phase:StoryPhase, new_phase:StoryPhase) -> None:
        pass

    def milestone_reached(self, milestone:str) -> None:
        pass

    def status_changed(self, line:StoryLine, old_status:StoryLineStatus, new_status:StoryLineStatus) -> None:
        pass

class StoryPhaseTracker(Observable[StoryObserver]):
    """ Advances every story line to match the day of the month.

    update is idempotent and monotonic: calling it with an earlier day than
    it has already seen does nothing.
    """

    def __init__(self, turning_point_week:Optional[int]=None, climax_milestone:Optional[str]=None) -> None:
        super().__init__()
        self.logger = logging.getLogger(util.fullname(self))
        self.turning_point_week = turning_point_week if turning_point_week is not None else config.Settings.story.turning_point_week
        self.climax_milestone = climax_milestone if climax_milestone is not None else config.Settings.story.climax_milestone

        # index into PHASE_TABLES of the last checkpoint reached, -1 before day 1
        self._checkpoints:dict[StoryLine, int] = {line: -1 for line in StoryLine}
        self.last_day = 0
        self.climax_reached = False
        self.milestones_reached:list[str] = []

        self._choices:dict[StoryLine, list[StoryChoice]] = {line: [] for line in StoryLine}
        self._statuses:dict[StoryLine, StoryLineStatus] = {line: StoryLineStatus.NEUTRAL for line in StoryLine}

    @property
    def climax_day(self) -> int:
        return self.turning_point_week * 7

    def current_phase(self, line:StoryLine) -> StoryPhase:
        return PHASE_TABLES[line][max(0, self._checkpoints[line])].phase

    def phases(self) -> dict[StoryLine, StoryPhase]:
        return {line: self.current_phase(line) for line in StoryLine}

    def _reach_milestone(self, milestone:str) -> None:
        self.logger.info(f'milestone reached: {milestone}')
        self.milestones_reached.append(milestone)
        for observer in self.observers:
            observer.milestone_reached(milestone)

    def update(self, day:int) -> None:
        if day <= self.last_day:
            return

        for line in StoryLine:
            table = PHASE_TABLES[line]
            idx = self._checkpoints[line]
            while idx + 1 < len(table) and table[idx + 1].day <= day:
                old_phase = self.current_phase(line)
                idx += 1
                self._checkpoints[line] = idx
                checkpoint = table[idx]
                if checkpoint.phase != old_phase:
                    self.logger.info(f'{line.value} moved from {old_phase.value} to {checkpoint.phase.value} on day {day}')
                    for observer in self.observers:
                        observer.phase_changed(line, old_phase, checkpoint.phase)
                self._reach_milestone(checkpoint.milestone)

        # every line is in its turning point phase by the last day of that week
        if not self.climax_reached and self.last_day < self.climax_day <= day:
            self.climax_reached = True
            self._reach_milestone(self.climax_milestone)

        self.last_day = day

    def record_choice(self, line:StoryLine, event_id:str, choice_id:str, valence_delta:float=0., day:Optional[int]=None) -> StoryChoice:
        """ Adds a choice to line's history and updates the line's status.

        The status follows the latest choice only: a valence change above
        the threshold reads positive, below its negative reads negative and
        anything in between resets the line to neutral.
        """
        choice = StoryChoice(event_id, choice_id, day if day is not None else self.last_day, valence_delta)
        self._choices[line].append(choice)
        self.logger.debug(f'{line.value} recorded {event_id}/{choice_id} (V{valence_delta:+})')

        old_status = self._statuses[line]
        new_status = status_for_valence(valence_delta)
        self._statuses[line] = new_status
        if new_status != old_status:
            self.logger.info(f'{line.value} status {old_status.name.lower()} -> {new_status.name.lower()}')
            for observer in self.observers:
                observer.status_changed(line, old_status, new_status)
        return choice

    def choice_history(self, line:StoryLine) -> list[StoryChoice]:
        return list(self._choices[line])

    def has_made_choice(self, line:StoryLine, choice_id:str) -> bool:
        return any(x.choice_id == choice_id for x in self._choices[line])

    def status(self, line:StoryLine) -> StoryLineStatus:
        return self._statuses[line]

    def statuses(self) -> dict[StoryLine, StoryLineStatus]:
        return dict(self._statuses)

    def overall_status(self) -> OverallStoryStatus:
        positive = sum(1 for x in self._statuses.values() if x > StoryLineStatus.NEUTRAL)
        negative = sum(1 for x in self._statuses.values() if x < StoryLineStatus.NEUTRAL)
        if positive >= VERY_POSITIVE_LINES:
            return OverallStoryStatus.VERY_POSITIVE
        elif positive > negative:
            return OverallStoryStatus.POSITIVE
        elif negative > positive:
            return OverallStoryStatus.NEGATIVE
        return OverallStoryStatus.BALANCED

    def export_choices(self) -> dict[str, list[StoryChoice]]:
        return {line.value: list(choices) for line, choices in self._choices.items()}

    def export_statuses(self) -> dict[str, int]:
        return {line.value: int(status) for line, status in self._statuses.items()}

    def import_choices(self, choices:Mapping[str, list[StoryChoice]], statuses:Mapping[str, int]) -> None:
        """ restores choice history and statuses without raising notifications """
        for line_name, line_choices in choices.items():
            self._choices[StoryLine(line_name)] = list(line_choices)
        for line_name, status in statuses.items():
            self._statuses[StoryLine(line_name)] = StoryLineStatus(status)

    def export_phases(self) -> dict[str, int]:
        return {line.value: idx for line, idx in self._checkpoints.items()}

    def import_phases(self, checkpoints:Mapping[str, int], last_day:int, climax_reached:bool) -> None:
        """ restores state without raising notifications """
        for line_name, idx in checkpoints.items():
            line = StoryLine(line_name)
            if not -1 <= idx < len(PHASE_TABLES[line]):
                raise ValueError(f'bad checkpoint {idx} for story line {line_name}')
            self._checkpoints[line] = idx
        self.last_day = last_day
        self.climax_reached = climax_reached

    def log_report(self) -> None:
        self.logger.info(f'story on day {self.last_day} (week {util.week_of_month(max(1, self.last_day))})')
        for line, phase in self.phases().items():
            self.logger.info(f'  {line.value}: {phase.value}, {self._statuses[line].name.lower()} after {len(self._choices[line])} choices')
        self.logger.info(f'overall: {self.overall_status().value}')

StoryPools: TypeAlias = dict[StoryLine, dict[StoryPhase, tuple[str, ...]]]

def parse_story_pools(data:Mapping[str, Any], catalog:Optional[EventCatalog]=None) -> StoryPools:
    """ Parses per line, per phase event id pools.

    Unknown lines or phases raise ValueError. Event ids missing from catalog
    are logged since they can never be eligible.
    """
    logger = logging.getLogger(__name__)
    pools:StoryPools = {}
    for line_name, phase_data in data.items():
        try:
            line = StoryLine(line_name)
        except ValueError:
            raise ValueError(f'unknown story line {line_name}')
        if not isinstance(phase_data, dict):
            raise ValueError(f'pools for {line_name} must be a table')
        phase_type = PHASE_TYPES[line]
        pools[line] = {}
        for phase_name, event_ids in phase_data.items():
            try:
                phase = phase_type(phase_name)
            except ValueError:
                raise ValueError(f'unknown phase {phase_name} for story line {line_name}')
            if not isinstance(event_ids, list) or not all(isinstance(x, str) for x in event_ids):
                raise ValueError(f'pool for {line_name}.{phase_name} must be a list of event ids')
            if catalog is not None:
                for event_id in event_ids:
                    if event_id not in catalog:
                        logger.warning(f'pool {line_name}.{phase_name} names unknown event {event_id}')
            pools[line][phase] = tuple(event_ids)  # type: ignore[index]
    return pools

def load_story_pools(catalog:Optional[EventCatalog]=None) -> StoryPools:
    return parse_story_pools(config.StoryPools, catalog)
