""" Shared pieces of the event runtime: presenters, observers, counters. """

import abc
import enum
import logging

from storyarc import util
from storyarc.narrative.catalog import Choice, EventDefinition

class TriggerReason(enum.Enum):
    MANUAL = "manual"
    DAILY_RANDOM = "daily_random"
    STORY_LINE = "story_line"
    MILESTONE = "milestone"
    CHAINED = "chained"

class Counters(enum.IntEnum):
    EVENTS_TRIGGERED = enum.auto()
    CHOICES_RESOLVED = enum.auto()
    EVENTS_SKIPPED = enum.auto()
    CHAINS_SCHEDULED = enum.auto()
    CHAINS_FIRED = enum.auto()
    EFFECTS_APPLIED = enum.auto()
    EFFECTS_IGNORED = enum.auto()
    RANDOM_PASS_ROLLS = enum.auto()
    RANDOM_PASS_HITS = enum.auto()
    RANDOM_PASS_EMPTY = enum.auto()
    STORY_PASS_EMPTY = enum.auto()

class Presenter(abc.ABC):
    """ Shows an event to the player.

    The player's answer comes back separately through
    EventSession.on_player_choice.
    """

    @abc.abstractmethod
    def show_event(self, event:EventDefinition) -> None: ...

class LoggingPresenter(Presenter):
    def __init__(self) -> None:
        self.logger = logging.getLogger(util.fullname(self))

    def show_event(self, event:EventDefinition) -> None:
        self.logger.info(f'{event.name} ({event.story_key})')
        for i, choice in enumerate(event.choices):
            self.logger.info(f'  {i}: {choice.text_key} {list(choice.effects)}')

class EventObserver:
    def event_triggered(self, event:EventDefinition, reason:TriggerReason) -> None:
        pass

    def choice_selected(self, event:EventDefinition, choice:Choice) -> None:
        pass

    def event_ended(self, event:EventDefinition) -> None:
        pass
