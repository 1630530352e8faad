""" Event definitions and the catalog that indexes them. """

import enum
import logging
import collections
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional

from storyarc import util
from storyarc.errors import NarrativeError, NarrativeErrorCase
from storyarc.narrative.conditions import Condition
from storyarc.narrative.effects import EffectInstruction

class EventCategory(enum.Enum):
    PERSONAL = "personal"
    WORK = "work"
    RANDOM = "random"
    SPECIAL = "special"
    CHOICE = "choice"

@dataclass(frozen=True)
class Choice:
    choice_id:str
    text_key:str
    result_text_key:Optional[str] = None
    effects:tuple[str, ...] = ()
    instructions:tuple[EffectInstruction, ...] = ()
    skipped_effects:tuple[str, ...] = ()
    on_choice_flag:Optional[str] = None
    next_event_id:Optional[str] = None
    ends_session:bool = True

@dataclass(frozen=True)
class EventDefinition:
    event_id:str
    name:str
    category:EventCategory
    story_key:str
    trigger_probability:float = 0.
    conditions:tuple[Condition, ...] = ()
    choices:tuple[Choice, ...] = ()
    required_flags:frozenset[str] = field(default_factory=frozenset)
    excluded_flags:frozenset[str] = field(default_factory=frozenset)
    on_trigger_flag:Optional[str] = None
    weight:float = 1.
    can_skip:bool = True
    chained_event_id:Optional[str] = None
    chained_event_delay:float = 1.

    @property
    def is_triggerable(self) -> bool:
        return len(self.choices) > 0

class EventCatalog:
    """ Immutable id and category index over a set of event definitions.

    Duplicate ids are a content error: the first definition wins and each
    duplicate is logged.
    """

    def __init__(self, events:Iterable[EventDefinition]=()) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self._events:dict[str, EventDefinition] = {}
        self._by_category:dict[EventCategory, list[EventDefinition]] = collections.defaultdict(list)
        self.duplicate_ids:list[str] = []

        for event in events:
            try:
                self._add(event)
            except NarrativeError as e:
                self.logger.warning(str(e))

    def _add(self, event:EventDefinition) -> None:
        if event.event_id in self._events:
            self.duplicate_ids.append(event.event_id)
            raise NarrativeError(NarrativeErrorCase.CONFIG, f'duplicate event id {event.event_id}, keeping the first definition')
        if not event.is_triggerable:
            self.logger.warning(f'event {event.event_id} has no choices and can never be triggered')
        self._events[event.event_id] = event
        self._by_category[event.category].append(event)

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id:str) -> bool:
        return event_id in self._events

    def __iter__(self) -> Iterator[EventDefinition]:
        return iter(self._events.values())

    def get_by_id(self, event_id:str) -> Optional[EventDefinition]:
        return self._events.get(event_id)

    def get_by_category(self, *categories:EventCategory) -> list[EventDefinition]:
        """ events in any of the given categories, in load order """
        if len(categories) == 1:
            return list(self._by_category.get(categories[0], []))
        return [x for x in self._events.values() if x.category in categories]

    def all(self) -> list[EventDefinition]:
        return list(self._events.values())

    def log_report(self) -> None:
        self.logger.info(f'{len(self._events)} events loaded')
        for category in EventCategory:
            events = self._by_category.get(category, [])
            if not events:
                continue
            self.logger.info(f'{category.value}: {len(events)} events')
            for event in events:
                self.logger.debug(f'  {event.event_id} p={event.trigger_probability} w={event.weight} choices={len(event.choices)}')
