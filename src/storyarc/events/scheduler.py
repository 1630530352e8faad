""" Daily event scheduling.

Once per day the scheduler gets two chances to put an event in front of the
player. First a random encounter: with some probability, a weighted pick among
eligible random and personal events. Then the story lines: in priority order,
the first line whose current phase has an eligible event in its pool gets one
of them, picked uniformly. Either pass can come up empty, that's just a quiet
day.

Milestones raised by the story tracker (or by the host game) map to specific
events which are triggered directly.

The choice made on an event the story pass triggered is recorded on the line
that picked it, which is what moves that line's status.
"""

import logging
from collections.abc import Sequence
from typing import Optional

import numpy as np

from storyarc import util, config
from storyarc.clock import Clock
from storyarc.cooldown import CooldownTracker
from storyarc.flags import FlagStore
from storyarc.metrics import MetricsProvider
from storyarc.narrative import conditions
from storyarc.narrative.catalog import Choice, EventCatalog, EventCategory, EventDefinition
from storyarc.narrative.effects import Attribute
from storyarc.narrative.selection import WeightedEventSelector
from storyarc.story import StoryLine, StoryObserver, StoryPhaseTracker, StoryPools
from storyarc.events.core import Counters, EventObserver, TriggerReason
from storyarc.events.session import EventSession

class EventTriggerScheduler(StoryObserver, EventObserver):
    def __init__(
        self,
        catalog:EventCatalog,
        session:EventSession,
        flags:FlagStore,
        cooldowns:CooldownTracker,
        story:StoryPhaseTracker,
        story_pools:StoryPools,
        metrics:MetricsProvider,
        clock:Clock,
        r:np.random.Generator,
    ) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.catalog = catalog
        self.session = session
        self.flags = flags
        self.cooldowns = cooldowns
        self.story = story
        self.story_pools = story_pools
        self.metrics = metrics
        self.clock = clock
        self.r = r
        self.selector = WeightedEventSelector(r)

        settings = config.Settings
        self.daily_event_trigger_probability:float = settings.events.daily_event_trigger_probability
        self.daily_event_cap:int = settings.events.daily_event_cap
        self.always_trigger:bool = settings.events.always_trigger
        self.random_categories = tuple(EventCategory(x) for x in settings.events.random_categories)
        self.story_cooldown_days:float = settings.events.story_cooldown_days
        self.random_cooldown_days:float = settings.events.random_cooldown_days
        self.line_order = tuple(StoryLine(x) for x in settings.story.line_order)
        self.milestone_events:dict[str, str] = dict(vars(settings.story.milestone_events))

        story.observe(self)
        session.observe(self)

        # events the story pass triggered, by id, until their choice comes back
        self._story_line_events:dict[str, StoryLine] = {}

    # StoryObserver
    def milestone_reached(self, milestone:str) -> None:
        self.trigger_milestone_event(milestone)

    # EventObserver
    def choice_selected(self, event:EventDefinition, choice:Choice) -> None:
        line = self._story_line_events.pop(event.event_id, None)
        if line is None:
            return
        valence = sum(x.delta for x in choice.instructions if x.attribute == Attribute.VALENCE)
        self.story.record_choice(line, event.event_id, choice.choice_id, valence)

    def event_ended(self, event:EventDefinition) -> None:
        # skipped story events leave no choice behind
        self._story_line_events.pop(event.event_id, None)

    def evaluation_context(self) -> conditions.EvaluationContext:
        return conditions.EvaluationContext(
            metrics=self.metrics.snapshot(),
            has_flag=self.flags.has_flag,
            clock=self.clock.snapshot(),
        )

    def is_eligible(self, event:EventDefinition, context:Optional[conditions.EvaluationContext]=None) -> bool:
        """ true if flags, cooldown and conditions all allow event right now """
        if not event.is_triggerable:
            return False
        if not self.flags.has_all_flags(*event.required_flags):
            return False
        if not self.flags.has_none_of_flags(*event.excluded_flags):
            return False
        if self.cooldowns.is_on_cooldown(event.event_id):
            return False
        if context is None:
            context = self.evaluation_context()
        return conditions.evaluate_all(event.conditions, context)

    def eligible_events(self, events:Sequence[EventDefinition], context:Optional[conditions.EvaluationContext]=None) -> list[EventDefinition]:
        if context is None:
            context = self.evaluation_context()
        return [x for x in events if self.is_eligible(x, context)]

    def story_pool(self, line:StoryLine) -> list[EventDefinition]:
        phase = self.story.current_phase(line)
        event_ids = self.story_pools.get(line, {}).get(phase, ())
        pool = []
        for event_id in event_ids:
            event = self.catalog.get_by_id(event_id)
            if event is not None:
                pool.append(event)
        return pool

    def _trigger(self, event:EventDefinition, reason:TriggerReason, cooldown_days:float) -> bool:
        if not self.session.trigger_event(event, reason):
            return False
        self.cooldowns.set_cooldown(event.event_id, cooldown_days)
        return True

    def trigger_event(self, event_id:str, reason:TriggerReason=TriggerReason.MANUAL) -> bool:
        return self.session.trigger_event_by_id(event_id, reason)

    def trigger_milestone_event(self, milestone:str) -> bool:
        event_id = self.milestone_events.get(milestone)
        if event_id is None:
            self.logger.debug(f'no event for milestone {milestone}')
            return False
        self.logger.info(f'milestone {milestone} triggers {event_id}')
        return self.session.trigger_event_by_id(event_id, TriggerReason.MILESTONE)

    def random_encounter_pass(self) -> Optional[EventDefinition]:
        if self.session.triggered_today >= self.daily_event_cap:
            return None

        self.session.counters[Counters.RANDOM_PASS_ROLLS] += 1
        roll = self.r.random()
        if not (self.always_trigger or roll <= self.daily_event_trigger_probability):
            self.logger.debug(f'no random encounter today ({roll:.3f} > {self.daily_event_trigger_probability})')
            return None
        self.session.counters[Counters.RANDOM_PASS_HITS] += 1

        candidates = self.eligible_events(self.catalog.get_by_category(*self.random_categories))
        event = self.selector.select(candidates)
        if event is None:
            self.session.counters[Counters.RANDOM_PASS_EMPTY] += 1
            self.logger.debug("random encounter rolled but nothing is eligible")
            return None

        if not self._trigger(event, TriggerReason.DAILY_RANDOM, self.random_cooldown_days):
            return None
        return event

    def story_line_pass(self) -> Optional[EventDefinition]:
        context = self.evaluation_context()
        for line in self.line_order:
            candidates = self.eligible_events(self.story_pool(line), context)
            if len(candidates) == 0:
                continue

            event = candidates[self.r.integers(len(candidates))]
            self.logger.debug(f'{line.value} picked {event.event_id} from {[x.event_id for x in candidates]}')
            # the presenter may answer before trigger returns
            self._story_line_events[event.event_id] = line
            if self._trigger(event, TriggerReason.STORY_LINE, self.story_cooldown_days):
                return event
            self._story_line_events.pop(event.event_id, None)

        self.session.counters[Counters.STORY_PASS_EMPTY] += 1
        return None

    def run_daily_trigger_pass(self, day_of_month:int) -> list[EventDefinition]:
        """ Runs both daily passes, returning the events they triggered. """
        self.logger.debug(f'daily trigger pass for day {day_of_month}')
        self.session.reset_daily()

        triggered = []
        event = self.random_encounter_pass()
        if event is not None:
            triggered.append(event)
        event = self.story_line_pass()
        if event is not None:
            triggered.append(event)
        return triggered
