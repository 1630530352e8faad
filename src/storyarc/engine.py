""" NarrativeEngine: builds and wires the narrative components. """

import logging
from typing import Optional

import numpy as np

from storyarc import util
from storyarc.clock import Clock
from storyarc.cooldown import CooldownTracker
from storyarc.flags import FlagStore
from storyarc.metrics import MetricsProvider
from storyarc.narrative import rule_parser
from storyarc.narrative.catalog import EventCatalog, EventDefinition
from storyarc.story import StoryPhaseTracker, StoryPools, load_story_pools
from storyarc.events.core import Presenter, TriggerReason
from storyarc.events.session import EventSession
from storyarc.events.scheduler import EventTriggerScheduler

class NarrativeEngine:
    """ Owns one of everything and drives the day.

    Collaborators the host game provides (metrics, clock, presenter) are
    passed in. Everything else is built here unless given explicitly, which
    is mostly useful for tests.
    """

    def __init__(
        self,
        metrics:MetricsProvider,
        clock:Clock,
        presenter:Presenter,
        r:Optional[np.random.Generator]=None,
        catalog:Optional[EventCatalog]=None,
        story_pools:Optional[StoryPools]=None,
        flags:Optional[FlagStore]=None,
    ) -> None:
        self.logger = logging.getLogger(util.fullname(self))

        self.metrics = metrics
        self.clock = clock
        self.presenter = presenter
        self.r = r if r is not None else np.random.default_rng()
        self.catalog = catalog if catalog is not None else rule_parser.load_catalog()
        self.story_pools = story_pools if story_pools is not None else load_story_pools(self.catalog)
        self.flags = flags if flags is not None else FlagStore()
        self.cooldowns = CooldownTracker()
        self.story = StoryPhaseTracker()
        self.session = EventSession(self.catalog, self.flags, self.metrics, self.presenter)
        self.scheduler = EventTriggerScheduler(
            self.catalog,
            self.session,
            self.flags,
            self.cooldowns,
            self.story,
            self.story_pools,
            self.metrics,
            self.clock,
            self.r,
        )

        self.logger.info(f'engine ready with {len(self.catalog)} events')

    def advance_day(self, day_of_month:int) -> list[EventDefinition]:
        """ Moves the narrative to a new day.

        Cooldowns tick by the days elapsed since the last advance (a repeated
        or earlier day ticks nothing), then story lines advance (possibly
        firing milestone events), then the daily trigger passes run. Returns
        the events triggered by the daily passes.
        """
        self.logger.debug(f'advancing to day {day_of_month}')
        elapsed_days = day_of_month - self.story.last_day
        if elapsed_days > 0:
            self.cooldowns.tick(float(elapsed_days))
        self.story.update(day_of_month)
        return self.scheduler.run_daily_trigger_pass(day_of_month)

    def run_daily_trigger_pass(self, day_of_month:int) -> list[EventDefinition]:
        return self.scheduler.run_daily_trigger_pass(day_of_month)

    def raise_milestone(self, milestone:str) -> bool:
        """ host side milestones, e.g. first_week_completed """
        return self.scheduler.trigger_milestone_event(milestone)

    def trigger_event(self, event_id:str, reason:TriggerReason=TriggerReason.MANUAL) -> bool:
        return self.scheduler.trigger_event(event_id, reason)

    def on_player_choice(self, index:int) -> bool:
        return self.session.on_player_choice(index)

    def skip_event(self) -> bool:
        return self.session.skip_event()

    def tick(self, timestamp:float) -> bool:
        return self.session.tick(timestamp)

    def get_current_event(self) -> Optional[EventDefinition]:
        return self.session.get_current_event()

    def is_event_active(self) -> bool:
        return self.session.is_event_active()

    def get_event_trigger_count(self, event_id:str) -> int:
        return self.session.get_event_trigger_count(event_id)

    def get_triggered_event_ids(self) -> list[str]:
        return self.session.get_triggered_event_ids()

    def log_report(self) -> None:
        self.story.log_report()
        self.session.log_report()
        self.flags.log_report()
