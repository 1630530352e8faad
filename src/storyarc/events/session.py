""" The event session: the one event currently in front of the player. """

import logging
import collections
from typing import Optional

from storyarc import util, config
from storyarc.base import Observable
from storyarc.errors import NarrativeError, NarrativeErrorCase
from storyarc.flags import FlagStore
from storyarc.metrics import MetricsProvider
from storyarc.narrative.catalog import Choice, EventCatalog, EventDefinition
from storyarc.events.core import Counters, EventObserver, Presenter, TriggerReason

class EventSession(Observable[EventObserver]):
    """ Runtime state for the active event.

    At most one event is active at a time. Triggering opens it and hands it to
    the presenter, a valid choice or a skip closes it. A choice may schedule a
    follow up event, which fires on a later tick once its delay has passed.

    Failed operations never raise. They log, count the failure by case in
    rejections and return False, leaving state untouched.
    """

    def __init__(
        self,
        catalog:EventCatalog,
        flags:FlagStore,
        metrics:MetricsProvider,
        presenter:Presenter,
        chained_event_delay:Optional[float]=None,
    ) -> None:
        super().__init__()
        self.logger = logging.getLogger(util.fullname(self))
        self.catalog = catalog
        self.flags = flags
        self.metrics = metrics
        self.presenter = presenter
        self.chained_event_delay = chained_event_delay if chained_event_delay is not None else config.Settings.events.chained_event_delay

        self.current_event:Optional[EventDefinition] = None
        self.is_active = False
        self.timestamp = 0.

        # follow up event waiting on its delay
        self.pending_next_event_id:Optional[str] = None
        self.pending_next_event_at = 0.

        self.triggered_today = 0
        self.trigger_counts:collections.Counter[str] = collections.Counter()
        self.triggered_event_ids:list[str] = []
        self.counters:collections.Counter[Counters] = collections.Counter()
        self.rejections:collections.Counter[NarrativeErrorCase] = collections.Counter()

    def _reject(self, error:NarrativeError) -> None:
        self.rejections[error.case] += 1
        if error.case == NarrativeErrorCase.LOOKUP:
            self.logger.error(str(error))
        else:
            self.logger.warning(str(error))

    def _check_can_trigger(self, event:EventDefinition) -> None:
        if self.is_active:
            assert self.current_event is not None
            raise NarrativeError(NarrativeErrorCase.STATE, f'cannot trigger {event.event_id} while {self.current_event.event_id} is active')
        if not event.is_triggerable:
            raise NarrativeError(NarrativeErrorCase.VALIDATION, f'cannot trigger {event.event_id} which has no choices')

    def _active_choice(self, index:int) -> Choice:
        if not self.is_active or self.current_event is None:
            raise NarrativeError(NarrativeErrorCase.STATE, f'choice {index} made with no active event')
        if not 0 <= index < len(self.current_event.choices):
            raise NarrativeError(NarrativeErrorCase.VALIDATION, f'choice {index} out of range for {self.current_event.event_id} with {len(self.current_event.choices)} choices')
        return self.current_event.choices[index]

    def trigger_event(self, event:EventDefinition, reason:TriggerReason=TriggerReason.MANUAL) -> bool:
        """ Opens a session for event and presents it.

        Eligibility (conditions, flags, cooldowns) is the caller's business,
        this only refuses when another event is active or the event can't be
        answered.
        """
        try:
            self._check_can_trigger(event)
        except NarrativeError as e:
            self._reject(e)
            return False

        self.current_event = event
        self.is_active = True
        self.triggered_today += 1
        self.trigger_counts[event.event_id] += 1
        self.triggered_event_ids.append(event.event_id)
        self.counters[Counters.EVENTS_TRIGGERED] += 1

        if event.on_trigger_flag:
            self.flags.set_flag(event.on_trigger_flag)

        self.logger.info(f'triggered {event.event_id} ({reason.value})')
        for observer in self.observers:
            observer.event_triggered(event, reason)
        self.presenter.show_event(event)
        return True

    def trigger_event_by_id(self, event_id:str, reason:TriggerReason=TriggerReason.MANUAL) -> bool:
        event = self.catalog.get_by_id(event_id)
        if event is None:
            self._reject(NarrativeError(NarrativeErrorCase.LOOKUP, f'no such event {event_id}'))
            return False
        return self.trigger_event(event, reason)

    def on_player_choice(self, index:int) -> bool:
        """ Resolves the active event with the choice at index.

        An invalid index leaves the session active with nothing applied.
        """
        try:
            choice = self._active_choice(index)
        except NarrativeError as e:
            self._reject(e)
            return False
        event = self.current_event
        assert event is not None

        for token in choice.skipped_effects:
            self.logger.warning(f'ignoring malformed effect "{token}" on {event.event_id}/{choice.choice_id}')
        self.counters[Counters.EFFECTS_IGNORED] += len(choice.skipped_effects)

        if choice.instructions:
            self.metrics.apply_effects([x.token for x in choice.instructions])
            self.counters[Counters.EFFECTS_APPLIED] += len(choice.instructions)

        if choice.on_choice_flag:
            self.flags.set_flag(choice.on_choice_flag)

        self.counters[Counters.CHOICES_RESOLVED] += 1
        self.logger.info(f'resolved {event.event_id} with {choice.choice_id}')
        for observer in self.observers:
            observer.choice_selected(event, choice)

        if choice.next_event_id:
            self.schedule_event(choice.next_event_id, self.chained_event_delay)
        elif event.chained_event_id:
            self.schedule_event(event.chained_event_id, event.chained_event_delay)

        self.end_event()
        return True

    def skip_event(self) -> bool:
        try:
            if not self.is_active or self.current_event is None:
                raise NarrativeError(NarrativeErrorCase.STATE, "skip with no active event")
            if not self.current_event.can_skip:
                raise NarrativeError(NarrativeErrorCase.VALIDATION, f'{self.current_event.event_id} cannot be skipped')
        except NarrativeError as e:
            self._reject(e)
            return False

        self.logger.info(f'skipped {self.current_event.event_id}')
        self.counters[Counters.EVENTS_SKIPPED] += 1
        self.end_event()
        return True

    def end_event(self) -> None:
        event = self.current_event
        self.current_event = None
        self.is_active = False
        if event is None:
            return
        for observer in self.observers:
            observer.event_ended(event)

    def schedule_event(self, event_id:str, delay:float) -> None:
        if self.pending_next_event_id is not None:
            self.logger.warning(f'replacing pending follow up {self.pending_next_event_id} with {event_id}')
        self.pending_next_event_id = event_id
        self.pending_next_event_at = self.timestamp + delay
        self.counters[Counters.CHAINS_SCHEDULED] += 1
        self.logger.debug(f'scheduled {event_id} at {self.pending_next_event_at}')

    def tick(self, timestamp:float) -> bool:
        """ Advances session time, firing a due follow up event.

        A due follow up waits while another event is active. Returns True if a
        follow up event was triggered.
        """
        self.timestamp = timestamp
        if self.pending_next_event_id is None or self.is_active:
            return False
        if timestamp < self.pending_next_event_at:
            return False

        event_id = self.pending_next_event_id
        self.pending_next_event_id = None
        self.counters[Counters.CHAINS_FIRED] += 1
        return self.trigger_event_by_id(event_id, TriggerReason.CHAINED)

    def reset_daily(self) -> None:
        self.triggered_today = 0

    def get_current_event(self) -> Optional[EventDefinition]:
        return self.current_event

    def is_event_active(self) -> bool:
        return self.is_active

    def get_event_trigger_count(self, event_id:str) -> int:
        return self.trigger_counts[event_id]

    def get_triggered_event_ids(self) -> list[str]:
        return list(self.triggered_event_ids)

    def log_report(self) -> None:
        self.logger.info(f'{len(self.triggered_event_ids)} events triggered, {len(self.trigger_counts)} distinct')
        for event_id, count in self.trigger_counts.most_common():
            self.logger.info(f'  {event_id}: {count}')
        for counter in Counters:
            if self.counters[counter]:
                self.logger.info(f'  {counter.name.lower()}: {self.counters[counter]}')
        for case, count in self.rejections.items():
            self.logger.info(f'  rejected {case.name.lower()}: {count}')
