""" Narrative flags: durable boolean markers that gate events.

Flags are an open set of strings. Content can introduce new flags freely,
FlagNames just collects the ones code refers to so typos show up as
attribute errors instead of events that silently never fire.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from storyarc import util, config
from storyarc.base import Observable

class FlagNames:
    # work
    WORKED_AT_BAR = "worked_at_bar"
    WORKED_AT_RESTAURANT = "worked_at_restaurant"
    WORKED_AS_DELIVERY = "worked_as_delivery"
    WORKED_AS_LEAFLET = "worked_as_leaflet"

    # purchases
    BOUGHT_BICYCLE = "bought_bicycle"
    BOUGHT_VITAMINS = "bought_vitamins"

    # calendar milestones
    FIRST_WEEK_COMPLETED = "first_week_completed"
    FIRST_MONTH_COMPLETED = "first_month_completed"

    # status
    RICH_STATUS = "rich_status"
    POOR_STATUS = "poor_status"
    HEALTHY_STATUS = "healthy_status"
    ILLNESS_STATUS = "illness_status"

    # event history
    OVERWORK_EVENT_OCCURRED = "overwork_event_occurred"
    DEPRESSION_EVENT_OCCURRED = "depression_event_occurred"
    WEALTH_EVENT_OCCURRED = "wealth_event_occurred"
    CHOSE_REST_FOR_OVERWORK = "chose_rest_for_overwork"
    CHOSE_CONTINUE_FOR_OVERWORK = "chose_continue_for_overwork"

    # story
    IN_CRISIS = "in_crisis"
    RECOVERING = "recovering"

    @classmethod
    def all(cls) -> frozenset[str]:
        return frozenset(v for k, v in vars(cls).items() if k.isupper() and isinstance(v, str))

class FlagObserver:
    def flag_set(self, flag:str) -> None:
        pass

    def flag_cleared(self, flag:str) -> None:
        pass

class FlagStore(Observable[FlagObserver]):
    """ The set of narrative flags currently raised.

    Observers are notified only when membership actually changes.
    """

    def __init__(self, initial_flags:Optional[Iterable[str]]=None) -> None:
        super().__init__()
        self.logger = logging.getLogger(util.fullname(self))
        if initial_flags is None:
            initial_flags = config.Settings.flags.initial
        self.initial_flags = tuple(x for x in initial_flags if x)
        self._flags:set[str] = set(self.initial_flags)

    def __contains__(self, flag:str) -> bool:
        return flag in self._flags

    def __len__(self) -> int:
        return len(self._flags)

    def set_flag(self, flag:str) -> None:
        if not flag:
            self.logger.warning("ignoring attempt to set an empty flag")
            return
        if flag in self._flags:
            return
        self._flags.add(flag)
        self.logger.debug(f'set flag {flag}')
        for observer in self.observers:
            observer.flag_set(flag)

    def clear_flag(self, flag:str) -> None:
        if not flag or flag not in self._flags:
            return
        self._flags.remove(flag)
        self.logger.debug(f'cleared flag {flag}')
        for observer in self.observers:
            observer.flag_cleared(flag)

    def set_flags(self, flags:Iterable[str]) -> None:
        for flag in flags:
            self.set_flag(flag)

    def clear_flags(self, flags:Iterable[str]) -> None:
        for flag in flags:
            self.clear_flag(flag)

    def has_flag(self, flag:str) -> bool:
        return flag in self._flags

    def has_all_flags(self, *flags:str) -> bool:
        """ true if every flag is set, vacuously true for no flags """
        return all(x in self._flags for x in flags)

    def has_any_flag(self, *flags:str) -> bool:
        """ true if at least one flag is set, false for no flags """
        return any(x in self._flags for x in flags)

    def has_none_of_flags(self, *flags:str) -> bool:
        """ true if no flag is set, vacuously true for no flags """
        return not self.has_any_flag(*flags)

    def get_all_flags(self) -> frozenset[str]:
        return frozenset(self._flags)

    def count(self) -> int:
        return len(self._flags)

    def clear_all_flags(self) -> None:
        self.clear_flags(list(self._flags))

    def reset_to_initial(self) -> None:
        self.clear_flags([x for x in self._flags if x not in self.initial_flags])
        self.set_flags(self.initial_flags)

    def export_flags(self) -> list[str]:
        return sorted(self._flags)

    def import_flags(self, flags:Iterable[str]) -> None:
        """ replaces the current flags, does not notify observers """
        self._flags = set(x for x in flags if x)
        self.logger.debug(f'imported {len(self._flags)} flags')

    def log_report(self) -> None:
        unknown = [x for x in self.export_flags() if x not in FlagNames.all()]
        self.logger.info(f'{len(self._flags)} flags set: {self.export_flags()}')
        if unknown:
            self.logger.debug(f'flags outside the registry: {unknown}')
