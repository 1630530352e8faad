""" Calendar and time of day as seen by the narrative engine. """

import abc
import logging
from collections.abc import Sequence
from typing import Optional

from storyarc import util, config
from storyarc.narrative.conditions import ClockSnapshot

class Clock(abc.ABC):
    @abc.abstractmethod
    def current_day(self) -> int:
        """ day of the week, 1-7 """
        ...

    @abc.abstractmethod
    def current_week(self) -> int:
        """ week of the month, starting at 1 """
        ...

    @abc.abstractmethod
    def current_time_slot_name(self) -> str: ...

    @abc.abstractmethod
    def has_enough_time(self, hours:float) -> bool: ...

    def day_of_month(self) -> int:
        return (self.current_week() - 1) * 7 + self.current_day()

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            day_of_week=self.current_day(),
            week=self.current_week(),
            time_slot=self.current_time_slot_name(),
        )

class DayClock(Clock):
    """ In-memory clock: weeks of seven days, each split into named slots.

    Time used today determines the current slot. The first alias of each slot
    is its display name.
    """

    def __init__(self, time_slots:Optional[Sequence[Sequence[str]]]=None, hours_per_slot:Optional[float]=None) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.time_slots = time_slots if time_slots is not None else config.Settings.clock.time_slots
        self.hours_per_slot = hours_per_slot if hours_per_slot is not None else config.Settings.clock.hours_per_slot
        if len(self.time_slots) == 0:
            raise ValueError("clock needs at least one time slot")
        self.week = 1
        self.day = 1
        self.time_used = 0.

    @property
    def hours_per_day(self) -> float:
        return self.hours_per_slot * len(self.time_slots)

    def current_day(self) -> int:
        return self.day

    def current_week(self) -> int:
        return self.week

    def current_time_slot_name(self) -> str:
        slot = min(int(self.time_used // self.hours_per_slot), len(self.time_slots) - 1)
        return self.time_slots[slot][0]

    def has_enough_time(self, hours:float) -> bool:
        return self.time_used + hours <= self.hours_per_day

    def use_time(self, hours:float) -> bool:
        if not self.has_enough_time(hours):
            return False
        self.time_used += hours
        return True

    def set_day_of_month(self, day:int) -> None:
        if day < 1:
            raise ValueError(f'day must be >= 1, got {day}')
        self.week = util.week_of_month(day)
        self.day = (day - 1) % 7 + 1
        self.time_used = 0.

    def advance_day(self) -> int:
        """ moves to the start of the next day, returning the day of the month """
        self.set_day_of_month(self.day_of_month() + 1)
        self.logger.debug(f'week {self.week} day {self.day}')
        return self.day_of_month()
