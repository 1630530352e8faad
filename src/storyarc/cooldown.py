""" Per-event cooldowns measured in game days. """

import logging
from collections.abc import Mapping

from storyarc import util

class CooldownTracker:
    """ Remaining cooldown days per event id.

    Cooldowns only move when tick is called, which the engine does on day
    advance with the number of days elapsed. Expired entries stay around at
    zero or below, they just stop blocking.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self._remaining:dict[str, float] = {}

    def set_cooldown(self, event_id:str, days:float) -> None:
        if days <= 0.:
            return
        self._remaining[event_id] = days
        self.logger.debug(f'{event_id} on cooldown for {days} days')

    def tick(self, elapsed_days:float=1.) -> None:
        for event_id in self._remaining:
            self._remaining[event_id] -= elapsed_days

    def remaining(self, event_id:str) -> float:
        return max(0., self._remaining.get(event_id, 0.))

    def is_on_cooldown(self, event_id:str) -> bool:
        return self._remaining.get(event_id, 0.) > 0.

    def active_cooldowns(self) -> dict[str, float]:
        return {k: v for k, v in self._remaining.items() if v > 0.}

    def export_cooldowns(self) -> dict[str, float]:
        return dict(self._remaining)

    def import_cooldowns(self, cooldowns:Mapping[str, float]) -> None:
        self._remaining = dict(cooldowns)

    def clear(self) -> None:
        self._remaining.clear()
