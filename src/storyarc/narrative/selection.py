""" Weight-proportional random selection over eligible events. """

import logging
from collections.abc import Callable, Sequence
from typing import Optional, TypeVar

import numpy as np

from storyarc import util
from storyarc.narrative.catalog import EventDefinition

T = TypeVar('T')

class WeightedEventSelector:
    """ Picks one candidate with probability weight / total weight.

    Non-positive weights contribute nothing and are never picked. Floating
    point drift at the end of the walk falls back to the last candidate that
    has weight.
    """

    def __init__(self, r:np.random.Generator) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.r = r

    def select_with(self, candidates:Sequence[T], weight_fn:Callable[[T], float]) -> Optional[T]:
        weights = [max(0., weight_fn(x)) for x in candidates]
        total_weight = sum(weights)
        if total_weight <= 0.:
            if len(candidates) > 0:
                self.logger.debug(f'{len(candidates)} candidates but no positive weight')
            return None

        draw = self.r.uniform(0., total_weight)
        accumulated_weight = 0.
        last:Optional[T] = None
        for candidate, weight in zip(candidates, weights):
            if weight <= 0.:
                continue
            accumulated_weight += weight
            last = candidate
            if accumulated_weight >= draw:
                return candidate

        return last

    def select(self, candidates:Sequence[EventDefinition]) -> Optional[EventDefinition]:
        selected = self.select_with(candidates, lambda x: x.weight)
        if selected is not None:
            self.logger.debug(f'selected {selected.event_id} from {len(candidates)} candidates')
        return selected
