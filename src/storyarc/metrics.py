""" Player metrics: the numbers conditions read and effects write. """

import abc
import logging
from collections.abc import Iterable

from storyarc import util, config
from storyarc.errors import NarrativeError
from storyarc.narrative import effects
from storyarc.narrative.conditions import MetricsSnapshot

class MetricsProvider(abc.ABC):
    """ The game's attribute store as seen by the narrative engine. """

    @abc.abstractmethod
    def snapshot(self) -> MetricsSnapshot: ...

    @abc.abstractmethod
    def apply_effects(self, tokens:Iterable[str]) -> None:
        """ applies effect tokens, e.g. ["health+30", "A-2"] """
        ...

class GameMetrics(MetricsProvider):
    """ In-memory metrics store.

    health, emotion stability and hunger are clamped to [0, 100], everything
    else is unbounded.
    """

    def __init__(self, **kwargs:float) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        defaults = config.Settings.metrics

        self.health:float = defaults.health
        self.valence:float = defaults.valence
        self.arousal:float = defaults.arousal
        self.gold:float = defaults.gold
        self.time:float = defaults.time
        self.work_skill:float = defaults.work_skill
        self.emotion_stability:float = defaults.emotion_stability
        self.hunger:float = defaults.hunger
        self.consecutive_work_days:float = 0.
        self.total_gold_earned:float = 0.

        for k, v in kwargs.items():
            if not hasattr(self, k) or k == "logger":
                raise ValueError(f'unknown metric {k}')
            setattr(self, k, float(v))

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            health=self.health,
            valence=self.valence,
            arousal=self.arousal,
            gold=self.gold,
            work_skill=self.work_skill,
            emotion_stability=self.emotion_stability,
            hunger=self.hunger,
            consecutive_work_days=self.consecutive_work_days,
            total_gold_earned=self.total_gold_earned,
        )

    def apply_instruction(self, instruction:effects.EffectInstruction) -> None:
        delta = instruction.delta
        match instruction.attribute:
            case effects.Attribute.VALENCE:
                self.valence += delta
            case effects.Attribute.AROUSAL:
                self.arousal += delta
            case effects.Attribute.GOLD:
                self.gold += delta
                if delta > 0:
                    self.total_gold_earned += delta
            case effects.Attribute.TIME:
                self.time += delta
            case effects.Attribute.HEALTH:
                self.health = util.clamp(self.health + delta, 0., 100.)
            case effects.Attribute.WORK_SKILL:
                self.work_skill += delta
            case effects.Attribute.EMOTION_STABILITY:
                self.emotion_stability = util.clamp(self.emotion_stability + delta, 0., 100.)
            case effects.Attribute.HUNGER:
                self.hunger = util.clamp(self.hunger + delta, 0., 100.)

    def apply_effects(self, tokens:Iterable[str]) -> None:
        for token in tokens:
            try:
                instruction = effects.parse_effect(token)
            except NarrativeError as e:
                self.logger.warning(f'could not apply effect: {e}')
                continue
            self.apply_instruction(instruction)
        self.logger.debug(f'metrics now {self.snapshot()}')
