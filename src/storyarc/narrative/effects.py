""" Effect tokens: compact metric mutations attached to choices.

Tokens look like "health+30" or "V-0.5". They're parsed once when the catalog
loads so bad content shows up in the load log rather than mid-game.
"""

import re
import enum
from dataclasses import dataclass

import numpy as np

from storyarc.errors import NarrativeError, NarrativeErrorCase

class Attribute(enum.Enum):
    VALENCE = "V"
    AROUSAL = "A"
    GOLD = "gold"
    TIME = "time"
    HEALTH = "health"
    WORK_SKILL = "workSkill"
    EMOTION_STABILITY = "emotionStability"
    HUNGER = "hunger"

EFFECT_RE = re.compile(r"^(V|A|gold|time|health|workSkill|emotionStability|hunger)([+\-])(\d+(?:\.\d*)?|\.\d+)$")
RESERVED_PREFIXES = ("setFlag:", "clrFlag:")

@dataclass(frozen=True)
class EffectInstruction:
    attribute:Attribute
    delta:float

    @property
    def token(self) -> str:
        """ canonical token text, what metrics providers receive """
        sign = "-" if self.delta < 0 else "+"
        magnitude = abs(self.delta)
        if magnitude == int(magnitude):
            return f'{self.attribute.value}{sign}{int(magnitude)}'
        # the token grammar has no exponent form
        return f'{self.attribute.value}{sign}{np.format_float_positional(magnitude, trim="-")}'

def parse_effect(token:str) -> EffectInstruction:
    """ Parses a single effect token.

    Raises NarrativeError (PARSE) for tokens outside the grammar, including
    the reserved flag prefixes which have no implementation.
    """
    if not isinstance(token, str):
        raise NarrativeError(NarrativeErrorCase.PARSE, f'effect must be a string, got {token!r}')
    stripped = re.sub(r"\s+", "", token)
    if stripped.startswith(RESERVED_PREFIXES):
        raise NarrativeError(NarrativeErrorCase.PARSE, f'reserved effect prefix is not supported "{token}"')
    m = EFFECT_RE.match(stripped)
    if not m:
        raise NarrativeError(NarrativeErrorCase.PARSE, f'malformed effect "{token}"')
    attr, sign, magnitude = m.groups()
    delta = float(magnitude)
    if sign == "-":
        delta = -delta
    return EffectInstruction(Attribute(attr), delta)

def parse_effects(tokens:list[str]) -> tuple[list[EffectInstruction], list[str]]:
    """ parses what it can, returning instructions and the tokens it skipped """
    instructions = []
    skipped = []
    for token in tokens:
        try:
            instructions.append(parse_effect(token))
        except NarrativeError:
            skipped.append(token)
    return instructions, skipped
