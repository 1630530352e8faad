""" Narrative Event Content Parsing """

import re
import logging
from collections.abc import Mapping, Iterable
from typing import Any, Optional

import toml # type: ignore

from storyarc import util, config
from storyarc.errors import NarrativeError
from storyarc.narrative import conditions, effects
from storyarc.narrative.catalog import Choice, EventCategory, EventCatalog, EventDefinition

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
NAME_RE = re.compile(r"[a-zA-Z_一-鿿][a-zA-Z0-9_一-鿿]*")
FLAG_RE = re.compile(r"flag:([a-zA-Z_][a-zA-Z0-9_:]*)")
OP_RE = re.compile(r"<=|>=|==|!=|<|>|=")

EVENT_KEYS = frozenset((
    "id", "name", "category", "story_key", "probability", "conditions",
    "required_flags", "excluded_flags", "on_trigger_flag", "weight",
    "can_skip", "chained_event_id", "chained_event_delay", "choice",
))
CHOICE_KEYS = frozenset((
    "id", "text_key", "result_text_key", "effects", "flag", "next_event",
    "ends_session",
))

def parse_value(ref:str, data:str) -> tuple[float, int]:
    m = NUMBER_RE.match(data)
    if m:
        return float(m.group(0)), m.end()
    m = NAME_RE.match(data)
    if m and ref == "time_of_day":
        ordinal = conditions.time_slot_ordinal(m.group(0))
        if ordinal < 0:
            raise ValueError(f'unknown time of day slot "{m.group(0)}"')
        return float(ordinal), m.end()
    raise ValueError(f'expected a number in "{data}"')

def parse_condition(cond:str) -> conditions.Condition:
    """ Parses a condition string.

    CONDITION := REF OP VALUE | FLAG_REF | "!" FLAG_REF
    REF := METRIC | "day_of_week" | "time_of_day" | FLAG_REF
    FLAG_REF := "flag:" [a-zA-Z_][a-zA-Z0-9_:]*
    OP := "<" | ">" | "==" | "=" | "<=" | ">=" | "!="
    VALUE := number, or a slot name for time_of_day
    """

    if not isinstance(cond, str):
        raise ValueError(f'condition must be a string, got {cond!r}')

    data = cond.strip()
    if data == "":
        raise ValueError("empty condition")

    negated = False
    if data[0] == "!":
        negated = True
        data = data[1:].lstrip()

    flag:Optional[str] = None
    m = FLAG_RE.match(data)
    if m:
        flag = m.group(1)
        ref = "flag"
    else:
        m = NAME_RE.match(data)
        if not m:
            raise ValueError(f'bad reference in condition "{cond}"')
        ref = util.camel_to_snake(m.group(0))
    data = data[m.end():].lstrip()

    if data == "":
        # bare flag case
        if flag is None:
            raise ValueError(f'condition on {ref} needs a comparison in "{cond}"')
        return conditions.FlagCondition(flag, conditions.Comparison.EQ, 0. if negated else 1.)
    if negated:
        raise ValueError(f'negation only applies to a bare flag in "{cond}"')

    m = OP_RE.match(data)
    if not m:
        raise ValueError(f'expected a comparison in "{cond}"')
    op_text = "==" if m.group(0) == "=" else m.group(0)
    op = conditions.Comparison(op_text)
    data = data[m.end():].lstrip()

    value, pos = parse_value(ref, data)
    data = data[pos:].strip()
    if data != "":
        raise ValueError(f'had left-over string in condition "{data}"')

    if flag is not None:
        return conditions.FlagCondition(flag, op, value)
    elif ref == "day_of_week":
        return conditions.DayOfWeekCondition(op, value)
    elif ref == "time_of_day":
        return conditions.TimeOfDayCondition(op, value)
    try:
        metric = conditions.Metric(ref)
    except ValueError:
        raise ValueError(f'unknown reference {ref} in condition "{cond}"')
    return conditions.MetricCondition(metric, op, value)

def _string_list(event_id:str, key:str, data:Mapping[str, Any]) -> list[str]:
    if key not in data:
        return []
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise ValueError(f'{key} for {event_id} must be a list of strings')
    return value

def _optional_string(event_id:str, key:str, data:Mapping[str, Any]) -> Optional[str]:
    if key not in data or data[key] == "":
        return None
    if not isinstance(data[key], str):
        raise ValueError(f'{key} must be a string in {event_id}, got {data[key]}')
    return data[key]

def _number(event_id:str, key:str, data:Mapping[str, Any], default:float) -> float:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'{key} must be a number in {event_id}, got {value}')
    return float(value)

def parse_choice(event_id:str, data:Mapping[str, Any]) -> Choice:
    if not isinstance(data, dict):
        raise ValueError(f'choices for {event_id} must be a list of tables')
    if "id" not in data or not isinstance(data["id"], str) or data["id"] == "":
        raise ValueError(f'choices for {event_id} must all have an id')
    choice_id = data["id"]
    unknown = set(data.keys()) - CHOICE_KEYS
    if unknown:
        raise ValueError(f'choice {choice_id} in {event_id} had unknown keys {sorted(unknown)}')

    tokens = _string_list(event_id, "effects", data)
    instructions, skipped = effects.parse_effects(tokens)
    for token in skipped:
        logger.warning(f'choice {choice_id} in {event_id} has an effect that will be ignored: "{token}"')

    if "ends_session" in data and not isinstance(data["ends_session"], bool):
        raise ValueError(f'ends_session must be a bool in {event_id}')

    return Choice(
        choice_id=choice_id,
        text_key=_optional_string(event_id, "text_key", data) or f'choice_{choice_id}',
        result_text_key=_optional_string(event_id, "result_text_key", data),
        effects=tuple(tokens),
        instructions=tuple(instructions),
        skipped_effects=tuple(skipped),
        on_choice_flag=_optional_string(event_id, "flag", data),
        next_event_id=_optional_string(event_id, "next_event", data),
        ends_session=data.get("ends_session", True),
    )

def parse_event(data:Mapping[str, Any]) -> EventDefinition:
    if not isinstance(data, dict):
        raise ValueError(f'events must be tables, got {data!r}')
    if "id" not in data or not isinstance(data["id"], str) or data["id"] == "":
        raise ValueError(f'no id in event {data!r}')
    event_id = data["id"]

    unknown = set(data.keys()) - EVENT_KEYS
    if unknown:
        raise ValueError(f'event {event_id} had unknown keys {sorted(unknown)}')

    if "category" not in data:
        raise ValueError(f'no category in event {event_id}')
    try:
        category = EventCategory(data["category"])
    except ValueError:
        raise ValueError(f'event {event_id} had unknown category {data["category"]}')

    condition_data = _string_list(event_id, "conditions", data)
    parsed_conditions = tuple(parse_condition(x) for x in condition_data)

    choice_data = data.get("choice", [])
    if not isinstance(choice_data, list):
        raise ValueError(f'choices for {event_id} must be a list of tables')
    choices = tuple(parse_choice(event_id, x) for x in choice_data)
    if len(set(x.choice_id for x in choices)) != len(choices):
        raise ValueError(f'event {event_id} has duplicate choice ids')

    weight = _number(event_id, "weight", data, 1.)
    if weight <= 0.:
        logger.warning(f'event {event_id} has weight {weight} and will never be picked by weighted selection')

    if "can_skip" in data and not isinstance(data["can_skip"], bool):
        raise ValueError(f'can_skip must be a bool in {event_id}')

    default_story_key = f'story_{event_id.removeprefix("event_")}'

    return EventDefinition(
        event_id=event_id,
        name=_optional_string(event_id, "name", data) or event_id,
        category=category,
        story_key=_optional_string(event_id, "story_key", data) or default_story_key,
        trigger_probability=_number(event_id, "probability", data, 0.),
        conditions=parsed_conditions,
        choices=choices,
        required_flags=frozenset(_string_list(event_id, "required_flags", data)),
        excluded_flags=frozenset(_string_list(event_id, "excluded_flags", data)),
        on_trigger_flag=_optional_string(event_id, "on_trigger_flag", data),
        weight=weight,
        can_skip=data.get("can_skip", True),
        chained_event_id=_optional_string(event_id, "chained_event_id", data),
        chained_event_delay=_number(event_id, "chained_event_delay", data, config.Settings.events.chained_event_delay),
    )

def loadd(event_data:Iterable[Mapping[str, Any]], strict:bool=False) -> EventCatalog:
    """
    Loads events from parsed event tables into a catalog.

    Parameters
    ----------
    event_data : iterable of dict
        event tables, in load order. Ids must be unique, later duplicates are
        dropped with a warning.
    strict : bool
        if True a malformed event raises ValueError, otherwise it's logged and
        skipped

    Returns
    -------
    out : EventCatalog
        catalog holding every event that parsed
    """

    parsed = []
    for i, data in enumerate(event_data):
        try:
            parsed.append(parse_event(data))
        except (ValueError, NarrativeError) as e:
            if strict:
                raise
            logger.error(f'skipping event #{i}: {e}')

    return EventCatalog(parsed)

def loads(data:str, strict:bool=False) -> EventCatalog:
    """
    Loads events from a toml string into a catalog.

    Parameters
    ----------
    data : str
        toml encoded event data, events are an array of tables named "event"
    strict : bool
        see loadd

    Returns
    -------
    out : EventCatalog
        catalog holding every event that parsed
    """

    event_data = toml.loads(data)
    return loadd(event_data.get("event", []), strict=strict)

def load_catalog(strict:bool=False) -> EventCatalog:
    """ the catalog for the built-in event library """
    return loadd(config.Events, strict=strict)
