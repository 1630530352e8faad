""" Narrative Content for Story Arc

Everything about what an event *is*, as opposed to when it fires. Events are
authored in toml, loaded once into an EventCatalog and never change after
that.

An event has gating rules and choices. Gating rules are conditions (numeric
comparisons against the player's metrics, the clock or flags), flags that must
be set, flags that must not be set and a weight used when several events are
eligible at once. Choices carry effect tokens that mutate the player's metrics,
an optional flag to raise and an optional follow up event.

Some motivating examples:

Overwork
When health drops below 40 the overwork event becomes eligible. The player can
rest (recover health, calm down) or push on (lose more health, get more
agitated). Either way a flag records what they chose and later events can key
off that flag.

Windfall and Investment
With enough gold a windfall event can fire. Saving the money raises a flag
that makes an investment tip eligible later in the month.

Weekend
On days six and seven the weekend event is always eligible, and it competes
with other random encounters purely on weight.

"""

from .catalog import EventCategory, Choice, EventDefinition, EventCatalog
from .conditions import EvaluationContext, MetricsSnapshot, ClockSnapshot, evaluate, evaluate_all
from .rule_parser import loads, loadd, load_catalog
