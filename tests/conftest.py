import logging

import pytest
import numpy as np

from storyarc import config
from storyarc.clock import DayClock
from storyarc.cooldown import CooldownTracker
from storyarc.engine import NarrativeEngine
from storyarc.flags import FlagStore
from storyarc.metrics import GameMetrics
from storyarc.narrative import rule_parser
from storyarc.narrative.catalog import EventCatalog
from storyarc.story import StoryPhaseTracker, parse_story_pools
from storyarc.events.session import EventSession
from storyarc.events.scheduler import EventTriggerScheduler
from . import MonitoringPresenter

# some logging to turn on if we like
#logging.getLogger("storyarc.events").level = logging.DEBUG

# small library most tests run against
TEST_EVENTS = """
[[event]]
id = "event_low_health"
name = "Low Health"
category = "personal"
probability = 0.1
conditions = ["health < 20"]
on_trigger_flag = "low_health_seen"

[[event.choice]]
id = "rest"
effects = ["health+30", "A-2"]
flag = "rested"

[[event.choice]]
id = "push_on"
effects = ["health-10", "V-2", "bogus*3"]

[[event]]
id = "event_broke"
name = "Broke"
category = "random"
probability = 0.1
conditions = ["gold < 100"]

[[event.choice]]
id = "borrow"
effects = ["gold+300"]
next_event = "event_debt"

[[event.choice]]
id = "tighten_belt"
effects = ["V-1"]

[[event]]
id = "event_debt"
name = "Debt"
category = "special"
can_skip = false

[[event.choice]]
id = "repay"
effects = ["gold-350"]

[[event]]
id = "event_friend"
name = "Friend"
category = "personal"
required_flags = ["rested"]
excluded_flags = ["lonely"]
weight = 2.0

[[event.choice]]
id = "hang_out"
effects = ["V+2"]

[[event]]
id = "event_meeting"
name = "Meeting"
category = "random"
chained_event_id = "event_debt"
chained_event_delay = 5.0

[[event.choice]]
id = "talk"
effects = ["V+1"]

[[event.choice]]
id = "leave"
effects = []
next_event = "event_friend"
"""

@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0)

@pytest.fixture
def settings():
    """ built-in config, restored after the test so overrides don't leak """
    config.load_config()
    yield config.Settings
    config.load_config()

@pytest.fixture
def catalog() -> EventCatalog:
    return rule_parser.loads(TEST_EVENTS, strict=True)

@pytest.fixture
def flags() -> FlagStore:
    return FlagStore(initial_flags=[])

@pytest.fixture
def metrics() -> GameMetrics:
    return GameMetrics()

@pytest.fixture
def clock() -> DayClock:
    return DayClock()

@pytest.fixture
def presenter() -> MonitoringPresenter:
    return MonitoringPresenter()

@pytest.fixture
def session(catalog:EventCatalog, flags:FlagStore, metrics:GameMetrics, presenter:MonitoringPresenter) -> EventSession:
    session = EventSession(catalog, flags, metrics, presenter, chained_event_delay=1.0)
    presenter.session = session
    return session

@pytest.fixture
def cooldowns() -> CooldownTracker:
    return CooldownTracker()

@pytest.fixture
def story() -> StoryPhaseTracker:
    return StoryPhaseTracker(turning_point_week=3, climax_milestone="story_week3_all_lines_climax")

@pytest.fixture
def scheduler(settings, catalog:EventCatalog, session:EventSession, flags:FlagStore, cooldowns:CooldownTracker, story:StoryPhaseTracker, metrics:GameMetrics, clock:DayClock, rng:np.random.Generator) -> EventTriggerScheduler:
    # story pools over the test library, only career and financial have any
    story_pools = parse_story_pools({
        "career": {
            "exploration": ["event_low_health", "event_friend"],
            "development": ["event_meeting"],
        },
        "financial": {
            "poverty": ["event_broke"],
        },
    }, catalog)
    return EventTriggerScheduler(catalog, session, flags, cooldowns, story, story_pools, metrics, clock, rng)

@pytest.fixture
def engine(settings, metrics:GameMetrics, clock:DayClock, rng:np.random.Generator) -> NarrativeEngine:
    presenter = MonitoringPresenter(auto_choice=0)
    engine = NarrativeEngine(metrics, clock, presenter, r=rng, flags=FlagStore(initial_flags=[]))
    presenter.session = engine.session
    return engine
