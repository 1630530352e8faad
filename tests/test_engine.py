""" Tests for the engine wiring and the day loop. """

import numpy as np

from storyarc.clock import DayClock
from storyarc.engine import NarrativeEngine
from storyarc.events.core import TriggerReason
from storyarc.flags import FlagNames, FlagStore
from storyarc.metrics import GameMetrics
from storyarc.story import StoryLine, CareerPhase
from . import MonitoringEventObserver, MonitoringPresenter

def test_engine_builds_from_config(engine):
    assert len(engine.catalog) == 22
    assert StoryLine.CAREER in engine.story_pools
    assert engine.story.last_day == 0
    assert not engine.is_event_active()
    assert engine.get_current_event() is None
    assert engine.get_triggered_event_ids() == []

def test_engine_with_catalog(settings, catalog, metrics, clock, rng):
    presenter = MonitoringPresenter()
    engine = NarrativeEngine(metrics, clock, presenter, r=rng, catalog=catalog, story_pools={})
    presenter.session = engine.session
    assert len(engine.catalog) == 5

    assert engine.trigger_event("event_broke")
    assert engine.is_event_active()
    assert not engine.trigger_event("event_low_health")
    assert engine.on_player_choice(0)
    assert engine.get_event_trigger_count("event_broke") == 1

    assert not engine.tick(0.5)
    assert engine.tick(1.)
    assert engine.get_current_event().event_id == "event_debt"
    assert not engine.skip_event()
    assert engine.on_player_choice(0)
    assert engine.get_triggered_event_ids() == ["event_broke", "event_debt"]

def test_advance_day_ticks_cooldowns(engine):
    engine.cooldowns.set_cooldown("event_weekend", 2.)
    engine.advance_day(1)
    assert engine.cooldowns.is_on_cooldown("event_weekend")
    engine.advance_day(2)
    assert not engine.cooldowns.is_on_cooldown("event_weekend")

def test_advance_day_moves_story(engine):
    engine.advance_day(1)
    assert engine.story.current_phase(StoryLine.CAREER) == CareerPhase.EXPLORATION
    engine.advance_day(8)
    assert engine.story.current_phase(StoryLine.CAREER) == CareerPhase.DEVELOPMENT
    assert engine.story.last_day == 8

def test_climax_event_once(engine):
    observer = MonitoringEventObserver()
    engine.session.observe(observer)

    for day in range(1, 29):
        engine.advance_day(day)
    assert engine.get_event_trigger_count("event_life_change") == 1
    assert ("event_life_change", TriggerReason.MILESTONE) in observer.triggered
    assert not engine.is_event_active()

def test_raise_milestone(engine):
    observer = MonitoringEventObserver()
    engine.session.observe(observer)

    assert engine.raise_milestone(FlagNames.FIRST_WEEK_COMPLETED)
    assert observer.triggered == [("event_first_week", TriggerReason.MILESTONE)]
    assert engine.raise_milestone(FlagNames.FIRST_MONTH_COMPLETED)
    assert engine.get_event_trigger_count("event_month_anniversary") == 1
    assert not engine.raise_milestone("payday")

def test_unknown_event(engine):
    assert not engine.trigger_event("event_nope")
    assert not engine.on_player_choice(0)
    assert not engine.skip_event()

def test_daily_pass_always_trigger(settings):
    settings.events.always_trigger = True
    metrics = GameMetrics()
    clock = DayClock()
    presenter = MonitoringPresenter(auto_choice=0)
    engine = NarrativeEngine(metrics, clock, presenter, r=np.random.default_rng(7), flags=FlagStore(initial_flags=[]))
    presenter.session = engine.session

    for day in range(1, 8):
        clock.set_day_of_month(day)
        triggered = engine.advance_day(day)
        # the random encounter pass always finds something in the built-in library
        assert len(triggered) >= 1
        assert triggered[0].category.value in ("random", "personal")

def test_advance_day_ticks_elapsed_days(engine):
    engine.advance_day(1)
    engine.cooldowns.set_cooldown("event_first_week", 3.)
    engine.advance_day(5)
    assert not engine.cooldowns.is_on_cooldown("event_first_week")

def test_advance_day_repeated_day_keeps_cooldowns(engine):
    engine.cooldowns.set_cooldown("event_first_week", 2.)
    engine.advance_day(1)
    engine.advance_day(1)
    engine.advance_day(1)
    assert engine.cooldowns.remaining("event_first_week") == 1.
