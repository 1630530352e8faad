import logging

import pytest

from storyarc.clock import DayClock
from storyarc.metrics import GameMetrics
from storyarc.narrative.conditions import MetricsSnapshot, ClockSnapshot

def test_defaults_from_config(settings):
    metrics = GameMetrics()
    assert metrics.health == settings.metrics.health
    assert metrics.gold == settings.metrics.gold
    assert metrics.snapshot().work_skill == settings.metrics.work_skill

def test_overrides():
    metrics = GameMetrics(health=15, gold=40)
    assert metrics.snapshot() == MetricsSnapshot(
        health=15., valence=0., arousal=0., gold=40., work_skill=10.,
        emotion_stability=50., hunger=0., consecutive_work_days=0.,
        total_gold_earned=0.,
    )
    with pytest.raises(ValueError):
        GameMetrics(charisma=3)

def test_apply_effects():
    metrics = GameMetrics()
    metrics.apply_effects(["health-30", "V+1.5", "A-2", "gold+100", "gold-20", "workSkill+5", "time-2"])
    assert metrics.health == 70.
    assert metrics.valence == 1.5
    assert metrics.arousal == -2.
    assert metrics.gold == 130.
    assert metrics.total_gold_earned == 100.
    assert metrics.work_skill == 15.
    assert metrics.time == 5.

def test_clamped_metrics():
    metrics = GameMetrics(health=90, emotion_stability=5, hunger=95)
    metrics.apply_effects(["health+30", "emotionStability-10", "hunger+10"])
    assert metrics.health == 100.
    assert metrics.emotion_stability == 0.
    assert metrics.hunger == 100.
    metrics.apply_effects(["health-300"])
    assert metrics.health == 0.

def test_bad_tokens_are_ignored(caplog):
    metrics = GameMetrics()
    before = metrics.snapshot()
    with caplog.at_level(logging.WARNING):
        metrics.apply_effects(["mana+3", "setFlag:x"])
    assert metrics.snapshot() == before
    assert "mana+3" in caplog.text

def test_clock_calendar():
    clock = DayClock()
    assert (clock.current_week(), clock.current_day()) == (1, 1)
    clock.set_day_of_month(7)
    assert (clock.current_week(), clock.current_day()) == (1, 7)
    clock.set_day_of_month(8)
    assert (clock.current_week(), clock.current_day()) == (2, 1)
    assert clock.day_of_month() == 8
    clock.set_day_of_month(28)
    assert (clock.current_week(), clock.current_day()) == (4, 7)
    assert clock.advance_day() == 29
    assert (clock.current_week(), clock.current_day()) == (5, 1)
    with pytest.raises(ValueError):
        clock.set_day_of_month(0)

def test_clock_time_slots():
    clock = DayClock(time_slots=[["morning", "早上"], ["night", "晚上"]], hours_per_slot=6.)
    assert clock.hours_per_day == 12.
    assert clock.current_time_slot_name() == "morning"
    assert clock.use_time(5.)
    assert clock.current_time_slot_name() == "morning"
    assert clock.use_time(1.)
    assert clock.current_time_slot_name() == "night"
    assert clock.has_enough_time(6.)
    assert not clock.use_time(7.)
    assert clock.use_time(6.)
    assert clock.current_time_slot_name() == "night"

    clock.set_day_of_month(13)
    assert clock.snapshot() == ClockSnapshot(day_of_week=6, week=2, time_slot="morning")

def test_clock_needs_slots():
    with pytest.raises(ValueError):
        DayClock(time_slots=[])
