""" Tests for daily trigger passes and eligibility. """

from storyarc.errors import NarrativeErrorCase
from storyarc.events.core import Counters, TriggerReason
from storyarc.narrative.conditions import EvaluationContext, MetricsSnapshot
from storyarc.story import StoryLine, StoryLineStatus, StoryChoice
from . import MonitoringEventObserver

def ids(events):
    return [x.event_id for x in events]

def test_settings_from_config(scheduler, settings):
    assert scheduler.daily_event_cap == settings.events.daily_event_cap
    assert scheduler.story_cooldown_days == 3.
    assert [x.value for x in scheduler.line_order] == ["career", "mental_health", "relationship", "financial"]
    assert scheduler.milestone_events["first_week_completed"] == "event_first_week"

def test_eligibility(scheduler, catalog, flags, metrics, cooldowns):
    low_health = catalog.get_by_id("event_low_health")
    friend = catalog.get_by_id("event_friend")
    broke = catalog.get_by_id("event_broke")

    assert not scheduler.is_eligible(low_health)
    metrics.health = 15.
    assert scheduler.is_eligible(low_health)

    assert not scheduler.is_eligible(friend)
    flags.set_flag("rested")
    assert scheduler.is_eligible(friend)
    flags.set_flag("lonely")
    assert not scheduler.is_eligible(friend)
    flags.clear_flag("lonely")

    assert scheduler.is_eligible(broke)
    cooldowns.set_cooldown("event_broke", 1.)
    assert not scheduler.is_eligible(broke)
    cooldowns.tick()
    assert scheduler.is_eligible(broke)

    # conditions read the context they're given
    context = EvaluationContext(MetricsSnapshot(gold=150.), flags.has_flag, scheduler.clock.snapshot())
    assert not scheduler.is_eligible(broke, context)

    assert ids(scheduler.eligible_events(catalog.all())) == ["event_low_health", "event_broke", "event_debt", "event_friend", "event_meeting"]

def test_random_pass_roll(scheduler, session):
    scheduler.daily_event_trigger_probability = 0.
    assert scheduler.random_encounter_pass() is None
    assert not session.is_event_active()
    assert session.counters[Counters.RANDOM_PASS_ROLLS] == 1
    assert session.counters[Counters.RANDOM_PASS_HITS] == 0

    scheduler.daily_event_trigger_probability = 1.
    event = scheduler.random_encounter_pass()
    assert event is not None
    assert event.event_id in ("event_broke", "event_meeting")
    assert session.get_current_event() == event
    assert session.counters[Counters.RANDOM_PASS_HITS] == 1

def test_random_pass_always_trigger(scheduler, session, presenter, cooldowns):
    scheduler.daily_event_trigger_probability = 0.
    scheduler.always_trigger = True
    presenter.auto_choice = 1

    event = scheduler.random_encounter_pass()
    assert event is not None
    assert event.category.value in ("random", "personal")
    assert presenter.shown_ids[0] == event.event_id
    # random encounters don't cool down by default
    assert not cooldowns.is_on_cooldown(event.event_id)

def test_random_pass_cap(scheduler, session, presenter):
    scheduler.always_trigger = True
    presenter.auto_choice = 1

    assert scheduler.random_encounter_pass() is not None
    assert session.triggered_today == 1
    assert scheduler.random_encounter_pass() is None
    assert session.counters[Counters.RANDOM_PASS_ROLLS] == 1

    session.reset_daily()
    assert scheduler.random_encounter_pass() is not None

def test_random_pass_nothing_eligible(scheduler, session, metrics, cooldowns):
    scheduler.always_trigger = True
    metrics.gold = 500.
    cooldowns.set_cooldown("event_meeting", 2.)

    assert scheduler.random_encounter_pass() is None
    assert not session.is_event_active()
    assert session.counters[Counters.RANDOM_PASS_EMPTY] == 1

def test_random_pass_respects_weight(scheduler, session, flags, metrics):
    """ only friend is eligible, so friend it is """
    scheduler.always_trigger = True
    metrics.gold = 500.
    scheduler.random_categories = scheduler.random_categories[1:]
    flags.set_flag("rested")

    event = scheduler.random_encounter_pass()
    assert event is not None
    assert event.event_id == "event_friend"

def test_story_pass_cascades_to_next_line(scheduler, session, cooldowns):
    observer = MonitoringEventObserver()
    session.observe(observer)
    scheduler.story.update(1)

    # career's exploration pool has nothing eligible, mental health and
    # relationship have no pools, financial poverty has broke
    event = scheduler.story_line_pass()
    assert event is not None
    assert event.event_id == "event_broke"
    assert observer.triggered == [("event_broke", TriggerReason.STORY_LINE)]
    assert cooldowns.remaining("event_broke") == 3.

def test_story_pass_priority(scheduler, session, flags):
    flags.set_flag("rested")
    event = scheduler.story_line_pass()
    assert event is not None
    assert event.event_id == "event_friend"

def test_story_pass_cooldown(scheduler, session, cooldowns):
    assert scheduler.story_line_pass().event_id == "event_broke"
    assert session.skip_event()

    for _ in range(2):
        assert scheduler.story_line_pass() is None
        cooldowns.tick()
    assert scheduler.story_line_pass() is None
    cooldowns.tick()
    assert scheduler.story_line_pass().event_id == "event_broke"

def test_story_pass_refused_while_active(scheduler, session, cooldowns):
    assert session.trigger_event_by_id("event_meeting")
    assert scheduler.story_line_pass() is None
    assert session.get_current_event().event_id == "event_meeting"
    assert session.rejections[NarrativeErrorCase.STATE] == 1
    assert session.counters[Counters.STORY_PASS_EMPTY] == 1
    # a refused trigger doesn't start a cooldown
    assert not cooldowns.is_on_cooldown("event_broke")

def test_story_pass_follows_phase(scheduler, session, metrics):
    metrics.gold = 500.
    scheduler.milestone_events = {}
    assert scheduler.story_line_pass() is None

    scheduler.story.update(8)
    event = scheduler.story_line_pass()
    assert event is not None
    assert event.event_id == "event_meeting"

def test_milestone_event(scheduler, session, presenter):
    observer = MonitoringEventObserver()
    session.observe(observer)
    scheduler.milestone_events = {"career_development_begins": "event_meeting"}

    scheduler.story.update(7)
    assert presenter.shown == []
    scheduler.story.update(8)
    assert presenter.shown_ids == ["event_meeting"]
    assert observer.triggered == [("event_meeting", TriggerReason.MILESTONE)]

def test_milestone_bypasses_eligibility(scheduler, session, metrics):
    scheduler.milestone_events = {"payday": "event_broke"}
    metrics.gold = 500.
    assert scheduler.trigger_milestone_event("payday")
    assert session.get_current_event().event_id == "event_broke"

def test_unmapped_and_unknown_milestones(scheduler, session):
    scheduler.milestone_events = {"payday": "event_nope"}
    assert not scheduler.trigger_milestone_event("nothing")
    assert not scheduler.trigger_milestone_event("payday")
    assert session.rejections[NarrativeErrorCase.LOOKUP] == 1

def test_manual_trigger(scheduler, session, cooldowns):
    cooldowns.set_cooldown("event_low_health", 5.)
    assert scheduler.trigger_event("event_low_health")
    assert session.get_current_event().event_id == "event_low_health"
    assert not scheduler.trigger_event("event_broke")

def test_daily_pass(scheduler, session, presenter):
    presenter.auto_choice = 1
    scheduler.always_trigger = True

    triggered = scheduler.run_daily_trigger_pass(1)
    assert len(triggered) == 2
    assert triggered[0].event_id in ("event_broke", "event_meeting")
    assert ids(triggered) == presenter.shown_ids
    assert session.triggered_today == 2

def test_daily_pass_resets_cap(scheduler, session, presenter):
    presenter.auto_choice = 1
    scheduler.always_trigger = True
    scheduler.story_line_pass = lambda: None

    for day in range(1, 4):
        assert len(scheduler.run_daily_trigger_pass(day)) == 1

def test_story_pass_choice_is_recorded_on_its_line(scheduler, session, flags):
    flags.set_flag("rested")
    scheduler.story.update(2)
    assert scheduler.story_line_pass().event_id == "event_friend"
    assert session.on_player_choice(0)

    assert scheduler.story.choice_history(StoryLine.CAREER) == [StoryChoice("event_friend", "hang_out", 2, 2.)]
    assert scheduler.story.status(StoryLine.CAREER) == StoryLineStatus.POSITIVE
    assert scheduler.story.choice_history(StoryLine.FINANCIAL) == []

def test_story_pass_choice_answered_by_presenter(scheduler, session, presenter):
    presenter.auto_choice = 1
    assert scheduler.story_line_pass().event_id == "event_broke"
    assert not session.is_event_active()
    assert scheduler.story.has_made_choice(StoryLine.FINANCIAL, "tighten_belt")
    # V-1 is inside the neutral band
    assert scheduler.story.status(StoryLine.FINANCIAL) == StoryLineStatus.NEUTRAL

def test_only_story_pass_choices_are_recorded(scheduler, session):
    assert scheduler.story_line_pass().event_id == "event_broke"
    assert session.skip_event()
    assert scheduler.story.choice_history(StoryLine.FINANCIAL) == []

    # a manual trigger of a story pool event isn't a story choice
    assert scheduler.trigger_event("event_broke")
    assert session.on_player_choice(1)
    assert scheduler.story.choice_history(StoryLine.FINANCIAL) == []
