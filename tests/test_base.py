""" Tests for observer registration shared by flags, story and session. """

import gc

from storyarc.base import Observable
from storyarc.flags import FlagStore
from storyarc.story import StoryPhaseTracker
from . import MonitoringFlagObserver, MonitoringStoryObserver

def test_double_unobserve(flags):
    observer = MonitoringFlagObserver()
    flags.observe(observer)
    flags.unobserve(observer)
    flags.unobserve(observer)
    flags.set_flag("rested")
    assert observer.set == []

def test_unobserve_never_observed(story):
    story.unobserve(MonitoringStoryObserver())
    assert len(story.observers) == 0

def test_observers_are_weak(flags):
    observer = MonitoringFlagObserver()
    flags.observe(observer)
    assert len(flags.observers) == 1
    del observer
    gc.collect()
    assert len(flags.observers) == 0

def test_clear_observers(story):
    observers = [MonitoringStoryObserver() for _ in range(3)]
    for observer in observers:
        story.observe(observer)
    story.clear_observers()
    story.update(8)
    assert all(x.milestones == [] for x in observers)

def test_components_share_observable():
    assert issubclass(FlagStore, Observable)
    assert issubclass(StoryPhaseTracker, Observable)
