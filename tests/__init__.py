from typing import Optional

from storyarc.narrative.catalog import Choice, EventDefinition
from storyarc.events.core import EventObserver, Presenter, TriggerReason
from storyarc.flags import FlagObserver
from storyarc.story import StoryObserver, StoryLine, StoryLineStatus, StoryPhase

class MonitoringPresenter(Presenter):
    """ Records every event shown, optionally answering with a fixed choice.

    Answering requires the session, set after construction since the session
    needs the presenter first.
    """

    def __init__(self, auto_choice:Optional[int]=None) -> None:
        self.shown:list[EventDefinition] = []
        self.auto_choice = auto_choice
        self.session = None

    def show_event(self, event:EventDefinition) -> None:
        self.shown.append(event)
        if self.auto_choice is not None and self.session is not None:
            self.session.on_player_choice(self.auto_choice)

    @property
    def shown_ids(self) -> list[str]:
        return [x.event_id for x in self.shown]

class MonitoringEventObserver(EventObserver):
    def __init__(self) -> None:
        self.triggered:list[tuple[str, TriggerReason]] = []
        self.chosen:list[tuple[str, str]] = []
        self.ended:list[str] = []

    def event_triggered(self, event:EventDefinition, reason:TriggerReason) -> None:
        self.triggered.append((event.event_id, reason))

    def choice_selected(self, event:EventDefinition, choice:Choice) -> None:
        self.chosen.append((event.event_id, choice.choice_id))

    def event_ended(self, event:EventDefinition) -> None:
        self.ended.append(event.event_id)

class MonitoringFlagObserver(FlagObserver):
    def __init__(self) -> None:
        self.set:list[str] = []
        self.cleared:list[str] = []

    def flag_set(self, flag:str) -> None:
        self.set.append(flag)

    def flag_cleared(self, flag:str) -> None:
        self.cleared.append(flag)

class MonitoringStoryObserver(StoryObserver):
    def __init__(self) -> None:
        self.phase_changes:list[tuple[StoryLine, StoryPhase, StoryPhase]] = []
        self.milestones:list[str] = []
        self.status_changes:list[tuple[StoryLine, StoryLineStatus, StoryLineStatus]] = []

    def phase_changed(self, line:StoryLine, old_phase:StoryPhase, new_phase:StoryPhase) -> None:
        self.phase_changes.append((line, old_phase, new_phase))

    def milestone_reached(self, milestone:str) -> None:
        self.milestones.append(milestone)

    def status_changed(self, line:StoryLine, old_status:StoryLineStatus, new_status:StoryLineStatus) -> None:
        self.status_changes.append((line, old_status, new_status))
