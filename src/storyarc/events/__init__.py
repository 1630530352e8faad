from .core import TriggerReason, Counters, Presenter, LoggingPresenter, EventObserver
from .session import EventSession
from .scheduler import EventTriggerScheduler
