import io
import os
import abc
import glob
import time
import logging
import datetime
import tempfile
import contextlib
import collections
from typing import Generic, Optional, TypeVar

from storyarc import util
from storyarc.engine import NarrativeEngine
from storyarc.flags import FlagStore
from storyarc.cooldown import CooldownTracker
from storyarc.story import StoryChoice, StoryPhaseTracker
from storyarc.events.core import Counters
from storyarc.events.session import EventSession
from storyarc.errors import NarrativeErrorCase
from storyarc.serialization import util as s_util

T = TypeVar('T')

SAVE_FORMAT_VERSION = 2

class LoadContext:
    """ State for one load cycle. """

    def __init__(self, sg:"GameSaver", engine:NarrativeEngine) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.save_game = sg
        self.engine = engine
        self.debug = False

class Saver(abc.ABC, Generic[T]):
    """ Type specific save logic.

    Engine components are built by the engine and wired together, so loading
    restores state into the component the engine already has rather than
    making a new one.
    """

    def __init__(self, save_game:"GameSaver"):
        self.save_game = save_game

    @abc.abstractmethod
    def save(self, obj:T, f:io.IOBase) -> int: ...
    @abc.abstractmethod
    def load(self, f:io.IOBase, load_context:LoadContext) -> T: ...

class FlagStoreSaver(Saver[FlagStore]):
    def save(self, obj:FlagStore, f:io.IOBase) -> int:
        return s_util.strs_to_f(obj.export_flags(), f)

    def load(self, f:io.IOBase, load_context:LoadContext) -> FlagStore:
        flags = load_context.engine.flags
        flags.import_flags(s_util.strs_from_f(f))
        return flags

class CooldownTrackerSaver(Saver[CooldownTracker]):
    def save(self, obj:CooldownTracker, f:io.IOBase) -> int:
        return s_util.fancy_dict_to_f(obj.export_cooldowns(), f, s_util.to_len_pre_f, s_util.double_to_f)

    def load(self, f:io.IOBase, load_context:LoadContext) -> CooldownTracker:
        cooldowns = load_context.engine.cooldowns
        cooldowns.import_cooldowns(s_util.fancy_dict_from_f(f, s_util.from_len_pre_f, s_util.double_from_f))
        return cooldowns

class StoryPhaseTrackerSaver(Saver[StoryPhaseTracker]):
    def save(self, obj:StoryPhaseTracker, f:io.IOBase) -> int:
        bytes_written = 0
        bytes_written += s_util.int_to_f(obj.last_day, f)
        bytes_written += s_util.bool_to_f(obj.climax_reached, f)
        bytes_written += s_util.fancy_dict_to_f(obj.export_phases(), f, s_util.to_len_pre_f, lambda v, f: s_util.int_to_f(v, f, signed=True))
        bytes_written += s_util.strs_to_f(obj.milestones_reached, f)
        bytes_written += s_util.fancy_dict_to_f(obj.export_choices(), f, s_util.to_len_pre_f, self._choices_to_f)
        bytes_written += s_util.fancy_dict_to_f(obj.export_statuses(), f, s_util.to_len_pre_f, lambda v, f: s_util.int_to_f(v, f, signed=True))
        return bytes_written

    def load(self, f:io.IOBase, load_context:LoadContext) -> StoryPhaseTracker:
        story = load_context.engine.story
        last_day = s_util.int_from_f(f)
        climax_reached = s_util.bool_from_f(f)
        checkpoints = s_util.fancy_dict_from_f(f, s_util.from_len_pre_f, lambda f: s_util.int_from_f(f, signed=True))
        story.import_phases(checkpoints, last_day, climax_reached)
        story.milestones_reached = s_util.strs_from_f(f)
        choices = s_util.fancy_dict_from_f(f, s_util.from_len_pre_f, self._choices_from_f)
        statuses = s_util.fancy_dict_from_f(f, s_util.from_len_pre_f, lambda f: s_util.int_from_f(f, signed=True))
        story.import_choices(choices, statuses)
        return story

    def _choices_to_f(self, choices:list[StoryChoice], f:io.IOBase) -> int:
        bytes_written = 0
        bytes_written += s_util.size_to_f(len(choices), f)
        for choice in choices:
            bytes_written += s_util.to_len_pre_f(choice.event_id, f)
            bytes_written += s_util.to_len_pre_f(choice.choice_id, f)
            bytes_written += s_util.int_to_f(choice.day, f)
            bytes_written += s_util.double_to_f(choice.valence_delta, f)
        return bytes_written

    def _choices_from_f(self, f:io.IOBase) -> list[StoryChoice]:
        count = s_util.size_from_f(f)
        choices = []
        for i in range(count):
            event_id = s_util.from_len_pre_f(f)
            choice_id = s_util.from_len_pre_f(f)
            day = s_util.int_from_f(f)
            valence_delta = s_util.double_from_f(f)
            choices.append(StoryChoice(event_id, choice_id, day, valence_delta))
        return choices

class EventSessionSaver(Saver[EventSession]):
    def save(self, obj:EventSession, f:io.IOBase) -> int:
        bytes_written = 0
        bytes_written += s_util.double_to_f(obj.timestamp, f)
        bytes_written += s_util.optional_str_to_f(obj.current_event.event_id if obj.current_event else None, f)
        bytes_written += s_util.optional_str_to_f(obj.pending_next_event_id, f)
        bytes_written += s_util.double_to_f(obj.pending_next_event_at, f)
        bytes_written += s_util.int_to_f(obj.triggered_today, f)
        bytes_written += s_util.fancy_dict_to_f(obj.trigger_counts, f, s_util.to_len_pre_f, s_util.int_to_f)
        bytes_written += s_util.strs_to_f(obj.triggered_event_ids, f)
        bytes_written += s_util.fancy_dict_to_f(obj.counters, f, lambda k, f: s_util.to_len_pre_f(k.name, f), s_util.int_to_f)
        bytes_written += s_util.fancy_dict_to_f(obj.rejections, f, lambda k, f: s_util.to_len_pre_f(k.name, f), s_util.int_to_f)
        return bytes_written

    def load(self, f:io.IOBase, load_context:LoadContext) -> EventSession:
        session = load_context.engine.session
        session.timestamp = s_util.double_from_f(f)
        current_event_id = s_util.optional_str_from_f(f)
        if current_event_id is not None:
            current_event = session.catalog.get_by_id(current_event_id)
            if current_event is None:
                raise ValueError(f'save has active event {current_event_id} which is not in the catalog')
            session.current_event = current_event
            session.is_active = True
        else:
            session.current_event = None
            session.is_active = False
        session.pending_next_event_id = s_util.optional_str_from_f(f)
        session.pending_next_event_at = s_util.double_from_f(f)
        session.triggered_today = s_util.int_from_f(f)
        session.trigger_counts = collections.Counter(s_util.fancy_dict_from_f(f, s_util.from_len_pre_f, s_util.int_from_f))
        session.triggered_event_ids = s_util.strs_from_f(f)
        session.counters = collections.Counter(s_util.fancy_dict_from_f(f, lambda f: Counters[s_util.from_len_pre_f(f)], s_util.int_from_f))
        session.rejections = collections.Counter(s_util.fancy_dict_from_f(f, lambda f: NarrativeErrorCase[s_util.from_len_pre_f(f)], s_util.int_from_f))
        return session

class SaveGame:
    def __init__(self, debug_flag:bool, save_date:datetime.datetime, day:int, filename:str=""):
        self.filename = filename
        self.debug_flag = debug_flag
        self.save_date = save_date
        self.day = day

class GameSaver:
    """ Central point for saving engine state.

    A save holds flags, cooldowns, story progress, the session and the random
    generator state. Content (the catalog, story pools, config) is not saved,
    it's expected to match between save and load.
    """

    def __init__(self, save_path:str="/tmp/storyarc_saves", debug:bool=True) -> None:
        self.logger = logging.getLogger(util.fullname(self))

        self.debug = debug
        self._save_path = save_path
        self._save_file_glob = "save_*.sarc"

        self.flag_saver = FlagStoreSaver(self)
        self.cooldown_saver = CooldownTrackerSaver(self)
        self.story_saver = StoryPhaseTrackerSaver(self)
        self.session_saver = EventSessionSaver(self)

    def _gen_save_filename(self) -> str:
        return f'save_{time.time()}.sarc'

    def _save_metadata(self, engine:NarrativeEngine, save_file:io.IOBase) -> int:
        bytes_written = 0
        bytes_written += s_util.int_to_f(SAVE_FORMAT_VERSION, save_file, blen=2)
        bytes_written += s_util.bool_to_f(self.debug, save_file)
        bytes_written += s_util.to_len_pre_f(datetime.datetime.now().isoformat(), save_file)
        bytes_written += s_util.int_to_f(engine.story.last_day, save_file)
        return bytes_written

    def _load_metadata(self, save_file:io.IOBase) -> SaveGame:
        version = s_util.int_from_f(save_file, blen=2)
        if version != SAVE_FORMAT_VERSION:
            raise ValueError(f'unsupported save format version {version}')
        debug_flag = s_util.bool_from_f(save_file)
        save_date = datetime.datetime.fromisoformat(s_util.from_len_pre_f(save_file))
        day = s_util.int_from_f(save_file)
        return SaveGame(debug_flag, save_date, day)

    def save_to_f(self, engine:NarrativeEngine, save_file:io.IOBase) -> int:
        bytes_written = 0
        bytes_written += self._save_metadata(engine, save_file)

        bytes_written += s_util.debug_string_w("flags", save_file)
        bytes_written += self.flag_saver.save(engine.flags, save_file)
        bytes_written += s_util.debug_string_w("cooldowns", save_file)
        bytes_written += self.cooldown_saver.save(engine.cooldowns, save_file)
        bytes_written += s_util.debug_string_w("story", save_file)
        bytes_written += self.story_saver.save(engine.story, save_file)
        bytes_written += s_util.debug_string_w("session", save_file)
        bytes_written += self.session_saver.save(engine.session, save_file)
        bytes_written += s_util.debug_string_w("random state", save_file)
        bytes_written += s_util.random_state_to_f(engine.r, save_file)
        return bytes_written

    def load_from_f(self, engine:NarrativeEngine, save_file:io.IOBase) -> SaveGame:
        load_context = LoadContext(self, engine)
        self.logger.debug("loading metadata")
        save_game = self._load_metadata(save_file)
        load_context.debug = save_game.debug_flag

        s_util.debug_string_r("flags", save_file)
        self.flag_saver.load(save_file, load_context)
        s_util.debug_string_r("cooldowns", save_file)
        self.cooldown_saver.load(save_file, load_context)
        s_util.debug_string_r("story", save_file)
        self.story_saver.load(save_file, load_context)
        s_util.debug_string_r("session", save_file)
        self.session_saver.load(save_file, load_context)
        s_util.debug_string_r("random state", save_file)
        # the generator is shared by the scheduler and selector, restore in place
        engine.r.bit_generator.state = s_util.random_state_from_f(save_file)
        return save_game

    def save(self, engine:NarrativeEngine, save_filename:Optional[str]=None) -> str:
        self.logger.info("saving...")
        start_time = time.perf_counter()

        if save_filename is None:
            os.makedirs(self._save_path, exist_ok=True)
            save_filename = os.path.join(self._save_path, self._gen_save_filename())
        save_dir = os.path.dirname(os.path.abspath(save_filename))
        bytes_written = 0
        with contextlib.ExitStack() as context_stack:
            temp_save_file = context_stack.enter_context(tempfile.NamedTemporaryFile("wb", dir=save_dir, delete=False))
            self.logger.debug(f'saving to temp file {temp_save_file.name}')
            save_file:io.IOBase = temp_save_file # type: ignore
            try:
                bytes_written += self.save_to_f(engine, save_file)
                temp_save_file.flush()
                temp_save_file.close()
            except BaseException:
                # don't leave a partial save behind
                temp_save_file.close()
                os.unlink(temp_save_file.name)
                raise

            # move the temp file into final home, so we only end up with good files
            os.replace(temp_save_file.name, save_filename)

        self.logger.info(f'saved {bytes_written}bytes to {save_filename} in {time.perf_counter()-start_time}s')

        return save_filename

    def list_save_games(self) -> list[SaveGame]:
        save_games = []
        for x in glob.glob(os.path.join(self._save_path, self._save_file_glob)):
            with open(x, "rb") as f:
                save_game = self._load_metadata(f) # type: ignore[arg-type]
                save_game.filename = x
                save_games.append(save_game)
        save_games.sort(key=lambda x: x.save_date, reverse=True)
        return save_games

    def load(self, save_filename:str, engine:NarrativeEngine, save_file:Optional[io.IOBase]=None) -> SaveGame:
        self.logger.info(f'loading {save_filename}')
        with contextlib.ExitStack() as context_stack:
            if save_file is None:
                save_file = context_stack.enter_context(open(save_filename, "rb")) # type: ignore[assignment]
            assert save_file is not None
            save_game = self.load_from_f(engine, save_file)
            save_game.filename = save_filename
        self.logger.info("load complete")
        return save_game
