""" Headless month simulation, mostly for tuning content. """

import sys
import argparse
import logging
import contextlib
from collections.abc import Sequence
from typing import Optional

import numpy as np

from storyarc import util, config
from storyarc.clock import DayClock
from storyarc.engine import NarrativeEngine
from storyarc.flags import FlagNames
from storyarc.metrics import GameMetrics
from storyarc.narrative.catalog import EventDefinition
from storyarc.events.core import Presenter
from storyarc.events.session import EventSession
from storyarc.serialization import save_game

SECONDS_PER_DAY = 24 * 60 * 60.

class AutoChoicePresenter(Presenter):
    """ Answers every event as soon as it's shown with a random choice. """

    def __init__(self, r:np.random.Generator) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.r = r
        self.session:Optional[EventSession] = None
        self.shown:list[str] = []

    def show_event(self, event:EventDefinition) -> None:
        self.shown.append(event.event_id)
        if self.session is None:
            return
        index = int(self.r.integers(len(event.choices)))
        self.logger.info(f'{event.name}: picked {event.choices[index].choice_id}')
        self.session.on_player_choice(index)

class Simulator:
    def __init__(
        self,
        engine:NarrativeEngine,
        clock:DayClock,
        metrics:GameMetrics,
        days:Optional[int]=None,
    ) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.engine = engine
        self.clock = clock
        self.metrics = metrics

        settings = config.Settings.sim
        self.days:int = days if days is not None else settings.days
        self.first_week_day:int = settings.first_week_day
        self.first_month_day:int = settings.first_month_day
        self.daily_effects:list[str] = settings.daily_effects
        self.chain_ticks:int = settings.chain_ticks
        self.chain_delay:float = config.Settings.events.chained_event_delay

        self.timestamp = 0.
        self.events_by_day:dict[int, list[str]] = {}

    def _deliver_chains(self) -> None:
        for i in range(self.chain_ticks):
            self.timestamp += self.chain_delay
            self.engine.tick(self.timestamp)
            if self.engine.session.pending_next_event_id is None:
                break

    def run_day(self, day:int) -> None:
        self.clock.set_day_of_month(day)
        self.timestamp = (day - 1) * SECONDS_PER_DAY
        self.engine.tick(self.timestamp)

        self.metrics.apply_effects(self.daily_effects)
        before = len(self.engine.get_triggered_event_ids())
        self.engine.advance_day(day)
        self._deliver_chains()

        if day == self.first_week_day:
            self.engine.raise_milestone(FlagNames.FIRST_WEEK_COMPLETED)
            self._deliver_chains()
        if day == self.first_month_day:
            self.engine.raise_milestone(FlagNames.FIRST_MONTH_COMPLETED)
            self._deliver_chains()

        self.events_by_day[day] = self.engine.get_triggered_event_ids()[before:]
        self.logger.info(f'day {day} (week {self.clock.current_week()} day {self.clock.current_day()}): {self.events_by_day[day] or "quiet"}')

    def run(self) -> None:
        for day in range(1, self.days + 1):
            self.run_day(day)

    def log_report(self) -> None:
        quiet_days = sum(1 for x in self.events_by_day.values() if not x)
        self.logger.info(f'{len(self.events_by_day)} days simulated, {quiet_days} quiet')
        self.logger.info(f'final metrics {self.metrics.snapshot()}')
        self.engine.log_report()

def build(seed:Optional[int]=None, days:Optional[int]=None) -> Simulator:
    r = np.random.default_rng(seed)
    metrics = GameMetrics()
    clock = DayClock()
    presenter = AutoChoicePresenter(r)
    engine = NarrativeEngine(metrics, clock, presenter, r=r)
    presenter.session = engine.session
    return Simulator(engine, clock, metrics, days=days)

def main(argv:Optional[Sequence[str]]=None) -> None:
    with contextlib.ExitStack() as context_stack:
        parser = argparse.ArgumentParser(description="simulate a month of narrative events")
        parser.add_argument("-d", "--days", type=int, default=None,
                help="days to simulate. default from config")
        parser.add_argument("-s", "--seed", type=int, default=None,
                help="random seed. default random")
        parser.add_argument("-c", "--config", type=argparse.FileType("r"), default=None,
                help="toml file merged over the built-in config")
        parser.add_argument("-o", "--save", type=str, default=None,
                help="save final engine state to this file")
        parser.add_argument("--always-trigger", action="store_true",
                help="run the random encounter pass every day")
        parser.add_argument("-v", "--verbose", action="store_true")
        parser.add_argument("--pdb", action="store_true")

        args = parser.parse_args(argv)

        logging.basicConfig(
                format="%(asctime)s %(name)-12s %(levelname)-8s %(message)s",
                stream=sys.stderr,
                level=logging.DEBUG if args.verbose else logging.INFO
        )
        logging.captureWarnings(True)

        if args.pdb:
            context_stack.enter_context(util.PDBManager())

        if args.config:
            with args.config:
                config.load_config(args.config)
        if args.always_trigger:
            config.Settings.events.always_trigger = True

        sim = build(seed=args.seed, days=args.days)
        sim.engine.catalog.log_report()
        sim.run()
        sim.log_report()

        if args.save:
            save_game.GameSaver().save(sim.engine, args.save)

if __name__ == "__main__":
    main()
