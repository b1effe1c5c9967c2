#  Tomato Timer - work/break interval cycle with a pausable countdown
#  Copyright (c) 2023 Constantine Kulak
#
#  This program is free software: you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation; either version 3 of the License, or
#  (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with this program.  If not, see <https://www.gnu.org/licenses/>.
import json
import logging
import signal
import sys
import threading
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import TextIO

from tomato.core.abstract_settings import AbstractSettings
from tomato.core.engine import TomatoEngine, STATE_IDLE, STATE_WORKING, STATE_BREAK, STATE_PAUSED, \
    STATE_PAUSED_IN_BREAK, STATE_FINISHED
from tomato.core.engine_factory import create_engine
from tomato.core.minutes_timer import ONE_MINUTE_MS
from tomato.core.mock_settings import MockSettings

logger = logging.getLogger(__name__)

STATE_TITLES = {
    STATE_IDLE: 'Idle',
    STATE_WORKING: 'Working',
    STATE_BREAK: 'Break',
    STATE_PAUSED: 'Paused',
    STATE_PAUSED_IN_BREAK: 'Paused',
    STATE_FINISHED: 'Finished',
}

ENGINE_OVERRIDES = {
    'repetitions': 'Engine.repetitions',
    'work': 'Engine.work_duration',
    'rest': 'Engine.break_duration',
}


def dump(obj: object) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True, default=str))


def initialize_logger(settings: AbstractSettings, debug: bool) -> None:
    log_format = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    root = logging.getLogger()

    # 0. Set the overall log level that would apply to ALL handlers
    root.setLevel(logging.DEBUG if debug else settings.get('Logger.level'))

    # 1. Remove existing handlers, if any
    for existing_handle in root.handlers:
        existing_handle.close()
    root.handlers.clear()

    # 2. Check that the entire logger file path exists
    logfile = Path(settings.get('Logger.filename'))
    if logfile.is_dir():
        logfile /= 'tomato-timer.log'
    logfile.parent.mkdir(parents=True, exist_ok=True)

    # 3. Add FILE handler for whatever the user configured
    file_handler = logging.FileHandler(filename=logfile.absolute())
    file_handler.setFormatter(log_format)
    file_handler.setLevel(logging.DEBUG if debug else settings.get('Logger.level'))
    root.addHandler(file_handler)

    # 4. Add STDIO handler for warnings and errors
    stdio_handler = logging.StreamHandler(sys.stdout)
    stdio_handler.setFormatter(log_format)
    stdio_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    root.addHandler(stdio_handler)


class ConsoleObserver:
    """Prints the engine progress. Only reads engine properties when notified."""
    _engine: TomatoEngine
    _out: TextIO
    _finished: threading.Event

    def __init__(self, engine: TomatoEngine, out: TextIO | None = None):
        self._engine = engine
        self._out = out if out is not None else sys.stdout
        self._finished = threading.Event()
        engine.on_tick(self.update_timer).on_state_changed(self.update_state)

    def format_timer(self) -> str:
        engine = self._engine
        duration = engine.get_current_state_duration()
        left = engine.get_minutes_to_go()
        width = 20
        done = width if duration == 0 else int(width * (duration - left) / duration)
        return (f'[{"#" * done}{"-" * (width - done)}] 0:{left:02d} '
                f'-{engine.get_repetitions_remaining()}-')

    def format_state(self) -> str:
        engine = self._engine
        state = engine.get_state()
        if state in (STATE_WORKING, STATE_BREAK):
            return f'{STATE_TITLES[state]} - {engine.get_minutes_to_go()} min left'
        return STATE_TITLES[state]

    def update_timer(self) -> None:
        print(self.format_timer(), file=self._out, flush=True)

    def update_state(self) -> None:
        print(f'== {self.format_state()}', file=self._out, flush=True)
        if self._engine.is_finished():
            self._finished.set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)


def effective_settings(base: AbstractSettings, args: Namespace) -> AbstractSettings:
    values = dict()
    for category in base.get_categories():
        for option_id, option_type, option_display, option_value, option_options in base.get_settings(category):
            values[option_id] = option_value
    for arg, option_id in ENGINE_OVERRIDES.items():
        value = getattr(args, arg, None)
        if value is not None:
            values[option_id] = str(value)
    return MockSettings(values)


def open_settings(args: Namespace) -> AbstractSettings:
    if args.ephemeral:
        return MockSettings()
    from tomato.qt.qt_settings import QtSettings
    return QtSettings(filename=args.settings)


def read_commands(engine: TomatoEngine, stream: TextIO | None = None) -> None:
    # p -- pause / proceed, q -- cancel. EOF on stdin doesn't stop the countdown.
    for line in (stream if stream is not None else sys.stdin):
        command = line.strip().lower()
        if command == 'p':
            if engine.is_paused():
                engine.proceed()
            else:
                engine.pause()
        elif command == 'q':
            engine.cancel()
        elif command != '':
            print('Commands: p -- pause / proceed, q -- cancel', flush=True)
        if engine.is_finished():
            break


def run_threaded(engine: TomatoEngine, observer: ConsoleObserver) -> int:
    engine.start()
    reader = threading.Thread(target=read_commands, args=(engine,), name='CommandReader', daemon=True)
    reader.start()
    try:
        while not observer.wait(0.5):
            pass
    except KeyboardInterrupt:
        logger.info('Interrupted, canceling the engine')
        engine.cancel()
    return 0


def run_qt(settings: AbstractSettings, minute_ms: int) -> int:
    from PySide6.QtCore import QCoreApplication, QTimer
    from tomato.qt.qt_timer import QtTimer

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    engine = create_engine(settings, QtTimer('Tomato Poll'), minute_ms)
    observer = ConsoleObserver(engine)

    def on_state_changed() -> None:
        observer.update_state()
        if engine.is_finished():
            app.quit()
    engine.on_state_changed(on_state_changed)

    # Python signal handlers only run when the interpreter gets control back from the Qt event loop
    signal.signal(signal.SIGINT, lambda *_: engine.cancel())
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)

    engine.start()
    app.exec()
    return 0


def run(args: Namespace) -> int:
    settings = effective_settings(open_settings(args), args)
    minute_ms = int(args.minute_seconds * 1000) if args.minute_seconds is not None else ONE_MINUTE_MS
    if args.qt:
        return run_qt(settings, minute_ms)
    engine = create_engine(settings, minute_ms=minute_ms)
    observer = ConsoleObserver(engine)
    return run_threaded(engine, observer)


def config(args: Namespace) -> int:
    settings = open_settings(args)
    if args.reset:
        settings.reset_to_defaults()
    if args.set:
        to_set = dict[str, str]()
        for pair in args.set:
            if '=' not in pair:
                raise ValueError(f'Expected NAME=VALUE, got "{pair}"')
            name, value = pair.split('=', 1)
            to_set[name.strip()] = value.strip()
        settings.set(to_set)
    if args.get:
        print(settings.get(args.get))
    elif args.list or not (args.set or args.reset):
        dump({
            'location': settings.location(),
            'settings': {
                option_id: value
                for category in settings.get_categories()
                for option_id, option_type, option_display, value, option_options in settings.get_settings(category)
            },
        })
    return 0


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='tomato', description="Tomato Timer command-line client")
    parser.set_defaults(func=None)
    parser.add_argument("--debug", action='store_true', help="Debug output for troubleshooting")
    parser.add_argument("--settings", help="Settings INI file instead of the per-user default")
    parser.add_argument("--ephemeral", action='store_true', help="Use default settings, don't read or save anything")

    subparsers = parser.add_subparsers(title='Available commands')

    run_parser = subparsers.add_parser('run', help='Run a bunch of tomatoes')
    run_parser.add_argument("--repetitions", type=int, help="Tomatoes in the bunch")
    run_parser.add_argument("--work", type=int, help="Tomato duration, minutes")
    run_parser.add_argument("--break", dest='rest', type=int, help="Break duration, minutes")
    run_parser.add_argument("--minute-seconds", type=float, help="Length of a minute in seconds, for demos")
    run_parser.add_argument("--qt", action='store_true', help="Drive the timer from the Qt event loop")
    run_parser.set_defaults(func=run)

    config_parser = subparsers.add_parser('config', help='Show or change settings')
    config_parser.add_argument("--list", action='store_true', help="List all settings")
    config_parser.add_argument("--get", help="Print one setting value")
    config_parser.add_argument("--set", action='append', help="Change a setting, NAME=VALUE")
    config_parser.add_argument("--reset", action='store_true', help="Reset all settings to defaults")
    config_parser.set_defaults(func=config)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args: Namespace = parser.parse_args(argv)
    if args.func is None:
        parser.print_help()
        return 0
    try:
        if args.func is run:
            initialize_logger(open_settings(args), args.debug)
        elif args.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        return args.func(args)
    except (ValueError, KeyError) as e:
        parser.error(str(e))


if __name__ == '__main__':
    sys.exit(main())
