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
import datetime
import logging
import threading
from typing import Callable

from tomato.core.abstract_timer import AbstractTimer

logger = logging.getLogger(__name__)


class ThreadedTimer(AbstractTimer):
    """Runs the callback on a background thread. Every schedule() starts a fresh
    daemon thread with its own stop flag, so a loop that was cancelled from within
    its own callback can never be revived by a subsequent schedule()."""
    _name: str
    _lock: threading.Lock
    _thread: threading.Thread | None
    _stop: threading.Event | None

    def __init__(self, name: str = 'ThreadedTimer'):
        self._name = name
        self._lock = threading.Lock()
        self._thread = None
        self._stop = None

    def schedule(self,
                 ms: float,
                 callback: Callable[[dict | None, datetime.datetime], None],
                 params: dict | None,
                 once: bool = False) -> None:
        if ms <= 0:
            raise ValueError(f'Timer interval must be positive, got {ms}')
        with self._lock:
            self._stop_current()
            stop = threading.Event()
            thread = threading.Thread(target=self._run,
                                      args=(ms / 1000, callback, params, once, stop),
                                      name=self._name,
                                      daemon=True)
            self._stop = stop
            self._thread = thread
        logger.debug(f'{self._name}: Scheduled every {ms} ms (once = {once})')
        thread.start()

    def _run(self,
             interval: float,
             callback: Callable[[dict | None, datetime.datetime], None],
             params: dict | None,
             once: bool,
             stop: threading.Event) -> None:
        # The timed wait is the only place where this thread is suspended
        while not stop.wait(interval):
            try:
                callback(params, datetime.datetime.now(datetime.timezone.utc))
            except Exception:
                logger.exception(f'{self._name}: Callback failed, stopping the timer')
                stop.set()
            if once:
                stop.set()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f'{self._name}: Thread {threading.get_ident()} is done')

    def _stop_current(self) -> None:
        if self._stop is not None:
            self._stop.set()
        self._stop = None
        self._thread = None

    def cancel(self) -> None:
        with self._lock:
            if self._stop is not None:
                logger.debug(f'{self._name}: Canceling')
            self._stop_current()

    def is_scheduled(self) -> bool:
        with self._lock:
            return self._stop is not None and not self._stop.is_set()

    def join(self, timeout: float | None = None) -> bool:
        # Waits until the current loop exits. Returns False on timeout.
        with self._lock:
            thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()
