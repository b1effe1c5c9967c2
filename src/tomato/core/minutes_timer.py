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
from tomato.core.threaded_timer import ThreadedTimer

logger = logging.getLogger(__name__)

DEFAULT_GRANULARITY_MS = 2000
ONE_MINUTE_MS = 60 * 1000


class MinutesTimer:
    """Counts down whole minutes, regardless of what those minutes mean.

    The underlying timer polls every granularity_ms. Every time a full minute
    has been polled while not paused, minute_passed() is called and the counter
    is decremented. When it reaches zero the polling stops and time_finished()
    is called. Both callbacks are called without the internal lock held, so
    they can call back into this object, e.g. to go() again. Exceptions raised
    by the callbacks are logged and ignored, the countdown goes on."""
    _minute_passed: Callable[[], None]
    _time_finished: Callable[[], None]
    _timer: AbstractTimer
    _granularity_ms: int
    _minute_ms: int
    _lock: threading.Lock
    _minutes_left: int
    _elapsed_ms: int
    _paused: bool
    _running: bool
    _generation: int

    def __init__(self,
                 minute_passed: Callable[[], None],
                 time_finished: Callable[[], None],
                 timer: AbstractTimer | None = None,
                 granularity_ms: int = DEFAULT_GRANULARITY_MS,
                 minute_ms: int = ONE_MINUTE_MS):
        if minute_passed is None or time_finished is None:
            raise ValueError('MinutesTimer requires both minute_passed and time_finished callbacks')
        if not callable(minute_passed) or not callable(time_finished):
            raise ValueError('MinutesTimer callbacks must be callable')
        if minute_ms <= 0 or granularity_ms <= 0 or granularity_ms > minute_ms:
            raise ValueError(f'Invalid polling granularity {granularity_ms} ms for a {minute_ms} ms minute')
        self._minute_passed = minute_passed
        self._time_finished = time_finished
        self._timer = timer if timer is not None else ThreadedTimer('MinutesTimer')
        self._granularity_ms = granularity_ms
        self._minute_ms = minute_ms
        self._lock = threading.Lock()
        self._minutes_left = 0
        self._elapsed_ms = 0
        self._paused = False
        self._running = False
        self._generation = 0

    def go(self, minutes: int) -> bool:
        if minutes < 0:
            raise ValueError(f'Cannot count down {minutes} minutes')
        with self._lock:
            if self._running or self._minutes_left != 0:
                logger.debug(f'MinutesTimer: Ignoring go({minutes}), '
                             f'already running with {self._minutes_left} minutes left')
                return False
            self._minutes_left = minutes
            self._elapsed_ms = 0
            self._paused = False
            self._running = True
            self._generation += 1
            generation = self._generation
            # All scheduler calls happen under the lock, so that a late cancel() can't kill a newer schedule
            self._timer.schedule(self._granularity_ms, self._poll, {'generation': generation})
        logger.debug(f'MinutesTimer: Counting down {minutes} minutes (generation {generation})')
        return True

    def _is_current(self, generation: int) -> bool:
        return self._running and self._generation == generation

    def _poll(self, params: dict | None, when: datetime.datetime | None = None) -> None:
        generation = params['generation']
        with self._lock:
            if not self._is_current(generation) or self._paused:
                return
            if self._minutes_left == 0:
                # Zero-length period, nothing to count
                finished = True
            else:
                self._elapsed_ms += self._granularity_ms
                if self._elapsed_ms < self._minute_ms:
                    return
                self._elapsed_ms = 0
                finished = False

        if not finished:
            try:
                self._minute_passed()
            except Exception as ex:
                logger.warning('MinutesTimer: Error in minute_passed() callback (ignored)', exc_info=ex)
            with self._lock:
                if not self._is_current(generation):
                    # Canceled while the minute_passed() callback was running
                    return
                if self._minutes_left > 0:
                    self._minutes_left -= 1
                finished = self._minutes_left == 0
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(f'MinutesTimer: {self._minutes_left} minutes left')

        if finished:
            with self._lock:
                if not self._is_current(generation):
                    return
                self._running = False
                self._paused = False
                self._timer.cancel()
            logger.debug(f'MinutesTimer: Finished counting down (generation {generation})')
            try:
                self._time_finished()
            except Exception as ex:
                logger.warning('MinutesTimer: Error in time_finished() callback (ignored)', exc_info=ex)

    def pause(self) -> None:
        with self._lock:
            if self._minutes_left > 0:
                self._paused = True
                logger.debug('MinutesTimer: Paused')

    def proceed(self) -> None:
        with self._lock:
            if self._paused and self._minutes_left > 0:
                self._paused = False
                logger.debug('MinutesTimer: Proceeding')

    def cancel(self) -> None:
        with self._lock:
            was_running = self._running
            self._running = False
            self._paused = False
            self._timer.cancel()
        if was_running:
            logger.debug(f'MinutesTimer: Canceled with {self._minutes_left} minutes left')

    def get_minutes_left(self) -> int:
        with self._lock:
            return self._minutes_left

    def is_paused(self) -> bool:
        with self._lock:
            return self._paused

    def is_running(self) -> bool:
        with self._lock:
            return self._running
