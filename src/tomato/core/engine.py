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
from __future__ import annotations

import logging
import threading
from typing import Callable

from tomato.core import events
from tomato.core.abstract_event_emitter import AbstractEventEmitter, invoke_direct
from tomato.core.abstract_timer import AbstractTimer
from tomato.core.minutes_timer import MinutesTimer, DEFAULT_GRANULARITY_MS, ONE_MINUTE_MS

logger = logging.getLogger(__name__)

STATE_IDLE = 'idle'
STATE_WORKING = 'working'
STATE_BREAK = 'break'
STATE_PAUSED = 'paused'
STATE_PAUSED_IN_BREAK = 'paused_in_break'
STATE_FINISHED = 'finished'


def _invoke_slot(slot: Callable[[], None], **kwargs) -> None:
    slot()


class TomatoEngine(AbstractEventEmitter):
    """A bunch of tomatoes: work, break, work, break, ..., work, finished.

    The engine has no thread of its own. Transitions happen inside the
    MinutesTimer completion callback, i.e. on whatever thread the underlying
    AbstractTimer runs its callbacks. Control operations can be called from
    any thread. Operations which don't make sense in the current state are
    ignored."""
    _lock: threading.RLock
    _state: str
    _repetitions_remaining: int
    _work_duration: int
    _break_duration: int
    _allow_pause_in_break: bool
    _minutes_timer: MinutesTimer
    _tick_callback: Callable[[], None] | None
    _state_changed_callback: Callable[[], None] | None

    def __init__(self,
                 repetitions: int,
                 work_duration: int,
                 break_duration: int,
                 timer: AbstractTimer | None = None,
                 granularity_ms: int = DEFAULT_GRANULARITY_MS,
                 minute_ms: int = ONE_MINUTE_MS,
                 allow_pause_in_break: bool = True,
                 callback_invoker: Callable = invoke_direct):
        super().__init__([
            events.EngineTick,
            events.EngineStateChanged,
        ], callback_invoker)
        for name, value in (('repetitions', repetitions),
                            ('work_duration', work_duration),
                            ('break_duration', break_duration)):
            if value < 0:
                raise ValueError(f'TomatoEngine: {name} cannot be negative, got {value}')
        self._lock = threading.RLock()
        self._state = STATE_IDLE
        self._repetitions_remaining = repetitions
        self._work_duration = work_duration
        self._break_duration = break_duration
        self._allow_pause_in_break = allow_pause_in_break
        self._tick_callback = None
        self._state_changed_callback = None
        self._minutes_timer = MinutesTimer(self._on_minute_passed,
                                           self._on_time_finished,
                                           timer,
                                           granularity_ms,
                                           minute_ms)
        logger.debug(f'Created {self}')

    def __str__(self):
        return (f'TomatoEngine[{self._state}, {self._repetitions_remaining} left, '
                f'{self._work_duration}/{self._break_duration} min]')

    # Subscriptions. Each slot holds a single zero-argument callback, meaning
    # "re-read the engine properties now". Use on() for anything fancier.
    def on_tick(self, callback: Callable[[], None] | None) -> TomatoEngine:
        self._tick_callback = callback
        return self

    def on_state_changed(self, callback: Callable[[], None] | None) -> TomatoEngine:
        self._state_changed_callback = callback
        return self

    def get_repetitions_remaining(self) -> int:
        return self._repetitions_remaining

    def get_work_duration(self) -> int:
        return self._work_duration

    def get_break_duration(self) -> int:
        return self._break_duration

    def get_current_state_duration(self) -> int:
        # 0 means "not applicable" rather than a zero-length period
        state = self._state
        if state in (STATE_WORKING, STATE_PAUSED):
            return self._work_duration
        elif state in (STATE_BREAK, STATE_PAUSED_IN_BREAK):
            return self._break_duration
        return 0

    def get_minutes_to_go(self) -> int:
        return self._minutes_timer.get_minutes_left()

    def get_state(self) -> str:
        return self._state

    def is_running(self) -> bool:
        return self._state in (STATE_WORKING, STATE_BREAK)

    def is_paused(self) -> bool:
        return self._state in (STATE_PAUSED, STATE_PAUSED_IN_BREAK)

    def is_finished(self) -> bool:
        return self._state == STATE_FINISHED

    def start(self) -> None:
        with self._lock:
            if self._state != STATE_IDLE:
                logger.debug(f'TomatoEngine: Ignoring start() in state {self._state}')
                return
            self._state = STATE_WORKING
            self._minutes_timer.go(self._work_duration)
        self._notify_state_changed(STATE_IDLE, STATE_WORKING)

    def pause(self) -> None:
        with self._lock:
            old_state = self._state
            if old_state == STATE_WORKING:
                self._state = STATE_PAUSED
            elif old_state == STATE_BREAK and self._allow_pause_in_break:
                self._state = STATE_PAUSED_IN_BREAK
            else:
                logger.debug(f'TomatoEngine: Ignoring pause() in state {old_state}')
                return
            self._minutes_timer.pause()
            new_state = self._state
        self._notify_state_changed(old_state, new_state)

    def proceed(self) -> None:
        with self._lock:
            old_state = self._state
            if old_state == STATE_PAUSED:
                self._state = STATE_WORKING
            elif old_state == STATE_PAUSED_IN_BREAK:
                self._state = STATE_BREAK
            else:
                logger.debug(f'TomatoEngine: Ignoring proceed() in state {old_state}')
                return
            self._minutes_timer.proceed()
            new_state = self._state
        self._notify_state_changed(old_state, new_state)

    def cancel(self) -> None:
        with self._lock:
            old_state = self._state
            if old_state == STATE_IDLE:
                logger.debug('TomatoEngine: Ignoring cancel(), the engine was never started')
                return
            self._state = STATE_FINISHED
            self._minutes_timer.cancel()
        if old_state != STATE_FINISHED:
            self._notify_state_changed(old_state, STATE_FINISHED)

    def _peek_next_state(self, period: str) -> str:
        if period == STATE_BREAK:
            return STATE_WORKING
        return STATE_BREAK if self._repetitions_remaining > 1 else STATE_FINISHED

    def _on_time_finished(self) -> None:
        with self._lock:
            old_state = self._state
            if old_state in (STATE_IDLE, STATE_FINISHED):
                # Canceled while the last minute was being counted
                logger.debug(f'TomatoEngine: Ignoring period completion in state {old_state}')
                return
            # The period might have been paused right when it completed
            period = STATE_BREAK if old_state in (STATE_BREAK, STATE_PAUSED_IN_BREAK) else STATE_WORKING
            new_state = self._peek_next_state(period)
            # One tomato is consumed when its break is over, the last one when its work is over
            if (period == STATE_BREAK or new_state == STATE_FINISHED) and self._repetitions_remaining > 0:
                self._repetitions_remaining -= 1
            self._state = new_state
            if new_state != STATE_FINISHED:
                self._minutes_timer.go(self.get_current_state_duration())
            logger.info(f'Transition from {old_state} to {new_state}, '
                        f'{self._repetitions_remaining} repetitions remaining')
        self._notify_state_changed(old_state, new_state)

    def _notify(self, event: str, slot: Callable[[], None] | None, params: dict) -> None:
        # A failing observer must not stop the countdown or leave a transition half-done
        if slot is not None:
            try:
                self._callback_invoker(_invoke_slot, slot=slot)
            except Exception as ex:
                logger.warning(f'Error in {event} callback of {self} (ignored)', exc_info=ex)
        try:
            self._emit(event, params)
        except Exception as ex:
            logger.warning(f'Error in {event} subscriber of {self} (ignored)', exc_info=ex)

    def _on_minute_passed(self) -> None:
        self._notify(events.EngineTick, self._tick_callback, {
            'engine': self,
        })

    def _notify_state_changed(self, old_state: str, new_state: str) -> None:
        logger.debug(f'TomatoEngine: State changed from {old_state} to {new_state}')
        self._notify(events.EngineStateChanged, self._state_changed_callback, {
            'engine': self,
            'old_state': old_state,
            'new_state': new_state,
        })
