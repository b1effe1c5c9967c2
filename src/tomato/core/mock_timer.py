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
from typing import Callable

from tomato.core.abstract_timer import AbstractTimer

logger = logging.getLogger(__name__)


class MockTimer(AbstractTimer):
    """Manual timer for tests and simulations: nothing happens until tick() is called."""
    _callback: Callable[[dict | None, datetime.datetime], None] | None
    _params: dict | None
    _once: bool
    _ms: float
    _now: datetime.datetime
    _schedule_count: int

    def __init__(self, now: datetime.datetime | None = None):
        self._callback = None
        self._params = None
        self._once = False
        self._ms = 0
        self._now = now if now is not None else datetime.datetime.now(datetime.timezone.utc)
        self._schedule_count = 0

    def schedule(self,
                 ms: float,
                 callback: Callable[[dict | None, datetime.datetime], None],
                 params: dict | None,
                 once: bool = False) -> None:
        self._ms = ms
        self._callback = callback
        self._params = params
        self._once = once
        self._schedule_count += 1

    def cancel(self) -> None:
        self._callback = None
        self._params = None

    def is_scheduled(self) -> bool:
        return self._callback is not None

    def get_interval(self) -> float:
        return self._ms

    def get_schedule_count(self) -> int:
        return self._schedule_count

    def tick(self, times: int = 1) -> int:
        # Fires the scheduled callback up to `times` times, returns how many times it actually fired
        fired = 0
        for _ in range(times):
            if self._callback is None:
                break
            callback = self._callback
            params = self._params
            if self._once:
                self.cancel()
            self._now += datetime.timedelta(milliseconds=self._ms)
            callback(params, self._now)
            fired += 1
        return fired

    def advance(self, ms: float) -> int:
        # Fires as many callbacks as fit into ms, respecting re-scheduling with another interval
        fired = 0
        while self._callback is not None and 0 < self._ms <= ms:
            ms -= self._ms
            fired += self.tick()
        return fired
