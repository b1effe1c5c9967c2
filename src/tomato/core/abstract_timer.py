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
from abc import ABC, abstractmethod
from typing import Callable


class AbstractTimer(ABC):
    # Schedules callback(params, when) every ms milliseconds, or only once.
    # A new schedule() replaces whatever was scheduled before.
    @abstractmethod
    def schedule(self,
                 ms: float,
                 callback: Callable[[dict | None, datetime.datetime], None],
                 params: dict | None,
                 once: bool = False) -> None:
        pass

    # Must be safe to call from any thread, including from within the callback,
    # and when nothing is scheduled.
    @abstractmethod
    def cancel(self) -> None:
        pass

    @abstractmethod
    def is_scheduled(self) -> bool:
        pass
