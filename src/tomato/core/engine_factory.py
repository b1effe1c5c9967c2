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
import logging

from tomato.core.abstract_settings import AbstractSettings
from tomato.core.abstract_timer import AbstractTimer
from tomato.core.engine import TomatoEngine
from tomato.core.minutes_timer import ONE_MINUTE_MS

logger = logging.getLogger(__name__)


def create_engine(settings: AbstractSettings,
                  timer: AbstractTimer | None = None,
                  minute_ms: int = ONE_MINUTE_MS) -> TomatoEngine:
    # A "minute" shorter than the polling interval would make no sense, so we
    # scale the granularity down together with it (useful for demos and tests).
    granularity_ms = min(settings.get_poll_granularity_ms(), minute_ms)
    engine = TomatoEngine(settings.get_repetitions(),
                          settings.get_work_duration(),
                          settings.get_break_duration(),
                          timer=timer,
                          granularity_ms=granularity_ms,
                          minute_ms=minute_ms,
                          allow_pause_in_break=settings.is_pause_in_break_allowed(),
                          callback_invoker=settings.invoke_callback)
    logger.debug(f'Created {engine} from settings at {settings.location()}')
    return engine
