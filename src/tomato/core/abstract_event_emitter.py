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
import inspect
import logging
import re
import threading
from typing import Callable

from tomato.core.events import register_event

logger = logging.getLogger(__name__)


def invoke_direct(fn: Callable, **kwargs) -> None:
    fn(**kwargs)


def _callback_display(callback) -> str:
    if inspect.ismethod(callback):
        return f'{callback.__self__.__class__.__name__}[{id(callback.__self__)}].{callback.__name__}'
    else:
        return f'Function {getattr(callback, "__name__", repr(callback))}'


class AbstractEventEmitter:
    _muted: bool
    _connections_1: dict[str, list[Callable]]
    # Consumers subscribed with last=True are notified after all the others
    _connections_2: dict[str, list[Callable]]
    _callback_invoker: Callable
    _subscriptions_lock: threading.Lock

    def __init__(self, allowed_events: list[str], callback_invoker: Callable = invoke_direct):
        self._muted = False
        self._callback_invoker = callback_invoker
        self._connections_1 = dict()
        self._connections_2 = dict()
        self._subscriptions_lock = threading.Lock()
        for event in allowed_events:
            self._connections_1[event] = list[Callable]()
            self._connections_2[event] = list[Callable]()
            register_event(event, self)

    # Event subscriptions. Here event_pattern can contain * characters
    # and other regex syntax.
    def on(self, event_pattern: str, callback: Callable, last: bool = False) -> None:
        regex = re.compile(event_pattern.replace('*', '.*'))
        with self._subscriptions_lock:
            for event in self._connections_1:   # _connections_2 has the same keys
                if regex.match(event):
                    # Event consumers are notified in the order of subscription
                    if not last and callback not in self._connections_1[event]:
                        if logger.isEnabledFor(logging.DEBUG):
                            logger.debug(f' # {_callback_display(callback)} subscribed to {self.__class__.__name__}.{event}')
                        self._connections_1[event].append(callback)
                    elif last and callback not in self._connections_2[event]:
                        if logger.isEnabledFor(logging.DEBUG):
                            logger.debug(f' # {_callback_display(callback)} subscribed to {self.__class__.__name__}.{event} as the LAST handler')
                        self._connections_2[event].append(callback)

    def cancel_subscriptions(self, event_pattern: str) -> None:
        regex = re.compile(event_pattern.replace('*', '.*'))
        with self._subscriptions_lock:
            for event in self._connections_1:
                if regex.match(event):
                    self._connections_1[event].clear()
                    self._connections_2[event].clear()

    def unsubscribe(self, callback: Callable) -> None:
        with self._subscriptions_lock:
            for callables in self._connections_1.values():
                if callback in callables:
                    callables.remove(callback)
            for callables in self._connections_2.values():
                if callback in callables:
                    callables.remove(callback)

    def _emit(self, event: str, params: dict[str, any], force: bool = False) -> None:
        if event not in self._connections_1:
            raise ValueError(f'{self.__class__.__name__} cannot emit unknown event {event}')
        if not self._is_muted() or force:
            params['event'] = event
            # Snapshot, so that the handlers can (un)subscribe while we iterate
            with self._subscriptions_lock:
                callbacks = list(self._connections_1[event]) + list(self._connections_2[event])
            for callback in callbacks:
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(f' ! {_callback_display(callback)}(' + str(params) + ')')
                self._callback_invoker(callback, **params)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(' < ' + self.__class__.__name__ + '._emit(' + event + ')')

    def _is_muted(self) -> bool:
        return self._muted

    def unmute(self) -> None:
        logger.debug('Unmuting events')
        self._muted = False

    def mute(self) -> None:
        logger.debug('Muting events')
        self._muted = True
