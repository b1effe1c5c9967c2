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
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Callable

from tomato.core import events
from tomato.core.abstract_event_emitter import AbstractEventEmitter, invoke_direct

logger = logging.getLogger(__name__)


class AbstractSettings(AbstractEventEmitter, ABC):
    # Category -> [(id, type, display, default, options)]
    _definitions: dict[str, list[tuple[str, str, str, str, list[any]]]]
    _defaults: dict[str, str]

    def __init__(self, callback_invoker: Callable = invoke_direct):
        AbstractEventEmitter.__init__(self, [
            events.BeforeSettingsChanged,
            events.AfterSettingsChanged,
        ], callback_invoker)

        self._defaults = dict()
        self._definitions = {
            'Engine': [
                ('Engine.repetitions', 'int', 'Tomatoes in a bunch', '2', [1, 24]),
                ('Engine.work_duration', 'int', 'Tomato duration, minutes', '30', [1, 120]),
                ('Engine.break_duration', 'int', 'Break duration, minutes', '5', [0, 60]),
                ('Engine.poll_granularity', 'int', 'Timer polling granularity, seconds', '2', [1, 60]),
                ('Engine.allow_pause_in_break', 'bool', 'Allow pausing breaks', 'True', []),
            ],
            'Logger': [
                ('Logger.level', 'choice', 'Log level', 'WARNING', [
                    "ERROR:Errors only",
                    "WARNING:Errors and warnings",
                    "INFO:Transitions",
                    "DEBUG:Verbose (use it for troubleshooting)",
                ]),
                ('Logger.filename', 'file', 'Log filename', str(Path.home() / 'tomato-timer.log'), []),
            ],
        }
        for lst in self._definitions.values():
            for s in lst:
                self._defaults[s[0]] = s[3]
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f'Filled defaults: {self._defaults}')

    def invoke_callback(self, fn: Callable, **kwargs) -> None:
        self._callback_invoker(fn, **kwargs)

    @abstractmethod
    def set(self, values: dict[str, str]) -> None:
        pass

    @abstractmethod
    def get(self, name: str) -> str:
        # Note that there's no default value -- we can get it from self._defaults
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def location(self) -> str:
        pass

    def get_repetitions(self) -> int:
        return int(self.get('Engine.repetitions'))

    def get_work_duration(self) -> int:
        return int(self.get('Engine.work_duration'))

    def get_break_duration(self) -> int:
        return int(self.get('Engine.break_duration'))

    def get_poll_granularity_ms(self) -> int:
        return int(self.get('Engine.poll_granularity')) * 1000

    def is_pause_in_break_allowed(self) -> bool:
        return self.get('Engine.allow_pause_in_break') == 'True'

    def get_categories(self) -> Iterable[str]:
        return self._definitions.keys()

    def get_settings(self, category) -> Iterable[tuple[str, str, str, str, list[any]]]:
        return [
            (
                option_id,
                option_type,
                option_display,
                self.get(option_id),
                option_options,
            )
            for option_id, option_type, option_display, option_default, option_options
            in self._definitions[category]
        ]

    def _get_property(self, option_id, n) -> str:
        for cat in self._definitions.values():
            for opt in cat:
                if opt[0] == option_id:
                    return opt[n]
        raise ValueError(f'Invalid option {option_id}')

    def get_type(self, option_id) -> str:
        return self._get_property(option_id, 1)

    def get_display_name(self, option_id) -> str:
        return self._get_property(option_id, 2)

    def get_configuration(self, option_id) -> list[any]:
        return self._get_property(option_id, 4)

    def validate(self, option_id: str, value: str) -> None:
        option_type = self.get_type(option_id)
        options = self.get_configuration(option_id)
        if option_type == 'int':
            try:
                number = int(value)
            except ValueError:
                raise ValueError(f'{option_id} must be an integer, got "{value}"')
            if len(options) == 2 and not options[0] <= number <= options[1]:
                raise ValueError(f'{option_id} must be between {options[0]} and {options[1]}, got {number}')
        elif option_type == 'bool':
            if value not in ('True', 'False'):
                raise ValueError(f'{option_id} must be True or False, got "{value}"')
        elif option_type == 'choice':
            if value not in [o.split(':')[0] for o in options]:
                raise ValueError(f'{option_id} cannot be "{value}"')

    def _filter_changed(self, values: dict[str, str], force_fire: bool = False) -> dict[str, str]:
        # Validates everything first, so that an invalid value doesn't leave us half-updated
        for name, value in values.items():
            self.validate(name, value)
        old_values: dict[str, str] = dict()
        for name in values.keys():
            old_value = self.get(name)
            if old_value != values[name] or force_fire:
                old_values[name] = old_value
        return old_values

    def reset_to_defaults(self) -> None:
        to_set = dict[str, str]()
        for lst in self._definitions.values():
            for option_id, option_type, option_display, option_default, option_options in lst:
                to_set[option_id] = option_default
        self.clear()
        self.set(to_set)
