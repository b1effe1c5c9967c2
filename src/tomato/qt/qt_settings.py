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

from PySide6 import QtCore

from tomato.core import events
from tomato.core.abstract_settings import AbstractSettings

logger = logging.getLogger(__name__)


class QtSettings(AbstractSettings):
    """Settings persisted via QSettings, i.e. the registry on Windows, plist files
    on macOS and INI files elsewhere. Only the configuration is stored here, never
    the state of a running engine."""
    _settings: QtCore.QSettings

    def __init__(self, app_name: str = 'tomato-timer', filename: str | None = None):
        super().__init__()
        if filename is None:
            self._settings = QtCore.QSettings("tomato", app_name)
        else:
            self._settings = QtCore.QSettings(filename, QtCore.QSettings.Format.IniFormat)

    def set(self, values: dict[str, str], force_fire: bool = False) -> None:
        old_values = self._filter_changed(values, force_fire)
        if len(old_values) > 0:
            params = {
                'old_values': old_values,
                'new_values': values,
            }
            self._emit(events.BeforeSettingsChanged, params)
            for name in old_values.keys():
                self._settings.setValue(name, values[name])
            self._settings.sync()
            self._emit(events.AfterSettingsChanged, params)

    def get(self, name: str) -> str:
        return str(self._settings.value(name, self._defaults[name]))

    def location(self) -> str:
        return self._settings.fileName()

    def clear(self) -> None:
        self._settings.clear()
        self._settings.sync()
