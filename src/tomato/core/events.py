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

EngineTick = "EngineTick"
EngineStateChanged = "EngineStateChanged"

BeforeSettingsChanged = "BeforeSettingsChanged"
AfterSettingsChanged = "AfterSettingsChanged"


class EmittedEvent:
    event: str
    emitter_class: str

    def __init__(self, event: str, emitter: object):
        self.event = event
        self.emitter_class = emitter.__class__.__name__

    def __str__(self):
        return f'{self.emitter_class}.{self.event}'


# Keyed by "EmitterClass.Event", so that re-creating an engine doesn't grow this registry
ALL_EVENTS: dict[str, EmittedEvent] = dict()


def register_event(event: str, emitter: object):
    e = EmittedEvent(event, emitter)
    ALL_EVENTS[str(e)] = e


def get_all_events() -> set[str]:
    return set(ALL_EVENTS.keys())
