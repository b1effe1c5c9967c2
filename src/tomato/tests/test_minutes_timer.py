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
from unittest import TestCase

from tomato.core.minutes_timer import MinutesTimer, ONE_MINUTE_MS, DEFAULT_GRANULARITY_MS
from tomato.core.mock_timer import MockTimer


class TestMinutesTimer(TestCase):
    timer: MockTimer
    counter: MinutesTimer
    fired: list[tuple[str, int]]

    def setUp(self) -> None:
        logging.getLogger().setLevel(logging.DEBUG)
        self.timer = MockTimer()
        self.fired = list()
        self.counter = MinutesTimer(self._on_minute, self._on_finished, self.timer)

    def _on_minute(self) -> None:
        self.fired.append(('minute', self.counter.get_minutes_left()))

    def _on_finished(self) -> None:
        self.fired.append(('finished', self.counter.get_minutes_left()))

    def _minutes(self) -> int:
        return len([f for f in self.fired if f[0] == 'minute'])

    # Tests:
    # + Mandatory callbacks
    # + Countdown order and counts
    # + Repeated go()
    # + Pause / proceed, including no-op cases
    # + Cancel, including idempotency
    # + Failing callbacks don't stop the countdown
    # + Zero-length countdown
    # + Re-arming from the completion callback

    def test_callbacks_are_mandatory(self):
        self.assertRaises(ValueError, lambda: MinutesTimer(None, lambda: None, self.timer))
        self.assertRaises(ValueError, lambda: MinutesTimer(lambda: None, None, self.timer))
        self.assertRaises(ValueError, lambda: MinutesTimer(None, None, self.timer))
        self.assertRaises(ValueError, lambda: MinutesTimer('not callable', lambda: None, self.timer))

    def test_invalid_granularity(self):
        self.assertRaises(ValueError, lambda: MinutesTimer(lambda: None, lambda: None, self.timer, 0))
        self.assertRaises(ValueError, lambda: MinutesTimer(lambda: None, lambda: None, self.timer, -5))
        self.assertRaises(ValueError, lambda: MinutesTimer(lambda: None, lambda: None, self.timer, 1000, 500))

    def test_initial_state(self):
        self.assertEqual(self.counter.get_minutes_left(), 0)
        self.assertFalse(self.counter.is_running())
        self.assertFalse(self.counter.is_paused())
        self.assertFalse(self.timer.is_scheduled())

    def test_countdown(self):
        self.assertTrue(self.counter.go(3))
        self.assertEqual(self.counter.get_minutes_left(), 3)
        self.assertTrue(self.counter.is_running())
        self.assertTrue(self.timer.is_scheduled())
        self.assertEqual(self.timer.get_interval(), DEFAULT_GRANULARITY_MS)

        self.timer.advance(ONE_MINUTE_MS - DEFAULT_GRANULARITY_MS)
        self.assertEqual(self.fired, [])
        self.timer.tick()
        # The minute notification comes before the decrement
        self.assertEqual(self.fired, [('minute', 3)])
        self.assertEqual(self.counter.get_minutes_left(), 2)

        self.timer.advance(2 * ONE_MINUTE_MS)
        self.assertEqual(self.fired, [
            ('minute', 3),
            ('minute', 2),
            ('minute', 1),
            ('finished', 0),
        ])
        self.assertFalse(self.counter.is_running())
        self.assertFalse(self.timer.is_scheduled())

        # Nothing else happens
        self.assertEqual(self.timer.advance(10 * ONE_MINUTE_MS), 0)
        self.assertEqual(len(self.fired), 4)

    def test_go_while_running(self):
        self.counter.go(2)
        self.timer.advance(ONE_MINUTE_MS)
        self.assertFalse(self.counter.go(5))
        self.assertEqual(self.counter.get_minutes_left(), 1)
        self.assertEqual(self.timer.get_schedule_count(), 1)
        self.timer.advance(ONE_MINUTE_MS)
        self.assertEqual(self._minutes(), 2)
        self.assertEqual(self.fired[-1], ('finished', 0))

    def test_go_again_after_finish(self):
        self.counter.go(1)
        self.timer.advance(ONE_MINUTE_MS)
        self.assertTrue(self.counter.go(2))
        self.timer.advance(2 * ONE_MINUTE_MS)
        self.assertEqual(self._minutes(), 3)
        self.assertEqual(len([f for f in self.fired if f[0] == 'finished']), 2)

    def test_negative_minutes(self):
        self.assertRaises(ValueError, lambda: self.counter.go(-1))
        self.assertFalse(self.counter.is_running())

    def test_pause_proceed(self):
        self.counter.go(3)
        self.timer.advance(ONE_MINUTE_MS)
        self.counter.pause()
        self.assertTrue(self.counter.is_paused())
        # The loop keeps polling, but nothing is counted
        self.assertTrue(self.timer.is_scheduled())
        self.timer.advance(5 * ONE_MINUTE_MS)
        self.assertEqual(self._minutes(), 1)
        self.assertEqual(self.counter.get_minutes_left(), 2)

        self.counter.proceed()
        self.assertFalse(self.counter.is_paused())
        self.timer.advance(2 * ONE_MINUTE_MS)
        self.assertEqual(self._minutes(), 3)
        self.assertEqual(self.fired[-1], ('finished', 0))

    def test_pause_keeps_partial_minute(self):
        self.counter.go(1)
        self.timer.advance(ONE_MINUTE_MS / 2)
        self.counter.pause()
        self.timer.advance(3 * ONE_MINUTE_MS)
        self.counter.proceed()
        self.timer.advance(ONE_MINUTE_MS / 2 - DEFAULT_GRANULARITY_MS)
        self.assertEqual(self.fired, [])
        self.timer.tick()
        self.assertEqual(self.fired, [('minute', 1), ('finished', 0)])

    def test_pause_twice(self):
        self.counter.go(2)
        self.counter.pause()
        self.counter.pause()
        self.assertTrue(self.counter.is_paused())
        self.counter.proceed()
        self.assertFalse(self.counter.is_paused())
        self.timer.advance(2 * ONE_MINUTE_MS)
        self.assertEqual(self._minutes(), 2)

    def test_pause_proceed_noop(self):
        self.counter.pause()
        self.assertFalse(self.counter.is_paused())
        self.counter.proceed()
        self.assertFalse(self.counter.is_paused())
        self.counter.go(1)
        self.counter.proceed()
        self.assertFalse(self.counter.is_paused())
        self.timer.advance(ONE_MINUTE_MS)
        self.counter.pause()
        self.assertFalse(self.counter.is_paused())

    def test_cancel(self):
        self.counter.go(5)
        self.timer.advance(2 * ONE_MINUTE_MS)
        self.counter.pause()
        self.counter.cancel()
        self.assertFalse(self.counter.is_running())
        self.assertFalse(self.counter.is_paused())
        self.assertFalse(self.timer.is_scheduled())
        # Canceling doesn't reset the counter
        self.assertEqual(self.counter.get_minutes_left(), 3)
        self.assertEqual(self.timer.advance(10 * ONE_MINUTE_MS), 0)
        self.assertEqual(self._minutes(), 2)
        self.assertNotIn('finished', [f[0] for f in self.fired])

    def test_cancel_is_idempotent(self):
        self.counter.cancel()
        self.counter.go(1)
        self.counter.cancel()
        self.counter.cancel()
        self.assertFalse(self.counter.is_running())
        self.assertFalse(self.timer.is_scheduled())
        # A canceled countdown keeps its minutes, so it can't be re-armed
        self.assertFalse(self.counter.go(1))
        self.assertEqual(self.timer.advance(ONE_MINUTE_MS), 0)
        self.counter.cancel()
        self.assertEqual(self.fired, [])

    def test_cancel_after_finish(self):
        self.counter.go(1)
        self.timer.advance(ONE_MINUTE_MS)
        self.counter.cancel()
        self.assertEqual(self.fired, [('minute', 1), ('finished', 0)])
        self.assertEqual(self.counter.get_minutes_left(), 0)

    def test_cancel_from_minute_callback(self):
        counter: MinutesTimer | None = None
        finished = list()

        def on_minute():
            counter.cancel()
        counter = MinutesTimer(on_minute, lambda: finished.append(True), self.timer)
        counter.go(2)
        self.timer.advance(5 * ONE_MINUTE_MS)
        self.assertEqual(finished, [])
        self.assertEqual(counter.get_minutes_left(), 2)

    def test_failing_callbacks(self):
        calls = list()

        def on_minute():
            calls.append('minute')
            raise RuntimeError('Broken observer')

        def on_finished():
            calls.append('finished')
            raise RuntimeError('Broken observer')
        counter = MinutesTimer(on_minute, on_finished, self.timer)
        with self.assertLogs('tomato.core.minutes_timer', level='WARNING') as logs:
            counter.go(3)
            self.timer.advance(5 * ONE_MINUTE_MS)
        self.assertEqual(calls, ['minute', 'minute', 'minute', 'finished'])
        self.assertEqual(counter.get_minutes_left(), 0)
        self.assertFalse(counter.is_running())
        self.assertFalse(self.timer.is_scheduled())
        self.assertEqual(len(logs.records), 4)
        # Still usable afterwards
        self.assertTrue(counter.go(1))

    def test_zero_minutes(self):
        self.assertTrue(self.counter.go(0))
        self.assertTrue(self.counter.is_running())
        self.timer.tick()
        self.assertEqual(self.fired, [('finished', 0)])
        self.assertFalse(self.counter.is_running())

    def test_go_from_finished_callback(self):
        rounds = list()
        counter: MinutesTimer | None = None

        def on_finished():
            rounds.append(counter.get_minutes_left())
            if len(rounds) < 3:
                self.assertTrue(counter.go(2))
        counter = MinutesTimer(lambda: None, on_finished, self.timer)
        counter.go(1)
        self.timer.advance(5 * ONE_MINUTE_MS)
        self.assertEqual(rounds, [0, 0, 0])
        self.assertFalse(self.timer.is_scheduled())

    def test_custom_minute(self):
        counter = MinutesTimer(lambda: self.fired.append(('minute', 0)), lambda: None, self.timer, 10, 30)
        counter.go(2)
        self.assertEqual(self.timer.get_interval(), 10)
        self.assertEqual(self.timer.advance(60), 6)
        self.assertEqual(self._minutes(), 2)
