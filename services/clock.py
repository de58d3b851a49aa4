'''
Source of "now" for timestamps, completion dates and burndown windows.
FixedClock pins it so tests can move time by hand.
'''

from datetime import datetime, timezone


class Clock:
    # Wall clock in UTC

    def now(self):
        return datetime.now(timezone.utc)

    def today(self):
        return self.now().date()


class FixedClock(Clock):
    def __init__(self, moment):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo = timezone.utc)
        self.moment = moment

    def now(self):
        return self.moment

    def advance(self, delta):
        self.moment = self.moment + delta
