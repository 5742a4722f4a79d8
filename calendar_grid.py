#!/usr/bin/env python3
"""
Time-grid math for the calendar view.

The day column is 24 hours tall at HOUR_HEIGHT pixels per hour. A vertical
offset maps to a time of day snapped to 15 minutes; drag selections and
event moves/resizes are built from those snapped times. Minutes are counted
in the event's own UTC offset, which is the user's local time for events the
CLI returns.
"""

import math
from datetime import date, datetime, time, timedelta

HOUR_HEIGHT = 60
SNAP_MINUTES = 15
MIN_DURATION_MINUTES = 15
DEFAULT_SELECTION_MINUTES = 30
MIN_EVENT_HEIGHT_MINUTES = 30
MINUTES_PER_DAY = 24 * 60
LAST_SLOT = MINUTES_PER_DAY - SNAP_MINUTES


def minutes_to_pixels(minutes):
    return minutes / 60 * HOUR_HEIGHT


def minute_of_day(dt):
    return dt.hour * 60 + dt.minute


def snap_minutes(y):
    """Pixel offset from the top of the grid -> minutes since midnight, snapped."""
    total = max(0, min(MINUTES_PER_DAY - 1, y / HOUR_HEIGHT * 60))
    # round half up, the way the browser does it
    snapped = math.floor(total / SNAP_MINUTES + 0.5) * SNAP_MINUTES
    return min(snapped, LAST_SLOT)


def snap_end_minutes(y):
    """Like snap_minutes, but an end time may reach midnight (1440)."""
    total = max(0, min(MINUTES_PER_DAY, y / HOUR_HEIGHT * 60))
    return math.floor(total / SNAP_MINUTES + 0.5) * SNAP_MINUTES


def time_from_offset(y):
    """(hour, minute) for a pixel offset, on the 15-minute grid, never past 23:45."""
    m = snap_minutes(y)
    return m // 60, m % 60


def selection_bounds(start_minutes, end_minutes):
    """Order a dragged pair and give it the 15-minute minimum length."""
    lo, hi = sorted((start_minutes, end_minutes))
    return lo, max(lo + MIN_DURATION_MINUTES, hi)


def default_selection(y):
    """Selection shown on mouse-down before any drag."""
    m = snap_minutes(y)
    return m, m + DEFAULT_SELECTION_MINUTES


def at_minutes(base_date, minutes, tzinfo=None):
    """base_date at `minutes` past midnight; 1440 is midnight of the next day."""
    midnight = datetime.combine(base_date, time(0, 0), tzinfo=tzinfo)
    return midnight + timedelta(minutes=minutes)


def selection_from_offsets(base_date, start_y, end_y, tzinfo=None):
    """Mouse-down / mouse-up offsets -> (start, end) datetimes on base_date."""
    top, bottom = sorted((start_y, end_y))
    lo, hi = selection_bounds(snap_minutes(top), snap_end_minutes(bottom))
    return at_minutes(base_date, lo, tzinfo), at_minutes(base_date, hi, tzinfo)


def selection_style(start_minutes, end_minutes):
    lo, hi = selection_bounds(start_minutes, end_minutes)
    return {'top': minutes_to_pixels(lo), 'height': minutes_to_pixels(hi - lo)}


def parse_event_time(value):
    if not value:
        return None
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def event_position(event):
    """{'top', 'height'} in pixels for a timed event; None for all-day events."""
    start = parse_event_time((event.get('start') or {}).get('dateTime'))
    if start is None:
        return None
    end = parse_event_time((event.get('end') or {}).get('dateTime')) or start + timedelta(hours=1)

    start_m = minute_of_day(start)
    duration = max(minute_of_day(end) - start_m, MIN_EVENT_HEIGHT_MINUTES)
    return {'top': minutes_to_pixels(start_m), 'height': minutes_to_pixels(duration)}


def move_event(original_start, original_end, base_date, y):
    """Drag an event so it starts at the offset y; the duration is kept."""
    start = at_minutes(base_date, snap_minutes(y), original_start.tzinfo)
    return start, start + (original_end - original_start)


def resize_event(original_start, base_date, y):
    """Drag the bottom edge to y; the start is kept and the event stays >= 15 minutes."""
    start_m = minute_of_day(original_start)
    end_m = max(start_m + MIN_DURATION_MINUTES, snap_end_minutes(y))
    start = at_minutes(base_date, start_m, original_start.tzinfo)
    return start, at_minutes(base_date, end_m, original_start.tzinfo)


def current_time_offset(now=None):
    now = now or datetime.now()
    return minutes_to_pixels(minute_of_day(now))


def week_days(base_date):
    """The Sunday-to-Saturday week containing base_date."""
    sunday = base_date - timedelta(days=(base_date.weekday() + 1) % 7)
    return [sunday + timedelta(days=i) for i in range(7)]


def date_range(mode, base_date):
    """(start, end) datetimes covering the day or the week shown."""
    if mode == 'day':
        first = last = base_date
    else:
        days = week_days(base_date)
        first, last = days[0], days[-1]
    return datetime.combine(first, time.min), datetime.combine(last, time.max)


def parse_day(value):
    """YYYY-MM-DD (or a full ISO datetime) -> date."""
    return date.fromisoformat(value.split('T')[0])
