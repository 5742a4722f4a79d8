#!/usr/bin/env python3
"""
Google Calendar through gog.
Read events across every configured account, create and move events
on the primary one.
"""

import config
from gog_cli import fan_out, run_gog, unwrap


def event_start_raw(event):
    start = event.get('start') or {}
    return start.get('dateTime') or start.get('date') or ''


def event_start_date(event):
    """YYYY-MM-DD of the event start (date-only or date-time)."""
    return event_start_raw(event).split('T')[0]


def is_all_day(event):
    start = event.get('start') or {}
    return bool(start.get('date')) and not start.get('dateTime')


def get_events(start=None, end=None, account=None):
    """Get events for one account between start and end (dates or ISO datetimes)."""
    args = ['calendar', 'events', '--json']
    if start:
        args += ['--from', start]
    if end:
        args += ['--to', end]
    return unwrap(run_gog(args, account=account), 'events', default=[])


def get_events_all_accounts(start=None, end=None):
    """Get events from every account in GOG_ACCOUNTS, merged and sorted by start."""
    result = fan_out(lambda account: get_events(start, end, account=account))
    if result['success']:
        result['data'] = sorted(result['data'] or [], key=event_start_raw)
    return result


def create_event(title, start, end, calendar_id='primary'):
    args = [
        'calendar', 'create', calendar_id or 'primary',
        '--summary', title,
        '--from', start,
        '--to', end,
        '--json',
    ]
    return unwrap(run_gog(args, account=config.GOG_ACCOUNT or None), 'event')


def update_event(event_id, start=None, end=None, summary=None, calendar_id='primary'):
    args = ['calendar', 'update', calendar_id or 'primary', event_id, '--json']
    if start:
        args += ['--from', start]
    if end:
        args += ['--to', end]
    if summary:
        args += ['--summary', summary]
    return unwrap(run_gog(args, account=config.GOG_ACCOUNT or None), 'event')


if __name__ == '__main__':
    from datetime import date, timedelta

    today = date.today()
    result = get_events_all_accounts(today.isoformat(), (today + timedelta(days=7)).isoformat())
    if not result['success']:
        print(f"Error: {result['error']}")
    else:
        print("=== Next 7 Days ===")
        for e in result['data']:
            print(f"  {event_start_raw(e)}: {e.get('summary', 'No title')}")
