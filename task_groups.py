#!/usr/bin/env python3
"""
Board grouping: which bucket a task falls in relative to today.
Dates are compared on the YYYY-MM-DD prefix of Google's RFC 3339 strings,
so a due of '2026-10-18T00:00:00.000Z' is the 18th regardless of timezone.
"""

from datetime import date, timedelta

GROUPS = [
    ('overdue', 'Overdue'),
    ('today', 'Today'),
    ('this_week', 'This week'),
    ('later', 'Later'),
    ('no_due', 'No due date'),
    ('completed_today', 'Completed today'),
]

WEEK_DAYS = 7


def date_part(value):
    if not value:
        return ''
    return value.split('T')[0]


def bucket_for(task, today):
    """Bucket key for one task, or None for tasks completed before today."""
    today_str = today.isoformat()
    if task.get('status') == 'completed':
        return 'completed_today' if date_part(task.get('completed')) == today_str else None

    due = date_part(task.get('due'))
    if not due:
        return 'no_due'
    if due < today_str:
        return 'overdue'
    if due == today_str:
        return 'today'
    if due <= (today + timedelta(days=WEEK_DAYS)).isoformat():
        return 'this_week'
    return 'later'


def group_tasks(tasks, today=None):
    """Split tasks into the board's groups, in display order, skipping empty ones."""
    today = today or date.today()
    buckets = {key: [] for key, _ in GROUPS}
    for task in tasks:
        key = bucket_for(task, today)
        if key:
            buckets[key].append(task)

    return [
        {'key': key, 'label': label, 'tasks': buckets[key]}
        for key, label in GROUPS
        if buckets[key]
    ]


def format_due(due, today=None):
    """Short due label for a task row."""
    due = date_part(due)
    if not due:
        return ''
    today = today or date.today()
    try:
        due_date = date.fromisoformat(due)
    except ValueError:
        return due

    delta = (due_date - today).days
    if delta < 0:
        return 'Overdue'
    elif delta == 0:
        return 'Today'
    elif delta == 1:
        return 'Tomorrow'
    elif delta <= WEEK_DAYS:
        return f"{due_date.strftime('%a')} {due_date.day}"
    return f"{due_date.strftime('%b')} {due_date.day}"
