#!/usr/bin/env python3
"""
AI task suggestions from unread email and upcoming events.

One AI call per item, at most 5 emails and 5 events per run. Emails may
yield several suggestions; an event yields at most one preparation task.
Nothing is retried: a failed call just contributes no suggestions.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

import ai_client
import google_calendar
import google_gmail

logger = logging.getLogger(__name__)

EMAIL_QUERY = 'is:unread -category:promotions newer_than:2d'
EMAIL_SEARCH_LIMIT = 10
MAX_ITEMS = 5
CALENDAR_DAYS_AHEAD = 7
BODY_CHARS = 500
SNIPPET_CHARS = 200


def _today(local_date):
    try:
        return date.fromisoformat(local_date)
    except (TypeError, ValueError):
        return date.today()


def _suffix():
    return uuid.uuid4().hex[:8]


def ask_for_suggestions(prompt, today):
    """Run one analysis prompt; returns a list of {'title', 'due', 'notes'} dicts (maybe empty)."""
    full_prompt = f"""{prompt}

Today: {today.isoformat()}

Output ONLY this JSON (nothing else):
{{"suggestions":[{{"title":"task title","due":"YYYY-MM-DD or null","notes":"optional note"}}]}}

If there is no task, return {{"suggestions":[]}}."""

    try:
        output = ai_client.complete(full_prompt)
    except ai_client.AIError as e:
        logger.warning("Suggestion analysis failed: %s", e)
        return []

    parsed = ai_client.extract_json_object(output) or {}
    items = parsed.get('suggestions') or []
    return [s for s in items if isinstance(s, dict) and s.get('title')]


def _email_prompt(thread, content):
    return f"""Extract tasks from this email. Look for things that need a reply, need action, or have a deadline.

From: {thread.get('from', '')}
Subject: {thread.get('subject', '')}
Date: {thread.get('date', '')}
Account: {thread.get('account') or 'unknown'}
Content: {content}

If the email is irrelevant (ads, pure notifications), return no tasks."""


def analyze_emails(local_date=None):
    today = _today(local_date)
    found = google_gmail.search_threads_all_accounts(EMAIL_QUERY, EMAIL_SEARCH_LIMIT)
    if not found['success'] or not found['data']:
        if not found['success']:
            logger.warning("Email search failed: %s", found['error'])
        return []

    suggestions = []
    for thread in found['data'][:MAX_ITEMS]:
        detail = google_gmail.get_message(thread['id'], account=thread.get('account'))
        data = (detail['data'] or {}) if detail['success'] else {}
        snippet = (data.get('message') or {}).get('snippet') or ''
        body = (data.get('body') or '')[:BODY_CHARS]

        for s in ask_for_suggestions(_email_prompt(thread, snippet or body), today):
            suggestions.append({
                'id': f"gmail-{thread['id']}-{_suffix()}",
                'source': 'gmail',
                'title': s['title'],
                'due': s.get('due') or None,
                'notes': s.get('notes') or None,
                'sourceId': thread['id'],
                'sourceTitle': thread.get('subject', ''),
                'sourceFrom': thread.get('from'),
                'sourceDate': thread.get('date'),
                'sourceSnippet': snippet or body[:SNIPPET_CHARS],
            })
    return suggestions


def _event_prompt(event, start_raw):
    description = (event.get('description') or '')[:300] or 'none'
    return f"""Suggest exactly ONE preparation task for this calendar event.

Event: {event.get('summary', '')}
When: {start_raw}
Location: {event.get('location') or 'none'}
Description: {description}

Rules:
- At most one suggestion (never several)
- Pick the single most important preparation task
- e.g. "Review the agenda and materials for the X meeting"
- If no preparation is needed (plain reminders, all-day events, etc.) return no tasks"""


def analyze_calendar(local_date=None):
    today = _today(local_date)
    end = today + timedelta(days=CALENDAR_DAYS_AHEAD)
    found = google_calendar.get_events_all_accounts(today.isoformat(), end.isoformat())
    if not found['success'] or not found['data']:
        if not found['success']:
            logger.warning("Calendar lookup failed: %s", found['error'])
        return []

    suggestions = []
    for event in found['data'][:MAX_ITEMS]:
        start_raw = google_calendar.event_start_raw(event)
        event_date = google_calendar.event_start_date(event)

        for s in ask_for_suggestions(_event_prompt(event, start_raw), today)[:1]:
            due = s.get('due') or None
            if not due and event_date > today.isoformat():
                due = (date.fromisoformat(event_date) - timedelta(days=1)).isoformat()

            description = event.get('description') or ''
            suggestions.append({
                'id': f"cal-{event['id']}-{_suffix()}",
                'source': 'calendar',
                'title': s['title'],
                'due': due,
                'notes': s.get('notes') or None,
                'sourceId': event['id'],
                'sourceTitle': event.get('summary', ''),
                'sourceFrom': None,
                'sourceDate': event_date,
                'sourceSnippet': description[:SNIPPET_CHARS] or None,
            })
    return suggestions


def analyze_both(local_date=None):
    with ThreadPoolExecutor(max_workers=2) as pool:
        gmail = pool.submit(analyze_emails, local_date)
        calendar = pool.submit(analyze_calendar, local_date)
        return {'gmail': gmail.result(), 'calendar': calendar.result()}


def filter_dismissed(suggestions, dismissed_ids):
    """Drop suggestions whose source email/event the user already dismissed."""
    dismissed = set(dismissed_ids or [])
    if not dismissed:
        return list(suggestions)
    return [s for s in suggestions if s['sourceId'] not in dismissed]
