#!/usr/bin/env python3
"""
Chat message -> task actions.

The AI reads the message with today's date, the recent conversation and the
open tasks, and answers with a reply plus a list of actions
(add / update / delete / complete / uncomplete), optionally bound to an
existing task id. The AI's action label is unreliable, so obvious keywords in
the user's message override it.
"""

import logging
import re
import time
import uuid
from datetime import date, timedelta

import ai_client
import google_tasks

logger = logging.getLogger(__name__)

ACTIONS = ('add', 'update', 'delete', 'complete', 'uncomplete')

ACTION_LABELS = {
    'add': 'Add',
    'update': 'Update',
    'delete': 'Delete',
    'complete': 'Complete',
    'uncomplete': 'Mark not done',
}

# Checked in this order: "uncomplete" / "not done" would otherwise hit the complete words.
ACTION_KEYWORDS = [
    ('uncomplete', ('uncomplete', 'incomplete', 'not done', 'still to do', 'reopen', '未完了', 'やっぱりまだ')),
    ('complete', ('complete', 'completed', 'done', 'finished', '完了', '終わった', 'できた')),
    ('delete', ('delete', 'remove', "don't need", '削除', '消して', 'いらない', 'やめる')),
]

NO_TASKS_REPLY = "I couldn't pick out any tasks. Could you be a bit more specific?"
IDLE_REPLY = "Let me know if there's anything I can help with!"
AI_ERROR_REPLY = "Something went wrong talking to the AI."


def _keyword_hit(keyword, text):
    if keyword.isascii():
        return re.search(r'\b' + re.escape(keyword) + r'\b', text) is not None
    return keyword in text


def infer_action(message, ai_action):
    """Keyword override first, then the AI's action if valid, else 'add'."""
    lowered = message.lower()
    for action, keywords in ACTION_KEYWORDS:
        if any(_keyword_hit(k, lowered) for k in keywords):
            return action
    return ai_action if ai_action in ACTIONS else 'add'


def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def reference_dates(today):
    """(today, tomorrow, coming Friday). On a Friday, 'coming Friday' is next week's."""
    days_until_friday = (4 - today.weekday()) % 7 or 7
    return today, today + timedelta(days=1), today + timedelta(days=days_until_friday)


def _format_existing(existing_tasks):
    if not existing_tasks:
        return '(none)'
    lines = []
    for t in existing_tasks:
        due = f" (due: {t['due'][:10]})" if t.get('due') else ''
        lines.append(f"- id:{t['id']} \"{t['title']}\"{due}")
    return '\n'.join(lines)


def build_prompt(message, context, today, existing_tasks):
    today, tomorrow, friday = reference_dates(today)
    return f"""You are a task management assistant. Respond to the user's message appropriately.

[Dates]
Today: {today.isoformat()}
Tomorrow: {tomorrow.isoformat()}
This Friday: {friday.isoformat()}

[Existing open tasks]
{_format_existing(existing_tasks)}

[Recent conversation]
{context or '(none)'}

[User message]
"{message}"

[Available actions]
1. add: add a new task
2. update: change the due date or notes of an existing task
3. delete: delete an existing task
4. complete: mark an existing task as done
5. uncomplete: mark a completed task as not done
6. (no action): greetings, questions, small talk, reviewing the list

[Rules]
- "add X", "I need to X", "I have to X" -> add
- "move X to tomorrow", "change the due date of X" -> update (find the existing task by partial match)
- "delete X", "remove X", "I don't need X" -> delete
- "X is done", "finished X", "complete X" -> complete
- "X isn't done after all", "reopen X" -> uncomplete
- Anything conversational -> no action (empty tasks array), answer in "response"
- update is only for due dates and notes

[Output] JSON only:
{{"response":"friendly reply","tasks":[{{"action":"add|update|delete|complete|uncomplete","title":"task title","due":"YYYY-MM-DD or null","notes":"optional","existingTaskId":"id when acting on an existing task"}}]}}

- Due dates: today -> {today.isoformat()}, tomorrow -> {tomorrow.isoformat()}, this week -> {friday.isoformat()}, unspecified -> null
- Always include existingTaskId when acting on an existing task
- Several tasks may be returned"""


def _new_action_id():
    return f"task-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _to_action(raw, message, existing_by_id):
    existing_id = raw.get('existingTaskId') or None
    existing = existing_by_id.get(existing_id) if existing_id else None
    return {
        'id': _new_action_id(),
        'title': raw.get('title') or (existing or {}).get('title', ''),
        'due': raw.get('due') or None,
        'notes': raw.get('notes') or None,
        'action': infer_action(message, raw.get('action')),
        'existingTaskId': existing_id,
        'existingListId': existing['listId'] if existing else None,
    }


def format_task_response(actions):
    """Fallback reply listing the actions grouped by kind."""
    if not actions:
        return IDLE_REPLY

    sections = []
    for action in ACTIONS:
        items = [a for a in actions if a['action'] == action]
        if not items:
            continue
        lines = [f"[{ACTION_LABELS[action]}]"]
        for i, a in enumerate(items, 1):
            due = f" (due: {a['due']})" if a.get('due') else ''
            lines.append(f"{i}. {a['title']}{due}")
        sections.append('\n'.join(lines))
    return '\n\n'.join(sections)


def extract_actions(message, context='', local_date=None, existing_tasks=None):
    """Ask the AI what the message means. Returns {'response': str, 'tasks': [action, ...]}."""
    today = _parse_date(local_date) or date.today()
    existing_tasks = existing_tasks or []
    existing_by_id = {t['id']: t for t in existing_tasks}

    prompt = build_prompt(message, context, today, existing_tasks)
    try:
        output = ai_client.complete(prompt)
    except ai_client.AIError as e:
        logger.warning("AI call failed: %s", e)
        return {'response': AI_ERROR_REPLY, 'tasks': []}

    parsed = ai_client.extract_json_object(output)
    # a one-task bare array scrapes as its inner task object
    if parsed is not None and ('tasks' in parsed or 'response' in parsed):
        raw_tasks = parsed.get('tasks') or []
        actions = [_to_action(t, message, existing_by_id) for t in raw_tasks if isinstance(t, dict)]
        return {'response': parsed.get('response') or format_task_response(actions), 'tasks': actions}

    parsed = ai_client.extract_json_array(output)
    if parsed is not None:
        actions = [_to_action(t, message, existing_by_id) for t in parsed if isinstance(t, dict)]
        return {'response': format_task_response(actions), 'tasks': actions}

    return {'response': NO_TASKS_REPLY, 'tasks': []}


def _run_action(action):
    task_id = action.get('existingTaskId')
    list_id = action.get('existingListId')
    kind = action['action']

    if task_id and list_id:
        if kind == 'update':
            return google_tasks.update_task(task_id, title=action['title'], notes=action.get('notes'),
                                            due=action.get('due'), list_id=list_id)
        if kind == 'delete':
            return google_tasks.delete_task(task_id, list_id)
        if kind == 'complete':
            return google_tasks.complete_task(task_id, list_id)
        if kind == 'uncomplete':
            return google_tasks.uncomplete_task(task_id, list_id)

    if kind == 'add':
        return google_tasks.create_task(action['title'], notes=action.get('notes'), due=action.get('due'))

    return {'success': False, 'data': None, 'error': 'No matching task found'}


def execute_actions(actions):
    """Apply each action against Google Tasks. One {'task', 'success', 'error'?} per action."""
    executed = []
    for action in actions:
        result = _run_action(action)
        entry = {'task': action, 'success': result['success']}
        if not result['success']:
            logger.warning("Action %s on %r failed: %s", action['action'], action['title'], result['error'])
            entry['error'] = result['error']
        executed.append(entry)
    return executed
