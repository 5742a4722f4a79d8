#!/usr/bin/env python3
"""
Google Tasks through gog.
Task lists and tasks for the board and the chat assistant. Everything
lives in Google; nothing here is stored beyond the default list id.
"""

import logging

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

import config
from gog_cli import run_gog, unwrap
from google_auth import AuthError, get_credentials

logger = logging.getLogger(__name__)

_default_list = {'id': None}


def _account():
    return config.GOG_ACCOUNT or None


def get_task_lists():
    """Get all task lists."""
    result = run_gog(['tasks', 'lists', '--json'], account=_account())
    return unwrap(result, 'tasklists', default=[])


def create_task_list(title):
    result = run_gog(['tasks', 'lists', 'create', title, '--json'], account=_account())
    return unwrap(result, 'tasklist')


def delete_task_list(list_id):
    """Delete a task list. gog has no command for this, so call the Tasks API directly."""
    try:
        creds = get_credentials()
        service = build('tasks', 'v1', credentials=creds, cache_discovery=False)
        service.tasklists().delete(tasklist=list_id).execute()
    except AuthError as e:
        return {'success': False, 'data': None, 'error': str(e)}
    except HttpError as e:
        logger.warning("Failed to delete task list %s: %s", list_id, e)
        return {'success': False, 'data': None, 'error': f"Failed to delete task list: {e}"}

    if _default_list['id'] == list_id:
        _default_list['id'] = None
    return {'success': True, 'data': None, 'error': None}


def resolve_list_id(list_id=None):
    """Return list_id, or the first task list (cached) when none is given."""
    if list_id:
        return list_id
    if _default_list['id']:
        return _default_list['id']

    result = get_task_lists()
    if result['success'] and result['data']:
        _default_list['id'] = result['data'][0]['id']
        return _default_list['id']
    return None


def _no_lists():
    return {'success': False, 'data': None, 'error': 'No task lists found'}


def get_tasks(list_id=None):
    """Get tasks from a specific list (default list when omitted)."""
    list_id = resolve_list_id(list_id)
    if not list_id:
        return _no_lists()
    result = run_gog(['tasks', 'list', list_id, '--json'], account=_account())
    return unwrap(result, 'tasks', default=[])


def create_task(title, notes=None, due=None, list_id=None):
    """Create a new task.

    Args:
        title: Task title
        notes: Optional task notes
        due: Optional due date (YYYY-MM-DD)
        list_id: Task list ID (defaults to the first list)
    """
    list_id = resolve_list_id(list_id)
    if not list_id:
        return _no_lists()

    args = ['tasks', 'add', list_id, '--title', title, '--json']
    if notes:
        args += ['--notes', notes]
    if due:
        args += ['--due', due]
    result = unwrap(run_gog(args, account=_account()), 'task')
    if result['success']:
        logger.info("Created task: %s", title)
    return result


def update_task(task_id, title=None, notes=None, due=None, list_id=None):
    """Update title/notes/due. notes='' clears the notes; None leaves them alone."""
    list_id = resolve_list_id(list_id)
    if not list_id:
        return _no_lists()

    args = ['tasks', 'update', list_id, task_id, '--json']
    if title:
        args += ['--title', title]
    if notes is not None:
        args += ['--notes', notes]
    if due:
        args += ['--due', due]
    return unwrap(run_gog(args, account=_account()), 'task')


def complete_task(task_id, list_id=None):
    """Mark a task as completed."""
    list_id = resolve_list_id(list_id)
    if not list_id:
        return _no_lists()
    result = unwrap(run_gog(['tasks', 'done', list_id, task_id, '--json'], account=_account()), 'task')
    if result['success']:
        logger.info("Completed task: %s", task_id)
    return result


def uncomplete_task(task_id, list_id=None):
    """Move a completed task back to needsAction."""
    list_id = resolve_list_id(list_id)
    if not list_id:
        return _no_lists()
    return unwrap(run_gog(['tasks', 'undo', list_id, task_id, '--json'], account=_account()), 'task')


def delete_task(task_id, list_id=None):
    list_id = resolve_list_id(list_id)
    if not list_id:
        return _no_lists()
    # delete prints nothing useful; only the exit code matters
    return run_gog(['tasks', 'delete', list_id, task_id, '--force'],
                   account=_account(), expect_json=False)


def get_all_open_tasks():
    """Get all incomplete tasks across all lists, each tagged with its listId."""
    lists = get_task_lists()
    if not lists['success']:
        logger.warning("Could not fetch task lists: %s", lists['error'])
        return []

    open_tasks = []
    for tl in lists['data']:
        result = get_tasks(tl['id'])
        if not result['success']:
            logger.warning("Could not fetch tasks for %s: %s", tl.get('title'), result['error'])
            continue
        for t in result['data']:
            if t.get('status') != 'needsAction':
                continue
            open_tasks.append({
                'id': t['id'],
                'title': t.get('title', ''),
                'due': t.get('due'),
                'notes': t.get('notes'),
                'listId': tl['id'],
            })
    return open_tasks


if __name__ == '__main__':
    print("=== Task Lists ===")
    lists = get_task_lists()
    if not lists['success']:
        print(f"Error: {lists['error']}")
    else:
        for tl in lists['data']:
            print(f"  - {tl['title']} ({tl['id']})")

    print("\n=== All Open Tasks ===")
    for t in get_all_open_tasks():
        due = f" (due: {t['due'][:10]})" if t.get('due') else ''
        print(f"- {t['title']}{due}")
