#!/usr/bin/env python3
"""
Chat history per session.
Kept in process memory only; a restart forgets everything.
"""

MAX_MESSAGES = 20

_conversations = {}


def get_history(session_id):
    return _conversations.setdefault(session_id, [])


def append_message(session_id, role, content):
    """Add a message and keep only the last MAX_MESSAGES."""
    history = get_history(session_id)
    history.append({'role': role, 'content': content})
    if len(history) > MAX_MESSAGES:
        del history[:len(history) - MAX_MESSAGES]
    return history


def recent_context(session_id, limit=6):
    """Last few messages as 'User: ...' / 'AI: ...' lines."""
    lines = []
    for m in get_history(session_id)[-limit:]:
        who = 'User' if m['role'] == 'user' else 'AI'
        lines.append(f"{who}: {m['content']}")
    return '\n'.join(lines)


def clear_conversation(session_id):
    _conversations.pop(session_id, None)


def clear_all():
    _conversations.clear()
