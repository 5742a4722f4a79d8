# tests/test_conversations.py

import conversations


def test_history_is_capped():
    for i in range(25):
        conversations.append_message('s1', 'user', f'message {i}')

    history = conversations.get_history('s1')

    assert len(history) == conversations.MAX_MESSAGES
    assert history[0]['content'] == 'message 5'
    assert history[-1]['content'] == 'message 24'


def test_recent_context_labels_roles():
    conversations.append_message('s1', 'user', 'add milk')
    conversations.append_message('s1', 'assistant', 'Added milk.')

    assert conversations.recent_context('s1') == 'User: add milk\nAI: Added milk.'


def test_recent_context_limit():
    for i in range(10):
        conversations.append_message('s1', 'user', str(i))
    assert conversations.recent_context('s1', limit=2) == 'User: 8\nUser: 9'


def test_sessions_are_separate_and_clearable():
    conversations.append_message('a', 'user', 'hi')
    conversations.append_message('b', 'user', 'yo')

    conversations.clear_conversation('a')

    assert conversations.get_history('a') == []
    assert conversations.recent_context('b') == 'User: yo'
    conversations.clear_conversation('missing')
