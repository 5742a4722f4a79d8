# tests/test_dashboard.py

import json

import pytest

import dashboard
import google_calendar
import google_tasks
import suggestions
import task_extractor


def _ok(data=None):
    return {'success': True, 'data': data, 'error': None}


def _fail(error):
    return {'success': False, 'data': None, 'error': error}


def test_index_serves_page(client):
    res = client.get('/')
    assert res.status_code == 200
    assert b'Taskdeck' in res.data


def test_health(client):
    assert client.get('/api/health').get_json()['status'] == 'ok'


def test_task_lists(client, gog):
    gog.on(['tasks', 'lists'], {'tasklists': [{'id': 'L1', 'title': 'Inbox'}]})
    assert client.get('/api/tasks/lists').get_json() == [{'id': 'L1', 'title': 'Inbox'}]


def test_cli_failure_becomes_500(client, gog):
    gog.on(['tasks', 'lists'], stderr='token expired', returncode=1)

    res = client.get('/api/tasks/lists')

    assert res.status_code == 500
    assert res.get_json() == {'message': 'token expired'}


def test_create_task_list(client, monkeypatch):
    monkeypatch.setattr(google_tasks, 'create_task_list', lambda title: _ok({'id': 'L9', 'title': title}))

    res = client.post('/api/tasks/lists', json={'title': 'Errands'})

    assert res.status_code == 201
    assert res.get_json() == {'id': 'L9', 'title': 'Errands'}
    assert client.post('/api/tasks/lists', json={}).status_code == 400


def test_delete_task_list(client, monkeypatch):
    monkeypatch.setattr(google_tasks, 'delete_task_list', lambda list_id: _ok())
    assert client.delete('/api/tasks/lists/L1').status_code == 204


def test_get_tasks_by_list(client, gog):
    gog.on(['tasks', 'list', 'L2'], {'tasks': [{'id': 'T1', 'title': 'Milk'}]})
    assert client.get('/api/tasks?listId=L2').get_json() == [{'id': 'T1', 'title': 'Milk'}]


def test_grouped_tasks(client, monkeypatch):
    tasks = [
        {'id': 'T1', 'title': 'Late', 'status': 'needsAction', 'due': '2026-10-10T00:00:00.000Z'},
        {'id': 'T2', 'title': 'Someday', 'status': 'needsAction'},
    ]
    monkeypatch.setattr(google_tasks, 'get_tasks', lambda list_id=None: _ok(tasks))

    body = client.get('/api/tasks/grouped?listId=L1&today=2026-10-18').get_json()

    assert body['listId'] == 'L1'
    assert [g['key'] for g in body['groups']] == ['overdue', 'no_due']
    assert body['groups'][0]['tasks'][0]['dueLabel'] == 'Overdue'
    assert client.get('/api/tasks/grouped?today=nope').status_code == 400


def test_create_task(client, monkeypatch):
    seen = {}

    def create_task(title, notes=None, due=None, list_id=None):
        seen.update(title=title, notes=notes, due=due, list_id=list_id)
        return _ok({'id': 'T5', 'title': title})

    monkeypatch.setattr(google_tasks, 'create_task', create_task)

    res = client.post('/api/tasks', json={'title': 'Milk', 'due': '2026-10-19', 'listId': 'L1'})

    assert res.status_code == 201
    assert seen == {'title': 'Milk', 'notes': None, 'due': '2026-10-19', 'list_id': 'L1'}
    assert client.post('/api/tasks', json={'title': '  '}).status_code == 400


@pytest.mark.parametrize('body, expected', [
    ({'status': 'completed', 'listId': 'L1'}, 'complete'),
    ({'status': 'needsAction', 'listId': 'L1'}, 'uncomplete'),
    ({'title': 'Renamed', 'listId': 'L1'}, 'update'),
])
def test_patch_task_routes_on_status(client, monkeypatch, body, expected):
    called = []
    monkeypatch.setattr(google_tasks, 'complete_task', lambda t, l=None: called.append('complete') or _ok({'id': t}))
    monkeypatch.setattr(google_tasks, 'uncomplete_task', lambda t, l=None: called.append('uncomplete') or _ok({'id': t}))
    monkeypatch.setattr(google_tasks, 'update_task', lambda t, **kw: called.append('update') or _ok({'id': t}))

    res = client.patch('/api/tasks/T1', json=body)

    assert res.status_code == 200
    assert called == [expected]


def test_delete_task(client, gog):
    gog.on(['tasks', 'delete'], raw='')
    res = client.delete('/api/tasks/T1?listId=L1')
    assert res.status_code == 204
    assert gog.calls == [['tasks', 'delete', 'L1', 'T1', '--force']]


EVENTS = [
    {'id': 'e1', 'summary': 'Standup', 'start': {'dateTime': '2026-10-18T09:00:00+09:00'},
     'end': {'dateTime': '2026-10-18T09:30:00+09:00'}},
    {'id': 'e2', 'summary': 'Holiday', 'start': {'date': '2026-10-19'}, 'end': {'date': '2026-10-20'}},
]


def test_calendar_plain(client, monkeypatch):
    monkeypatch.setattr(google_calendar, 'get_events_all_accounts', lambda start, end: _ok(EVENTS))
    assert client.get('/api/calendar?start=2026-10-18&end=2026-10-25').get_json() == EVENTS


def test_calendar_layout(client, monkeypatch):
    asked = []

    def get_events(start, end):
        asked.append((start, end))
        return _ok(EVENTS)

    monkeypatch.setattr(google_calendar, 'get_events_all_accounts', get_events)

    body = client.get('/api/calendar?mode=week&date=2026-10-21&layout=1').get_json()

    assert body['days'][0] == '2026-10-18'
    assert len(body['days']) == 7
    assert asked[0][0].startswith('2026-10-18T00:00:00')
    assert body['events'][0]['position'] == {'top': 540, 'height': 30}
    assert body['events'][0]['day'] == '2026-10-18'
    assert body['events'][1]['position'] is None


def test_create_event_requires_fields(client, monkeypatch):
    monkeypatch.setattr(google_calendar, 'create_event', lambda title, start, end, calendar_id: _ok({'id': 'e9'}))

    ok = client.post('/api/calendar', json={'title': 'Lunch', 'start': '2026-10-18T12:00:00+09:00',
                                            'end': '2026-10-18T13:00:00+09:00'})

    assert ok.status_code == 201
    assert client.post('/api/calendar', json={'title': 'Lunch'}).status_code == 400


def test_patch_event(client, monkeypatch):
    monkeypatch.setattr(google_calendar, 'update_event', lambda event_id, **kw: _ok({'id': event_id, **kw}))
    body = client.patch('/api/calendar/e1', json={'summary': 'Sync'}).get_json()
    assert body['summary'] == 'Sync'


def test_calendar_selection_snaps(client):
    body = client.post('/api/calendar/selection', json={'date': '2026-10-18', 'startY': 542, 'endY': 610}).get_json()

    assert body['start'].startswith('2026-10-18T09:00:00')
    assert body['end'].startswith('2026-10-18T10:15:00')
    assert client.post('/api/calendar/selection', json={'date': '2026-10-18'}).status_code == 400


def test_drag_move_issues_one_update(client, monkeypatch):
    updates = []

    def update_event(event_id, **kw):
        updates.append((event_id, kw))
        return _ok({'id': event_id})

    monkeypatch.setattr(google_calendar, 'update_event', update_event)

    body = client.post('/api/calendar/e1/drag', json={
        'date': '2026-10-18', 'mode': 'move', 'y': 848,
        'start': '2026-10-18T09:00:00+09:00', 'end': '2026-10-18T09:30:00+09:00',
    }).get_json()

    assert body['changed'] is True
    assert body['start'] == '2026-10-18T14:15:00+09:00'
    assert body['end'] == '2026-10-18T14:45:00+09:00'
    assert updates == [('e1', {'start': body['start'], 'end': body['end'], 'calendar_id': 'primary'})]


def test_drag_without_change_skips_update(client, monkeypatch):
    monkeypatch.setattr(google_calendar, 'update_event', lambda *a, **kw: pytest.fail('should not update'))

    body = client.post('/api/calendar/e1/drag', json={
        'date': '2026-10-18', 'mode': 'resize', 'y': 570,
        'start': '2026-10-18T09:00:00+09:00', 'end': '2026-10-18T09:30:00+09:00',
    }).get_json()

    assert body['changed'] is False


def test_drag_rejects_bad_mode(client):
    res = client.post('/api/calendar/e1/drag', json={
        'date': '2026-10-18', 'mode': 'spin', 'y': 10,
        'start': '2026-10-18T09:00:00+09:00', 'end': '2026-10-18T09:30:00+09:00',
    })
    assert res.status_code == 400


def test_ai_chat(client, monkeypatch, ai):
    monkeypatch.setattr(google_tasks, 'get_all_open_tasks', lambda: [])
    monkeypatch.setattr(google_tasks, 'create_task', lambda title, notes=None, due=None, list_id=None: _ok({'id': 'T1'}))
    ai.replies.append(json.dumps({'response': 'Added milk.', 'tasks': [{'action': 'add', 'title': 'Milk'}]}))

    res = client.post('/api/ai/chat', json={'message': 'add milk', 'sessionId': 's1', 'localDate': '2026-10-18'})

    body = res.get_json()
    assert res.status_code == 200
    assert body['response'] == 'Added milk.'
    assert body['executedTasks'][0]['success'] is True
    assert body['executedTasks'][0]['task']['title'] == 'Milk'
    assert 'User: add milk' in ai.prompts[0]


def test_ai_chat_requires_message(client):
    assert client.post('/api/ai/chat', json={'message': ''}).status_code == 400


def test_ai_chat_failure(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError('boom')

    monkeypatch.setattr(google_tasks, 'get_all_open_tasks', lambda: [])
    monkeypatch.setattr(task_extractor, 'extract_actions', boom)

    res = client.post('/api/ai/chat', json={'message': 'hi'})

    assert res.status_code == 500
    assert res.get_json()['executedTasks'] == []
    assert res.get_json()['message']


def test_ai_clear(client):
    import conversations

    conversations.append_message('s1', 'user', 'hi')
    assert client.post('/api/ai/clear', json={'sessionId': 's1'}).get_json() == {'success': True}
    assert conversations.get_history('s1') == []


def test_analyze_both_filters_dismissed(client, monkeypatch):
    monkeypatch.setattr(suggestions, 'analyze_both', lambda d: {
        'gmail': [{'id': 'g1', 'sourceId': 'th1'}, {'id': 'g2', 'sourceId': 'th2'}],
        'calendar': [{'id': 'c1', 'sourceId': 'ev1'}],
    })

    body = client.post('/api/suggestions/analyze', json={'localDate': '2026-10-18', 'dismissedIds': ['th1']}).get_json()

    assert body['success'] is True
    assert [s['id'] for s in body['suggestions']] == ['g2', 'c1']
    assert [s['id'] for s in body['gmail']] == ['g2']
    assert [s['id'] for s in body['calendar']] == ['c1']


def test_analyze_single_source(client, monkeypatch):
    monkeypatch.setattr(suggestions, 'analyze_calendar', lambda d: [{'id': 'c1', 'sourceId': 'ev1'}])
    body = client.post('/api/suggestions/analyze', json={'source': 'calendar'}).get_json()
    assert body == {'success': True, 'suggestions': [{'id': 'c1', 'sourceId': 'ev1'}]}


def test_analyze_failure(client, monkeypatch):
    def boom(d):
        raise RuntimeError('gmail down')

    monkeypatch.setattr(suggestions, 'analyze_emails', boom)

    res = client.post('/api/suggestions/analyze', json={'source': 'gmail'})

    assert res.status_code == 500
    assert res.get_json() == {'success': False, 'error': 'gmail down'}
