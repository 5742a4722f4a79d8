# tests/test_suggestions.py

import json

import google_calendar
import google_gmail
import suggestions

LOCAL_DATE = '2026-10-18'


def _ok(data):
    return {'success': True, 'data': data, 'error': None}


def _reply(*items):
    return json.dumps({'suggestions': list(items)})


def _threads(n):
    return [{'id': f'th{i}', 'subject': f'Subject {i}', 'from': 'boss@example.com',
             'date': '2026-10-18 09:00', 'account': 'me@example.com'} for i in range(n)]


def _event(event_id, start, **extra):
    return {'id': event_id, 'summary': f'Meeting {event_id}', 'start': start, **extra}


def test_analyze_emails_caps_at_five_threads(monkeypatch, ai):
    fetched = []

    def get_message(message_id, account=None):
        fetched.append((message_id, account))
        return _ok({'body': 'long body', 'message': {'snippet': f'snippet {message_id}'}})

    monkeypatch.setattr(google_gmail, 'search_threads_all_accounts', lambda q, n: _ok(_threads(8)))
    monkeypatch.setattr(google_gmail, 'get_message', get_message)
    ai.replies.extend([_reply({'title': 'Reply to boss', 'due': '2026-10-19'})] * 8)

    found = suggestions.analyze_emails(LOCAL_DATE)

    assert len(fetched) == 5
    assert len(ai.prompts) == 5
    assert fetched[0] == ('th0', 'me@example.com')
    assert len(found) == 5
    first = found[0]
    assert first['id'].startswith('gmail-th0-')
    assert first['source'] == 'gmail'
    assert first['title'] == 'Reply to boss'
    assert first['due'] == '2026-10-19'
    assert first['sourceId'] == 'th0'
    assert first['sourceTitle'] == 'Subject 0'
    assert first['sourceFrom'] == 'boss@example.com'
    assert first['sourceSnippet'] == 'snippet th0'


def test_analyze_emails_allows_several_per_email(monkeypatch, ai):
    monkeypatch.setattr(google_gmail, 'search_threads_all_accounts', lambda q, n: _ok(_threads(1)))
    monkeypatch.setattr(google_gmail, 'get_message', lambda mid, account=None: _ok({'body': 'b'}))
    ai.replies.append(_reply({'title': 'Send invoice'}, {'title': 'Book room'}))

    found = suggestions.analyze_emails(LOCAL_DATE)

    assert [s['title'] for s in found] == ['Send invoice', 'Book room']
    assert found[0]['due'] is None
    assert found[0]['sourceSnippet'] == 'b'


def test_analyze_emails_search_failure_is_empty(monkeypatch, ai):
    monkeypatch.setattr(google_gmail, 'search_threads_all_accounts',
                        lambda q, n: {'success': False, 'data': None, 'error': 'no auth'})
    assert suggestions.analyze_emails(LOCAL_DATE) == []
    assert ai.prompts == []


def test_ai_failure_contributes_nothing(monkeypatch, ai):
    import ai_client

    monkeypatch.setattr(google_gmail, 'search_threads_all_accounts', lambda q, n: _ok(_threads(2)))
    monkeypatch.setattr(google_gmail, 'get_message', lambda mid, account=None: _ok({}))
    ai.replies.extend([ai_client.AIError('timed out'), 'no json here'])

    assert suggestions.analyze_emails(LOCAL_DATE) == []


def test_analyze_calendar_one_per_event_and_caps(monkeypatch, ai):
    events = [_event(f'ev{i}', {'dateTime': f'2026-10-2{i}T10:00:00+09:00'}) for i in range(7)]
    monkeypatch.setattr(google_calendar, 'get_events_all_accounts', lambda s, e: _ok(events))
    ai.replies.extend([_reply({'title': 'Prep A'}, {'title': 'Prep B'})] * 7)

    found = suggestions.analyze_calendar(LOCAL_DATE)

    assert len(ai.prompts) == 5
    assert len(found) == 5
    assert all(s['title'] == 'Prep A' for s in found)
    assert found[0]['id'].startswith('cal-ev0-')
    assert found[0]['sourceDate'] == '2026-10-20'
    assert found[0]['sourceFrom'] is None


def test_analyze_calendar_default_due_is_day_before(monkeypatch, ai):
    events = [
        _event('future', {'dateTime': '2026-10-21T10:00:00+09:00'}),
        _event('today', {'dateTime': '2026-10-18T15:00:00+09:00'}),
        _event('given', {'date': '2026-10-22'}),
    ]
    monkeypatch.setattr(google_calendar, 'get_events_all_accounts', lambda s, e: _ok(events))
    ai.replies.extend([
        _reply({'title': 'Read agenda'}),
        _reply({'title': 'Print handouts'}),
        _reply({'title': 'Pack bag', 'due': '2026-10-19'}),
    ])

    found = suggestions.analyze_calendar(LOCAL_DATE)

    assert [s['due'] for s in found] == ['2026-10-20', None, '2026-10-19']


def test_analyze_calendar_asks_for_the_next_week(monkeypatch, ai):
    asked = []

    def get_events(start, end):
        asked.append((start, end))
        return _ok([])

    monkeypatch.setattr(google_calendar, 'get_events_all_accounts', get_events)

    assert suggestions.analyze_calendar(LOCAL_DATE) == []
    assert asked == [('2026-10-18', '2026-10-25')]


def test_analyze_both(monkeypatch):
    monkeypatch.setattr(suggestions, 'analyze_emails', lambda d: [{'sourceId': 'th1'}])
    monkeypatch.setattr(suggestions, 'analyze_calendar', lambda d: [])
    assert suggestions.analyze_both(LOCAL_DATE) == {'gmail': [{'sourceId': 'th1'}], 'calendar': []}


def test_filter_dismissed():
    items = [{'id': 'a', 'sourceId': 'th1'}, {'id': 'b', 'sourceId': 'ev1'}]
    assert suggestions.filter_dismissed(items, ['th1']) == [{'id': 'b', 'sourceId': 'ev1'}]
    assert suggestions.filter_dismissed(items, None) == items
