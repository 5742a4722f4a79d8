#!/usr/bin/env python3
"""
Gmail through gog. Read-only: search threads and fetch one message.
"""

from gog_cli import fan_out, run_gog, unwrap


def search_threads(query, max_results=10, account=None):
    """Search threads with Gmail query syntax."""
    result = unwrap(run_gog(['gmail', 'search', query, '--json'], account=account), 'threads', default=[])
    if result['success']:
        result['data'] = result['data'][:max_results]
    return result


def search_threads_all_accounts(query, max_results=10):
    """Search every configured account; threads carry the account they came from."""
    return fan_out(lambda account: search_threads(query, max_results, account=account))


def get_message(message_id, account=None):
    """Full message: {'body', 'headers': {...}, 'message': {'id', 'threadId', 'snippet'}}."""
    return run_gog(['gmail', 'get', message_id, '--json'], account=account)


if __name__ == '__main__':
    result = search_threads_all_accounts('is:unread newer_than:2d', 10)
    if not result['success']:
        print(f"Error: {result['error']}")
    else:
        for t in result['data']:
            print(f"  [{t.get('account', '-')}] {t.get('from')}: {t.get('subject')}")
