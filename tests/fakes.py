# tests/fakes.py

import json
import subprocess


class FakeCompleted:
    def __init__(self, stdout='', stderr='', returncode=0):
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


class FakeGog:
    """
    Stand-in for subprocess.run inside gog_cli.

    Responses are matched on the leading gog arguments, e.g.
    ('tasks', 'lists') -> {...}. Calls are recorded for assertions.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def on(self, prefix, payload=None, stderr='', returncode=0, raw=None):
        if raw is None:
            raw = '' if payload is None else json.dumps(payload)
        self.responses[tuple(prefix)] = FakeCompleted(raw, stderr, returncode)

    def __call__(self, cmd, **kwargs):
        args = cmd[1:]
        self.calls.append(args)
        best = None
        for prefix, completed in self.responses.items():
            if tuple(args[:len(prefix)]) == prefix and (best is None or len(prefix) > len(best[0])):
                best = (prefix, completed)
        if best is None:
            return FakeCompleted('', f"unexpected gog call: {' '.join(args)}", 1)
        return best[1]


class FakeAI:
    """Deterministic ai_client.complete replacement: replies in order, records prompts."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if not self.replies:
            return ''
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def timeout(cmd, **kwargs):
    raise subprocess.TimeoutExpired(cmd, kwargs.get('timeout'))
