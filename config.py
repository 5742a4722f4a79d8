#!/usr/bin/env python3
"""
Taskdeck settings.
Everything comes from the environment (a local .env is loaded first).
"""

import os

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_int(name, default):
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name):
    raw = os.environ.get(name, '')
    return [p.strip() for p in raw.replace(',', ' ').split() if p.strip()]


# Google CLI
GOG_BIN = os.environ.get('GOG_BIN', 'gog')
GOG_ENV_FILE = os.path.expanduser(os.environ.get('GOG_ENV_FILE', '~/.gog_env'))
GOG_TIMEOUT = _env_int('GOG_TIMEOUT', 60)
GOG_CREDENTIALS_FILE = os.path.expanduser(
    os.environ.get('GOG_CREDENTIALS_FILE', '~/.config/gogcli/credentials.json')
)

# Primary account takes all writes; reads fan out over GOG_ACCOUNTS
GOG_ACCOUNT = os.environ.get('GOG_ACCOUNT', '').strip()
GOG_ACCOUNTS = _env_list('GOG_ACCOUNTS') or ([GOG_ACCOUNT] if GOG_ACCOUNT else [])

# AI
AI_BACKEND = os.environ.get('AI_BACKEND', 'cli').strip().lower()
AI_CLI = os.environ.get('AI_CLI', 'claude')
AI_TIMEOUT = _env_int('AI_TIMEOUT', 60)
ANTHROPIC_MODEL = os.environ.get('ANTHROPIC_MODEL', 'claude-haiku-4-5-20251001')

# Server
DASHBOARD_PORT = _env_int('DASHBOARD_PORT', 3001)
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
LOG_DIR = os.environ.get('LOG_DIR', '.local/taskdeck')
