#!/usr/bin/env python3
"""
Bearer token for the few Google API calls gog can't make.
gog owns the OAuth login; we export its refresh token and keep one
access token cached in memory until it is about to expire.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

import config
from gog_cli import run_gog

logger = logging.getLogger(__name__)

TOKEN_URI = 'https://oauth2.googleapis.com/token'
SCOPES = ['https://www.googleapis.com/auth/tasks']
EXPIRY_MARGIN = timedelta(seconds=60)

_token_cache = {'creds': None}


class AuthError(Exception):
    pass


def _load_client_secrets():
    if not os.path.exists(config.GOG_CREDENTIALS_FILE):
        raise AuthError(f"Missing {config.GOG_CREDENTIALS_FILE}")
    with open(config.GOG_CREDENTIALS_FILE) as f:
        data = json.load(f)
    # Google console downloads nest the client under 'installed' or 'web'
    data = data.get('installed') or data.get('web') or data
    if not data.get('client_id') or not data.get('client_secret'):
        raise AuthError(f"No client_id/client_secret in {config.GOG_CREDENTIALS_FILE}")
    return data['client_id'], data['client_secret']


def _export_refresh_token():
    fd, token_path = tempfile.mkstemp(prefix='gog_token_', suffix='.json')
    os.close(fd)
    try:
        result = run_gog(
            ['auth', 'tokens', 'export', config.GOG_ACCOUNT, '--out', token_path, '--overwrite'],
            expect_json=False,
        )
        if not result['success']:
            raise AuthError(f"Failed to export token: {result['error']}")
        with open(token_path) as f:
            token_data = json.load(f)
    finally:
        os.remove(token_path)

    refresh_token = token_data.get('refresh_token')
    if not refresh_token:
        raise AuthError("Exported token has no refresh_token")
    return refresh_token


def _is_fresh(creds):
    if creds is None or not creds.token or creds.expiry is None:
        return False
    # google-auth keeps expiry as a naive UTC datetime
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return creds.expiry - now > EXPIRY_MARGIN


def get_credentials():
    """Return cached credentials, refreshing them through gog when stale."""
    creds = _token_cache['creds']
    if _is_fresh(creds):
        return creds

    client_id, client_secret = _load_client_secrets()
    creds = Credentials(
        token=None,
        refresh_token=_export_refresh_token(),
        token_uri=TOKEN_URI,
        client_id=client_id,
        client_secret=client_secret,
        scopes=SCOPES,
    )
    try:
        creds.refresh(Request())
    except (RefreshError, TransportError) as e:
        raise AuthError(f"Failed to get access token: {e}") from e

    logger.info("Refreshed Google access token (expires %s)", creds.expiry)
    _token_cache['creds'] = creds
    return creds


def clear_cache():
    _token_cache['creds'] = None


if __name__ == '__main__':
    c = get_credentials()
    print(f"Token valid until {c.expiry}")
