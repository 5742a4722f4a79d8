#!/usr/bin/env python3
"""
Runner for the gog command-line tool.
All Google Workspace access goes through here; every call returns a
{'success', 'data', 'error'} dict instead of raising.
"""

import json
import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor

from dotenv import dotenv_values

import config

logger = logging.getLogger(__name__)


def _ok(data=None):
    return {'success': True, 'data': data, 'error': None}


def _fail(error):
    return {'success': False, 'data': None, 'error': error}


def gog_env():
    """Environment for a gog child process: ours + ~/.gog_env + ~/.local/bin on PATH."""
    env = dict(os.environ)
    if os.path.exists(config.GOG_ENV_FILE):
        for key, value in dotenv_values(config.GOG_ENV_FILE).items():
            if value is not None:
                env[key] = value
    local_bin = os.path.expanduser('~/.local/bin')
    env['PATH'] = f"{local_bin}{os.pathsep}{env.get('PATH', '')}"
    return env


def run_gog(args, account=None, expect_json=True):
    """Run `gog <args>` and convert the outcome into a result dict."""
    cmd = [config.GOG_BIN, *args]
    if account:
        cmd += ['--account', account]
    logger.debug("gog %s", ' '.join(cmd[1:]))

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=config.GOG_TIMEOUT,
            env=gog_env(),
        )
    except subprocess.TimeoutExpired:
        logger.warning("gog timed out: %s", ' '.join(args[:2]))
        return _fail(f"gog timed out after {config.GOG_TIMEOUT}s")
    except OSError as e:
        logger.warning("Could not run gog: %s", e)
        return _fail(str(e))

    stdout = (proc.stdout or '').strip()
    stderr = (proc.stderr or '').strip()

    if proc.returncode != 0:
        logger.warning("gog %s failed (%s): %s", ' '.join(args[:2]), proc.returncode, stderr)
        return _fail(stderr or f"gog exited with code {proc.returncode}")

    if not expect_json:
        return _ok()

    if not stdout:
        return _ok(None)
    try:
        return _ok(json.loads(stdout))
    except ValueError:
        return _fail(f"Failed to parse gog output: {stdout}")


def unwrap(result, key, default=None):
    """Pull `key` out of a successful gog response, e.g. {'tasks': [...]} -> [...]."""
    if not result['success']:
        return result
    data = result['data'] or {}
    if key not in data:
        if default is not None:
            return _ok(default)
        return _fail("Unexpected gog response")
    value = data[key]
    if value is None and default is not None:
        value = default
    return _ok(value)


def fan_out(fn, accounts=None):
    """Call fn(account) for each read account in parallel and merge list data.

    Each item is tagged with the account it came from. Succeeds if any
    account succeeded; the failures are kept as strings in 'errors'.
    """
    accounts = list(config.GOG_ACCOUNTS if accounts is None else accounts)
    if not accounts:
        return fn(None)

    with ThreadPoolExecutor(max_workers=len(accounts)) as pool:
        results = list(pool.map(fn, accounts))

    merged = []
    errors = []
    for account, result in zip(accounts, results):
        if not result['success']:
            errors.append(f"{account}: {result['error']}")
            continue
        for item in result['data'] or []:
            if isinstance(item, dict):
                item = {**item, 'account': account}
            merged.append(item)

    if errors and len(errors) == len(accounts):
        return _fail('; '.join(errors))

    result = _ok(merged)
    result['errors'] = errors
    return result
