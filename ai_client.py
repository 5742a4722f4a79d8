#!/usr/bin/env python3
"""
One-shot AI completions.
Default is the `claude -p` command-line tool; AI_BACKEND=anthropic uses the API instead.
Replies are free text that should contain JSON, so callers scrape it out.
"""

import json
import logging
import re
import subprocess

import anthropic

import config

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r'^```(?:json)?\s*|\s*```$', re.MULTILINE)
_OBJECT_RE = re.compile(r'\{[\s\S]*\}')
_ARRAY_RE = re.compile(r'\[[\s\S]*\]')


class AIError(Exception):
    pass


def _complete_cli(prompt):
    try:
        proc = subprocess.run(
            [config.AI_CLI, '-p', prompt, '--output-format', 'text'],
            capture_output=True,
            text=True,
            timeout=config.AI_TIMEOUT,
        )
    except subprocess.TimeoutExpired as e:
        raise AIError(f"{config.AI_CLI} timed out after {config.AI_TIMEOUT}s") from e
    except OSError as e:
        raise AIError(f"Could not run {config.AI_CLI}: {e}") from e

    if proc.returncode != 0:
        raise AIError((proc.stderr or '').strip() or f"{config.AI_CLI} exited with code {proc.returncode}")
    return proc.stdout


def _complete_anthropic(prompt):
    try:
        client = anthropic.Anthropic()
        response = client.messages.create(
            model=config.ANTHROPIC_MODEL,
            max_tokens=1024,
            messages=[{'role': 'user', 'content': prompt}],
        )
    except anthropic.AnthropicError as e:
        raise AIError(str(e)) from e
    return ''.join(block.text for block in response.content if getattr(block, 'type', '') == 'text')


def complete(prompt):
    """Send prompt, return the raw reply text. Raises AIError on any failure."""
    if config.AI_BACKEND == 'anthropic':
        output = _complete_anthropic(prompt)
    else:
        output = _complete_cli(prompt)
    logger.debug("AI output: %s", output)
    return output


def _scrape(pattern, text):
    if not text:
        return None
    cleaned = _FENCE_RE.sub('', text.strip())
    m = pattern.search(cleaned)
    if not m:
        return None
    try:
        return json.loads(m.group(0))
    except ValueError:
        logger.warning("AI reply had JSON-looking text that did not parse")
        return None


def extract_json_object(text):
    """First '{' to last '}' of the reply, parsed. None when absent or invalid."""
    data = _scrape(_OBJECT_RE, text)
    return data if isinstance(data, dict) else None


def extract_json_array(text):
    data = _scrape(_ARRAY_RE, text)
    return data if isinstance(data, list) else None
