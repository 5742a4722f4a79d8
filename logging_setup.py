#!/usr/bin/env python3
"""
Logging for the Taskdeck server.
Console gets our own logs plus third-party warnings; the file gets everything.
"""

import logging
import sys
from pathlib import Path

QUIET_LOGGERS = ('werkzeug', 'googleapiclient', 'urllib3', 'httpx', 'anthropic')


class _ConsoleNoiseFilter(logging.Filter):
    """Keep chatty libraries off the console unless they warn."""

    def filter(self, record):
        if record.name.startswith(QUIET_LOGGERS):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(log_dir='.local/taskdeck', console_level='INFO', file_level=logging.DEBUG):
    """Configure root logging once, before the first request."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt='%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_dir / 'taskdeck.log'), encoding='utf-8')
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
