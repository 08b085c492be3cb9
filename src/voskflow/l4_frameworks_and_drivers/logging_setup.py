"""Debug logging setup."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_file_logging(log_path: Path) -> None:
    """Send all ``vf.*`` debug logging to *log_path*."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger('vf')
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    logging.getLogger('vf.cli').info('Debug logging started → %s', log_path)


def setup_console_logging(verbose: bool) -> None:
    """Warnings to stderr by default; everything with *verbose*."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root = logging.getLogger('vf')
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
