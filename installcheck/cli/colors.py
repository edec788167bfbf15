"""Color output support for installcheck CLI.

Color palette:
  - Red: uninstallable packages and errors
  - Bold: package names
"""

import os
import sys

# ANSI color codes
_COLORS = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'red': '\033[91m',      # Bright red for errors/alerts
}

# Global state
_colors_enabled = True


def init(nocolor: bool = False, stream=None):
    """Initialize color support.

    Args:
        nocolor: If True, disable colors unconditionally
        stream: Stream the colored text goes to (default: stdout)
    """
    global _colors_enabled

    if stream is None:
        stream = sys.stdout

    if nocolor:
        _colors_enabled = False
    elif os.environ.get('NO_COLOR'):
        # Respect NO_COLOR environment variable (https://no-color.org/)
        _colors_enabled = False
    elif not stream.isatty():
        # Reports are often piped to a file, keep them clean
        _colors_enabled = False
    else:
        _colors_enabled = True


def _wrap(text: str, color: str) -> str:
    """Wrap text with color codes if colors are enabled."""
    if not _colors_enabled:
        return text
    code = _COLORS.get(color, '')
    reset = _COLORS['reset']
    return f"{code}{text}{reset}"


def error(text: str) -> str:
    """Format text as error (red)."""
    return _wrap(text, 'red')


def bold(text: str) -> str:
    """Format text as bold."""
    return _wrap(text, 'bold')
