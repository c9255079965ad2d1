"""Logging setup and terminal-safe output.

Detects terminal encoding and provides ASCII alternatives for the few Unicode
glyphs the reports use, so output never crashes a legacy Windows console.
"""
import sys
import locale
import logging

from rich.console import Console
from rich.logging import RichHandler


# Unicode to ASCII glyph mapping for non UTF-8 terminals
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '↔': '<->',
    '…': '...',
    '•': '*',
    '─': '-',
    '│': '|',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        pass

    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding() in ('utf-8', 'utf8', 'utf_8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode glyphs with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode glyphs

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)
    return sanitized


def create_console(**kwargs) -> Console:
    """Create a rich Console that falls back to legacy mode on non UTF-8 terminals."""
    if not is_utf8_capable():
        kwargs.setdefault('legacy_windows', True)
    return Console(**kwargs)


def configure_logging(level: str = "WARNING", console: Console = None) -> None:
    """Route the package loggers through rich.

    Diagnostics go to stderr so that `--json` output on stdout stays parseable.

    Args:
        level: Logging level name
        console: Console to render log records on (defaults to a stderr console)
    """
    if console is None:
        console = create_console(stderr=True)

    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("deadloop")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
