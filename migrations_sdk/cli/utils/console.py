"""
Console utilities for cross-platform compatibility.
"""

import sys

from rich import print as rprint
from rich.markup import escape


def safe_print(message: str, style: str = "") -> None:
    """Print message with emoji fallback for Windows compatibility."""

    emoji_fallbacks = {
        "✅": "[SUCCESS]",
        "❌": "[ERROR]",
        "⚠️": "[WARNING]",
        "📄": "[FILE]",
    }

    try:
        "✅".encode(sys.stdout.encoding or 'utf-8')
        safe_message = message
    except (UnicodeEncodeError, LookupError):
        safe_message = message
        for emoji, fallback in emoji_fallbacks.items():
            safe_message = safe_message.replace(emoji, fallback)

    safe_message = escape(safe_message)
    if style:
        safe_message = f"[{style}]{safe_message}[/{style}]"

    try:
        rprint(safe_message)
    except UnicodeEncodeError:
        # Final fallback - strip all non-ASCII
        print(safe_message.encode('ascii', 'ignore').decode('ascii'))


def success(message: str) -> None:
    """Print success message."""
    safe_print(f"✅ {message}", "green")


def error(message: str) -> None:
    """Print error message."""
    safe_print(f"❌ {message}", "red")


def warning(message: str) -> None:
    """Print warning message."""
    safe_print(f"⚠️ {message}", "yellow")


def info(message: str) -> None:
    """Print info message."""
    safe_print(f"📄 {message}", "blue")
