"""Rich consoles for command output.

Listings go to stdout so they can be piped; errors and warnings go to a
separate stderr console.
"""

from rich.console import Console
from rich.theme import Theme

GELLY_THEME = Theme(
    {
        "error": "bold red",
        "warning": "yellow",
        "success": "green",
        "muted": "dim",
    }
)

_console: Console | None = None
_err_console: Console | None = None


def get_console(err: bool = False) -> Console:
    """Shared stdout console, or the stderr one when err is set."""
    global _console, _err_console
    if err:
        if _err_console is None:
            _err_console = Console(stderr=True, theme=GELLY_THEME)
        return _err_console
    if _console is None:
        _console = Console(theme=GELLY_THEME)
    return _console


def safe_print(message: str, style: str | None = None, err: bool = False) -> None:
    """Print without rich markup so item names with brackets render as-is.

    Args:
        message: Text to print
        style: Rich style or theme name ("error", "success", ...)
        err: Write to stderr instead of stdout
    """
    get_console(err).print(message, style=style, markup=False, highlight=False)
