"""
DotView CLI - Styled output primitives built on Click.

    error(), kv()

Colour is dropped automatically on non-terminals (click.style handles
NO_COLOR / TERM=dumb).
"""

import click


_CROSS = "\u2717"     # ✗


def error(message: str) -> None:
    """Print error message in red."""
    click.echo(click.style(message, fg="red"))


def kv(key: str, value: str, *, key_width: int = 20, indent: int = 2) -> None:
    """
    Print an aligned key-value pair.

        Views:            app/views
        Layout:           main
    """
    prefix = " " * indent
    k = click.style(f"{key}:", fg="white")
    v = click.style(str(value), fg="cyan")
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{prefix}{k}{padding}{v}")
