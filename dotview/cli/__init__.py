"""
DotView CLI - The `dv` command line.

Usage:
    dv compile <file>
    dv minify {html,css,js} <file>
    dv render <view> --views-dir <dir>
"""

from dotview import __version__

__cli_name__ = "dv"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
