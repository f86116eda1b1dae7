"""spanview CLI — main entry point.

Usage::

    spanview render spans.jsonl
    spanview render spans.jsonl --trace 4bf92f35 --width 60 --no-color
    spanview demo --out sample.jsonl
"""

from __future__ import annotations

import logging

import click

from spanview.cli.commands_render import demo, render


@click.group()
@click.version_option(package_name="spanview")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """spanview — render distributed traces as terminal timelines."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


cli.add_command(render)
cli.add_command(demo)

if __name__ == "__main__":
    cli()
