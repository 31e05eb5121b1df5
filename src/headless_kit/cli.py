"""CLI entry-point for headless-kit.

    headless-kit topics stealth
    headless-kit pdf https://example.com -o example.pdf --format Letter
    headless-kit screenshot https://example.com -o shot.png --selector main
"""

from __future__ import annotations

import sys

import click

from .config import Settings
from .telemetry.setup import setup_logging


def _load_settings(config_path: str | None) -> Settings:
    if not config_path:
        return Settings()
    try:
        return Settings.from_yaml(config_path)
    except (OSError, ValueError) as e:
        click.echo(f"Error: cannot load config {config_path}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--config", "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML settings file.",
)
@click.option("--headed", is_flag=True, default=False, help="Show the browser window.")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def main(ctx, config_path, headed, log_level):
    """Headless browser automation recipes."""
    settings = _load_settings(config_path)
    if headed:
        settings.launch.headless = False
    try:
        setup_logging(log_level or settings.log_level)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--log-level") from e
    ctx.obj = settings


@main.command()
@click.argument("query", required=False, default="")
@click.option("--entry-points/--no-entry-points", default=True,
              help="List the functions implementing each recipe.")
def topics(query, entry_points):
    """List recipes, optionally filtered by QUERY."""
    from .recipes import find_recipes

    found = find_recipes(query)
    if not found:
        click.echo(f"No recipe matches {query!r}.", err=True)
        sys.exit(1)
    for recipe in found:
        click.echo(f"{recipe.topic:<12} {recipe.title}: {recipe.summary}")
        if entry_points:
            for ep in recipe.entry_points:
                click.echo(f"{'':<12}   {ep}")


def _run_on_page(settings: Settings, fn):
    """Open a browser session per the settings and call ``fn(page)``."""
    from playwright.sync_api import sync_playwright

    from .browser.session import launch_browser, new_context
    from .engine.shutdown import GracefulShutdown

    with sync_playwright() as pw, GracefulShutdown() as shutdown:
        browser = launch_browser(pw, settings.launch)
        shutdown.register(browser.close, "browser")
        context = new_context(browser, settings.launch, settings.stealth)
        if settings.interception.enabled:
            from .browser.interception import block_requests
            block_requests(context, settings.interception)
        return fn(context.new_page())


@main.command()
@click.argument("url")
@click.option("--output", "-o", required=True, help="Output PDF path.")
@click.option("--format", "paper_format", default="A4", show_default=True, help="Paper format.")
@click.option("--landscape", is_flag=True, default=False)
@click.option("--margin", default="1cm", show_default=True, help="Margin on all sides (CSS length).")
@click.option("--background/--no-background", default=True, help="Print background graphics.")
@click.option("--media", default="print", show_default=True, type=click.Choice(["print", "screen"]))
@click.pass_obj
def pdf(settings, url, output, paper_format, landscape, margin, background, media):
    """Render URL to a PDF file."""
    from .capture.pdf import PdfOptions, render_pdf

    try:
        options = PdfOptions(
            format=paper_format,
            landscape=landscape,
            print_background=background,
            margin={side: margin for side in ("top", "right", "bottom", "left")},
        ).validate()
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    data = _run_on_page(settings, lambda page: render_pdf(
        page, url=url, path=output, options=options, media=media,
    ))
    click.echo(f"Wrote {output} ({len(data)} bytes)")


@main.command()
@click.argument("url")
@click.option("--output", "-o", required=True, help="Output image path (.png or .jpg).")
@click.option("--full-page/--viewport", default=True, help="Capture the whole page or just the viewport.")
@click.option("--selector", default=None, help="Capture only this element.")
@click.option("--padding", default=0, show_default=True, help="Padding around --selector, px.")
@click.option("--wait-until", default="networkidle", show_default=True,
              type=click.Choice(["load", "domcontentloaded", "networkidle", "commit"]))
@click.pass_obj
def screenshot(settings, url, output, full_page, selector, padding, wait_until):
    """Screenshot URL (or one element of it)."""
    from .capture.screenshot import screenshot_element, take_screenshot

    def _shoot(page):
        page.goto(url, wait_until=wait_until)
        if selector:
            return screenshot_element(page, selector, output, padding=padding)
        return take_screenshot(page, output, full_page=full_page)

    data = _run_on_page(settings, _shoot)
    click.echo(f"Wrote {output} ({len(data)} bytes)")


if __name__ == "__main__":
    main()
