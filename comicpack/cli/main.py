import dataclasses
import logging
from typing import Optional

import click

from comicpack import __version__ as about
from comicpack.cli import exit_codes
from comicpack.cli.presenter import CliPresenter
from comicpack.cli.validators import validate_links_file, validate_segment, validate_urls
from comicpack.config import load_settings
from comicpack.domain.comic import Comic
from comicpack.errors import (
    AssemblyError,
    ConfigurationError,
    DecodeError,
    EmptyComicError,
    FetchError,
    FilesystemError,
)
from comicpack.pipeline.maker import ComicMaker
from comicpack.utils import url_source

# Get a logger for this module.
log = logging.getLogger(__name__)

EXTERNAL_ERRORS = (FetchError, DecodeError, EmptyComicError, FilesystemError, AssemblyError)

# Define an epilog message with examples.
EPILOG = f"""
Examples:

{click.style('• pack three pages as PDF into ./comics/Saga/Saga-1.pdf', fg="green")}

    $ comicpack -n Saga -i 1 https://example.com/1.jpg https://example.com/2.jpg
    https://example.com/3.jpg

{click.style('• read page URLs from a file and write a CBZ namespaced by the page host', fg="green")}

    $ comicpack -n Saga -i 2 -f cbz --links-file pages.txt --source-from-links

{click.style('• write an EPUB with author metadata and tolerate a quarter of failed pages', fg="green")}

    $ comicpack -n Saga -i 3 -f epub -a "Brian K. Vaughan" --max-failed-ratio 0.25
    --links-file pages.txt
"""


@click.command(
    help=about.__description__,
    epilog=EPILOG,
)
@click.version_option(
    about.__version__,
    prog_name=about.__title__,
    message="%(prog)s, version %(version)s",
)
@click.option(
    "--out", "-o",
    "out_dir",
    type=click.Path(file_okay=False, writable=True),
    metavar="<directory>",
    default=None,
    help="Root directory for the comics tree [default: COMICPACK_OUT_DIR or .]",
)
@click.option(
    "--format", "-f",
    "output_format",
    default="pdf",
    show_default=True,
    metavar="[pdf|epub|cbz|cbr]",
    help="Output container format",
)
@click.option(
    "--name", "-n",
    required=True,
    callback=validate_segment,
    help="Series name, used for the directory and file name",
)
@click.option(
    "--issue", "-i",
    "issue_number",
    required=True,
    callback=validate_segment,
    help="Issue number, may be non-numeric (e.g. chapter-13)",
)
@click.option(
    "--source", "-s",
    default="",
    help="Source label inserted as an extra directory level",
)
@click.option(
    "--source-from-links",
    is_flag=True,
    default=False,
    help="Use the host of the first page URL as source label",
)
@click.option(
    "--author", "-a",
    default="",
    help="Author, embedded into EPUB metadata",
)
@click.option(
    "--links-file",
    type=click.File("r", encoding="utf-8"),
    help="File with one page URL per line, appended after positional URLs",
    expose_value=False,
    callback=validate_links_file,
)
@click.option(
    "--workers", "-w",
    type=click.IntRange(min=1),
    default=None,
    help="Parallel page downloads [default: COMICPACK_WORKERS or 4]",
)
@click.option(
    "--max-failed-ratio",
    type=click.FloatRange(min=0.0, max=1.0),
    default=None,
    help="Share of pages allowed to fail before the issue is aborted [default: 0]",
)
@click.option(
    "--clean-images",
    is_flag=True,
    default=False,
    help="Delete the scratch image directory after assembly",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    default=False,
    help="Emit one machine-readable JSON object",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress human-readable output",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.argument("urls", nargs=-1, callback=validate_urls, expose_value=False)
@click.pass_context
def main(
        ctx: click.Context,
        out_dir: Optional[str],
        output_format: str,
        name: str,
        issue_number: str,
        source: str,
        source_from_links: bool,
        author: str,
        workers: Optional[int],
        max_failed_ratio: Optional[float],
        clean_images: bool,
        json_output: bool,
        quiet: bool,
        verbose: bool,
        links: Optional[list] = None,
):
    """
    Main entry point for the comic assembly CLI.

    Collects page URLs from arguments and the links file, merges command line
    overrides into the environment settings and assembles one issue.

    Parameters:
        ctx (click.Context): Click context.
        out_dir (Optional[str]): Root directory for the comics tree.
        output_format (str): Requested container format.
        name (str): Series name.
        issue_number (str): Issue number.
        source (str): Source label for the directory tree.
        source_from_links (bool): Derive the source label from the first URL.
        author (str): Author for EPUB metadata.
        workers (Optional[int]): Parallel page downloads.
        max_failed_ratio (Optional[float]): Tolerated share of failed pages.
        clean_images (bool): Delete scratch images after assembly.
        json_output (bool): Emit JSON instead of human-readable output.
        quiet (bool): Suppress human-readable output.
        verbose (bool): Enable debug logging.
        links (Optional[list]): Page URLs collected by the callbacks.
    """
    presenter = CliPresenter(json_output=json_output, quiet=quiet)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet or json_output:
        logging.getLogger().setLevel(logging.WARNING)

    presenter.emit_intro(about.__intro__)

    if not links:
        if json_output:
            presenter.emit_error(click.UsageError("no page URLs given"), exit_codes.USER_ERROR)
        else:
            click.echo(ctx.get_help())
        ctx.exit(exit_codes.USER_ERROR)

    if source_from_links and not source:
        source = url_source(links[0])
        presenter.emit_notice(f"Using source '{source}'")

    try:
        settings = load_settings()
        overrides = {}
        if workers is not None:
            overrides["workers"] = workers
        if max_failed_ratio is not None:
            overrides["max_failed_ratio"] = max_failed_ratio
        if clean_images:
            overrides["keep_images"] = False
        settings = dataclasses.replace(settings, **overrides)

        comic = Comic(
            name=name,
            issue_number=issue_number,
            format=output_format,
            links=links,
            source=source,
            author=author,
        )
        presenter.emit_notice(f"Assembling {name} #{issue_number} from {len(links)} link(s)")
        log.info("Started assembly")
        maker = ComicMaker(out_dir, settings=settings, progress=presenter.emits_human_output)
        result = maker.make_comic(comic)
    except ConfigurationError as exc:
        presenter.emit_error(exc, exit_codes.VALIDATION_ERROR)
        ctx.exit(exit_codes.VALIDATION_ERROR)
    except EXTERNAL_ERRORS as exc:
        log.error(f"Failed to assemble {name} #{issue_number}: {exc}")
        presenter.emit_error(exc, exit_codes.EXTERNAL_FAILURE)
        ctx.exit(exit_codes.EXTERNAL_FAILURE)
    except Exception as exc:
        log.exception("Unexpected failure while assembling comic")
        presenter.emit_error(exc, exit_codes.INTERNAL_BUG)
        ctx.exit(exit_codes.INTERNAL_BUG)

    presenter.emit_result(result)
    log.info("SUCCESS")


if __name__ == "__main__":
    main(prog_name=about.__title__)
