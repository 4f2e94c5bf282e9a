import click

from comicpack.utils import sanitize


def _clean(links) -> list:
    """Return stripped, non-empty links."""
    return [link.strip() for link in links if link and link.strip()]


def validate_urls(ctx: click.Context, param, value):
    """
    Collect positional page URLs into the context parameter 'links'.

    Positional URLs always precede URLs read from a links file, whichever option
    Click processes first. Filtering of decorative images happens in the assembly
    pipeline so skipped pages are counted there.

    Parameters:
        ctx (click.Context): The Click context.
        param: The parameter definition.
        value: The tuple of URL strings provided.

    Returns:
        The original value.
    """
    if value:
        ctx.params["links"] = _clean(value) + ctx.params.get("links", [])
    return value


def validate_links_file(ctx: click.Context, param, value):
    """
    Read one page URL per line from a links file and append them to 'links'.

    Blank lines and lines starting with '#' are ignored.

    Parameters:
        ctx (click.Context): The Click context.
        param: The parameter definition.
        value: An open text file, or None.

    Returns:
        The original value.
    """
    if value is None:
        return value

    lines = [line for line in value.read().splitlines() if not line.lstrip().startswith("#")]
    ctx.params.setdefault("links", []).extend(_clean(lines))
    return value


def validate_segment(ctx: click.Context, param, value):
    """
    Ensure a name or issue number still has content once made path-safe.

    Parameters:
        ctx (click.Context): The Click context.
        param: The parameter definition.
        value: The provided string.

    Returns:
        The original value if valid; otherwise, raises a click.BadParameter exception.
    """
    if value is not None and not sanitize(value):
        raise click.BadParameter(f"'{value}' contains no usable characters")
    return value
