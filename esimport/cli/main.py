"""esimport CLI - Main entry point."""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from ..common import BundlerError, EsimportError, InvalidPortError, ServerDefaults, configure_logging
from ..config import BuildConfig, parse_port
from ..coordinator import RebuildCoordinator
from .utils import console, error, info, success

SERVE_OPTION = "--serve"

app = typer.Typer(
    name="esimport",
    help="Compile a package into static ES modules and generate a browser import map",
    no_args_is_help=True,
    add_completion=False,
)


def _validate_serve(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_port(value)
    except InvalidPortError as e:
        raise typer.BadParameter(e.message)


def expand_bare_serve(args: List[str]) -> List[str]:
    """
    Give a bare ``--serve`` its default port.

    ``--serve`` may be passed without a value, ``--serve=4000`` and
    ``--serve 4000`` carry one.

    Examples:
        >>> expand_bare_serve(["pkg", "dist", "--serve"])
        ['pkg', 'dist', '--serve=3000']
    """
    expanded: List[str] = []
    for index, arg in enumerate(args):
        next_arg = args[index + 1] if index + 1 < len(args) else None
        if arg == SERVE_OPTION and (next_arg is None or not next_arg.isdigit()):
            expanded.append(f"{SERVE_OPTION}={ServerDefaults.PORT}")
        else:
            expanded.append(arg)
    return expanded


@app.command()
def build(
    package_dir: Path = typer.Argument(
        ...,
        help="Directory containing the package.json to compile",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    output_dir: Path = typer.Argument(..., help="Destination for build artifacts and importmap.json"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Rebuild when project files change"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print a build analysis per cycle"),
    serve: Optional[str] = typer.Option(
        None,
        SERVE_OPTION,
        help=f"Serve the output directory on this port (default {ServerDefaults.PORT}) "
        "and write absolute URLs into the import map",
        metavar="PORT",
        callback=_validate_serve,
    ),
):
    """
    Compile PACKAGE_DIR and its dependencies into OUTPUT_DIR.

    \b
    Examples:
        # One-off build
        esimport . dist

        # Rebuild on change, serving on http://localhost:3000
        esimport . dist --watch --serve
    """
    config = BuildConfig.from_options(
        package_dir,
        output_dir,
        watch=watch,
        verbose=verbose,
        serve_port=serve,
    )
    try:
        configure_logging("esimport", config.log_level)
        coordinator = RebuildCoordinator(config, console=console)
        import_map = asyncio.run(coordinator.run())
    except EsimportError as e:
        error(e.message)
        if isinstance(e, BundlerError) and e.stderr:
            console.print(escape(e.stderr), style="dim")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        info("Interrupted")
        raise typer.Exit(130)

    entries = len(import_map.imports) if import_map else 0
    success(f"Wrote {entries} import(s) to {config.output_dir / 'importmap.json'}")


def main():
    """Entry point for the CLI."""
    app(args=expand_bare_serve(sys.argv[1:]), prog_name="esimport")


if __name__ == "__main__":
    main()
