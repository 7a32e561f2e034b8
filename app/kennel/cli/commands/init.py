"""Init command implementation.

Writes a kennel.toml for this machine with the defaults filled in.
"""

from pathlib import Path
from typing import Annotated

import typer

from kennel.core.config import ConfigError, KennelConfig, save_config
from kennel.core.paths import get_config_path
from kennel.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Write an initial configuration file.",
    invoke_without_command=True,
)


def _show_config_summary(config: KennelConfig, output_path: Path) -> None:
    console.print()
    console.print("[bold]Configuration Summary[/bold]")
    console.print(f"  Machine: [info]{config.machine_name}[/info]")
    console.print(f"  Catalog: [muted]{config.server_url or config.catalog_file}[/muted]")
    console.print(f"  Distribution point: [muted]{config.distribution_point}[/muted]")
    console.print(f"  Output: [muted]{output_path}[/muted]")
    console.print()


@app.callback(invoke_without_command=True)
def init_config(
    ctx: typer.Context,
    server_url: Annotated[
        str | None,
        typer.Option(
            "--server-url",
            help="Management API base URL. Omit to use the catalog snapshot.",
        ),
    ] = None,
    machine_name: Annotated[
        str | None,
        typer.Option(
            "--machine-name",
            help="Name this machine is known by (defaults to the host name).",
        ),
    ] = None,
    distribution_point: Annotated[
        Path | None,
        typer.Option(
            "--distribution-point",
            help="Where package payloads are found.",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the config file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Create kennel.toml with defaults and the given overrides.

    Examples:
        kennel init --server-url https://mdm.example.org
        kennel init --distribution-point /Volumes/packages --force
    """
    if ctx.invoked_subcommand is not None:
        return

    output_path = output or get_config_path()
    if output_path.exists() and not force:
        print_error(f"Config already exists: {output_path}")
        print_info("Use --force to overwrite or specify a different path with --output.")
        raise typer.Exit(code=1)

    overrides: dict[str, object] = {"server_url": server_url}
    if machine_name:
        overrides["machine_name"] = machine_name
    if distribution_point is not None:
        overrides["distribution_point"] = distribution_point
    config = KennelConfig.model_validate(overrides)

    try:
        saved = save_config(config, output_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=e.exit_code) from e

    _show_config_summary(config, saved)
    print_success(f"Config written to {saved}")
