import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from fhirpkg.core.errors import FhirPkgError, InputError, NothingResolvedError
from fhirpkg.core.ports.registry import PackageSource
from fhirpkg.core.run import run_snapshot
from fhirpkg.models import ReconcileStats, RunSummary, SnapshotConfig
from fhirpkg.npm.cache import FilesystemPackageCache
from fhirpkg.npm.server import PackageServerClient
from fhirpkg.settings import default_cache_dir, default_out_dir, default_registry_url
from fhirpkg.snapshot.generator import DifferentialSnapshotGenerator

console = Console()
err_console = Console(stderr=True)

EXIT_NO_INPUT = 2
EXIT_NOTHING_RESOLVED = 3


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _get_source(config: SnapshotConfig, server: PackageServerClient) -> PackageSource:
    return FilesystemPackageCache(config.cache_dir, server)


def _stats_line(label: str, stats: ReconcileStats) -> str:
    return (
        f"{label}: {stats.definitions} SDs found, {stats.generated} snapshots generated, "
        f"{stats.written} SD files written, {stats.skipped} skipped, {stats.copied} files copied"
        + (f", {stats.failed} failed" if stats.failed else "")
    )


def _print_summary(summary: RunSummary) -> None:
    console.print(f"[green]FHIR context[/green] {summary.context.release.value} (from {summary.context.source})")
    console.print(f"[green]Packages[/green] {len(summary.packages)}: {', '.join(summary.packages) or '-'}")
    console.print(_stats_line("Packages", summary.registry))
    console.print(_stats_line("Local", summary.local))
    console.print(f"Output: {summary.out_dir}")
    console.print(f"Cache:  {summary.cache_dir}")


def run(
    package: Annotated[
        list[str] | None,
        typer.Option(
            "--package",
            "-p",
            help=(
                "FHIR NPM packages (repeatable or comma-separated; "
                "e.g. hl7.fhir.r4.core@4.0.1,hl7.fhir.us.core@6.1.0)."
            ),
        ),
    ] = None,
    sushi_deps_file: Annotated[
        Path | None, typer.Option(help="Path to sushi-config.yaml (or a file containing the YAML dependencies).")
    ] = None,
    sushi_deps_str: Annotated[
        str | None, typer.Option(help="YAML block (as string) from sushi-config.yaml with 'dependencies:'.")
    ] = None,
    out: Annotated[Path | None, typer.Option("--out", "-o", help="Output directory.")] = None,
    cache: Annotated[Path | None, typer.Option(help="Local cache folder for NPM packages.")] = None,
    registry: Annotated[str | None, typer.Option(help="Package registry URL.")] = None,
    skip_deps: Annotated[bool, typer.Option("--skip-deps", help="Do NOT automatically load dependencies.")] = False,
    overwrite: Annotated[bool, typer.Option("--overwrite", help="Overwrite existing files.")] = False,
    pretty: Annotated[bool, typer.Option("--pretty/--no-pretty", help="Pretty-print JSON.")] = True,
    force_snapshot: Annotated[
        bool, typer.Option("--force-snapshot", help="Always (re)generate snapshots, even if present.")
    ] = False,
    profiles_dir: Annotated[
        Path | None, typer.Option(help="Directory with local StructureDefinition JSONs (processed recursively).")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress.")] = False,
) -> None:
    """Download packages, resolve dependencies, and write StructureDefinitions with snapshots."""
    _configure_logging(verbose)
    config = SnapshotConfig(
        out_dir=out or default_out_dir(),
        cache_dir=cache or default_cache_dir(),
        registry_url=registry or default_registry_url(),
        skip_dependencies=skip_deps,
        overwrite=overwrite,
        pretty=pretty,
        force_snapshot=force_snapshot,
        profiles_dir=profiles_dir,
    )

    try:
        with PackageServerClient(config.registry_url) as server:
            summary = run_snapshot(
                config,
                _get_source(config, server),
                lambda context: DifferentialSnapshotGenerator(context),
                coordinates=package or [],
                document_file=sushi_deps_file,
                document_text=sushi_deps_str,
            )
    except InputError as exc:
        err_console.print(f"[red]{exc} Aborting.[/red]")
        raise typer.Exit(EXIT_NO_INPUT) from exc
    except NothingResolvedError as exc:
        err_console.print(f"[red]{exc} Aborting.[/red]")
        raise typer.Exit(EXIT_NOTHING_RESOLVED) from exc
    except FhirPkgError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    _print_summary(summary)
