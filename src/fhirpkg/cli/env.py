import os

from rich.console import Console
from rich.table import Table

from fhirpkg.settings import default_cache_dir, default_out_dir, default_registry_url

console = Console()

_VARIABLES = ("APPDATA", "GITHUB_ACTIONS", "HOME", "GITHUB_WORKSPACE", "RUNNER_WORKSPACE", "FHIRPKG_REGISTRY")


def env() -> None:
    """Show the environment variables that drive the default directories."""
    table = Table(show_lines=False)
    table.add_column("variable")
    table.add_column("value")
    for name in _VARIABLES:
        table.add_row(name, os.environ.get(name, "[dim]<unset>[/dim]"))
    console.print(table)
    console.print(f"Cache directory:  {default_cache_dir()}")
    console.print(f"Output directory: {default_out_dir()}")
    console.print(f"Registry:         {default_registry_url()}")
