import typer

from fhirpkg.cli.env import env
from fhirpkg.cli.run import run

app = typer.Typer(
    name="fhir-snapshot",
    help="FHIR package snapshot tool — resolve packages and write StructureDefinitions with snapshots.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("run")(run)
app.command("env")(env)


def main() -> None:
    app()
