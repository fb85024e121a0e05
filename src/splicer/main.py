import typer

from splicer import __version__
from splicer.cli import injection
from splicer.cli.config import CLIConfig
from splicer.logging_config import logger, setup_logging

app = typer.Typer()


# Global CLI callback for flags that apply to all commands
@app.callback()
def global_options(
    human: bool = typer.Option(
        False,
        "--human",
        "-H",
        help="Enable human mode: tables and colors (also via SPLICER_HUMAN_MODE env var)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
):
    """
    Splicer: positional text injection

    Global flags apply to all commands.
    Machine mode is DEFAULT (compact JSON, no console logging).
    Use --human/-H for pretty output.
    """
    CLIConfig.set_machine_mode(False if human else None)
    if CLIConfig.is_machine_mode() and not verbose:
        setup_logging(suppress_console=True, force=True)
    else:
        setup_logging(level="DEBUG" if verbose else "INFO", suppress_console=False, force=True)


app.command(name="inject")(injection.inject_cmd)
app.command(name="revert")(injection.revert_cmd)
app.command(name="batch")(injection.batch_cmd)
app.command(name="validate")(injection.validate_cmd)
app.command(name="expect-error")(injection.expect_error_cmd)


@app.command()
def version():
    """
    Prints the current version of Splicer.
    """
    logger.debug("version requested")
    typer.echo(f"Splicer v{__version__}")


if __name__ == "__main__":
    app()
