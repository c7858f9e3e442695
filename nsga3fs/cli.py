import typer
from nsga3fs.commands.run_cmd import run_app
from nsga3fs.commands.refpoints_cmd import refpoints_app

app = typer.Typer(add_completion=False, help="NSGA-III feature selection CLI")
app.add_typer(run_app, name="fs")
app.add_typer(refpoints_app, name="refpoints")


def main() -> None:
    """CLI entrypoint.

    This module is intended to be executed via:
      - python -m nsga3fs
      - nsga3fs (console script)
    """
    app()


if __name__ == "__main__":
    main()
