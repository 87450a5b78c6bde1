"""CLI entrypoint: Typer app definition and command registration"""

import typer

from entryimport.cli.commands import import_cmd, list_cmd, parse_cmd, show_cmd, summary_cmd


app = typer.Typer(name="entryimport", no_args_is_help=True, help="Import editorial entries from JSON or markup")

app.command(name="parse")(parse_cmd)
app.command(name="import")(import_cmd)
app.command(name="summary")(summary_cmd)
app.command(name="show")(show_cmd)
app.command(name="list")(list_cmd)
