from parley.cli.commands import app

app()
