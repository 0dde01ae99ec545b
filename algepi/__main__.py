from algepi.cli import cli

cli()
