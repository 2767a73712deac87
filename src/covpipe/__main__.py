from covpipe.cli.main import cli

cli()
