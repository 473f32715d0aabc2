"""driverforge CLI: Typer-based command-line interface.

Provides the ``driverforge`` command with subcommands to run the
embed-and-build pipeline, inspect a generated source file, and print the
host platform tag.

All output uses Rich for formatted terminal display.
"""
