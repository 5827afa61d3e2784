"""Built-in CLI commands for clisynth.

Each module defines a Typer command or sub-app that is registered on the
root application in :func:`clisynth.app.main`:

* :mod:`~clisynth.commands.render` -- ``clisynth render``
* :mod:`~clisynth.commands.config` -- ``clisynth config show|set|reset``
"""
