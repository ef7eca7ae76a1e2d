"""Built-in CLI sub-commands for apiwire.

* :mod:`~apiwire.commands.call` -- execute an endpoint, operation or alias.
* :mod:`~apiwire.commands.list` -- list services, endpoints and aliases.
* :mod:`~apiwire.commands.validate` -- check service YAML files.
* :mod:`~apiwire.commands.cache` -- inspect and clear the response cache.

Single commands export a plain callback registered on the root app; the
``cache`` group exports a :class:`typer.Typer` sub-application.
"""
