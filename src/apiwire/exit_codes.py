"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apiwire.exceptions.ApiwireError` subclass.
External tooling (CI scripts, agent harnesses) can inspect the exit code to
determine the failure class without parsing the JSON error on stderr.

Example::

    $ apiwire call github.getUser
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the 'username' path parameter was missing
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The call was made with invalid or missing arguments."""

EXIT_AUTH_FAILURE = 3
"""Authentication credentials were missing or malformed."""

EXIT_NOT_FOUND = 4
"""The requested service, endpoint, alias, or config file was not found."""

EXIT_API_ERROR = 5
"""The remote API answered with an error status or an unreadable body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
