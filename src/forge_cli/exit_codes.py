"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~forge_cli.exceptions.ForgeCliError` subclass.
Shell scripts driving the single-shot mode can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ forge-api-cli --url http://localhost:8080 v1.products.id.get
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the required --id flag is missing
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command line could not be tokenized or did not match the grammar."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SPEC_ERROR = 7
"""The API description could not be fetched, parsed, or compiled."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
