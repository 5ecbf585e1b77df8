"""Numeric process exit codes used by the ``vela-auth`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~velaclient.exceptions.VelaError` subclass.
Shell wrappers and CI steps can inspect the exit code to tell an expired
credential apart from an unreachable server without parsing stderr.

Example::

    $ vela-auth token refresh
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- tokens have expired, log in again
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed or no usable credential could be produced."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The Vela server returned an HTTP error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
