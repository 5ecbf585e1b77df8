"""Built-in commands for the ``vela-auth`` CLI.

- :mod:`velaclient.commands.token` -- ``token inspect/status/refresh/exchange``,
  ``login-url`` and ``validate``.
"""
