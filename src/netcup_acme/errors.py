"""Error taxonomy. Each class carries the process exit code the CLI reports for it."""

from __future__ import annotations


class NetcupAcmeError(Exception):
    """Base class for every failure the hook reports to its caller."""

    exit_code = 1


class ConfigError(NetcupAcmeError):
    """Credentials file or environment settings are missing or malformed."""

    exit_code = 3


class AuthError(NetcupAcmeError):
    """Login was rejected or the API session is no longer valid."""

    exit_code = 4


class ZoneNotFoundError(NetcupAcmeError):
    """No zone administered by the account owns the challenge hostname."""

    exit_code = 5


class TransportError(NetcupAcmeError):
    """Network failure, HTTP error or partially applied changeset. Retryable."""

    exit_code = 6


class ValidationError(NetcupAcmeError):
    """Structurally unexpected response or a changeset the provider rejected."""

    exit_code = 7
