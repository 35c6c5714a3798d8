"""netcup DNS access: client factory plus zone resolution and record reconciliation."""

from __future__ import annotations

from netcup_acme.config import Settings
from netcup_acme.dns.client import NetcupClient
from netcup_acme.retry import RetryPolicy


def retry_policy_from(settings: Settings) -> RetryPolicy:
    return RetryPolicy(attempts=settings.retry_attempts, delay=settings.retry_delay)


def get_netcup_client(settings: Settings) -> NetcupClient:
    """Instantiate a NetcupClient configured from runtime settings.

    Args:
        settings: Runtime settings; supplies the API endpoint and retry bounds.

    Returns:
        A NetcupClient. Use it as a context manager so its HTTP client is closed.
    """
    return NetcupClient(endpoint=settings.endpoint, retry_policy=retry_policy_from(settings))
