"""Drive one present or cleanup request through login, zone resolution, reconciliation and logout."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from netcup_acme.dns.client import NetcupClient
from netcup_acme.dns.reconcile import ReconcileResult, reconcile
from netcup_acme.dns.zones import discover_zone
from netcup_acme.errors import NetcupAcmeError
from netcup_acme.models import ChallengeRequest, Credentials
from netcup_acme.retry import RetryPolicy

logger = logging.getLogger(__name__)


def run_challenge(
    request: ChallengeRequest,
    credentials: Credentials,
    client: NetcupClient,
    configured_zones: Sequence[str] = (),
    retry_policy: RetryPolicy | None = None,
) -> ReconcileResult:
    """Apply ``request`` inside a single API session.

    Logout is issued exactly once after a successful login, whatever happens in
    between. A failed logout is logged and never replaces the primary result
    or error.
    """
    session = client.login(credentials)
    try:
        zone, hostname = discover_zone(client, session, request.fqdn, configured_zones)
        return reconcile(client, session, zone, hostname, request, retry_policy)
    finally:
        try:
            client.logout(session)
        except NetcupAcmeError as exc:
            logger.warning("Ignoring failed logout: %s", exc)
