"""Zone resolution: find the zone that owns a challenge hostname."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from netcup_acme.dns.client import NetcupClient
from netcup_acme.errors import ZoneNotFoundError
from netcup_acme.models import APEX, Session, Zone, normalize_name

logger = logging.getLogger(__name__)


def candidate_zones(fqdn: str) -> list[str]:
    """Return every suffix of ``fqdn`` on label boundaries, longest first.

    The bare top-level label is left out since no account administers a TLD.

    Example:
        ``_acme-challenge.sub.example.com`` gives
        ``["_acme-challenge.sub.example.com", "sub.example.com", "example.com"]``.
    """
    labels = normalize_name(fqdn).split(".")
    return [".".join(labels[i:]) for i in range(len(labels) - 1)]


def split_record_name(fqdn: str, zone: str) -> str:
    """Return ``fqdn`` relative to ``zone``; ``@`` when they are equal."""
    fqdn = normalize_name(fqdn)
    zone = normalize_name(zone)
    if fqdn == zone:
        return APEX
    suffix = f".{zone}"
    if not fqdn.endswith(suffix):
        raise ValueError(f"Record '{fqdn}' is not under zone '{zone}'")
    return fqdn.removesuffix(suffix)


def resolve_zone(fqdn: str, zones: Iterable[Zone]) -> tuple[Zone, str]:
    """Pick the longest zone suffix of ``fqdn`` and the record name relative to it.

    Longest first means a record under ``sub.example.com`` is never attributed
    to ``example.com`` when the account administers both.

    Raises:
        ZoneNotFoundError: none of ``zones`` is a suffix of ``fqdn``.
    """
    by_name = {normalize_name(zone.name): zone for zone in zones}
    for name in candidate_zones(fqdn):
        zone = by_name.get(name)
        if zone is not None:
            return zone, split_record_name(fqdn, name)
    known = ", ".join(sorted(by_name)) or "none"
    raise ZoneNotFoundError(f"No zone administered by this account owns '{normalize_name(fqdn)}' (zones: {known})")


def discover_zone(
    client: NetcupClient,
    session: Session,
    fqdn: str,
    configured: Sequence[str] = (),
) -> tuple[Zone, str]:
    """Resolve against the configured zone names, or probe the provider when none are configured."""
    if configured:
        zones = [Zone(name=name) for name in configured]
    else:
        zones = client.list_zones(session, candidate_zones(fqdn))
    zone, hostname = resolve_zone(fqdn, zones)
    logger.info("Challenge record %s belongs to zone %s as '%s'", normalize_name(fqdn), zone.name, hostname)
    return zone, hostname
