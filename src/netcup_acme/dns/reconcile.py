"""Converge the challenge TXT record to the requested state with one changeset."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from netcup_acme.dns.client import NetcupClient
from netcup_acme.errors import ValidationError
from netcup_acme.models import TXT, ChallengeRequest, ChangeAction, DnsRecord, Mode, RecordChange, Session, Zone
from netcup_acme.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NOOP = "noop"


@dataclass(frozen=True)
class ReconcileResult:
    """What a present or cleanup did to the zone."""

    outcome: Outcome
    changes: tuple[RecordChange, ...] = ()


def _matching(records: Sequence[DnsRecord], hostname: str) -> list[DnsRecord]:
    matches = [r for r in records if r.matches(hostname, TXT)]
    # updates and deletes address a record by its provider id
    missing = [r.destination for r in matches if r.id is None]
    if missing:
        raise ValidationError(f"TXT record {hostname} listed without an id (values: {', '.join(missing)})")
    return matches


def plan_present(records: Sequence[DnsRecord], hostname: str, value: str) -> list[RecordChange]:
    """Changes that leave exactly one TXT record at ``hostname`` holding ``value``.

    An existing match is rewritten rather than a second one added. Stale
    duplicates from earlier failed runs are deleted. A matching record listed
    without its provider id raises ValidationError.
    """
    matches = _matching(records, hostname)
    if not matches:
        return [RecordChange(ChangeAction.ADD, DnsRecord(hostname=hostname, record_type=TXT, destination=value))]

    keep = next((r for r in matches if r.destination == value), matches[0])
    changes = []
    if keep.destination != value:
        changes.append(RecordChange(ChangeAction.UPDATE, replace(keep, destination=value)))
    changes.extend(RecordChange(ChangeAction.DELETE, r) for r in matches if r is not keep)
    return changes


def plan_cleanup(records: Sequence[DnsRecord], hostname: str) -> list[RecordChange]:
    """Changes that remove every TXT record at ``hostname``; empty when none exists."""
    return [RecordChange(ChangeAction.DELETE, r) for r in _matching(records, hostname)]


def _outcome(mode: Mode, changes: Sequence[RecordChange]) -> Outcome:
    actions = {change.action for change in changes}
    if not actions:
        return Outcome.NOOP
    if mode is Mode.CLEANUP:
        return Outcome.DELETE
    # dropping stale duplicates next to a current value is still an update
    return Outcome.CREATE if ChangeAction.ADD in actions else Outcome.UPDATE


def reconcile(
    client: NetcupClient,
    session: Session,
    zone: Zone,
    hostname: str,
    request: ChallengeRequest,
    retry_policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ReconcileResult:
    """Fetch the zone's records, plan the change for ``request`` and apply it once.

    A TransportError (including a partially applied changeset) restarts the
    whole fetch, plan and apply cycle so the retry works from the provider's
    real state.
    """

    def cycle() -> ReconcileResult:
        records = client.list_records(session, zone)
        if request.mode is Mode.PRESENT:
            changes = plan_present(records, hostname, request.txt_value)
        else:
            changes = plan_cleanup(records, hostname)

        result = ReconcileResult(outcome=_outcome(request.mode, changes), changes=tuple(changes))
        if result.outcome is Outcome.NOOP:
            logger.info("TXT record %s in zone %s already converged for %s", hostname, zone.name, request.mode.value)
            return result

        client.update_records(session, zone, changes)
        logger.info(
            "%s: %s TXT record %s in zone %s (%d change(s))",
            request.mode.value,
            result.outcome.value,
            hostname,
            zone.name,
            len(changes),
        )
        return result

    return call_with_retry(cycle, retry_policy or RetryPolicy(), f"{request.mode.value} {request.fqdn}", sleep=sleep)
