"""netcup CCP DNS API client: session login/logout and TXT record reads and updates."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, Self

import httpx

from netcup_acme.errors import AuthError, TransportError, ValidationError
from netcup_acme.models import (
    ApiResponse,
    ChangeAction,
    Credentials,
    DnsRecord,
    RecordChange,
    Session,
    Zone,
)
from netcup_acme.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

_API_ENDPOINT = "https://ccp.netcup.net/run/webservice/servers/endpoint.php?JSON"
# netcup drops API sessions after 15 minutes without a request
_SESSION_LIFETIME = timedelta(minutes=15)
_STATUS_SESSION_INVALID = 4001
# infoDnsZone answers for names that are not a zone of the account
_STATUS_NO_SUCH_ZONE = frozenset({4013, 5029})
_UNCONFIRMED = frozenset({"pending", "started"})


def _parse_records(response: ApiResponse, ttl: int | None) -> list[DnsRecord]:
    data = response.response_data
    if data is None:
        return []
    if not isinstance(data, dict) or not isinstance(data.get("dnsrecords"), list):
        raise ValidationError(f"{response.action}: response data has no 'dnsrecords' list")
    return [DnsRecord.from_dict(item, ttl=ttl) for item in data["dnsrecords"]]


def _is_applied(change: RecordChange, records: Sequence[DnsRecord]) -> bool:
    wanted = change.record
    if change.action is ChangeAction.DELETE:
        return not any(r.id == wanted.id for r in records)
    if change.action is ChangeAction.UPDATE:
        return any(r.id == wanted.id and r.destination == wanted.destination for r in records)
    return any(r.matches(wanted.hostname, wanted.record_type) and r.destination == wanted.destination for r in records)


class NetcupClient:
    """Performs netcup JSON API calls. Session state is passed in by the caller, never stored."""

    def __init__(
        self,
        endpoint: str = _API_ENDPOINT,
        retry_policy: RetryPolicy | None = None,
        _http_client: httpx.Client | None = None,
        _sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._endpoint = endpoint
        self._retry = retry_policy or RetryPolicy()
        self._sleep = _sleep
        self._client = _http_client or httpx.Client(
            headers={"Accept": "application/json"},
            timeout=30,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _post(self, action: str, param: dict[str, Any]) -> ApiResponse:
        logger.debug("Sending netcup API action %s", action)
        try:
            resp = self._client.post(self._endpoint, json={"action": action, "param": param})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"{action}: HTTP {exc.response.status_code} from netcup API") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{action}: request to netcup API failed: {exc}") from exc
        try:
            body = resp.json()
        except ValueError as exc:
            raise ValidationError(f"{action}: netcup API returned a non-JSON body") from exc
        return ApiResponse.from_dict(body)

    def _post_with_retry(self, action: str, param: dict[str, Any]) -> ApiResponse:
        return call_with_retry(lambda: self._post(action, param), self._retry, action, sleep=self._sleep)

    @staticmethod
    def _check_session(response: ApiResponse) -> None:
        if response.status_code == _STATUS_SESSION_INVALID:
            raise AuthError(f"API session is no longer valid: {response.describe()}")

    def login(self, credentials: Credentials) -> Session:
        """Exchange customer number, API key and API password for a session."""
        response = self._post_with_retry(
            "login",
            {
                "customernumber": credentials.customer_id,
                "apikey": credentials.api_key,
                "apipassword": credentials.api_password,
            },
        )
        if not response.ok:
            raise AuthError(f"Login rejected: {response.describe()}")
        data = response.response_data
        token = data.get("apisessionid") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise ValidationError("login: response data has no 'apisessionid'")
        session = Session(
            token=token,
            customer_id=credentials.customer_id,
            api_key=credentials.api_key,
            expiry_hint=datetime.now(UTC) + _SESSION_LIFETIME,
        )
        logger.info("Logged in to netcup API as customer %s", credentials.customer_id)
        logger.debug("API session expires after inactivity at %s", session.expiry_hint.isoformat())
        return session

    def logout(self, session: Session) -> None:
        """End the session. Not retried; callers log its failure instead of raising it."""
        response = self._post("logout", session.auth_params())
        if not response.ok:
            raise TransportError(f"Logout failed: {response.describe()}")
        logger.info("Logged out of netcup API")

    def info_zone(self, session: Session, name: str) -> Zone | None:
        """Return zone info, or None when the account does not administer ``name``.

        Only netcup's unknown-domain status codes mean "not a zone"; any other
        non-success answer raises.
        """
        response = self._post_with_retry("infoDnsZone", {**session.auth_params(), "domainname": name})
        self._check_session(response)
        if not response.ok and response.status_code in _STATUS_NO_SUCH_ZONE:
            logger.debug("No zone %s: %s", name, response.describe())
            return None
        if response.status in _UNCONFIRMED:
            raise TransportError(f"Zone lookup for {name} not completed: {response.describe()}")
        if not response.ok:
            raise ValidationError(f"Zone lookup for {name} failed: {response.describe()}")
        return Zone.from_dict(response.response_data)

    def list_zones(self, session: Session, candidates: Iterable[str]) -> list[Zone]:
        """Find the account's zone among ``candidates`` (longest first).

        netcup only offers a domain listing to resellers, so zones are found by
        probing each candidate with infoDnsZone. Probing stops at the first hit.
        """
        for name in candidates:
            zone = self.info_zone(session, name)
            if zone is not None:
                return [zone]
        return []

    def list_records(self, session: Session, zone: Zone) -> list[DnsRecord]:
        """Fetch every record of ``zone``."""
        response = self._post_with_retry("infoDnsRecords", {**session.auth_params(), "domainname": zone.name})
        self._check_session(response)
        if not response.ok:
            raise ValidationError(f"Could not read records of zone {zone.name}: {response.describe()}")
        return _parse_records(response, zone.ttl)

    def update_records(self, session: Session, zone: Zone, changeset: Sequence[RecordChange]) -> list[DnsRecord]:
        """Apply ``changeset`` in one updateDnsRecords call and return the zone's resulting records.

        A rejected changeset raises ValidationError. A warning status, an
        unconfirmed status, or a result that does not reflect every change is
        treated as partial application and raises TransportError.
        """
        if not changeset:
            raise ValueError("Changeset must not be empty")
        response = self._post(
            "updateDnsRecords",
            {
                **session.auth_params(),
                "domainname": zone.name,
                "dnsrecordset": {"dnsrecords": [change.to_dict() for change in changeset]},
            },
        )
        self._check_session(response)
        if response.status == "error":
            raise ValidationError(f"Changeset for zone {zone.name} rejected: {response.describe()}")
        if not response.ok:
            raise TransportError(f"Changeset for zone {zone.name} not confirmed: {response.describe()}")

        records = _parse_records(response, zone.ttl)
        unapplied = [change for change in changeset if not _is_applied(change, records)]
        if unapplied:
            raise TransportError(
                f"Changeset for zone {zone.name} partially applied: "
                f"{len(unapplied)} of {len(changeset)} change(s) missing from result"
            )
        logger.info("Applied %d record change(s) to zone %s", len(changeset), zone.name)
        return records
