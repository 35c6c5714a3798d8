"""Data classes exchanged between the CLI, the reconciler and the netcup API client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from netcup_acme.errors import ValidationError

TXT = "TXT"
APEX = "@"

_STATUSES = frozenset({"success", "warning", "error", "pending", "started"})


def normalize_name(name: str) -> str:
    """Lowercase a DNS name and strip the trailing root dot."""
    return name.strip().rstrip(".").lower()


def _require_str(data: dict, key: str, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"{what} field '{key}' must be a string, got: {value!r}")
    return value


def _optional_str(data: dict, key: str, what: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, str | int):
        raise ValidationError(f"{what} field '{key}' must be a string, got: {value!r}")
    return str(value)


@dataclass(frozen=True)
class Credentials:
    """netcup API credentials from config.json. Secrets are kept out of repr."""

    customer_id: str
    api_key: str = field(repr=False)
    api_password: str = field(repr=False)


@dataclass(frozen=True)
class Session:
    """An authenticated API session. Only NetcupClient.login creates one.

    ``expiry_hint`` is informational; the client logs it at login.
    """

    token: str = field(repr=False)
    customer_id: str
    api_key: str = field(repr=False)
    expiry_hint: datetime | None = None

    def auth_params(self) -> dict[str, str]:
        return {
            "customernumber": self.customer_id,
            "apikey": self.api_key,
            "apisessionid": self.token,
        }


@dataclass(frozen=True)
class Zone:
    """A DNS zone administered by the account."""

    name: str
    ttl: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Zone:
        if not isinstance(data, dict):
            raise ValidationError(f"Zone info must be an object, got: {data!r}")
        name = normalize_name(_require_str(data, "name", "Zone"))
        raw_ttl = data.get("ttl")
        try:
            ttl = int(raw_ttl) if raw_ttl not in (None, "") else None
        except (TypeError, ValueError):
            raise ValidationError(f"Zone field 'ttl' must be an integer, got: {raw_ttl!r}")
        return cls(name=name, ttl=ttl)


@dataclass(frozen=True)
class DnsRecord:
    """A record in netcup's native shape. ``hostname`` is relative to the zone."""

    hostname: str
    record_type: str
    destination: str
    id: str | None = None
    priority: str | None = None
    ttl: int | None = None

    def matches(self, hostname: str, record_type: str = TXT) -> bool:
        return self.record_type.upper() == record_type and self.hostname.lower() == hostname.lower()

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "hostname": self.hostname,
            "type": self.record_type,
            "destination": self.destination,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.priority is not None:
            data["priority"] = self.priority
        return data

    @classmethod
    def from_dict(cls, data: Any, ttl: int | None = None) -> DnsRecord:
        if not isinstance(data, dict):
            raise ValidationError(f"DNS record must be an object, got: {data!r}")
        return cls(
            hostname=_require_str(data, "hostname", "DNS record"),
            record_type=_require_str(data, "type", "DNS record"),
            destination=_require_str(data, "destination", "DNS record"),
            id=_optional_str(data, "id", "DNS record"),
            priority=_optional_str(data, "priority", "DNS record"),
            ttl=ttl,
        )


class ChangeAction(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class RecordChange:
    """One element of an updateDnsRecords changeset."""

    action: ChangeAction
    record: DnsRecord

    def __post_init__(self) -> None:
        if self.action is ChangeAction.ADD and self.record.id is not None:
            raise ValueError("A record to add must not carry an id")
        if self.action is not ChangeAction.ADD and self.record.id is None:
            raise ValueError(f"A record to {self.action.value} needs the provider's id")

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        if self.action is ChangeAction.DELETE:
            data["deleterecord"] = True
        return data


class Mode(str, Enum):
    PRESENT = "present"
    CLEANUP = "cleanup"


@dataclass(frozen=True)
class ChallengeRequest:
    """The single unit of work of one hook invocation."""

    mode: Mode
    fqdn: str
    txt_value: str

    @classmethod
    def from_args(cls, mode: str, fqdn: str, txt_value: str) -> ChallengeRequest:
        name = normalize_name(fqdn)
        if not name:
            raise ValueError("Challenge hostname must not be empty")
        return cls(mode=Mode(mode), fqdn=name, txt_value=txt_value)


@dataclass(frozen=True)
class ApiResponse:
    """The netcup response envelope shared by every action."""

    server_request_id: str
    action: str
    status: str
    status_code: int
    short_message: str
    client_request_id: str | None = None
    long_message: str | None = None
    response_data: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def describe(self) -> str:
        """One-line summary for error messages."""
        text = f"{self.action}: {self.status} {self.status_code} {self.short_message}"
        if self.long_message:
            text += f" ({self.long_message})"
        return text

    @classmethod
    def from_dict(cls, data: Any) -> ApiResponse:
        if not isinstance(data, dict):
            raise ValidationError(f"API response must be an object, got: {data!r}")
        status = _require_str(data, "status", "API response")
        if status not in _STATUSES:
            raise ValidationError(f"Unknown API response status: {status!r}")
        status_code = data.get("statuscode")
        if isinstance(status_code, bool) or not isinstance(status_code, int):
            raise ValidationError(f"API response field 'statuscode' must be an integer, got: {status_code!r}")
        response_data = data.get("responsedata")
        return cls(
            server_request_id=_require_str(data, "serverrequestid", "API response"),
            action=_require_str(data, "action", "API response"),
            status=status,
            status_code=status_code,
            short_message=_require_str(data, "shortmessage", "API response"),
            client_request_id=_optional_str(data, "clientrequestid", "API response"),
            long_message=_optional_str(data, "longmessage", "API response"),
            response_data=None if response_data == "" else response_data,
        )
