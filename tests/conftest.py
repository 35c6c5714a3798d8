"""Shared test fixtures for netcup-acme-hook."""

from __future__ import annotations

import json

import httpx
import pytest

from netcup_acme.dns.client import NetcupClient
from netcup_acme.models import Credentials
from netcup_acme.retry import RetryPolicy

ENDPOINT = "https://ccp.test/run/webservice/servers/endpoint.php?JSON"
CUSTOMER_ID = "12345"
API_KEY = "api-key-secret"
API_PASSWORD = "api-password-secret"
SESSION_ID = "session-abc"


def envelope(action, status="success", statuscode=2000, shortmessage="ok", responsedata=""):
    return {
        "serverrequestid": "srv-1",
        "clientrequestid": "",
        "action": action,
        "status": status,
        "statuscode": statuscode,
        "shortmessage": shortmessage,
        "longmessage": "",
        "responsedata": responsedata,
    }


class FakeNetcup:
    """In-memory netcup CCP endpoint, served through httpx.MockTransport.

    ``queue(action, item)`` makes the next call of ``action`` return ``item``
    instead of the simulated result: an httpx.Response, a JSON-able dict, or an
    exception to raise.
    """

    def __init__(self, zones=("example.com",)):
        self.zones = {zone: [] for zone in zones}
        self.calls = []
        self.payloads = []
        self.sessions = set()
        self._overrides = {}
        self._next_id = 1000

    def queue(self, action, item):
        self._overrides.setdefault(action, []).append(item)

    def add_record(self, zone, hostname, destination, record_type="TXT"):
        self._next_id += 1
        self.zones[zone].append(
            {
                "id": str(self._next_id),
                "hostname": hostname,
                "type": record_type,
                "priority": "0",
                "destination": destination,
                "deleterecord": False,
                "state": "yes",
            }
        )

    def txt_records(self, zone, hostname):
        return [r for r in self.zones[zone] if r["type"] == "TXT" and r["hostname"] == hostname]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        action = body["action"]
        self.calls.append(action)
        self.payloads.append(body)

        pending = self._overrides.get(action)
        if pending:
            item = pending.pop(0)
            if isinstance(item, Exception):
                raise item
            if isinstance(item, httpx.Response):
                return item
            return httpx.Response(200, json=item)
        return httpx.Response(200, json=getattr(self, f"_{action}")(body["param"]))

    def _session_error(self, action, param):
        if param.get("apisessionid") not in self.sessions:
            return envelope(action, "error", 4001, "The session id is not valid")
        return None

    def _login(self, param):
        creds = (param.get("customernumber"), param.get("apikey"), param.get("apipassword"))
        if creds != (CUSTOMER_ID, API_KEY, API_PASSWORD):
            return envelope("login", "error", 4013, "Validation Error.")
        self.sessions.add(SESSION_ID)
        return envelope("login", responsedata={"apisessionid": SESSION_ID})

    def _logout(self, param):
        error = self._session_error("logout", param)
        if error:
            return error
        self.sessions.discard(param["apisessionid"])
        return envelope("logout", statuscode=2000, shortmessage="Logout successful")

    def _infoDnsZone(self, param):
        error = self._session_error("infoDnsZone", param)
        if error:
            return error
        name = param["domainname"]
        if name not in self.zones:
            return envelope("infoDnsZone", "error", 5029, "Can not get DNS zone. Domain not found.")
        return envelope(
            "infoDnsZone",
            responsedata={"name": name, "ttl": "86400", "serial": "2024010101", "dnssecstatus": False},
        )

    def _infoDnsRecords(self, param):
        error = self._session_error("infoDnsRecords", param)
        if error:
            return error
        records = self.zones.get(param["domainname"])
        if records is None:
            return envelope("infoDnsRecords", "error", 5029, "Can not get DNS records for zone.")
        return envelope("infoDnsRecords", responsedata={"dnsrecords": [dict(r) for r in records]})

    def _updateDnsRecords(self, param):
        error = self._session_error("updateDnsRecords", param)
        if error:
            return error
        records = self.zones[param["domainname"]]
        for change in param["dnsrecordset"]["dnsrecords"]:
            if change.get("deleterecord"):
                records[:] = [r for r in records if r["id"] != change["id"]]
            elif "id" in change:
                for record in records:
                    if record["id"] == change["id"]:
                        record["destination"] = change["destination"]
            else:
                self.add_record(param["domainname"], change["hostname"], change["destination"], change["type"])
        return envelope(
            "updateDnsRecords",
            shortmessage="DNS records successful updated",
            responsedata={"dnsrecords": [dict(r) for r in records]},
        )


@pytest.fixture
def credentials():
    return Credentials(customer_id=CUSTOMER_ID, api_key=API_KEY, api_password=API_PASSWORD)


@pytest.fixture
def fake_netcup():
    return FakeNetcup()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def netcup_client(fake_netcup, sleeps):
    http_client = httpx.Client(transport=httpx.MockTransport(fake_netcup.handler))
    return NetcupClient(
        endpoint=ENDPOINT,
        retry_policy=RetryPolicy(attempts=3, delay=1.0),
        _http_client=http_client,
        _sleep=sleeps.append,
    )
