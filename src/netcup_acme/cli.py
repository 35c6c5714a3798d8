"""Command line entry point for the ACME shell DNS-auth contract: present|cleanup <fqdn> <txt_value>."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from netcup_acme.config import load_hook_config, load_settings
from netcup_acme.dns import get_netcup_client, retry_policy_from
from netcup_acme.errors import NetcupAcmeError
from netcup_acme.hook import run_challenge
from netcup_acme.models import ChallengeRequest, Mode

logger = logging.getLogger("netcup_acme")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HELP_FLAGS = ("-h", "--help")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netcup-acme-hook",
        description="Create or remove an ACME DNS-01 challenge TXT record through the netcup DNS API.",
    )
    parser.add_argument(
        "mode",
        choices=[mode.value for mode in Mode],
        help="present creates or updates the challenge record, cleanup removes it",
    )
    parser.add_argument("fqdn", help="fully-qualified challenge hostname, e.g. _acme-challenge.example.com")
    parser.add_argument("txt_value", help="validation token to publish")
    return parser


def _protect_positionals(argv: list[str]) -> list[str]:
    # validation tokens are base64url and may start with "-"
    if argv and argv[0] not in _HELP_FLAGS and "--" not in argv:
        return ["--", *argv]
    return argv


def main(argv: Sequence[str] | None = None) -> int:
    """Run one hook invocation and return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(_protect_positionals(list(sys.argv[1:] if argv is None else argv)))
    try:
        request = ChallengeRequest.from_args(args.mode, args.fqdn, args.txt_value)
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(level=logging.INFO, stream=sys.stderr, format=_LOG_FORMAT)
    try:
        settings = load_settings()
        logging.getLogger().setLevel(settings.log_level)
        hook_config = load_hook_config(settings.config_path)
        with get_netcup_client(settings) as client:
            result = run_challenge(
                request,
                hook_config.credentials,
                client,
                configured_zones=hook_config.zones,
                retry_policy=retry_policy_from(settings),
            )
    except NetcupAcmeError as exc:
        logger.error("%s %s failed: %s", request.mode.value, request.fqdn, exc)
        return exc.exit_code

    logger.info("%s %s done (%s)", request.mode.value, request.fqdn, result.outcome.value)
    return 0
