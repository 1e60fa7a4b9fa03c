"""
Application entry point — wires dependencies and runs one CLI command.

Composition root: reads settings, opens the keystore, creates the concrete
adapters and hands them to an EcfClient.

This is the ONLY place where concrete classes are instantiated from
configuration. Everything else receives its collaborators.

Responsibilities:
  1. Configure structlog
  2. Load and validate configuration from environment / .env
  3. Read the PKCS#12 keystore into a CredentialBundle
  4. Build the EcfClient
  5. Run the requested command and print its Result as JSON

Commands:
  dgii-ecf sign       --input doc.xml|doc.json --encf E31... [--output signed.xml]
  dgii-ecf submit     --input doc.xml --encf E31... [--save-signed out.xml] [--wait]
  dgii-ecf status     --track-id ID | --encf E31...
  dgii-ecf inquiry    --encf E32... --security-code CODE [--buyer RNC]
  dgii-ecf directory  --tax-id RNC | --all
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

from dgii_ecf import __version__
from dgii_ecf.adapters.http_client import GatewayHttpClient
from dgii_ecf.adapters.keystore import Pkcs12KeystoreReader
from dgii_ecf.adapters.transformer import LxmlDocumentTransformer
from dgii_ecf.client import EcfClient
from dgii_ecf.config import AppSettings
from dgii_ecf.domain.models import CredentialBundle, DocumentEnvelope
from dgii_ecf.polling import wait_for_disposition

log = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Log lines go to stderr so stdout carries only command output.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def load_credentials(settings: AppSettings) -> Result[CredentialBundle]:
    """Open the configured keystore. Missing keystore settings are a CONFIGURATION_ERROR."""
    keystore = settings.keystore
    if keystore is None:
        return ResultFailures.configuration_error(
            "Keystore is not configured (set KEYSTORE__PATH and KEYSTORE__PASSWORD)"
        )
    reader = Pkcs12KeystoreReader(keystore.password.get_secret_value())
    return reader.read(keystore.path)


def create_client(settings: AppSettings) -> Result[EcfClient]:
    """Build an EcfClient from settings; fails before any network call."""
    return load_credentials(settings).map(
        lambda credentials: EcfClient(
            credentials,
            settings.gateway.endpoints(),
            http=GatewayHttpClient(timeout=settings.http_timeout_seconds),
        )
    )


# ─────────────────────── Commands ───────────────────────


async def cmd_sign(client: EcfClient, args: argparse.Namespace, settings: AppSettings) -> Result[Any]:
    signed = _envelope(args, settings).flat_map(client.sign_envelope)
    if args.output:
        signed = signed.flat_map(lambda s: _write(args.output, s.signed_xml).map(lambda _: s))
        return signed.map(lambda s: {"file_name": s.file_name, "output": args.output})
    return signed.map(lambda s: {"file_name": s.file_name, "signed_xml": s.signed_xml})


async def cmd_submit(client: EcfClient, args: argparse.Namespace, settings: AppSettings) -> Result[Any]:
    signed = _envelope(args, settings).flat_map(client.sign_envelope)
    if args.save_signed:
        signed = signed.flat_map(lambda s: _write(args.save_signed, s.signed_xml).map(lambda _: s))
    session = await signed.flat_map_async(lambda _: client.authenticate())
    receipt = await session.flat_map_async(lambda _: client.send_signed(signed.value()))
    if not args.wait:
        return receipt
    return await receipt.flat_map_async(
        lambda r: wait_for_disposition(client, r.track_id) if r.track_id else _done(r)
    )


async def cmd_status(client: EcfClient, args: argparse.Namespace, settings: AppSettings) -> Result[Any]:
    session = await client.authenticate()
    if args.track_id:
        return await session.flat_map_async(lambda _: client.status_by_track_id(args.track_id))
    return await _issuer(args, settings).flat_map_async(
        lambda issuer: session.flat_map_async(lambda _: client.statuses_by_business_key(issuer, args.encf))
    )


async def cmd_inquiry(client: EcfClient, args: argparse.Namespace, settings: AppSettings) -> Result[Any]:
    session = await client.authenticate()
    return await _issuer(args, settings).flat_map_async(
        lambda issuer: session.flat_map_async(
            lambda _: client.inquiry_summary(issuer, args.encf, args.buyer, args.security_code)
        )
    )


async def cmd_directory(client: EcfClient, args: argparse.Namespace, settings: AppSettings) -> Result[Any]:
    session = await client.authenticate()
    if args.all:
        return await session.flat_map_async(lambda _: client.list_directory())
    return await session.flat_map_async(lambda _: client.get_customer_directory(args.tax_id))


type _Command = Callable[[EcfClient, argparse.Namespace, AppSettings], Awaitable[Result[Any]]]


def _envelope(args: argparse.Namespace, settings: AppSettings) -> Result[DocumentEnvelope]:
    return Result.combine(
        _read_document(Path(args.input)),
        _issuer(args, settings),
        lambda text, issuer: (text, issuer),
    ).flat_map(lambda pair: DocumentEnvelope.create(pair[1], args.encf, pair[0], args.root))


def _read_document(path: Path) -> Result[str]:
    """XML as-is; a .json document model goes through the transformer first."""
    text = Result.from_computation(
        lambda: path.read_text(encoding="utf-8"),
        ErrorCode.VALIDATION_ERROR,
        f"Cannot read document {path}",
    )
    if path.suffix.lower() != ".json":
        return text
    return text.flat_map(
        lambda raw: Result.from_computation(
            lambda: LxmlDocumentTransformer().json2xml(json.loads(raw)),
            ErrorCode.VALIDATION_ERROR,
            f"Cannot convert document model {path} to XML",
        )
    )


def _issuer(args: argparse.Namespace, settings: AppSettings) -> Result[str]:
    return Result.from_optional(
        args.issuer or settings.issuer_tax_id,
        "Issuer tax id is required (--issuer or ISSUER_TAX_ID)",
    )


def _write(path: str, content: str) -> Result[int]:
    return Result.from_computation(
        lambda: Path(path).write_text(content, encoding="utf-8"),
        ErrorCode.UNKNOWN_ERROR,
        f"Cannot write {path}",
    )


async def _done(value: Any) -> Result[Any]:
    return Result.success(value)


# ─────────────────────── Output ───────────────────────


def render(value: Any) -> str:
    """JSON text for a command's success value (dataclasses, lists, mappings)."""
    return json.dumps(_plain(value), indent=2, ensure_ascii=False, default=str)


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value) if f.repr}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("dgii-ecf", description="Sign, submit and track DGII e-CF documents.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--issuer", help="Issuer RNC (defaults to ISSUER_TAX_ID)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_sign = sub.add_parser("sign", help="sign a document without sending it")
    p_sign.add_argument("--input", required=True)
    p_sign.add_argument("--encf", required=True)
    p_sign.add_argument("--root", help="root element to sign (default: RFCE for type 32, else ECF)")
    p_sign.add_argument("--output")
    p_sign.set_defaults(func=cmd_sign)

    p_submit = sub.add_parser("submit", help="authenticate, sign and submit a document")
    p_submit.add_argument("--input", required=True)
    p_submit.add_argument("--encf", required=True)
    p_submit.add_argument("--root")
    p_submit.add_argument("--save-signed", dest="save_signed")
    p_submit.add_argument("--wait", action="store_true", help="poll until the document leaves 'En Proceso'")
    p_submit.set_defaults(func=cmd_submit)

    p_status = sub.add_parser("status", help="disposition by trackId or by e-NCF")
    group = p_status.add_mutually_exclusive_group(required=True)
    group.add_argument("--track-id", dest="track_id")
    group.add_argument("--encf")
    p_status.set_defaults(func=cmd_status)

    p_inquiry = sub.add_parser("inquiry", help="summary (RFCE) inquiry")
    p_inquiry.add_argument("--encf", required=True)
    p_inquiry.add_argument("--security-code", dest="security_code", required=True)
    p_inquiry.add_argument("--buyer", default="")
    p_inquiry.set_defaults(func=cmd_inquiry)

    p_dir = sub.add_parser("directory", help="counterparty endpoints")
    group = p_dir.add_mutually_exclusive_group(required=True)
    group.add_argument("--tax-id", dest="tax_id")
    group.add_argument("--all", action="store_true")
    p_dir.set_defaults(func=cmd_directory)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, wire dependencies and run one command."""
    args = build_parser().parse_args(argv)
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        return EXIT_FAILURE

    configure_structlog(settings.log_level)
    log.info("app.starting", version=__version__, command=args.cmd, environment=settings.gateway.environment.value)

    command: _Command = args.func
    result = create_client(settings).either(
        lambda client: asyncio.run(command(client, args, settings)),
        Result.failure_from,
    )
    if result.is_failure():
        log.error("app.command_failed", command=args.cmd, error=result.error().describe())
        return EXIT_FAILURE
    print(render(result.value()))  # noqa: T201
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
