"""
Directory adapter — counterparties' registered endpoints.

Implements the DirectoryLookup port. When the buyer, not the gateway, receives
a document, its directory entry says where to authenticate (`urlOpcional`),
where to deliver e-CFs (`urlRecepcion`) and where to send commercial approvals
(`urlAceptacion`).

Results are never cached here.
"""

from __future__ import annotations

from typing import Any

import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

from dgii_ecf.adapters.http_client import GatewayHttpClient
from dgii_ecf.adapters.payloads import DirectoryEntryPayload
from dgii_ecf.config import GatewayEndpoints
from dgii_ecf.domain.models import DirectoryEntry, Session

log = structlog.get_logger()


class DirectoryResolver:
    """
    Look up counterparties by tax id, or list the whole directory.

    Implements the DirectoryLookup port.
    """

    def __init__(self, http: GatewayHttpClient, endpoints: GatewayEndpoints) -> None:
        self._http = http
        self._endpoints = endpoints

    async def get_customer_directory(self, session: Session, tax_id: str) -> Result[list[DirectoryEntry]]:
        """
        Entries registered for `tax_id`.

        A registered tax id without published endpoints yields an empty list.
        """
        answer = await (
            Result.success(tax_id.strip())
            .ensure(bool, ErrorCode.VALIDATION_ERROR, "tax id is required")
            .flat_map_async(
                lambda rnc: self._http.get_json(
                    self._endpoints.directory_by_tax_id,
                    params={"RNC": rnc},
                    session=session,
                    empty=[],
                )
            )
        )
        return answer.flat_map(_entries).peek(
            lambda entries: log.info("directory.resolved", tax_id=tax_id, count=len(entries))
        )

    async def list_directory(self, session: Session) -> Result[list[DirectoryEntry]]:
        """Every counterparty registered to receive documents directly."""
        answer = await self._http.get_json(
            self._endpoints.directory_listing,
            session=session,
            empty=[],
        )
        return answer.flat_map(_entries).peek(
            lambda entries: log.info("directory.listed", count=len(entries))
        )


def _entries(body: Any) -> Result[list[DirectoryEntry]]:
    # A single object is accepted as a one-entry directory.
    items = [body] if isinstance(body, dict) else body
    if not isinstance(items, list):
        return ResultFailures.protocol_error("Expected a list of directory entries")
    return Result.all_of([
        Result.from_computation(
            lambda item=item: DirectoryEntryPayload.model_validate(item).to_domain(),
            ErrorCode.PROTOCOL_ERROR,
            "Unexpected directory entry",
        )
        for item in items
    ])
