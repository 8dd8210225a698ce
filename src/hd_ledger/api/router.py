"""hd_ledger REST API — transfer ingestion and HODL score queries."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.hd_common.database import get_db_session
from src.hd_common.response import ApiResponse, success_response
from src.hd_ledger.application.schemas import BatchTransferRequest, TransferRequest
from src.hd_ledger.application.service import HodlApplicationService

router = APIRouter(prefix="/hodl", tags=["hodl"])

_service = HodlApplicationService()


def _wrap(data: object, request: Request) -> ApiResponse:
    return success_response(data, getattr(request.state, "request_id", None))


@router.post("/transfers")
async def ingest_transfer(
    body: TransferRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.ingest_transfer(db, body)
    return _wrap(data.model_dump(), request)


@router.post("/transfers/batch")
async def ingest_batch(
    body: BatchTransferRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.ingest_batch(db, body.transfers)
    return _wrap(data.model_dump(), request)


@router.get("/accounts/{account_id}")
async def get_account(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_account(db, account_id)
    return _wrap(data.model_dump(), request)


@router.get("/accounts/{account_id}/metric")
async def get_metric(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    timestamp: int = Query(..., description="Bucket-aligned unix seconds"),
) -> ApiResponse:
    data = await _service.get_metric(db, account_id, timestamp)
    return _wrap(data.model_dump(), request)


@router.get("/accounts/{account_id}/ratio")
async def get_ratio(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    start: int = Query(..., description="Bucket-aligned unix seconds"),
    end: int = Query(..., description="Bucket-aligned unix seconds, > start"),
) -> ApiResponse:
    data = await _service.get_ratio(db, account_id, start, end)
    return _wrap(data.model_dump(), request)


@router.get("/accounts/{account_id}/ratio/{other_id}")
async def get_account_ratio(
    account_id: str,
    other_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    start: int = Query(..., description="Bucket-aligned unix seconds"),
    end: int = Query(..., description="Bucket-aligned unix seconds, > start"),
) -> ApiResponse:
    data = await _service.get_account_ratio(db, account_id, other_id, start, end)
    return _wrap(data.model_dump(), request)


@router.get("/accounts/{account_id}/checkpoints")
async def list_checkpoints(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_checkpoints(db, account_id, cursor, limit)
    return _wrap(data.model_dump(), request)
