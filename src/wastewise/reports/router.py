"""Report and collection-task API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.config import get_settings
from wastewise.database import get_session
from wastewise.ledger.schemas import TransactionResponse
from wastewise.reports.schemas import (
    CollectedWasteResponse,
    CompleteCollectionRequest,
    CompleteCollectionResponse,
    CreateReportRequest,
    ReportResponse,
    SaveCollectedWasteRequest,
    SaveRewardRequest,
    SaveRewardResponse,
    UpdateTaskStatusRequest,
)
from wastewise.reports.service import (
    complete_collection,
    create_report,
    get_recent_reports,
    get_report,
    get_user_reports,
    get_waste_collection_tasks,
    save_collected_waste,
    save_reward,
    update_task_status,
)

router = APIRouter(prefix="/api/v1", tags=["Reports"])


# ── Reports ──


@router.post("/reports", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def submit_report(body: CreateReportRequest, db: AsyncSession = Depends(get_session)):
    """Report a waste location; the reporter earns points."""
    report = await create_report(
        db,
        user_id=body.user_id,
        location=body.location,
        waste_type=body.waste_type,
        amount=body.amount,
        image_url=body.image_url,
        inference_result=body.inference_result,
        submission_key=body.submission_key,
    )
    return ReportResponse.model_validate(report)


@router.get("/reports/recent", response_model=list[ReportResponse])
async def recent_reports(
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Most recent reports."""
    reports = await get_recent_reports(db, limit=limit or get_settings().recent_reports_limit)
    return [ReportResponse.model_validate(r) for r in reports]


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def read_report(report_id: int, db: AsyncSession = Depends(get_session)):
    return ReportResponse.model_validate(await get_report(db, report_id))


@router.get("/users/{user_id}/reports", response_model=list[ReportResponse])
async def user_reports(user_id: int, db: AsyncSession = Depends(get_session)):
    """Reports submitted by a user."""
    reports = await get_user_reports(db, user_id)
    return [ReportResponse.model_validate(r) for r in reports]


# ── Collection tasks ──


@router.get("/tasks", response_model=list[ReportResponse])
async def collection_tasks(
    limit: int | None = Query(None, ge=1, le=100),
    status_filter: str | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_session),
):
    """Reports on the collection board."""
    reports = await get_waste_collection_tasks(
        db,
        limit=limit or get_settings().collection_tasks_limit,
        status=status_filter,
    )
    return [ReportResponse.model_validate(r) for r in reports]


@router.patch("/tasks/{report_id}/status", response_model=ReportResponse)
async def change_task_status(
    report_id: int,
    body: UpdateTaskStatusRequest,
    db: AsyncSession = Depends(get_session),
):
    """Advance a report through the collection lifecycle."""
    report = await update_task_status(db, report_id, body.status, body.collector_id)
    return ReportResponse.model_validate(report)


@router.post("/tasks/{report_id}/collected-waste", response_model=CollectedWasteResponse)
async def record_collected_waste(
    report_id: int,
    body: SaveCollectedWasteRequest,
    db: AsyncSession = Depends(get_session),
):
    """Save the collection record for a report."""
    record = await save_collected_waste(db, report_id, body.collector_id, body.verification_result)
    return CollectedWasteResponse.model_validate(record)


@router.post("/users/{collector_id}/collection-rewards", response_model=SaveRewardResponse)
async def award_collection_points(
    collector_id: int,
    body: SaveRewardRequest,
    db: AsyncSession = Depends(get_session),
):
    """Pay a collector; tied to a report the award is made once."""
    transaction = await save_reward(db, collector_id, body.amount, report_id=body.report_id)
    return SaveRewardResponse(
        awarded=transaction is not None,
        transaction=TransactionResponse.model_validate(transaction) if transaction else None,
    )


@router.post("/tasks/{report_id}/complete", response_model=CompleteCollectionResponse)
async def finish_collection(
    report_id: int,
    body: CompleteCollectionRequest,
    db: AsyncSession = Depends(get_session),
):
    """Mark collected, save the record and pay the collector in one step."""
    report, record, transaction = await complete_collection(
        db, report_id, body.collector_id, body.verification_result, body.points,
    )
    return CompleteCollectionResponse(
        report=ReportResponse.model_validate(report),
        collected_waste=CollectedWasteResponse.model_validate(record),
        awarded=transaction is not None,
        transaction=TransactionResponse.model_validate(transaction) if transaction else None,
    )
