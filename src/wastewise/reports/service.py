"""Report and collection-task business logic.

Reporting waste earns the reporter points; collecting it earns the collector
points. Each operation below is a single unit of work, so a report never
exists without its transaction and notification, and a collection is paid
at most once.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.config import get_settings
from wastewise.database import unit_of_work
from wastewise.db.models import CollectedWaste, Report, Transaction
from wastewise.errors import InvalidTransitionError, NotFoundError, ValidationError
from wastewise.ledger.service import TransactionType, award_points
from wastewise.reports.inference import parse_inference_result
from wastewise.reports.lifecycle import (
    COLLECTED,
    COLLECTOR_REQUIRED,
    PENDING,
    VERIFIED,
    validate_status,
    validate_transition,
)
from wastewise.users.service import get_user

logger = structlog.get_logger()


def _require_text(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} must not be empty")
    return str(value).strip()


def report_idempotency_key(report_id: int) -> str:
    return f"report:{report_id}"


def collection_idempotency_key(report_id: int) -> str:
    return f"collect:{report_id}"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_report(db: AsyncSession, report_id: int, *, for_update: bool = False) -> Report:
    """Fetch a report. Raises NotFoundError if absent."""
    stmt = select(Report).where(Report.id == report_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFoundError(f"Report {report_id} not found")
    return report


async def get_recent_reports(db: AsyncSession, limit: int = 10) -> list[Report]:
    """Most recent reports across all users."""
    result = await db.execute(
        select(Report).order_by(Report.created_at.desc(), Report.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def get_waste_collection_tasks(
    db: AsyncSession,
    limit: int = 20,
    status: str | None = None,
) -> list[Report]:
    """Reports shown on the collection board, newest first, optionally by status."""
    stmt = select(Report).order_by(Report.created_at.desc(), Report.id.desc()).limit(limit)
    if status is not None:
        validate_status(status)
        stmt = stmt.where(Report.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_user_reports(db: AsyncSession, user_id: int, limit: int | None = None) -> list[Report]:
    """Reports submitted by one user, newest first."""
    await get_user(db, user_id)
    stmt = (
        select(Report)
        .where(Report.user_id == user_id)
        .order_by(Report.created_at.desc(), Report.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_collected_waste(db: AsyncSession, report_id: int) -> CollectedWaste | None:
    result = await db.execute(select(CollectedWaste).where(CollectedWaste.report_id == report_id))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


async def create_report(
    db: AsyncSession,
    user_id: int,
    location: str,
    waste_type: str,
    amount: str,
    image_url: str | None = None,
    inference_result: Any = None,
    submission_key: str | None = None,
) -> Report:
    """Create a pending report and award the reporter.

    A repeated ``submission_key`` returns the report created the first time,
    without a second award.

    Raises:
        ValidationError: Empty fields, a bad inference payload, or a
            submission key already used by another user.
        NotFoundError: If the user does not exist.
    """
    location = _require_text(location, "location")
    waste_type = _require_text(waste_type, "waste_type")
    amount = _require_text(amount, "amount")
    inference = parse_inference_result(inference_result)
    points = get_settings().report_points

    async with unit_of_work(db):
        await get_user(db, user_id, for_update=True)

        if submission_key is not None:
            result = await db.execute(select(Report).where(Report.submission_key == submission_key))
            existing = result.scalar_one_or_none()
            if existing is not None:
                if existing.user_id != user_id:
                    raise ValidationError("Submission key already used")
                logger.info("report_duplicate_submission", report_id=existing.id, user_id=user_id)
                return existing

        report = Report(
            user_id=user_id,
            location=location,
            waste_type=waste_type,
            amount=amount,
            image_url=image_url,
            inference_result=inference.model_dump() if inference else None,
            status=PENDING,
            submission_key=submission_key,
        )
        db.add(report)
        await db.flush()

        await award_points(
            db,
            user_id,
            points,
            "garbage reporting",
            TransactionType.EARNED_REPORT,
            idempotency_key=report_idempotency_key(report.id),
        )

    logger.info("report_created", report_id=report.id, user_id=user_id, waste_type=waste_type)
    return report


# ---------------------------------------------------------------------------
# Collection workflow
# ---------------------------------------------------------------------------


async def update_task_status(
    db: AsyncSession,
    report_id: int,
    new_status: str,
    collector_id: int | None = None,
) -> Report:
    """Move a report through the lifecycle, assigning the collector when needed.

    Re-applying the current status is a no-op. Once assigned, the collector
    cannot change.

    Raises:
        NotFoundError: Unknown report or collector.
        ValidationError: Unknown status or a missing collector.
        InvalidTransitionError: Skipped or backwards transition, or a
            different collector than the one assigned.
    """
    validate_status(new_status)

    async with unit_of_work(db):
        report = await get_report(db, report_id, for_update=True)
        if collector_id is not None:
            await get_user(db, collector_id)
            if report.collector_id is not None and report.collector_id != collector_id:
                raise InvalidTransitionError(
                    f"Report {report_id} is already assigned to collector {report.collector_id}"
                )

        if new_status == report.status:
            return report

        validate_transition(report.status, new_status)

        if new_status in COLLECTOR_REQUIRED and report.collector_id is None:
            if collector_id is None:
                raise ValidationError(f"A collector is required to move a report to {new_status}")
            report.collector_id = collector_id

        previous = report.status
        report.status = new_status

        if new_status == VERIFIED:
            record = await get_collected_waste(db, report_id)
            if record is not None:
                record.status = VERIFIED

        await db.flush()

    logger.info(
        "task_status_updated",
        report_id=report_id,
        from_status=previous,
        to_status=new_status,
        collector_id=report.collector_id,
    )
    return report


async def save_collected_waste(
    db: AsyncSession,
    report_id: int,
    collector_id: int,
    verification_result: dict[str, Any] | None = None,
) -> CollectedWaste:
    """Record that a collector picked up a report's waste.

    There is one record per report; saving again for the same collector
    returns the existing record.
    """
    if verification_result is not None and not isinstance(verification_result, dict):
        raise ValidationError("Verification result must be a JSON object")

    async with unit_of_work(db):
        report = await get_report(db, report_id, for_update=True)
        await get_user(db, collector_id)
        if report.collector_id is not None and report.collector_id != collector_id:
            raise InvalidTransitionError(
                f"Report {report_id} is assigned to collector {report.collector_id}"
            )

        record = await get_collected_waste(db, report_id)
        if record is not None:
            if record.collector_id != collector_id:
                raise InvalidTransitionError(f"Report {report_id} was already collected by another user")
            return record

        record = CollectedWaste(
            report_id=report_id,
            collector_id=collector_id,
            status=VERIFIED if report.status == VERIFIED else COLLECTED,
            verification_result=verification_result,
        )
        db.add(record)
        await db.flush()

    logger.info("collected_waste_saved", report_id=report_id, collector_id=collector_id)
    return record


async def save_reward(
    db: AsyncSession,
    collector_id: int,
    amount: int,
    report_id: int | None = None,
) -> Transaction | None:
    """Award collection points. Tied to a report, the award is paid once.

    A report-tied award only goes to the report's assigned collector or, for
    an unassigned report, to the user holding its collection record.

    Returns the new transaction, or None if this collection was already paid.

    Raises:
        InvalidTransitionError: The user has not collected the report.
    """
    idempotency_key = None
    async with unit_of_work(db):
        if report_id is not None:
            report = await get_report(db, report_id, for_update=True)
            if report.collector_id is not None and report.collector_id != collector_id:
                raise InvalidTransitionError(
                    f"Report {report_id} is assigned to collector {report.collector_id}"
                )
            if report.collector_id is None:
                record = await get_collected_waste(db, report_id)
                if record is None or record.collector_id != collector_id:
                    raise InvalidTransitionError(
                        f"Report {report_id} has not been collected by user {collector_id}"
                    )
            idempotency_key = collection_idempotency_key(report_id)

        transaction = await award_points(
            db,
            collector_id,
            amount,
            "garbage collection",
            TransactionType.EARNED_COLLECT,
            idempotency_key=idempotency_key,
        )
    return transaction


async def complete_collection(
    db: AsyncSession,
    report_id: int,
    collector_id: int,
    verification_result: dict[str, Any] | None = None,
    points: int | None = None,
) -> tuple[Report, CollectedWaste, Transaction | None]:
    """Mark a report collected, save the collection record and pay the collector."""
    if points is None:
        points = get_settings().collect_points

    async with unit_of_work(db):
        report = await get_report(db, report_id)
        if report.status not in (COLLECTED, VERIFIED):
            report = await update_task_status(db, report_id, COLLECTED, collector_id)
        record = await save_collected_waste(db, report_id, collector_id, verification_result)
        transaction = await save_reward(db, collector_id, points, report_id=report_id)

    return report, record, transaction
