"""Pydantic schemas for report and collection-task endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from wastewise.ledger.schemas import TransactionResponse


class CreateReportRequest(BaseModel):
    user_id: int
    location: str = Field(..., min_length=1)
    waste_type: str = Field(..., min_length=1, max_length=255)
    amount: str = Field(..., min_length=1, max_length=255)
    image_url: str | None = None
    inference_result: dict[str, Any] | None = None
    submission_key: str | None = Field(None, min_length=1, max_length=128)


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    location: str
    waste_type: str
    amount: str
    image_url: str | None = None
    inference_result: dict[str, Any] | None = None
    status: str
    created_at: datetime
    collector_id: int | None = None


class UpdateTaskStatusRequest(BaseModel):
    status: str = Field(..., min_length=1)
    collector_id: int | None = None


class SaveCollectedWasteRequest(BaseModel):
    collector_id: int
    verification_result: dict[str, Any] | None = None


class CollectedWasteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    report_id: int
    collector_id: int
    collection_date: datetime
    status: str
    verification_result: dict[str, Any] | None = None


class SaveRewardRequest(BaseModel):
    amount: int = Field(..., gt=0)
    report_id: int | None = None


class SaveRewardResponse(BaseModel):
    awarded: bool
    transaction: TransactionResponse | None = None


class CompleteCollectionRequest(BaseModel):
    collector_id: int
    verification_result: dict[str, Any] | None = None
    points: int | None = Field(None, gt=0)


class CompleteCollectionResponse(BaseModel):
    report: ReportResponse
    collected_waste: CollectedWasteResponse
    awarded: bool
    transaction: TransactionResponse | None = None
