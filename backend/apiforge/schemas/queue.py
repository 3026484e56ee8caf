"""Pydantic schemas for generation queue introspection."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class QueueStatusResponse(BaseModel):
    is_processing: bool
    queue_length: int
    in_flight: list[str]
    concurrency: int
    max_retries: int


class QueueItemResponse(BaseModel):
    project_id: str
    project_name: str
    priority: int
    retries: int
    enqueued_at: datetime


class QueueDetailsResponse(QueueStatusResponse):
    items: list[QueueItemResponse]


class QueueClearedResponse(BaseModel):
    dropped: int


class OrphanSweepResponse(BaseModel):
    swept: list[str]
