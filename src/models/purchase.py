# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Purchase ledger request and response models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Requester(BaseModel):
    """Client details recorded with each file access."""

    ip_address: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)


class DownloadRecordView(BaseModel):
    """One entry of a purchase's download history."""

    model_config = ConfigDict(from_attributes=True)

    pdf_id: str
    downloaded_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None


class TopContent(BaseModel):
    """Best-selling content item in a statistics window."""

    content_id: str
    purchases: int
    revenue: Decimal


class PurchaseStatistics(BaseModel):
    """Ledger totals over a time window.

    Attributes:
        total_purchases: Active records created in the window, any status.
        completed_purchases: Records completed.
        pending_purchases: Records still awaiting payment.
        total_revenue: Sum of completed amounts.
        conversion_rate: completed / total as a percentage, 2 decimals.
    """

    total_purchases: int
    completed_purchases: int
    pending_purchases: int
    failed_purchases: int = 0
    total_revenue: Decimal
    conversion_rate: float
    top_content: list[TopContent] = Field(default_factory=list)
    start: datetime | None = None
    end: datetime | None = None
