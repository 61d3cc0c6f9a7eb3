from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class DateRange(BaseModel):
    """Inclusive bounds applied to the top_products and top_clients rankings."""
    model_config = ConfigDict(populate_by_name=True)

    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")


class SummaryLimits(BaseModel):
    top_products: int = Field(5, ge=1, le=100)
    top_clients: int = Field(5, ge=1, le=100)


class SummaryRequest(BaseModel):
    """Schema for a reports summary request."""
    model_config = ConfigDict(populate_by_name=True)

    metrics: list[str] = []
    date_range: Optional[DateRange] = Field(None, alias="dateRange")
    limits: SummaryLimits = SummaryLimits()
