from fastapi import APIRouter, Query
from typing import Optional
import logging

from bizpulse.api.deps import DbSession
from bizpulse.exceptions import DataSourceUnavailableError, ValidationError
from bizpulse.schemas.reports import SummaryRequest
from bizpulse.services.report_aggregator import build_summary
from bizpulse.services.snapshot_loader import REPORT_COLLECTIONS, load_collections

logger = logging.getLogger(__name__)

router = APIRouter()


async def _summarize(db, request: SummaryRequest) -> dict:
    collections = await load_collections(db, REPORT_COLLECTIONS)
    failed = [name for name, rows in collections.items() if rows is None]
    if failed:
        raise DataSourceUnavailableError(f"Could not load {', '.join(failed)}")

    date_range = request.date_range.model_dump() if request.date_range else None
    try:
        summary = build_summary(
            collections,
            metrics=request.metrics,
            date_range=date_range,
            limits=request.limits.model_dump(),
        )
    except ValueError as e:
        raise ValidationError(str(e))

    return {"success": True, **summary}


@router.post("/summary")
async def create_summary_report(request: SummaryRequest, db: DbSession):
    """
    Dashboard summary.

    Request body:
        metrics: subset of sales, orders, top_products, top_clients,
            inventory_alerts (all when empty)
        dateRange: optional startDate/endDate for the top_* rankings
        limits: optional top_products/top_clients list sizes
    """
    return await _summarize(db, request)


@router.get("/summary")
async def get_summary_report(
    db: DbSession,
    metrics: list[str] = Query([]),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    """Dashboard summary with the defaults; metrics may be repeated in the query string."""
    request = SummaryRequest(
        metrics=metrics,
        date_range={"start_date": start_date, "end_date": end_date} if (start_date or end_date) else None,
    )
    return await _summarize(db, request)
