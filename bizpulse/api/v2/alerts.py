"""Business alerts API - watcher status and manual checks."""

from fastapi import APIRouter

from bizpulse.api.deps import DbSession, Watcher
from bizpulse.services.snapshot_loader import load_business_snapshot

router = APIRouter()


@router.get("/status")
async def get_alert_status(watcher: Watcher):
    """Counters from the most recent watcher ticks."""
    return watcher.status()


@router.post("/check")
async def run_alert_check(watcher: Watcher, db: DbSession):
    """Load a fresh snapshot and run one watcher tick now."""
    snapshot = await load_business_snapshot(db)
    emitted = await watcher.process(snapshot)
    return {
        "success": True,
        "emitted": emitted,
        "failed_collections": snapshot.failed_collections(),
    }
