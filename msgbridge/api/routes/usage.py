"""Usage and liveness endpoints."""

from typing import Any

from fastapi import APIRouter

from ...usage_metrics import build_usage_snapshot

router = APIRouter(tags=["usage"])


@router.get("/api/usage")
async def get_usage() -> dict[str, Any]:
    """Return realtime usage counters."""
    return build_usage_snapshot()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
