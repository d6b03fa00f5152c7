"""
api/routes/data.py -- Cached sample data endpoint.

Routes:
  GET /data  -- {"data": payload, "cached": bool}; payload is regenerated at
                most once per TTL window (60 s by default)

Public: no session is required and the auth layer is not consulted.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from api.models import DataResponse
from cache.ttl import TTLCache, generate_sample_data

router = APIRouter()


@router.get("/data", response_model=DataResponse)
async def get_data(request: Request) -> DataResponse:
    """Serve the cached payload, regenerating it when stale or missing."""
    cache: TTLCache = request.app.state.data_cache
    payload, cached = await run_in_threadpool(cache.get, generate_sample_data)
    return DataResponse(data=payload, cached=cached)
