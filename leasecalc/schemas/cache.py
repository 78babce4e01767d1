"""Pydantic schemas describing the result cache."""

from typing import Optional

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """Snapshot of the cache counters.

    ``oldest_entry`` and ``newest_entry`` are insertion timestamps in seconds
    since the epoch, ``None`` while the cache is empty.
    """

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    total_requests: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0, le=100, description="Percentage of requests served from cache.")
    cache_size: int = Field(..., ge=0)
    max_size: int = Field(..., ge=1)
    evictions: int = Field(0, ge=0)
    oldest_entry: Optional[float] = None
    newest_entry: Optional[float] = None


class CacheEntryInfo(BaseModel):
    key: str
    contract_id: str
    timestamp: float
    expires_at: float
    is_valid: bool
    data_hash: str
