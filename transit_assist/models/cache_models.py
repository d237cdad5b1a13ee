"""
Cache wire contract and cache introspection models.

CacheRequest/CacheResponse describe the request/response exchange with the
remote cache operation collaborator; CacheStats and CacheHealthReport are
returned by the cache store and the invalidation coordinator.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class CacheAction(str, Enum):
    """Operations supported by the remote cache tier"""
    GET = "get"
    SET = "set"
    DEL = "del"
    EXISTS = "exists"
    EXPIRE = "expire"


class CacheRequest(BaseModel):
    action: CacheAction
    key: str = Field(..., min_length=1)
    value: Optional[Any] = None
    ttl: Optional[int] = Field(default=None, ge=1)


class CacheResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


class CacheStats(BaseModel):
    """Local tier introspection"""
    local_size: int
    local_keys: List[str] = Field(default_factory=list)


class CacheHealthReport(BaseModel):
    """Result of a synthetic set/get/delete cycle"""
    is_healthy: bool
    local_cache_size: int
    errors: List[str] = Field(default_factory=list)
