"""Administrative endpoints over the Redis keyspace."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_cache_admin
from ..schemas import (
    CacheDeleteOut,
    CacheScanOut,
    CacheSetIn,
    CacheSetOut,
    CacheValueOut,
    ErrorOut,
)
from ..services import CacheAdmin

router = APIRouter(prefix="/redis", tags=["cache-admin"])


# Declared before /{key:path} so "keys" is not read as a key name.
@router.get("/keys", response_model=CacheScanOut, responses={500: {"model": ErrorOut}})
def scan_keys(
    pattern: str = "*",
    cursor: Optional[str] = None,
    limit: Optional[str] = None,
    admin: CacheAdmin = Depends(get_cache_admin),
):
    return admin.scan_keys(pattern=pattern, cursor=cursor, limit=limit)


@router.get(
    "/{key:path}",
    response_model=CacheValueOut,
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def get_value(key: str, admin: CacheAdmin = Depends(get_cache_admin)):
    return admin.get_value(key).to_out()


@router.put(
    "/{key:path}",
    response_model=CacheSetOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def set_value(key: str, payload: CacheSetIn, admin: CacheAdmin = Depends(get_cache_admin)):
    return admin.set_value(key, payload.value, ttl=payload.ttl)


@router.delete(
    "/{key:path}",
    response_model=CacheDeleteOut,
    responses={404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def delete_key(key: str, admin: CacheAdmin = Depends(get_cache_admin)):
    return admin.delete_key(key)
