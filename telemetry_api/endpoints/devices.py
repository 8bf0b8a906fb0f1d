"""Endpoints de dispositivos: ingesta, historial, última lectura y listado."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import (
    get_device_directory,
    get_ingestion_service,
    get_latest_cache,
    get_query_service,
)
from ..schemas import (
    DeviceListOut,
    ErrorOut,
    LatestMetricOut,
    MetricCreatedOut,
    MetricCreateIn,
    MetricRangeOut,
)
from ..services import DeviceDirectory, IngestionService, LatestValueCache, QueryService

router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("", response_model=DeviceListOut, responses={500: {"model": ErrorOut}})
def list_devices(directory: DeviceDirectory = Depends(get_device_directory)):
    """Lists every device seen in stored metrics with its latest status."""
    devices = directory.list_devices()
    return DeviceListOut(count=len(devices), devices=devices)


@router.post(
    "/{device_id}/metrics",
    status_code=201,
    response_model=MetricCreatedOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def create_device_metric(
    device_id: str,
    payload: MetricCreateIn,
    service: IngestionService = Depends(get_ingestion_service),
):
    metric = service.ingest(
        device_id,
        voltage=payload.voltage,
        current=payload.current,
        temperature=payload.temperature,
        status=payload.status,
        timestamp=payload.timestamp,
    )
    return MetricCreatedOut(data=metric)


@router.get(
    "/{device_id}/metrics",
    response_model=MetricRangeOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def get_device_metrics(
    device_id: str,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    service: QueryService = Depends(get_query_service),
):
    """Historial de un dispositivo, más reciente primero.

    limit/offset se aceptan como texto: valores no numéricos o fuera de
    rango usan los defaults (100 / 0) en lugar de fallar.
    """
    rows = service.query_range(
        device_id,
        start_time=start_time,
        end_time=end_time,
        limit=limit,
        offset=offset,
    )
    return MetricRangeOut(device_id=device_id, count=len(rows), data=rows)


@router.get(
    "/{device_id}/latest",
    response_model=LatestMetricOut,
    responses={404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def get_device_latest(
    device_id: str,
    cache: LatestValueCache = Depends(get_latest_cache),
):
    metric, source = cache.get_latest(device_id)
    return LatestMetricOut(data=metric, source=source)
