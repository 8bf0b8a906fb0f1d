"""device_metrics table definition and schema provisioning.

The CHECK constraints repeat the ranges enforced by the validator so a
write that bypasses the service layer is still rejected by the store.
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    func,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

device_metrics = Table(
    "device_metrics",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("device_id", String(255), nullable=False),
    Column("voltage", Numeric(5, 2, asdecimal=False), nullable=False),
    Column("current", Numeric(5, 2, asdecimal=False), nullable=False),
    Column("temperature", Numeric(5, 2, asdecimal=False), nullable=False),
    Column("status", String(20), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("voltage >= 100 AND voltage <= 240", name="ck_device_metrics_voltage"),
    CheckConstraint('"current" >= 0 AND "current" <= 100', name="ck_device_metrics_current"),
    CheckConstraint("temperature >= 0 AND temperature <= 100", name="ck_device_metrics_temperature"),
    CheckConstraint("status IN ('normal', 'warning', 'error')", name="ck_device_metrics_status"),
)

Index("idx_device_id", device_metrics.c.device_id)
Index("idx_timestamp", device_metrics.c.timestamp)
# Per-device history, newest first.
Index("idx_device_timestamp", device_metrics.c.device_id, device_metrics.c.timestamp.desc())
Index("idx_status", device_metrics.c.status)


def ensure_schema(engine: Engine) -> None:
    """Creates device_metrics and its indexes if missing. Safe to call multiple times."""
    logger.info("[DB] Ensuring schema exists")
    try:
        metadata.create_all(engine, checkfirst=True)
    except Exception as e:
        logger.exception("[DB] Schema creation failed: %s", type(e).__name__)
        raise
    logger.info("[DB] Schema ready (device_metrics)")
