"""
FastAPI dependency providers for the service layer.

FastAPI caches a dependency once per request, so every service built for the
same request shares a single database session and AlertService.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

import config
from database import SessionLocal, get_db
from services.alert_service import AlertService
from services.audit_service import AuditSink
from services.medicine_service import MedicineService
from services.sales_service import SalesService
from services.stock_service import StockService
from utils.clock import Clock, SystemClock


def get_clock() -> Clock:
    return SystemClock(config.APP_TIMEZONE)


def get_audit_sink(clock: Clock = Depends(get_clock)) -> AuditSink:
    return AuditSink(SessionLocal, clock=clock)


def get_alert_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> AlertService:
    return AlertService(
        db,
        low_stock_threshold=config.LOW_STOCK_THRESHOLD,
        expiry_warning_days=config.EXPIRY_WARNING_DAYS,
        clock=clock,
    )


def get_stock_service(
    db: Session = Depends(get_db),
    alerts: AlertService = Depends(get_alert_service),
    audit: AuditSink = Depends(get_audit_sink),
    clock: Clock = Depends(get_clock),
) -> StockService:
    return StockService(db, alerts, audit=audit, clock=clock)


def get_sales_service(
    db: Session = Depends(get_db),
    stock: StockService = Depends(get_stock_service),
    alerts: AlertService = Depends(get_alert_service),
    audit: AuditSink = Depends(get_audit_sink),
    clock: Clock = Depends(get_clock),
) -> SalesService:
    return SalesService(db, stock, alerts, audit=audit, clock=clock)


def get_medicine_service(
    db: Session = Depends(get_db),
    stock: StockService = Depends(get_stock_service),
    alerts: AlertService = Depends(get_alert_service),
    audit: AuditSink = Depends(get_audit_sink),
    clock: Clock = Depends(get_clock),
) -> MedicineService:
    return MedicineService(db, stock, alerts, audit=audit, clock=clock)
