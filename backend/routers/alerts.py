from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List
import logging

import crud.alert as crud_alert
from database import get_db
from dependencies import get_alert_service
from schemas.alert import Alert as AlertSchema, ReconcileResult
from services.alert_service import AlertService
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/alerts", tags=["Alerts"])
logger = logging.getLogger("alerts")


@router.get("/", response_model=List[AlertSchema])
def list_alerts(
    filter: str = Query("all", description="all, unread, low-stock, expiry-soon or expired"),
    service: AlertService = Depends(get_alert_service),
    user: dict = Depends(get_current_user),
):
    return service.list_alerts(filter)


@router.get("/summary", response_model=Dict[str, int])
def unread_summary(
    service: AlertService = Depends(get_alert_service),
    user: dict = Depends(get_current_user),
):
    """Number of unread alerts per kind."""
    return service.unread_summary()


@router.put("/{alert_id}/read", response_model=AlertSchema)
def acknowledge_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    service: AlertService = Depends(get_alert_service),
    user: dict = Depends(get_current_user),
):
    try:
        alert = service.acknowledge(alert_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(alert)
    logger.info(f"Alert {alert_id} marked as read by User {user.get('sub')}")
    return alert


@router.post("/reconcile", response_model=ReconcileResult)
def trigger_reconciliation(
    db: Session = Depends(get_db),
    service: AlertService = Depends(get_alert_service),
    user: dict = Depends(get_current_user),
):
    """Run every alert check now instead of waiting for the daily job."""
    try:
        created = service.reconcile_all()
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Manual alert reconciliation by User {user.get('sub')}: {created}")
    return ReconcileResult(
        message=f"Alerts reconciled. {sum(created.values())} new alert(s) created",
        unread_alerts=crud_alert.count_unread_alerts(db),
    )
