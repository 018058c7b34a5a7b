import logging
from sqlalchemy.orm import Session

import config
import crud.alert as crud_alert
from database import SessionLocal
from services.alert_service import AlertService
from utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


def run_daily_alert_reconciliation(session_factory=SessionLocal, clock: Clock = None):
    """
    Re-derive low stock, expiry soon and expired alerts for every active medicine.

    Scheduled once a day by ``scheduler.py``. Opens and commits its own
    session; on failure the pass is rolled back and logged.
    """
    logger.info("Starting daily alert reconciliation.")
    db: Session = session_factory()
    try:
        service = AlertService(
            db,
            low_stock_threshold=config.LOW_STOCK_THRESHOLD,
            expiry_warning_days=config.EXPIRY_WARNING_DAYS,
            clock=clock or SystemClock(config.APP_TIMEZONE),
        )
        created = service.reconcile_all()
        db.commit()
        logger.info(f"Daily alert reconciliation finished. Created: {created}. Unread alerts: {crud_alert.count_unread_alerts(db)}")
        return created
    except Exception as e:
        logger.error(f"Error during daily alert reconciliation: {e}", exc_info=True)
        db.rollback()
        return None
    finally:
        db.close()
