"""
Alert lifecycle for medicines.

Each (medicine, kind) pair moves between three states: no alert, unread and
read. Alerts are re-derived from the current medicine rows on every pass:

* a pass creates an unread alert only when the condition holds and no unread
  alert of that kind exists for the medicine;
* a read alert does not block creation, so a condition that persists or
  returns after acknowledgment is raised again;
* LOW_STOCK alerts are cleared (marked read) automatically once stock is back
  at or above the threshold. EXPIRY_SOON and EXPIRED alerts are only cleared by
  inactivation, deletion or reactivation of the medicine.

Two concurrent passes may both create an unread alert for the same pair. The
next pass keeps the oldest and marks the others read.

None of the methods commit; the caller owns the transaction.
"""

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

import config
import crud.alert as crud_alert
import crud.medicine as crud_medicine
from models.alert import Alert, AlertKind
from models.medicine import Medicine
from utils.clock import Clock, SystemClock
from utils.exceptions import BusinessRuleViolation, NotFoundError

logger = logging.getLogger("alerts")

ALERT_FILTERS = {
    "all": None,
    "unread": None,
    "low-stock": AlertKind.LOW_STOCK,
    "expiry-soon": AlertKind.EXPIRY_SOON,
    "expired": AlertKind.EXPIRED,
}

_EXPIRY_KINDS = (AlertKind.EXPIRY_SOON, AlertKind.EXPIRED)


def low_stock_message(quantity: int) -> str:
    return f"Estoque baixo: {quantity} un."


def expiry_soon_message(expiry_date) -> str:
    return f"Validade próxima: {expiry_date.isoformat()}"


def expired_message(expiry_date) -> str:
    return f"Medicamento vencido em: {expiry_date.isoformat()}"


class AlertService:
    def __init__(self, db: Session, low_stock_threshold: int = None, expiry_warning_days: int = None, clock: Clock = None):
        self.db = db
        self.low_stock_threshold = config.LOW_STOCK_THRESHOLD if low_stock_threshold is None else low_stock_threshold
        self.expiry_warning_days = config.EXPIRY_WARNING_DAYS if expiry_warning_days is None else expiry_warning_days
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile_all(self) -> Dict[str, int]:
        """Run every trigger. Returns the number of alerts created per kind."""
        created = {
            AlertKind.LOW_STOCK.value: self.reconcile_low_stock(),
            AlertKind.EXPIRY_SOON.value: self.reconcile_expiry_soon(),
            AlertKind.EXPIRED.value: self.reconcile_expired(),
        }
        logger.info(f"Alert reconciliation finished. Created: {created}")
        return created

    def reconcile_low_stock(self) -> int:
        """
        Sweep every active medicine against the low stock threshold.

        First marks read the unread LOW_STOCK alerts of medicines that are back
        at or above the threshold, then raises one for each medicine below it
        that has none unread.
        """
        threshold = self.low_stock_threshold

        recovered_ids = {m.id for m in crud_medicine.find_active_medicines_at_or_above(self.db, threshold)}
        cleared = 0
        for alert in crud_alert.find_unread_alerts_by_kind(self.db, AlertKind.LOW_STOCK):
            if alert.medicine_id in recovered_ids:
                alert.read = True
                cleared += 1
        if cleared:
            self.db.flush()
            logger.info(f"Marked {cleared} low stock alert(s) as read, stock back at or above {threshold}")

        created = 0
        for medicine in crud_medicine.find_active_medicines_below(self.db, threshold):
            if self._raise_once(medicine, AlertKind.LOW_STOCK, low_stock_message(medicine.quantity)):
                created += 1
        self.db.flush()
        return created

    def reconcile_expiry_soon(self) -> int:
        today = self.clock.today()
        limit = today + timedelta(days=self.expiry_warning_days)
        created = 0
        for medicine in crud_medicine.find_medicines_expiring_by(self.db, limit):
            if medicine.expiry_date < today:
                continue
            if self._raise_once(medicine, AlertKind.EXPIRY_SOON, expiry_soon_message(medicine.expiry_date)):
                created += 1
        self.db.flush()
        return created

    def reconcile_expired(self) -> int:
        today = self.clock.today()
        created = 0
        for medicine in crud_medicine.find_medicines_expiring_by(self.db, today - timedelta(days=1)):
            if self._raise_once(medicine, AlertKind.EXPIRED, expired_message(medicine.expiry_date)):
                created += 1
        self.db.flush()
        return created

    def _raise_once(self, medicine: Medicine, kind: AlertKind, message: str) -> bool:
        """Create an unread alert unless one exists. Collapses duplicates left by racing passes."""
        unread = crud_alert.find_unread_alerts_by_medicine_and_kind(self.db, medicine.id, kind)
        if unread:
            for duplicate in unread[1:]:
                duplicate.read = True
                logger.warning(f"Collapsed duplicate unread {kind.value} alert {duplicate.id} for medicine {medicine.id}")
            return False

        crud_alert.save_alert(self.db, Alert(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            kind=kind,
            message=message,
            read=False,
            created_at=self.clock.now(),
        ))
        logger.info(f"{kind.value} alert raised for medicine '{medicine.name}' (ID: {medicine.id}): {message}")
        return True

    # ------------------------------------------------------------------
    # Targeted updates
    # ------------------------------------------------------------------

    def mark_low_stock_read(self, medicine_id: int) -> int:
        """Shortcut used after a stock increase that lands at or above the threshold."""
        alerts = crud_alert.find_unread_alerts_by_medicine_and_kind(self.db, medicine_id, AlertKind.LOW_STOCK)
        for alert in alerts:
            alert.read = True
        self.db.flush()
        return len(alerts)

    def acknowledge(self, alert_id: int) -> Alert:
        alert = crud_alert.get_alert(self.db, alert_id)
        if alert is None:
            raise NotFoundError("Alert", alert_id)
        alert.read = True
        self.db.flush()
        logger.info(f"Alert {alert_id} acknowledged")
        return alert

    def clear_alerts_for_medicine(self, medicine_id: int, delete: bool = False) -> int:
        """
        Mark every unread alert of a medicine read, or with ``delete`` remove
        all of its alerts so they can be derived again from scratch.
        """
        alerts = crud_alert.find_alerts_by_medicine(self.db, medicine_id)
        affected = 0
        for alert in alerts:
            if delete:
                crud_alert.delete_alert(self.db, alert)
                affected += 1
            elif not alert.read:
                alert.read = True
                affected += 1
        self.db.flush()
        logger.info(f"{'Deleted' if delete else 'Marked as read'} {affected} alert(s) of medicine {medicine_id}")
        return affected

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_alerts(self, alert_filter: str = "all") -> List[Alert]:
        if alert_filter not in ALERT_FILTERS:
            raise BusinessRuleViolation(
                f"Unknown alert filter '{alert_filter}'. Use one of: {', '.join(ALERT_FILTERS)}"
            )

        kind = ALERT_FILTERS[alert_filter]
        if kind is not None:
            alerts = crud_alert.find_unread_alerts_by_kind(self.db, kind)
        elif alert_filter == "unread":
            alerts = crud_alert.find_all_unread_alerts(self.db)
        else:
            alerts = crud_alert.find_all_alerts(self.db)

        return self._visible(alerts)

    def _visible(self, alerts: List[Alert]) -> List[Alert]:
        """Drop alerts of deleted medicines (and of inactive ones for expiry kinds), sorted by medicine name."""
        medicine_ids = {a.medicine_id for a in alerts}
        medicines = {}
        if medicine_ids:
            medicines = {
                m.id: m for m in self.db.query(Medicine).filter(Medicine.id.in_(medicine_ids)).all()
            }

        visible = []
        for alert in alerts:
            medicine = medicines.get(alert.medicine_id)
            if medicine is None:
                continue
            if alert.kind in _EXPIRY_KINDS and not medicine.active:
                continue
            visible.append((medicine.name.lower(), alert.id, alert))

        visible.sort(key=lambda entry: (entry[0], entry[1]))
        return [entry[2] for entry in visible]

    def unread_summary(self) -> Dict[str, int]:
        rows = self.db.query(Alert.kind, func.count(Alert.id)).filter(Alert.read.is_(False)).group_by(Alert.kind).all()
        summary = defaultdict(int)
        for kind, count in rows:
            summary[kind.value] = count
        return {kind.value: summary[kind.value] for kind in AlertKind}
