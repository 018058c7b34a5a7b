"""
Stock adjustments.

``StockService.adjust`` is the only code path that changes a medicine's
on-hand quantity after creation. Every call writes the new quantity and
appends one StockMovement in the same transaction, so the stored quantity
always equals the creation quantity plus the signed sum of the ledger.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

import crud.medicine as crud_medicine
import crud.stock_movement as crud_stock_movement
from models.medicine import Medicine
from models.stock_movement import MovementType, StockMovement
from schemas.stock import StockLevel, StockOperationResult
from services.alert_service import AlertService
from services.audit_service import AuditSink
from utils.auth_utils import get_user_identifier
from utils.clock import Clock, SystemClock
from utils.exceptions import BusinessRuleViolation, InsufficientStockError, NotFoundError

logger = logging.getLogger("stock")

DEFAULT_IN_REASON = "Stock entry"
DEFAULT_OUT_REASON = "Stock exit"


class StockService:
    def __init__(self, db: Session, alerts: AlertService, audit: Optional[AuditSink] = None, clock: Clock = None):
        self.db = db
        self.alerts = alerts
        self.audit = audit
        self.clock = clock or SystemClock()

    def adjust(
        self,
        medicine_id: int,
        signed_quantity: int,
        reason: str,
        changed_by: str = None,
        reconcile: bool = True,
    ) -> Tuple[int, StockMovement]:
        """
        Apply a signed quantity change to a medicine under a row lock.

        The quantity write and the ledger entry are flushed together before
        low stock reconciliation reads them. Nothing is committed here.

        Raises:
            NotFoundError: the medicine does not exist.
            BusinessRuleViolation: ``signed_quantity`` is zero.
            InsufficientStockError: the decrease exceeds the quantity on hand.
        """
        if not signed_quantity:
            raise BusinessRuleViolation("Stock adjustment quantity must be different from zero")

        medicine = crud_medicine.get_medicine_for_update(self.db, medicine_id)
        if medicine is None:
            raise NotFoundError("Medicine", medicine_id)

        current = medicine.quantity or 0
        new_quantity = current + signed_quantity
        if new_quantity < 0:
            raise InsufficientStockError(medicine.name, current, -signed_quantity)

        medicine.quantity = new_quantity
        movement = crud_stock_movement.append_movement(self.db, StockMovement(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            quantity=abs(signed_quantity),
            movement_type=MovementType.IN if signed_quantity > 0 else MovementType.OUT,
            total_after=new_quantity,
            reason=reason,
            changed_by=changed_by,
            timestamp=self.clock.now(),
        ))
        self.db.flush()
        logger.info(
            f"Stock of medicine '{medicine.name}' (ID: {medicine.id}) changed by {signed_quantity:+d}: "
            f"{current} -> {new_quantity}. Reason: {reason}"
        )

        if reconcile:
            if signed_quantity > 0 and new_quantity >= self.alerts.low_stock_threshold:
                self.alerts.mark_low_stock_read(medicine.id)
            else:
                self.alerts.reconcile_low_stock()

        return new_quantity, movement

    def stock_in(self, medicine_id: int, quantity: int, reason: str = None, user: dict = None) -> StockOperationResult:
        return self._move(medicine_id, quantity, reason or DEFAULT_IN_REASON, user, MovementType.IN)

    def stock_out(self, medicine_id: int, quantity: int, reason: str = None, user: dict = None) -> StockOperationResult:
        return self._move(medicine_id, quantity, reason or DEFAULT_OUT_REASON, user, MovementType.OUT)

    def _move(self, medicine_id: int, quantity: int, reason: str, user: Optional[dict], direction: MovementType) -> StockOperationResult:
        if quantity is None or quantity <= 0:
            raise BusinessRuleViolation("Quantity must be greater than zero")

        changed_by = get_user_identifier(user)
        signed = quantity if direction == MovementType.IN else -quantity
        try:
            new_quantity, movement = self.adjust(medicine_id, signed, reason, changed_by=changed_by)
            medicine_name = movement.medicine_name
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        verb = "added to" if direction == MovementType.IN else "removed from"
        if self.audit is not None:
            self.audit.record(
                "UPDATE",
                "STOCK",
                medicine_id,
                f"{quantity} unit(s) {verb} stock of '{medicine_name}'",
                {
                    "medicine": medicine_name,
                    "operation": direction.value,
                    "quantity": quantity,
                    "total_after": new_quantity,
                    "reason": reason,
                },
                changed_by,
            )

        return StockOperationResult(
            message=f"{quantity} unit(s) {verb} stock",
            medicine_id=medicine_id,
            medicine_name=medicine_name,
            moved_quantity=quantity,
            current_quantity=new_quantity,
            operation=direction,
        )

    def get_stock(self, medicine_id: int) -> StockLevel:
        medicine: Medicine = crud_medicine.get_medicine(self.db, medicine_id)
        if medicine is None:
            raise NotFoundError("Medicine", medicine_id)
        return StockLevel(medicine_id=medicine.id, medicine_name=medicine.name, quantity=medicine.quantity)

    def list_movements(self, medicine_id: int) -> List[StockMovement]:
        return crud_stock_movement.find_movements(self.db, medicine_id)
