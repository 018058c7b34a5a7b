import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

import crud.category as crud_category
import crud.medicine as crud_medicine
from models.medicine import Medicine
from schemas.medicine import MedicineCreate, MedicineUpdate
from services.alert_service import AlertService
from services.audit_service import AuditSink
from services.stock_service import StockService
from utils import sqlalchemy_to_dict
from utils.auth_utils import get_user_identifier
from utils.clock import Clock, SystemClock
from utils.exceptions import BusinessRuleViolation, ConflictError, NotFoundError

logger = logging.getLogger("medicine")

MANUAL_ADJUSTMENT_REASON = "Manual adjustment"


class MedicineService:
    """Administrative operations on medicines that keep alerts and the stock ledger in step."""

    def __init__(self, db: Session, stock: StockService, alerts: AlertService, audit: Optional[AuditSink] = None, clock: Clock = None):
        self.db = db
        self.stock = stock
        self.alerts = alerts
        self.audit = audit
        self.clock = clock or SystemClock()

    def get_medicine(self, medicine_id: int) -> Medicine:
        medicine = crud_medicine.get_medicine(self.db, medicine_id)
        if medicine is None:
            raise NotFoundError("Medicine", medicine_id)
        return medicine

    def list_medicines(self, active_only: bool = False, category_id: int = None) -> List[Medicine]:
        return crud_medicine.get_all_medicines(self.db, active_only=active_only, category_id=category_id)

    def _validate_price(self, price) -> None:
        if price is None or Decimal(str(price)) <= 0:
            raise BusinessRuleViolation("Price must be greater than zero")

    def _validate_expiry(self, expiry_date) -> None:
        if expiry_date is not None and expiry_date <= self.clock.today():
            raise BusinessRuleViolation(f"Expiry date {expiry_date.isoformat()} must be in the future")

    def _validate_category(self, category_id) -> None:
        if category_id is not None and crud_category.get_category(self.db, category_id) is None:
            raise NotFoundError("Category", category_id)

    def _validate_name(self, name: str, medicine_id: int = None) -> str:
        name = (name or "").strip()
        if not name:
            raise BusinessRuleViolation("Medicine name is required")
        existing = crud_medicine.get_medicine_by_name(self.db, name)
        if existing is not None and existing.id != medicine_id:
            raise ConflictError(f"A medicine named '{name}' already exists")
        return name

    def create_medicine(self, data: MedicineCreate, user: dict = None) -> Medicine:
        changed_by = get_user_identifier(user)
        try:
            name = self._validate_name(data.name)
            self._validate_price(data.price)
            if data.quantity is None or data.quantity < 0:
                raise BusinessRuleViolation("Quantity cannot be negative")
            self._validate_expiry(data.expiry_date)
            self._validate_category(data.category_id)

            # The creation quantity is the ledger's baseline, no movement is written for it
            medicine = crud_medicine.add_medicine(self.db, Medicine(
                name=name,
                description=data.description,
                price=data.price,
                quantity=data.quantity,
                expiry_date=data.expiry_date,
                active=data.active,
                category_id=data.category_id,
                images=list(data.images or []),
                created_at=self.clock.now(),
                created_by=changed_by,
                updated_by=changed_by,
            ))
            self.alerts.reconcile_all()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(medicine)
        logger.info(f"Medicine '{medicine.name}' (ID: {medicine.id}) created by User {changed_by}")
        if self.audit is not None:
            self.audit.record("CREATE", "MEDICINE", medicine.id, f"Medicine created: {medicine.name}",
                              {"new_values": sqlalchemy_to_dict(medicine)}, changed_by)
        return medicine

    def update_medicine(self, medicine_id: int, data: MedicineUpdate, user: dict = None) -> Medicine:
        changed_by = get_user_identifier(user)
        update_data = data.model_dump(exclude_unset=True)
        try:
            medicine = crud_medicine.get_medicine_for_update(self.db, medicine_id)
            if medicine is None:
                raise NotFoundError("Medicine", medicine_id)
            old_values = sqlalchemy_to_dict(medicine)

            if "name" in update_data:
                update_data["name"] = self._validate_name(update_data["name"], medicine_id=medicine.id)
            if "price" in update_data:
                self._validate_price(update_data["price"])
            if "expiry_date" in update_data and update_data["expiry_date"] != medicine.expiry_date:
                self._validate_expiry(update_data["expiry_date"])
            if "category_id" in update_data:
                self._validate_category(update_data["category_id"])

            new_quantity = update_data.pop("quantity", None)
            if new_quantity is not None and new_quantity != medicine.quantity:
                if new_quantity < 0:
                    raise BusinessRuleViolation("Quantity cannot be negative")
                self.stock.adjust(medicine.id, new_quantity - medicine.quantity, MANUAL_ADJUSTMENT_REASON,
                                  changed_by=changed_by, reconcile=False)

            for key, value in update_data.items():
                setattr(medicine, key, value)
            medicine.updated_by = changed_by
            medicine.updated_at = self.clock.now()
            self.db.flush()

            self.alerts.reconcile_all()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(medicine)
        logger.info(f"Medicine '{medicine.name}' (ID: {medicine.id}) updated by User {changed_by}")
        if self.audit is not None:
            self.audit.record("UPDATE", "MEDICINE", medicine.id, f"Medicine updated: {medicine.name}",
                              {"old_values": old_values, "new_values": sqlalchemy_to_dict(medicine)}, changed_by)
        return medicine

    def set_status(self, medicine_id: int, active: bool, user: dict = None) -> Medicine:
        """
        Activate or deactivate a medicine.

        Deactivation marks its unread alerts read. Reactivation of an inactive
        medicine deletes its alert history and derives alerts again.
        """
        changed_by = get_user_identifier(user)
        try:
            medicine = crud_medicine.get_medicine_for_update(self.db, medicine_id)
            if medicine is None:
                raise NotFoundError("Medicine", medicine_id)
            was_active = medicine.active

            medicine.active = active
            medicine.updated_by = changed_by
            medicine.updated_at = self.clock.now()
            self.db.flush()

            if not active:
                self.alerts.clear_alerts_for_medicine(medicine.id)
            elif not was_active:
                self.alerts.clear_alerts_for_medicine(medicine.id, delete=True)
                self.alerts.reconcile_all()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(medicine)
        status_label = "activated" if active else "deactivated"
        logger.info(f"Medicine '{medicine.name}' (ID: {medicine.id}) {status_label} by User {changed_by}")
        if self.audit is not None:
            self.audit.record("UPDATE", "MEDICINE", medicine.id, f"Medicine {status_label}: {medicine.name}",
                              {"active": active, "previously_active": was_active}, changed_by)
        return medicine

    def delete_medicine(self, medicine_id: int, user: dict = None) -> List[str]:
        """Delete a medicine that was never sold. Returns the image URLs it referenced."""
        changed_by = get_user_identifier(user)
        try:
            medicine = crud_medicine.get_medicine_for_update(self.db, medicine_id)
            if medicine is None:
                raise NotFoundError("Medicine", medicine_id)
            sales = crud_medicine.count_sales_of_medicine(self.db, medicine.id)
            if sales:
                raise BusinessRuleViolation(
                    f"Medicine '{medicine.name}' cannot be deleted because it appears in {sales} sale(s). Deactivate it instead"
                )

            old_values = sqlalchemy_to_dict(medicine)
            images = list(medicine.images or [])
            self.alerts.clear_alerts_for_medicine(medicine.id, delete=True)
            crud_medicine.delete_medicine(self.db, medicine)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Medicine '{old_values['name']}' (ID: {medicine_id}) deleted by User {changed_by}")
        if self.audit is not None:
            self.audit.record("DELETE", "MEDICINE", medicine_id, f"Medicine deleted: {old_values['name']}",
                              {"old_values": old_values}, changed_by)
        return images

    def replace_images(self, medicine_id: int, urls: List[str], user: dict = None) -> List[str]:
        """Store new image URLs on a medicine. Returns the URLs that were replaced."""
        changed_by = get_user_identifier(user)
        try:
            medicine = crud_medicine.get_medicine_for_update(self.db, medicine_id)
            if medicine is None:
                raise NotFoundError("Medicine", medicine_id)
            previous = list(medicine.images or [])
            medicine.images = list(urls)
            medicine.updated_by = changed_by
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Images of medicine ID {medicine_id} replaced by User {changed_by}: {len(urls)} new, {len(previous)} removed")
        if self.audit is not None:
            self.audit.record("UPDATE", "MEDICINE", medicine_id, "Medicine images updated",
                              {"images": urls, "removed": previous}, changed_by)
        return previous
