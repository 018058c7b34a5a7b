import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

import crud.client as crud_client
import crud.medicine as crud_medicine
import crud.sales_orders as crud_sales_orders
from models.sales_order_items import SalesOrderItem
from models.sales_orders import SalesOrder, SalesOrderStatus
from services.alert_service import AlertService
from services.audit_service import AuditSink
from services.stock_service import StockService
from utils import calculate_age
from utils.auth_utils import get_user_identifier
from utils.clock import Clock, SystemClock
from utils.exceptions import BusinessRuleViolation, InsufficientStockError, NotFoundError

logger = logging.getLogger("sales_orders")

MINIMUM_AGE = 18


def _line_values(line):
    if isinstance(line, dict):
        return line["medicine_id"], line["quantity"]
    return line.medicine_id, line.quantity


class SalesService:
    """
    Sale creation and cancellation.

    A sale validates everything before it writes, then deducts stock through
    ``StockService.adjust`` line by line inside one transaction. Any failure
    rolls the whole sale back, so no line is ever deducted on its own.
    """

    def __init__(self, db: Session, stock: StockService, alerts: AlertService, audit: Optional[AuditSink] = None, clock: Clock = None):
        self.db = db
        self.stock = stock
        self.alerts = alerts
        self.audit = audit
        self.clock = clock or SystemClock()

    def create_sale(self, client_id: int, items: Iterable, user: dict = None) -> SalesOrder:
        lines = [_line_values(line) for line in items]
        if not lines:
            raise BusinessRuleViolation("A sale must contain at least one item")
        for _, quantity in lines:
            if quantity is None or quantity <= 0:
                raise BusinessRuleViolation("Item quantity must be greater than zero")

        changed_by = get_user_identifier(user)
        today = self.clock.today()
        try:
            client = crud_client.get_client(self.db, client_id)
            if client is None:
                raise NotFoundError("Client", client_id)
            if client.birth_date is None:
                raise BusinessRuleViolation(
                    f"Client '{client.name}' has no birth date on file. It is required to confirm the legal age for purchases"
                )
            age = calculate_age(client.birth_date, today)
            if age < MINIMUM_AGE:
                raise BusinessRuleViolation(
                    f"Client must be at least {MINIMUM_AGE} years old to purchase. Current age: {age}"
                )

            # Lines for the same medicine are checked against stock as one total
            requested = OrderedDict()
            for medicine_id, quantity in lines:
                requested[medicine_id] = requested.get(medicine_id, 0) + quantity

            medicines = {m.id: m for m in crud_medicine.get_medicines_for_update(self.db, sorted(requested))}
            for medicine_id, quantity in requested.items():
                medicine = medicines.get(medicine_id)
                if medicine is None:
                    raise NotFoundError("Medicine", medicine_id)
                if not medicine.active:
                    raise BusinessRuleViolation(f"Medicine '{medicine.name}' is inactive and cannot be sold")
                if medicine.expiry_date is not None and medicine.expiry_date < today:
                    raise BusinessRuleViolation(
                        f"Medicine '{medicine.name}' expired on {medicine.expiry_date.isoformat()} and cannot be sold"
                    )
                if medicine.quantity < quantity:
                    raise InsufficientStockError(medicine.name, medicine.quantity, quantity)

            sale = self._build_sale(client_id, lines, medicines, SalesOrderStatus.COMPLETED, user)
            self.db.add(sale)
            self.db.flush()

            for item in sorted(sale.items, key=lambda i: (i.medicine_id, i.id)):
                self.stock.adjust(item.medicine_id, -item.quantity, f"Sale #{sale.id}", changed_by=changed_by, reconcile=False)
            self.alerts.reconcile_low_stock()

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Sale (ID: {sale.id}) created for Client ID {client_id} by User {changed_by}. Total: {sale.total_amount}")
        self._record("CREATE", sale, f"Sale #{sale.id} created", changed_by)
        return crud_sales_orders.get_sales_order(self.db, sale.id)

    def cancel_sale(self, sale_id: int, user: dict = None) -> str:
        changed_by = get_user_identifier(user)
        try:
            sale = crud_sales_orders.get_sales_order_for_update(self.db, sale_id)
            if sale is None:
                raise NotFoundError("Sale", sale_id)
            if sale.status != SalesOrderStatus.COMPLETED:
                raise BusinessRuleViolation(
                    f"Only completed sales can be cancelled. Sale #{sale.id} is {sale.status.value}"
                )

            for item in sorted(sale.items, key=lambda i: (i.medicine_id, i.id)):
                self.stock.adjust(item.medicine_id, item.quantity, f"Cancellation of sale #{sale.id}", changed_by=changed_by, reconcile=False)
            sale.status = SalesOrderStatus.CANCELLED
            sale.updated_by = changed_by
            sale.updated_at = self.clock.now()
            self.db.flush()
            self.alerts.reconcile_low_stock()

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Sale (ID: {sale_id}) cancelled by User {changed_by}. Stock restored for {len(sale.items)} item(s)")
        self._record("UPDATE", sale, f"Sale #{sale_id} cancelled", changed_by)
        return f"Sale #{sale_id} cancelled successfully. Stock restored."

    def create_cancelled_sale(self, client_id: int, items: Iterable, user: dict = None) -> SalesOrder:
        """Record an abandoned sale. Stock is neither checked nor touched."""
        lines = [_line_values(line) for line in items]
        if not lines:
            raise BusinessRuleViolation("A sale must contain at least one item")

        changed_by = get_user_identifier(user)
        try:
            if crud_client.get_client(self.db, client_id) is None:
                raise NotFoundError("Client", client_id)
            medicines = {}
            for medicine_id, _ in lines:
                medicine = crud_medicine.get_medicine(self.db, medicine_id)
                if medicine is None:
                    raise NotFoundError("Medicine", medicine_id)
                medicines[medicine_id] = medicine

            sale = self._build_sale(client_id, lines, medicines, SalesOrderStatus.CANCELLED, user)
            self.db.add(sale)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Cancelled sale (ID: {sale.id}) recorded for Client ID {client_id} by User {changed_by}")
        self._record("CREATE", sale, f"Cancelled sale #{sale.id} recorded", changed_by)
        return crud_sales_orders.get_sales_order(self.db, sale.id)

    def _build_sale(self, client_id: int, lines, medicines, status: SalesOrderStatus, user: Optional[dict]) -> SalesOrder:
        changed_by = get_user_identifier(user)
        sale = SalesOrder(
            client_id=client_id,
            user_id=(user or {}).get("uid"),
            status=status,
            created_by=changed_by,
            created_at=self.clock.now(),
        )
        total_amount = Decimal("0")
        for medicine_id, quantity in lines:
            medicine = medicines[medicine_id]
            unit_price = Decimal(str(medicine.price))
            subtotal = unit_price * quantity
            total_amount += subtotal
            sale.items.append(SalesOrderItem(
                medicine_id=medicine.id,
                medicine_name=medicine.name,
                quantity=quantity,
                unit_price=unit_price,
                subtotal=subtotal,
            ))
        sale.total_amount = total_amount
        return sale

    def _record(self, action: str, sale: SalesOrder, description: str, changed_by: str) -> None:
        if self.audit is None:
            return
        self.audit.record(action, "SALE", sale.id, description, {
            "client_id": sale.client_id,
            "status": sale.status.value,
            "total_amount": str(sale.total_amount),
            "items": [
                {"medicine_id": i.medicine_id, "medicine": i.medicine_name, "quantity": i.quantity, "unit_price": str(i.unit_price)}
                for i in sale.items
            ],
        }, changed_by)

    def get_sale(self, sale_id: int) -> SalesOrder:
        sale = crud_sales_orders.get_sales_order(self.db, sale_id)
        if sale is None:
            raise NotFoundError("Sale", sale_id)
        return sale

    def list_sales(self) -> List[SalesOrder]:
        return crud_sales_orders.get_sales_orders(self.db)

    def list_sales_by_client(self, client_id: int) -> List[SalesOrder]:
        return crud_sales_orders.get_sales_orders(self.db, client_id=client_id)
