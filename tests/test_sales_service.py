from datetime import date
from decimal import Decimal

import pytest

from conftest import days_from_today, unread_alerts
from database import SessionLocal
from models.alert import AlertKind
from models.audit_log import AuditLog
from models.medicine import Medicine
from models.sales_order_items import SalesOrderItem
from models.sales_orders import SalesOrder, SalesOrderStatus
from models.stock_movement import MovementType, StockMovement
from schemas.sales_order_items import SalesOrderItemCreateRequest
from services.alert_service import AlertService
from services.audit_service import AuditSink
from services.sales_service import SalesService
from services.stock_service import StockService
from utils.exceptions import BusinessRuleViolation, InsufficientStockError, NotFoundError, TransientError


def line(medicine_id, quantity):
    return SalesOrderItemCreateRequest(medicine_id=medicine_id, quantity=quantity)


def quantity_of(db, medicine_id):
    db.expire_all()
    return db.get(Medicine, medicine_id).quantity


def test_sale_deducts_stock_and_copies_prices(db, sales_service, make_medicine, make_client, seller):
    client = make_client()
    dorflex = make_medicine(name="Dorflex", quantity=40, price="12.50")
    soro = make_medicine(name="Soro", quantity=20, price="3.25")

    sale = sales_service.create_sale(client.id, [line(dorflex.id, 3), line(soro.id, 4)], seller)

    assert sale.status == SalesOrderStatus.COMPLETED
    assert sale.total_amount == Decimal("50.50")
    assert sale.user_id == seller["uid"]
    assert [(i.medicine_name, i.unit_price, i.subtotal) for i in sale.items] == [
        ("Dorflex", Decimal("12.50"), Decimal("37.50")),
        ("Soro", Decimal("3.25"), Decimal("13.00")),
    ]
    assert quantity_of(db, dorflex.id) == 37
    assert quantity_of(db, soro.id) == 16
    reasons = {m.reason for m in db.query(StockMovement).all()}
    assert reasons == {f"Sale #{sale.id}"}

    db.get(Medicine, dorflex.id).price = Decimal("99.00")
    db.commit()
    assert sales_service.get_sale(sale.id).items[0].unit_price == Decimal("12.50")


def test_age_boundary(db, sales_service, make_medicine, make_client):
    medicine = make_medicine(quantity=10)
    adult = make_client(birth_date=date(2008, 10, 19))
    minor = make_client(birth_date=date(2008, 10, 20))

    with pytest.raises(BusinessRuleViolation) as excinfo:
        sales_service.create_sale(minor.id, [line(medicine.id, 1)])
    assert "Current age: 17" in excinfo.value.message
    assert quantity_of(db, medicine.id) == 10

    sale = sales_service.create_sale(adult.id, [line(medicine.id, 1)])
    assert sale.status == SalesOrderStatus.COMPLETED


def test_client_without_birth_date_cannot_buy(sales_service, make_medicine, make_client):
    medicine = make_medicine()
    client = make_client(birth_date=None)
    with pytest.raises(BusinessRuleViolation):
        sales_service.create_sale(client.id, [line(medicine.id, 1)])


def test_unknown_client_and_medicine(sales_service, make_medicine, make_client):
    medicine = make_medicine()
    with pytest.raises(NotFoundError):
        sales_service.create_sale(999, [line(medicine.id, 1)])
    client = make_client()
    with pytest.raises(NotFoundError):
        sales_service.create_sale(client.id, [line(medicine.id, 1), line(888, 1)])


def test_inactive_and_expired_medicines_cannot_be_sold(db, sales_service, make_medicine, make_client):
    client = make_client()
    inactive = make_medicine(active=False)
    expired = make_medicine(expiry_date=days_from_today(-1))
    expires_today = make_medicine(expiry_date=days_from_today(0))

    with pytest.raises(BusinessRuleViolation, match="inactive"):
        sales_service.create_sale(client.id, [line(inactive.id, 1)])
    with pytest.raises(BusinessRuleViolation, match="expired"):
        sales_service.create_sale(client.id, [line(expired.id, 1)])
    sales_service.create_sale(client.id, [line(expires_today.id, 1)])


def test_split_lines_cannot_oversell(db, sales_service, make_medicine, make_client):
    client = make_client()
    medicine = make_medicine(quantity=5)

    with pytest.raises(InsufficientStockError) as excinfo:
        sales_service.create_sale(client.id, [line(medicine.id, 3), line(medicine.id, 3)])

    assert excinfo.value.available == 5
    assert excinfo.value.requested == 6
    assert quantity_of(db, medicine.id) == 5
    assert db.query(StockMovement).count() == 0
    assert db.query(SalesOrder).count() == 0


def test_failure_on_later_line_deducts_nothing(db, sales_service, make_medicine, make_client):
    client = make_client()
    plenty = make_medicine(quantity=50)
    scarce = make_medicine(quantity=1)

    with pytest.raises(InsufficientStockError):
        sales_service.create_sale(client.id, [line(plenty.id, 10), line(scarce.id, 2)])

    assert quantity_of(db, plenty.id) == 50
    assert quantity_of(db, scarce.id) == 1
    assert db.query(StockMovement).count() == 0


def test_sale_raises_low_stock_alerts_once(db, sales_service, make_medicine, make_client):
    client = make_client()
    first = make_medicine(quantity=12)
    second = make_medicine(quantity=11)

    sales_service.create_sale(client.id, [line(first.id, 4), line(second.id, 2), line(first.id, 1)])

    assert len(unread_alerts(db, first.id, AlertKind.LOW_STOCK)) == 1
    assert len(unread_alerts(db, second.id, AlertKind.LOW_STOCK)) == 1
    assert unread_alerts(db, first.id, AlertKind.LOW_STOCK)[0].message == "Estoque baixo: 7 un."


def test_cancel_restores_stock_once(db, sales_service, make_medicine, make_client, seller):
    client = make_client()
    medicine = make_medicine(quantity=10)
    other = make_medicine(quantity=30)
    sale = sales_service.create_sale(client.id, [line(medicine.id, 6), line(other.id, 2)], seller)
    assert len(unread_alerts(db, medicine.id, AlertKind.LOW_STOCK)) == 1

    message = sales_service.cancel_sale(sale.id, seller)

    assert f"#{sale.id}" in message
    assert quantity_of(db, medicine.id) == 10
    assert quantity_of(db, other.id) == 30
    ins = db.query(StockMovement).filter(StockMovement.movement_type == MovementType.IN).all()
    assert len(ins) == 2
    assert {m.reason for m in ins} == {f"Cancellation of sale #{sale.id}"}
    assert sales_service.get_sale(sale.id).status == SalesOrderStatus.CANCELLED
    assert unread_alerts(db, medicine.id, AlertKind.LOW_STOCK) == []

    with pytest.raises(BusinessRuleViolation):
        sales_service.cancel_sale(sale.id, seller)
    assert quantity_of(db, medicine.id) == 10
    assert db.query(StockMovement).filter(StockMovement.movement_type == MovementType.IN).count() == 2


def test_cancel_unknown_sale(sales_service):
    with pytest.raises(NotFoundError):
        sales_service.cancel_sale(4242)


def test_cancelled_sale_skips_stock_checks(db, sales_service, make_medicine, make_client):
    minor = make_client(birth_date=date(2015, 1, 1))
    medicine = make_medicine(quantity=0, active=False, expiry_date=days_from_today(-10), price="4.00")

    sale = sales_service.create_cancelled_sale(minor.id, [line(medicine.id, 3)])

    assert sale.status == SalesOrderStatus.CANCELLED
    assert sale.total_amount == Decimal("12.00")
    assert quantity_of(db, medicine.id) == 0
    assert db.query(StockMovement).count() == 0
    with pytest.raises(BusinessRuleViolation):
        sales_service.cancel_sale(sale.id)


def test_sales_are_audited(db, sales_service, make_medicine, make_client, seller):
    client = make_client()
    medicine = make_medicine()
    sale = sales_service.create_sale(client.id, [line(medicine.id, 1)], seller)
    sales_service.cancel_sale(sale.id, seller)

    entries = db.query(AuditLog).filter(AuditLog.entity_type == "SALE").order_by(AuditLog.id).all()
    assert [e.action for e in entries] == ["CREATE", "UPDATE"]
    assert all(e.changed_by == seller["sub"] for e in entries)
    assert entries[0].details["items"][0]["quantity"] == 1


def test_listing_by_client(sales_service, make_medicine, make_client):
    bruno = make_client(name="bruno")
    ana = make_client(name="Ana")
    medicine = make_medicine()
    sales_service.create_sale(bruno.id, [line(medicine.id, 1)])
    sales_service.create_sale(ana.id, [line(medicine.id, 1)])
    sales_service.create_sale(bruno.id, [line(medicine.id, 2)])

    assert [s.client_name for s in sales_service.list_sales()] == ["Ana", "bruno", "bruno"]
    assert len(sales_service.list_sales_by_client(bruno.id)) == 2
    with pytest.raises(NotFoundError):
        sales_service.get_sale(777)


class StockFailingOnSecondLine(StockService):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    def adjust(self, *args, **kwargs):
        self.calls += 1
        if self.calls == 2:
            raise TransientError("Lock wait timeout")
        return super().adjust(*args, **kwargs)


def test_failure_during_deduction_rolls_back_whole_sale(db, alert_service, audit, clock, make_medicine, make_client):
    client = make_client()
    first = make_medicine(quantity=20)
    second = make_medicine(quantity=20)
    stock = StockFailingOnSecondLine(db, alert_service, audit=audit, clock=clock)
    service = SalesService(db, stock, alert_service, audit=audit, clock=clock)

    with pytest.raises(TransientError):
        service.create_sale(client.id, [line(first.id, 3), line(second.id, 4)])

    assert stock.calls == 2
    assert quantity_of(db, first.id) == 20
    assert quantity_of(db, second.id) == 20
    assert db.query(SalesOrder).count() == 0
    assert db.query(SalesOrderItem).count() == 0
    assert db.query(StockMovement).count() == 0


def test_second_seller_sees_stock_taken_by_first(db, make_medicine, make_client, clock):
    client = make_client()
    medicine = make_medicine(quantity=5)

    other_db = SessionLocal()
    try:
        other_alerts = AlertService(other_db, low_stock_threshold=10, expiry_warning_days=30, clock=clock)
        other_stock = StockService(other_db, other_alerts, clock=clock)
        other_sales = SalesService(other_db, other_stock, other_alerts, clock=clock)
        assert other_db.get(Medicine, medicine.id).quantity == 5

        alerts = AlertService(db, low_stock_threshold=10, expiry_warning_days=30, clock=clock)
        stock = StockService(db, alerts, clock=clock)
        SalesService(db, stock, alerts, clock=clock).create_sale(client.id, [line(medicine.id, 4)])

        with pytest.raises(InsufficientStockError) as excinfo:
            other_sales.create_sale(client.id, [line(medicine.id, 4)])
        assert excinfo.value.available == 1
    finally:
        other_db.close()

    assert quantity_of(db, medicine.id) == 1
    assert db.query(SalesOrder).count() == 1


def test_sale_survives_unavailable_audit_store(db, alert_service, clock, make_medicine, make_client, seller):
    def unavailable_store():
        raise RuntimeError("audit store down")

    audit = AuditSink(unavailable_store, clock=clock)
    stock = StockService(db, alert_service, audit=audit, clock=clock)
    service = SalesService(db, stock, alert_service, audit=audit, clock=clock)
    medicine = make_medicine(quantity=8)

    sale = service.create_sale(make_client().id, [line(medicine.id, 2)], seller)

    assert sale.status == SalesOrderStatus.COMPLETED
    assert quantity_of(db, medicine.id) == 6
    assert "Sale #" in service.cancel_sale(sale.id, seller)
    assert quantity_of(db, medicine.id) == 8
