import pytest

from conftest import unread_alerts
from models.alert import Alert, AlertKind
from models.audit_log import AuditLog
from models.medicine import Medicine
from models.stock_movement import MovementType, StockMovement
from services.audit_service import AuditSink
from services.stock_service import StockService
from utils.exceptions import BusinessRuleViolation, InsufficientStockError, NotFoundError


def test_quantity_matches_initial_plus_ledger(db, stock_service, make_medicine):
    medicine = make_medicine(quantity=20)
    deltas = [5, -3, 12, -30, 7, -1]

    running = 20
    for delta in deltas:
        new_quantity, movement = stock_service.adjust(medicine.id, delta, "test")
        running += delta
        assert new_quantity == running
        assert movement.total_after == running
    db.commit()

    db.expire_all()
    assert db.get(Medicine, medicine.id).quantity == 20 + sum(deltas)

    ledger = stock_service.list_movements(medicine.id)
    assert len(ledger) == len(deltas)
    running = 20
    for movement, delta in zip(ledger, deltas):
        running += delta
        assert movement.quantity == abs(delta)
        assert movement.movement_type == (MovementType.IN if delta > 0 else MovementType.OUT)
        assert movement.total_after == running


def test_overdraw_fails_and_changes_nothing(db, stock_service, make_medicine):
    medicine = make_medicine(name="Amoxicilina", quantity=4)

    with pytest.raises(InsufficientStockError) as excinfo:
        stock_service.stock_out(medicine.id, 5)

    assert excinfo.value.available == 4
    assert excinfo.value.requested == 5
    assert "Available: 4" in excinfo.value.message
    db.expire_all()
    assert db.get(Medicine, medicine.id).quantity == 4
    assert db.query(StockMovement).count() == 0


def test_adjust_rejects_zero_and_unknown_medicine(stock_service, make_medicine):
    medicine = make_medicine()
    with pytest.raises(BusinessRuleViolation):
        stock_service.adjust(medicine.id, 0, "nothing")
    with pytest.raises(NotFoundError):
        stock_service.adjust(9999, 1, "ghost")


def test_stock_in_and_out_require_positive_quantity(stock_service, make_medicine):
    medicine = make_medicine()
    with pytest.raises(BusinessRuleViolation):
        stock_service.stock_in(medicine.id, 0)
    with pytest.raises(BusinessRuleViolation):
        stock_service.stock_out(medicine.id, -2)


def test_stock_in_commits_and_reports(db, stock_service, make_medicine, seller):
    medicine = make_medicine(name="Paracetamol", quantity=15)

    result = stock_service.stock_in(medicine.id, 10, "Supplier delivery", seller)

    assert result.current_quantity == 25
    assert result.moved_quantity == 10
    assert result.operation == MovementType.IN
    movement = db.query(StockMovement).one()
    assert movement.reason == "Supplier delivery"
    assert movement.changed_by == seller["sub"]
    entry = db.query(AuditLog).filter(AuditLog.entity_type == "STOCK").one()
    assert entry.entity_id == medicine.id
    assert entry.details["total_after"] == 25


def test_default_reasons(db, stock_service, make_medicine):
    medicine = make_medicine(quantity=30)
    stock_service.stock_in(medicine.id, 1)
    stock_service.stock_out(medicine.id, 1)
    reasons = [m.reason for m in stock_service.list_movements(medicine.id)]
    assert reasons == ["Stock entry", "Stock exit"]


def test_low_stock_clears_and_recurs(db, stock_service, alert_service, make_medicine):
    medicine = make_medicine(quantity=9)
    alert_service.reconcile_low_stock()
    db.commit()
    assert len(unread_alerts(db, medicine.id, AlertKind.LOW_STOCK)) == 1

    stock_service.adjust(medicine.id, 1, "restock")
    alert_service.reconcile_low_stock()
    db.commit()
    assert unread_alerts(db, medicine.id, AlertKind.LOW_STOCK) == []
    assert db.query(Alert).filter(Alert.medicine_id == medicine.id).count() == 1

    stock_service.adjust(medicine.id, -1, "sold")
    db.commit()
    unread = unread_alerts(db, medicine.id, AlertKind.LOW_STOCK)
    assert len(unread) == 1
    assert unread[0].message == "Estoque baixo: 9 un."
    assert db.query(Alert).filter(Alert.medicine_id == medicine.id).count() == 2


def test_stock_out_raises_low_stock_alert(db, stock_service, make_medicine):
    medicine = make_medicine(quantity=12)
    stock_service.stock_out(medicine.id, 5)
    unread = unread_alerts(db, medicine.id, AlertKind.LOW_STOCK)
    assert len(unread) == 1
    assert unread[0].message == "Estoque baixo: 7 un."


def test_stock_in_below_threshold_keeps_single_alert(db, stock_service, alert_service, make_medicine):
    medicine = make_medicine(quantity=2)
    alert_service.reconcile_low_stock()
    db.commit()

    stock_service.stock_in(medicine.id, 3)

    assert len(unread_alerts(db, medicine.id, AlertKind.LOW_STOCK)) == 1


def test_get_stock(stock_service, make_medicine):
    medicine = make_medicine(name="Ibuprofeno", quantity=33)
    level = stock_service.get_stock(medicine.id)
    assert level.quantity == 33
    assert level.medicine_name == "Ibuprofeno"
    with pytest.raises(NotFoundError):
        stock_service.get_stock(404)


def test_audit_store_outage_does_not_fail_committed_stock_change(db, alert_service, clock, make_medicine, caplog):
    def unavailable_store():
        raise RuntimeError("audit store down")

    service = StockService(db, alert_service, audit=AuditSink(unavailable_store, clock=clock), clock=clock)
    medicine = make_medicine(quantity=20)

    result = service.stock_in(medicine.id, 5)

    assert result.current_quantity == 25
    db.expire_all()
    assert db.get(Medicine, medicine.id).quantity == 25
    assert db.query(AuditLog).count() == 0
    assert "Failed to write audit entry" in caplog.text
