from datetime import datetime

import pytest

from conftest import days_from_today, unread_alerts
from models.alert import Alert, AlertKind
from schemas.medicine import MedicineCreate
from utils.exceptions import BusinessRuleViolation, NotFoundError


def _kinds(alerts):
    return sorted(a.kind.value for a in alerts)


def test_dipirona_scenario(db, medicine_service, alert_service):
    medicine = medicine_service.create_medicine(MedicineCreate(
        name="Dipirona",
        price="7.90",
        quantity=5,
        expiry_date=days_from_today(10),
    ))

    alert_service.reconcile_all()
    db.commit()

    unread = unread_alerts(db, medicine.id)
    assert _kinds(unread) == ["EXPIRY_SOON", "LOW_STOCK"]
    assert unread_alerts(db, medicine.id, AlertKind.EXPIRED) == []
    expiry = unread_alerts(db, medicine.id, AlertKind.EXPIRY_SOON)[0]
    assert expiry.message == f"Validade próxima: {days_from_today(10).isoformat()}"


def test_reconcile_all_is_idempotent(db, alert_service, make_medicine):
    make_medicine(quantity=3)
    make_medicine(quantity=100, expiry_date=days_from_today(5))
    make_medicine(quantity=1, expiry_date=days_from_today(-2))
    make_medicine(quantity=50)

    first = alert_service.reconcile_all()
    db.commit()
    count = len(unread_alerts(db))

    second = alert_service.reconcile_all()
    db.commit()

    assert sum(first.values()) == count == 4
    assert sum(second.values()) == 0
    assert len(unread_alerts(db)) == count


def test_expiry_window_boundaries(db, alert_service, make_medicine):
    today = make_medicine(expiry_date=days_from_today(0))
    last_day = make_medicine(expiry_date=days_from_today(30))
    outside = make_medicine(expiry_date=days_from_today(31))
    yesterday = make_medicine(expiry_date=days_from_today(-1))
    no_date = make_medicine(expiry_date=None)

    alert_service.reconcile_all()
    db.commit()

    assert _kinds(unread_alerts(db, today.id)) == ["EXPIRY_SOON"]
    assert _kinds(unread_alerts(db, last_day.id)) == ["EXPIRY_SOON"]
    assert unread_alerts(db, outside.id) == []
    assert _kinds(unread_alerts(db, yesterday.id)) == ["EXPIRED"]
    assert unread_alerts(db, no_date.id) == []
    expired = unread_alerts(db, yesterday.id)[0]
    assert expired.message == f"Medicamento vencido em: {days_from_today(-1).isoformat()}"


def test_inactive_medicines_are_not_alerted(db, alert_service, make_medicine):
    medicine = make_medicine(quantity=1, expiry_date=days_from_today(-5), active=False)
    alert_service.reconcile_all()
    db.commit()
    assert unread_alerts(db, medicine.id) == []


def test_acknowledged_alert_recurs_while_condition_holds(db, alert_service, make_medicine):
    medicine = make_medicine(quantity=2, expiry_date=days_from_today(3))
    alert_service.reconcile_all()
    db.commit()

    for alert in unread_alerts(db, medicine.id):
        alert_service.acknowledge(alert.id)
    db.commit()
    assert unread_alerts(db, medicine.id) == []

    alert_service.reconcile_all()
    db.commit()

    assert _kinds(unread_alerts(db, medicine.id)) == ["EXPIRY_SOON", "LOW_STOCK"]
    assert db.query(Alert).filter(Alert.medicine_id == medicine.id).count() == 4


def test_acknowledge_unknown_alert(alert_service):
    with pytest.raises(NotFoundError):
        alert_service.acknowledge(12345)


def test_expiry_alerts_do_not_clear_on_their_own(db, alert_service, make_medicine, clock):
    medicine = make_medicine(expiry_date=days_from_today(2))
    alert_service.reconcile_all()
    db.commit()

    clock.advance(days=5)
    alert_service.reconcile_all()
    db.commit()

    assert _kinds(unread_alerts(db, medicine.id)) == ["EXPIRED", "EXPIRY_SOON"]


def test_duplicate_unread_alerts_are_collapsed(db, alert_service, make_medicine, clock):
    medicine = make_medicine(quantity=3)
    for minute in (1, 2):
        db.add(Alert(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            kind=AlertKind.LOW_STOCK,
            message="Estoque baixo: 3 un.",
            read=False,
            created_at=datetime(2026, 10, 19, 9, minute),
        ))
    db.commit()
    oldest_id = min(a.id for a in unread_alerts(db, medicine.id))

    created = alert_service.reconcile_low_stock()
    db.commit()

    unread = unread_alerts(db, medicine.id, AlertKind.LOW_STOCK)
    assert created == 0
    assert [a.id for a in unread] == [oldest_id]


def test_low_stock_sweep_clears_every_recovered_medicine(db, alert_service, make_medicine):
    first = make_medicine(quantity=4)
    second = make_medicine(quantity=6)
    alert_service.reconcile_low_stock()
    db.commit()

    first.quantity = 40
    second.quantity = 60
    db.commit()
    alert_service.reconcile_low_stock()
    db.commit()

    assert unread_alerts(db, kind=AlertKind.LOW_STOCK) == []


def test_clear_alerts_for_medicine(db, alert_service, make_medicine):
    medicine = make_medicine(quantity=1, expiry_date=days_from_today(1))
    alert_service.reconcile_all()
    db.commit()

    assert alert_service.clear_alerts_for_medicine(medicine.id) == 2
    db.commit()
    assert unread_alerts(db, medicine.id) == []
    assert db.query(Alert).filter(Alert.medicine_id == medicine.id).count() == 2

    assert alert_service.clear_alerts_for_medicine(medicine.id, delete=True) == 2
    db.commit()
    assert db.query(Alert).filter(Alert.medicine_id == medicine.id).count() == 0


def test_listing_filters_and_order(db, alert_service, make_medicine):
    make_medicine(name="zinco", quantity=1)
    make_medicine(name="Aspirina", quantity=2, expiry_date=days_from_today(4))
    make_medicine(name="buscopan", quantity=80, expiry_date=days_from_today(-3))
    alert_service.reconcile_all()
    db.commit()

    names = [a.medicine_name for a in alert_service.list_alerts("all")]
    assert names == ["Aspirina", "Aspirina", "buscopan", "zinco"]
    assert [a.medicine_name for a in alert_service.list_alerts("low-stock")] == ["Aspirina", "zinco"]
    assert [a.medicine_name for a in alert_service.list_alerts("expiry-soon")] == ["Aspirina"]
    assert [a.medicine_name for a in alert_service.list_alerts("expired")] == ["buscopan"]

    alert_service.acknowledge(alert_service.list_alerts("expired")[0].id)
    db.commit()
    assert len(alert_service.list_alerts("unread")) == 3
    assert len(alert_service.list_alerts("all")) == 4


def test_listing_hides_deleted_and_inactive_medicines(db, alert_service, make_medicine):
    gone = make_medicine(name="Removido", quantity=1)
    dormant = make_medicine(name="Inativo", quantity=1, expiry_date=days_from_today(-1))
    alert_service.reconcile_all()
    db.commit()

    db.delete(gone)
    dormant.active = False
    db.commit()

    visible = alert_service.list_alerts("all")
    assert [(a.medicine_name, a.kind) for a in visible] == [("Inativo", AlertKind.LOW_STOCK)]
    assert alert_service.list_alerts("expired") == []


def test_unknown_filter_is_rejected(alert_service):
    with pytest.raises(BusinessRuleViolation):
        alert_service.list_alerts("urgent")
