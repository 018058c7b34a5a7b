import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

import models  # noqa: F401
from database import Base, SessionLocal, engine
from models.alert import Alert, AlertKind
from models.client import Client
from models.medicine import Medicine
from models.users import User
from services.alert_service import AlertService
from services.audit_service import AuditSink
from services.medicine_service import MedicineService
from services.sales_service import SalesService
from services.stock_service import StockService
from utils.clock import FixedClock

TODAY = date(2026, 10, 19)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 19, 10, 0, 0))


@pytest.fixture
def audit(clock):
    return AuditSink(SessionLocal, clock=clock)


@pytest.fixture
def alert_service(db, clock):
    return AlertService(db, low_stock_threshold=10, expiry_warning_days=30, clock=clock)


@pytest.fixture
def stock_service(db, alert_service, audit, clock):
    return StockService(db, alert_service, audit=audit, clock=clock)


@pytest.fixture
def sales_service(db, stock_service, alert_service, audit, clock):
    return SalesService(db, stock_service, alert_service, audit=audit, clock=clock)


@pytest.fixture
def medicine_service(db, stock_service, alert_service, audit, clock):
    return MedicineService(db, stock_service, alert_service, audit=audit, clock=clock)


@pytest.fixture
def make_medicine(db):
    """Insert a medicine row directly, without running any alert pass."""
    counter = {"n": 0}

    def _make(name=None, quantity=50, price="10.00", expiry_date=None, active=True):
        counter["n"] += 1
        medicine = Medicine(
            name=name or f"Medicine {counter['n']}",
            price=Decimal(price),
            quantity=quantity,
            expiry_date=expiry_date,
            active=active,
            images=[],
        )
        db.add(medicine)
        db.commit()
        db.refresh(medicine)
        return medicine

    return _make


@pytest.fixture
def make_client(db):
    counter = {"n": 0}

    def _make(name=None, birth_date=date(1990, 5, 17)):
        counter["n"] += 1
        n = counter["n"]
        client = Client(
            name=name or f"Client {n}",
            cpf=f"{n:03d}.456.789-{n % 100:02d}",
            email=f"client{n}@example.com",
            birth_date=birth_date,
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    return _make


@pytest.fixture
def seller(db):
    user = User(name="Maria Vendedora", email="maria@farmacia.com", hashed_password="not-used", role="VENDEDOR", is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"sub": user.email, "uid": user.id, "name": user.name, "role": user.role}


def unread_alerts(db, medicine_id=None, kind=None):
    db.expire_all()
    query = db.query(Alert).filter(Alert.read.is_(False))
    if medicine_id is not None:
        query = query.filter(Alert.medicine_id == medicine_id)
    if kind is not None:
        query = query.filter(Alert.kind == kind)
    return query.all()


def days_from_today(days):
    return TODAY + timedelta(days=days)


__all__ = ["AlertKind", "TODAY", "days_from_today", "unread_alerts"]
