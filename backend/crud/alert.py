from typing import List, Optional
from sqlalchemy.orm import Session
from models.alert import Alert, AlertKind


def get_alert(db: Session, alert_id: int) -> Optional[Alert]:
    return db.query(Alert).filter(Alert.id == alert_id).first()


def save_alert(db: Session, alert: Alert) -> Alert:
    db.add(alert)
    return alert


def delete_alert(db: Session, alert: Alert) -> None:
    db.delete(alert)


def find_all_alerts(db: Session) -> List[Alert]:
    return db.query(Alert).order_by(Alert.id).all()


def find_alerts_by_medicine(db: Session, medicine_id: int) -> List[Alert]:
    return db.query(Alert).filter(Alert.medicine_id == medicine_id).order_by(Alert.id).all()


def find_unread_alerts_by_kind(db: Session, kind: AlertKind) -> List[Alert]:
    return db.query(Alert).filter(Alert.kind == kind, Alert.read.is_(False)).order_by(Alert.created_at, Alert.id).all()


def find_unread_alerts_by_medicine_and_kind(db: Session, medicine_id: int, kind: AlertKind) -> List[Alert]:
    return db.query(Alert).filter(
        Alert.medicine_id == medicine_id,
        Alert.kind == kind,
        Alert.read.is_(False),
    ).order_by(Alert.created_at, Alert.id).all()


def find_all_unread_alerts(db: Session) -> List[Alert]:
    return db.query(Alert).filter(Alert.read.is_(False)).order_by(Alert.id).all()


def count_unread_alerts(db: Session) -> int:
    return db.query(Alert).filter(Alert.read.is_(False)).count()
