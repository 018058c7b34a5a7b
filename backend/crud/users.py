from sqlalchemy.orm import Session
from sqlalchemy import func
from models.users import User


def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def get_users(db: Session):
    return db.query(User).order_by(func.lower(User.name)).all()


def count_users(db: Session) -> int:
    return db.query(User).count()


def create_user(db: Session, name: str, email: str, hashed_password: str, role: str):
    db_user = User(name=name, email=email.lower(), hashed_password=hashed_password, role=role, is_active=True)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
