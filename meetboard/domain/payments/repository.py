"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import User
from ...models_project import Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_payments_for_user(db: Session, user: User) -> list[Payment]:
        column = Payment.client_id if user.is_client else Payment.freelancer_id
        return (
            db.query(Payment)
            .filter(column == user.id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    def get_by_payment_intent(db: Session, payment_intent_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.stripe_payment_intent_id == payment_intent_id).first()

    @staticmethod
    def get_by_charge_or_intent(db: Session, charge_id: Optional[str], payment_intent_id: Optional[str]) -> Optional[Payment]:
        conditions = []
        if charge_id:
            conditions.append(Payment.stripe_charge_id == charge_id)
        if payment_intent_id:
            conditions.append(Payment.stripe_payment_intent_id == payment_intent_id)
        if not conditions:
            return None
        return db.query(Payment).filter(or_(*conditions)).first()

    @staticmethod
    def get_by_paypal_order(db: Session, order_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.paypal_order_id == order_id).first()

    @staticmethod
    def get_escrowed_for_milestone(db: Session, milestone_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.milestone_id == milestone_id, Payment.status.in_(("ESCROWED", "RELEASED")))
            .first()
        )

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment
