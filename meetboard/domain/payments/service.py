"""Payment service - Stripe/PayPal checkouts, escrow holds and releases, Stripe event bookkeeping"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import User
from ...models_meeting import Meeting
from ...models_project import Dispute, Milestone, Payment, Project
from ...services import paypal_service, stripe_service
from ...services.notification_service import notify_payment_released, send_notification
from ..disputes.repository import DisputeRepository
from .repository import PaymentRepository
from .schemas import CheckoutRequest, EscrowCreate, EscrowRelease, ManualPaymentCreate, PaymentResponse

logger = logging.getLogger(__name__)


def to_payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        amount=payment.amount,
        currency=payment.currency,
        status=payment.status,
        paymentMethod=payment.payment_method,
        description=payment.description,
        projectId=payment.project_id,
        milestoneId=payment.milestone_id,
        meetingId=payment.meeting_id,
        clientId=payment.client_id,
        freelancerId=payment.freelancer_id,
        escrowedAt=payment.escrowed_at,
        releasedAt=payment.released_at,
        paidAt=payment.paid_at,
        createdAt=payment.created_at,
    )


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()

    def get_payments(self, user: User) -> list[Payment]:
        return self.repo.get_payments_for_user(self.db, user)

    def create_manual_payment(self, data: ManualPaymentCreate, user: User) -> Payment:
        meeting = self.db.query(Meeting).filter(Meeting.id == data.meetingId).first()
        if not meeting:
            raise HTTPException(status_code=404, detail="Meeting not found")
        if not meeting.is_participant(user.id):
            raise HTTPException(status_code=403, detail="Access denied")

        return self.repo.create_payment(
            self.db,
            meeting_id=meeting.id,
            client_id=meeting.client_id,
            freelancer_id=meeting.freelancer_id,
            amount=data.amount,
            description=data.description,
            status="PENDING",
            payment_method="MANUAL",
        )

    def _get_checkout_target(self, project_id: int, milestone_id: Optional[int], client: User) -> tuple[Project, Optional[Milestone]]:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
        if project.client_id != client.id:
            raise HTTPException(status_code=403, detail="You can only pay for your own projects")

        milestone = None
        if milestone_id is not None:
            milestone = (
                self.db.query(Milestone)
                .filter(Milestone.id == milestone_id, Milestone.project_id == project.id)
                .first()
            )
            if not milestone:
                raise HTTPException(status_code=404, detail="Milestone not found")
        return project, milestone

    # ========================================================================
    # STRIPE / PAYPAL CHECKOUT
    # ========================================================================

    def create_stripe_payment_intent(self, data: CheckoutRequest, client: User) -> dict:
        project, milestone = self._get_checkout_target(data.projectId, data.milestoneId, client)
        if not stripe_service.is_configured():
            raise HTTPException(status_code=500, detail="Stripe is not configured")

        description = data.description or f"Payment for {project.title}"
        try:
            intent = stripe_service.create_payment_intent(
                amount=data.amount,
                metadata={
                    "projectId": project.id,
                    "milestoneId": milestone.id if milestone else "",
                    "clientId": client.id,
                    "freelancerId": project.freelancer_id,
                },
                description=description,
                receipt_email=client.email or None,
            )
        except stripe_service.StripeServiceError as e:
            raise HTTPException(status_code=502, detail="Failed to create payment intent") from e

        payment = self.repo.create_payment(
            self.db,
            project_id=project.id,
            milestone_id=milestone.id if milestone else None,
            client_id=client.id,
            freelancer_id=project.freelancer_id,
            amount=data.amount,
            description=description,
            status="PENDING",
            payment_method="STRIPE",
            stripe_payment_intent_id=intent.id,
        )
        return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id, "paymentId": payment.id}

    async def create_paypal_order(self, data: CheckoutRequest, client: User) -> dict:
        project, milestone = self._get_checkout_target(data.projectId, data.milestoneId, client)
        if not paypal_service.is_configured():
            raise HTTPException(status_code=500, detail="PayPal is not configured")

        description = data.description or f"Payment for {project.title}"
        try:
            order = await paypal_service.create_order(
                amount=data.amount,
                description=description,
                custom_id=f"project-{project.id}",
                return_url=f"{FRONTEND_URL}/dashboard/payments?paypal=success",
                cancel_url=f"{FRONTEND_URL}/dashboard/payments?paypal=cancelled",
            )
        except paypal_service.PayPalServiceError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        payment = self.repo.create_payment(
            self.db,
            project_id=project.id,
            milestone_id=milestone.id if milestone else None,
            client_id=client.id,
            freelancer_id=project.freelancer_id,
            amount=data.amount,
            description=description,
            status="PENDING",
            payment_method="PAYPAL",
            paypal_order_id=order["id"],
        )
        return {"orderId": order["id"], "approvalUrl": order["approvalUrl"], "paymentId": payment.id}

    async def capture_paypal_order(self, order_id: str, client: User) -> Payment:
        payment = self.repo.get_by_paypal_order(self.db, order_id)
        if not payment or payment.client_id != client.id:
            raise HTTPException(status_code=404, detail="Payment not found")
        if payment.status == "COMPLETED":
            return payment
        if payment.status != "PENDING":
            raise HTTPException(status_code=400, detail=f"Payment is {payment.status}")

        try:
            result = await paypal_service.capture_order(order_id)
        except paypal_service.PayPalServiceError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        if result.get("status") != "COMPLETED":
            raise HTTPException(status_code=400, detail="PayPal order was not completed")

        payment.status = "COMPLETED"
        payment.paid_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(payment)

        await send_notification(
            self.db,
            payment.freelancer,
            title="Payment Received!",
            message=f"You received ${payment.amount:,.2f} via PayPal",
            notification_type="payment_received",
        )
        return payment

    # ========================================================================
    # ESCROW
    # ========================================================================

    async def create_escrow(self, data: EscrowCreate, client: User) -> tuple[Payment, Optional[str]]:
        """
        Hold milestone funds with a manual-capture PaymentIntent.

        Returns the payment and, when the card needs customer action (3DS),
        the client secret to finish it with. Such payments stay PENDING until
        the amount_capturable_updated webhook reports the hold.
        """
        project = (
            self.db.query(Project)
            .filter(Project.id == data.projectId, Project.client_id == client.id)
            .first()
        )
        milestone = None
        if project:
            milestone = (
                self.db.query(Milestone)
                .filter(Milestone.id == data.milestoneId, Milestone.project_id == project.id)
                .first()
            )
        if not project or not milestone:
            raise HTTPException(status_code=404, detail="Project or milestone not found")
        if self.repo.get_escrowed_for_milestone(self.db, milestone.id):
            raise HTTPException(status_code=400, detail="This milestone is already funded")
        if not stripe_service.is_configured():
            raise HTTPException(status_code=500, detail="Stripe is not configured")

        description = data.description or f"Escrow for milestone: {milestone.title}"
        try:
            intent = stripe_service.create_escrow_intent(
                amount=data.amount,
                payment_method_id=data.paymentMethodId,
                metadata={
                    "projectId": project.id,
                    "milestoneId": milestone.id,
                    "clientId": client.id,
                    "freelancerId": project.freelancer_id,
                    "type": "escrow_payment",
                },
                description=description,
            )
        except stripe_service.StripeServiceError as e:
            raise HTTPException(status_code=502, detail="Failed to place escrow hold") from e

        held = intent.status == "requires_capture"
        payment = Payment(
            project_id=project.id,
            milestone_id=milestone.id,
            client_id=client.id,
            freelancer_id=project.freelancer_id,
            amount=data.amount,
            description=description,
            status="ESCROWED" if held else "PENDING",
            payment_method="STRIPE",
            stripe_payment_intent_id=intent.id,
            escrowed_at=datetime.utcnow() if held else None,
        )
        self.db.add(payment)
        if not held:
            self.db.commit()
            self.db.refresh(payment)
            logger.info(f"🔐 Escrow for milestone {milestone.id} awaits customer action ({intent.status})")
            return payment, intent.client_secret

        milestone.status = "IN_PROGRESS"
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"🔒 Escrowed ${data.amount:,.2f} for milestone {milestone.id} (payment {payment.id})")
        await self._notify_milestone_funded(payment)
        return payment, None

    async def _notify_milestone_funded(self, payment: Payment) -> None:
        await send_notification(
            self.db,
            payment.freelancer,
            title="Milestone Funded",
            message=f'${payment.amount:,.2f} is held in escrow for "{payment.milestone.title}". You can start work.',
            notification_type="escrow_funded",
        )

    async def release_escrow(self, data: EscrowRelease, client: User) -> Payment:
        payment = self.repo.get_payment_by_id(self.db, data.paymentId)
        if not payment or payment.client_id != client.id or payment.status != "ESCROWED":
            raise HTTPException(status_code=404, detail="Escrowed payment not found")
        if data.milestoneId is not None and data.milestoneId != payment.milestone_id:
            raise HTTPException(status_code=400, detail="Milestone does not match this payment")

        milestone = payment.milestone
        if not milestone or milestone.status != "COMPLETED":
            raise HTTPException(status_code=400, detail="Milestone must be completed before releasing funds")

        if payment.stripe_payment_intent_id:
            try:
                stripe_service.capture_payment_intent(payment.stripe_payment_intent_id)
            except stripe_service.StripeServiceError as e:
                raise HTTPException(status_code=502, detail="Failed to capture escrowed funds") from e

        payment.status = "RELEASED"
        payment.released_at = datetime.utcnow()
        if data.feedback and data.feedback.strip():
            payment.description = f"{payment.description or ''}\n\nClient feedback: {data.feedback.strip()}".lstrip()
        milestone.status = "APPROVED"
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💸 Released payment {payment.id} for milestone {milestone.id}")

        await notify_payment_released(self.db, payment)
        return payment

    # ========================================================================
    # STRIPE WEBHOOK EVENTS
    # ========================================================================

    async def handle_stripe_event(self, event: dict) -> None:
        """Mirror provider state into payments; every handler is safe to replay"""
        event_type = event.get("type")
        obj = event.get("data", {}).get("object", {})

        handlers = {
            "payment_intent.amount_capturable_updated": self._on_intent_authorized,
            "payment_intent.succeeded": self._on_intent_succeeded,
            "payment_intent.payment_failed": self._on_intent_failed,
            "payment_intent.canceled": self._on_intent_canceled,
            "charge.dispute.created": self._on_dispute_created,
        }
        handler = handlers.get(event_type)
        if not handler:
            logger.info(f"ℹ️ Unhandled Stripe event type: {event_type}")
            return
        await handler(obj)

    def _payment_for_intent(self, intent: dict) -> Optional[Payment]:
        payment = self.repo.get_by_payment_intent(self.db, intent.get("id"))
        if not payment:
            logger.warning(f"⚠️ No payment found for PaymentIntent {intent.get('id')}")
        return payment

    async def _on_intent_authorized(self, intent: dict) -> None:
        payment = self._payment_for_intent(intent)
        if not payment or payment.status != "PENDING":
            return
        payment.status = "ESCROWED"
        payment.escrowed_at = datetime.utcnow()
        milestone = payment.milestone
        if milestone and milestone.status == "PENDING":
            milestone.status = "IN_PROGRESS"
        self.db.commit()
        logger.info(f"🔒 Escrow hold confirmed for payment {payment.id}")

        if milestone:
            await self._notify_milestone_funded(payment)

    async def _on_intent_succeeded(self, intent: dict) -> None:
        payment = self._payment_for_intent(intent)
        if not payment:
            return
        if intent.get("latest_charge"):
            payment.stripe_charge_id = intent["latest_charge"]
        if payment.status != "PENDING":
            # Escrow captures are bookkept by the release flow
            self.db.commit()
            return

        payment.status = "COMPLETED"
        payment.paid_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"✅ Payment {payment.id} completed")

        await send_notification(
            self.db,
            payment.client,
            title="Payment Successful!",
            message=f"Your payment of ${payment.amount:,.2f} was successful",
            notification_type="payment_success",
        )
        await send_notification(
            self.db,
            payment.freelancer,
            title="Payment Received!",
            message=f"A payment of ${payment.amount:,.2f} has been received and is held in escrow",
            notification_type="payment_received",
        )

    async def _on_intent_failed(self, intent: dict) -> None:
        payment = self._payment_for_intent(intent)
        if not payment or payment.status == "FAILED":
            return
        payment.status = "FAILED"
        self.db.commit()

        reason = (intent.get("last_payment_error") or {}).get("message") or "Your payment could not be processed"
        await send_notification(
            self.db,
            payment.client,
            title="Payment Failed",
            message=f"Payment of ${payment.amount:,.2f} failed: {reason}",
            notification_type="payment_failed",
        )

    async def _on_intent_canceled(self, intent: dict) -> None:
        payment = self._payment_for_intent(intent)
        if not payment or payment.status == "CANCELLED":
            return
        was_escrowed = payment.status == "ESCROWED"
        payment.status = "CANCELLED"
        if was_escrowed and payment.milestone and payment.milestone.status == "IN_PROGRESS":
            # An expired hold leaves the milestone unfunded again
            payment.milestone.status = "PENDING"
        self.db.commit()

        await send_notification(
            self.db,
            payment.client,
            title="Payment Cancelled",
            message=f"Payment of ${payment.amount:,.2f} was cancelled",
            notification_type="payment_cancelled",
        )

    async def _on_dispute_created(self, stripe_dispute: dict) -> None:
        dispute_id = stripe_dispute.get("id")
        if self.db.query(Dispute).filter(Dispute.stripe_dispute_id == dispute_id).first():
            logger.info(f"ℹ️ Stripe dispute {dispute_id} already recorded")
            return

        payment = self.repo.get_by_charge_or_intent(
            self.db, stripe_dispute.get("charge"), stripe_dispute.get("payment_intent")
        )
        if not payment or not payment.project:
            logger.warning(f"⚠️ Stripe dispute {dispute_id} does not match a project payment")
            return

        # One open dispute per project: a chargeback joins the one already raised
        existing = DisputeRepository.get_open_dispute(self.db, payment.project_id)
        if existing:
            if existing.stripe_dispute_id:
                logger.warning(
                    f"⚠️ Stripe dispute {dispute_id} on project {payment.project_id} while "
                    f"{existing.stripe_dispute_id} is still open"
                )
                return
            existing.stripe_dispute_id = dispute_id
            existing.payment_id = payment.id
            existing.amount = (stripe_dispute.get("amount") or 0) / 100
            self.db.commit()
            logger.warning(f"⚠️ Stripe dispute {dispute_id} attached to open dispute {existing.id}")
            return

        dispute = Dispute(
            project_id=payment.project_id,
            payment_id=payment.id,
            stripe_dispute_id=dispute_id,
            reason=stripe_dispute.get("reason") or "unknown",
            description="Chargeback opened with the card issuer",
            evidence=stripe_dispute.get("evidence"),
            amount=(stripe_dispute.get("amount") or 0) / 100,
            status="OPEN",
        )
        self.db.add(dispute)
        payment.project.status = "DISPUTED"
        self.db.commit()
        logger.warning(f"⚠️ Stripe dispute {dispute_id} opened on payment {payment.id}")

        for user in (payment.client, payment.freelancer):
            await send_notification(
                self.db,
                user,
                title="Payment Dispute Opened",
                message=f'A chargeback was opened for ${dispute.amount:,.2f} on "{payment.project.title}"',
                notification_type="payment_dispute",
            )
