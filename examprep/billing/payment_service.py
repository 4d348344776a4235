"""
PaymentService: orders and idempotent payment fulfillment.

Handles:
- Creating pending orders with a provider-facing reference
- Fulfilling an order once the provider confirms the charge
- Dispatching verified provider webhook events

Fulfillment guarantees:
- Idempotent per reference: an order already SUCCESSFUL is a no-op
- The order row is locked FOR UPDATE while it is fulfilled
- payment_transactions.order_id is unique, so a racing duplicate fails and rolls back
- Order, transaction and subscription are committed together or not at all
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from examprep.billing.intervals import calculate_end_date
from examprep.billing.webhook import CHARGE_SUCCESS_EVENT
from examprep.config.billing import MINOR_UNITS_PER_MAJOR, ORDER_REFERENCE_PREFIX, PAYMENT_CURRENCY
from examprep.entitlements.plan_resolver import get_owned_organization
from examprep.models.order import Order, OrderStatus, PaymentTransaction
from examprep.models.plan import Plan, PlanType
from examprep.models.subscription import Subscription
from examprep.models.user import User
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class PaymentServiceError(Exception):
    """Base exception for payment service errors."""
    pass


class PlanNotFoundError(PaymentServiceError):
    """Raised when the plan being purchased does not exist."""
    pass


class PaymentUserNotFoundError(PaymentServiceError):
    """Raised when the paying user does not exist."""
    pass


class FreePlanOrderError(PaymentServiceError):
    """Raised when an order is requested for a free plan."""
    pass


class OrderNotFoundError(PaymentServiceError):
    """Raised when no order matches a provider reference."""
    pass


class PaymentAmountMismatchError(PaymentServiceError):
    """Raised when the provider reports a different amount than the order."""

    def __init__(self, reference: str, expected_minor: int, received_minor: Any):
        self.reference = reference
        self.expected_minor = expected_minor
        self.received_minor = received_minor
        super().__init__(
            f"Payment amount mismatch for {reference}: expected {expected_minor}, received {received_minor}"
        )


class OrganizationNotFoundError(PaymentServiceError):
    """Raised when an organization plan is paid for by a user who owns no organization."""
    pass


def generate_reference() -> str:
    """Unique order reference shared with the payment provider."""
    return f"{ORDER_REFERENCE_PREFIX}{uuid.uuid4()}"


def to_minor_units(amount: int) -> int:
    return int(amount) * MINOR_UNITS_PER_MAJOR


# =============================================================================
# Service
# =============================================================================

class PaymentService:
    """Service for orders and payment fulfillment."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(self, user_id: str, plan_id: str) -> Order:
        """
        Create a PENDING order for a plan at the plan's current price.

        Raises:
            PaymentUserNotFoundError: If the user doesn't exist
            PlanNotFoundError: If the plan doesn't exist
            FreePlanOrderError: If the plan costs nothing
        """
        if self.session.get(User, user_id) is None:
            raise PaymentUserNotFoundError(f"User {user_id} not found")

        plan = self.session.get(Plan, plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        if plan.is_free:
            raise FreePlanOrderError(f"Plan {plan.name} is free and needs no payment")

        order = Order(
            user_id=user_id,
            plan_id=plan.id,
            amount=plan.price,
            currency=PAYMENT_CURRENCY,
            status=OrderStatus.PENDING,
            reference=generate_reference(),
        )
        self.session.add(order)
        self.session.commit()

        logger.info(
            "Created order",
            extra={
                "order_id": order.id,
                "reference": order.reference,
                "user_id": user_id,
                "plan_id": plan.id,
                "amount": order.amount,
            }
        )
        return order

    def get_order_by_reference(self, reference: str) -> Optional[Order]:
        return self.session.query(Order).filter(Order.reference == reference).first()

    # =========================================================================
    # Fulfillment
    # =========================================================================

    def fulfill_order(
        self,
        reference: str,
        payment_data: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Mark an order paid and grant its plan.

        Args:
            reference: Order reference echoed by the provider
            payment_data: Provider charge data; "amount" is in minor units,
                "id" is the provider's transaction id
            now: Fulfillment time (defaults to the current UTC time)

        Returns:
            The fulfilled (or already fulfilled) order

        Raises:
            OrderNotFoundError: If no order has this reference
            PaymentAmountMismatchError: If the paid amount differs (order marked FAILED)
            OrganizationNotFoundError: If an organization plan payer owns no organization
        """
        paid_at = as_utc(now) if now else utcnow()

        order = (
            self.session.query(Order)
            .filter(Order.reference == reference)
            .with_for_update()
            .first()
        )
        if order is None:
            logger.error("Order not found for reference", extra={"reference": reference})
            raise OrderNotFoundError(f"Order not found for reference: {reference}")

        if order.status == OrderStatus.SUCCESSFUL:
            logger.info("Order already fulfilled, skipping", extra={"reference": reference})
            return order

        expected_minor = to_minor_units(order.amount)
        received_minor = _parse_minor_amount(payment_data.get("amount"))
        if received_minor != expected_minor:
            order.status = OrderStatus.FAILED
            self.session.commit()
            logger.error(
                "Payment amount mismatch, order marked FAILED",
                extra={
                    "reference": reference,
                    "expected_minor": expected_minor,
                    "received_minor": payment_data.get("amount"),
                }
            )
            raise PaymentAmountMismatchError(reference, expected_minor, payment_data.get("amount"))

        try:
            order.status = OrderStatus.SUCCESSFUL
            provider_id = payment_data.get("id")
            self.session.add(
                PaymentTransaction(
                    order_id=order.id,
                    amount=order.amount,
                    currency=order.currency,
                    status="success",
                    provider="PAYSTACK",
                    provider_ref=str(provider_id) if provider_id is not None else None,
                    payment_date=paid_at,
                )
            )
            subscription = self._upsert_subscription(order, paid_at)
            self.session.flush()
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            existing = self.get_order_by_reference(reference)
            if existing is not None and existing.status == OrderStatus.SUCCESSFUL:
                logger.info("Concurrent fulfillment already committed", extra={"reference": reference})
                return existing
            raise
        except Exception:
            self.session.rollback()
            logger.exception("Order fulfillment failed, rolled back", extra={"reference": reference})
            raise

        logger.info(
            "Order fulfilled",
            extra={
                "reference": reference,
                "order_id": order.id,
                "plan_id": order.plan_id,
                "subscription_id": subscription.id,
                "end_date": subscription.end_date.isoformat() if subscription.end_date else None,
            }
        )
        return order

    def _upsert_subscription(self, order: Order, start: datetime) -> Subscription:
        plan = order.plan
        end_date = calculate_end_date(plan.interval, start)

        if plan.type == PlanType.ORGANIZATION:
            organization = get_owned_organization(self.session, order.user_id)
            if organization is None:
                raise OrganizationNotFoundError(f"Organization not found for owner {order.user_id}")
            subscription = (
                self.session.query(Subscription)
                .filter(Subscription.organization_id == organization.id)
                .first()
            )
            if subscription is None:
                subscription = Subscription(organization_id=organization.id)
                self.session.add(subscription)
        else:
            subscription = (
                self.session.query(Subscription)
                .filter(Subscription.user_id == order.user_id)
                .first()
            )
            if subscription is None:
                subscription = Subscription(user_id=order.user_id)
                self.session.add(subscription)

        # Renewal restarts the period from the payment date
        subscription.plan_id = plan.id
        subscription.start_date = start
        subscription.end_date = end_date
        subscription.is_active = True
        return subscription

    # =========================================================================
    # Webhooks
    # =========================================================================

    def process_webhook_event(self, event: Dict[str, Any]) -> bool:
        """
        Handle a verified provider event.

        Returns:
            True if the event was acted upon, False if it was ignored
        """
        event_type = event.get("event")
        data = event.get("data") or {}

        if event_type != CHARGE_SUCCESS_EVENT:
            logger.info("Ignoring webhook event", extra={"event": event_type})
            return False

        reference = data.get("reference")
        if not reference:
            logger.warning("charge.success event without reference")
            return False

        logger.info("Processing successful payment", extra={"reference": reference})
        self.fulfill_order(reference, data)
        return True


def _parse_minor_amount(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
