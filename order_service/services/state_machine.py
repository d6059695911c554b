"""
Order lifecycle state machine

Every status write in the service goes through ``transition`` so that the
allowed moves live in one adjacency table per axis.
"""
from enum import Enum
from typing import Dict, FrozenSet, Union

from order_service.errors import InvalidTransition


class OrderStatus(str, Enum):
    """Product order status"""
    AWAITING_PAYMENT = "awaiting_payment"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class CustomOrderStatus(str, Enum):
    """Custom order status"""
    PENDING = "pending"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DeliveryStatus(str, Enum):
    """Custom order delivery status"""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"


State = Union[OrderStatus, CustomOrderStatus, DeliveryStatus]


ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.AWAITING_PAYMENT: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CUSTOM_ORDER_TRANSITIONS: Dict[CustomOrderStatus, FrozenSet[CustomOrderStatus]] = {
    CustomOrderStatus.PENDING: frozenset({CustomOrderStatus.IN_PROGRESS, CustomOrderStatus.CANCELLED}),
    CustomOrderStatus.IN_PROGRESS: frozenset({CustomOrderStatus.COMPLETED, CustomOrderStatus.CANCELLED}),
    CustomOrderStatus.COMPLETED: frozenset(),
    CustomOrderStatus.CANCELLED: frozenset(),
}

DELIVERY_TRANSITIONS: Dict[DeliveryStatus, FrozenSet[DeliveryStatus]] = {
    DeliveryStatus.NOT_STARTED: frozenset({DeliveryStatus.IN_PROGRESS}),
    DeliveryStatus.IN_PROGRESS: frozenset({DeliveryStatus.DELIVERED}),
    DeliveryStatus.DELIVERED: frozenset(),
}

# Custom order statuses that open the delivery axis
DELIVERY_READY = frozenset({CustomOrderStatus.IN_PROGRESS, CustomOrderStatus.COMPLETED})

_TABLES = {
    OrderStatus: ORDER_TRANSITIONS,
    CustomOrderStatus: CUSTOM_ORDER_TRANSITIONS,
    DeliveryStatus: DELIVERY_TRANSITIONS,
}

LABELS = {
    OrderStatus.AWAITING_PAYMENT: "Awaiting payment",
    OrderStatus.PROCESSING: "Payment confirmed, your order is being processed",
    OrderStatus.SHIPPED: "Shipped and on its way",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
    CustomOrderStatus.PENDING: "Pending review",
    CustomOrderStatus.IN_PROGRESS: "In progress",
    CustomOrderStatus.COMPLETED: "Completed",
    CustomOrderStatus.CANCELLED: "Cancelled",
    DeliveryStatus.NOT_STARTED: "Delivery not started",
    DeliveryStatus.IN_PROGRESS: "Out for delivery",
    DeliveryStatus.DELIVERED: "Delivered",
}


def allowed_next_states(current: State) -> FrozenSet:
    """Statuses reachable in one step from ``current``"""
    return _TABLES[type(current)][current]


def is_terminal(current: State) -> bool:
    return not allowed_next_states(current)


def transition(current: State, target: State) -> State:
    """
    Validate a single status move

    Args:
        current: Status the entity is in now
        target: Requested status (same enum type as ``current``)

    Returns:
        ``target`` when the move is allowed

    Raises:
        InvalidTransition: If ``target`` is not adjacent to ``current``
    """
    if type(current) is not type(target):
        raise InvalidTransition(current.value, str(getattr(target, "value", target)), "status axis mismatch")
    if target not in allowed_next_states(current):
        reason = "status is final" if is_terminal(current) else None
        raise InvalidTransition(current.value, target.value, reason)
    return target


def check_delivery_gate(status: CustomOrderStatus, delivery_target: DeliveryStatus) -> None:
    """
    Delivery may only leave ``not_started`` once the custom order is in
    progress or completed.

    Raises:
        InvalidTransition: If the gate is closed
    """
    if delivery_target != DeliveryStatus.NOT_STARTED and status not in DELIVERY_READY:
        raise InvalidTransition(
            status.value,
            delivery_target.value,
            "delivery cannot start before the order is in progress"
        )


def label(status: State) -> str:
    """Human-readable description used in notifications"""
    return LABELS[status]
