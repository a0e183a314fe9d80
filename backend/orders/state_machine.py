"""
Order lifecycle state machine.

    PENDING    -> APPROVED | CANCELLED
    APPROVED   -> IN_TRANSIT | CANCELLED
    IN_TRANSIT -> SHIPPED | CANCELLED
    SHIPPED    -> DELIVERED
    DELIVERED  -> (terminal)
    CANCELLED  -> (terminal)
"""

from core.exceptions import InvalidTransition
from .models import OrderStatus

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.APPROVED, OrderStatus.CANCELLED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED}),
    OrderStatus.IN_TRANSIT: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, allowed in ALLOWED_TRANSITIONS.items() if not allowed)


def is_allowed(current, requested) -> bool:
    return OrderStatus(requested) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def validate_transition(current, requested):
    """
    Return ``requested`` as an OrderStatus if ``current -> requested`` is an
    edge of the lifecycle, otherwise raise InvalidTransition. Pure; no I/O.
    """
    current = OrderStatus(current)
    requested = OrderStatus(requested)
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current, requested)
    return requested
