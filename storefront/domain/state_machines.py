"""State machines for domain entities.

Deterministic state machine that defines valid order status transitions.
The state machine enforces business rules about which status changes an
order may go through and when it may still be cancelled.
"""

from enum import Enum

from storefront.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Order State Machine
# ============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle states.

    State diagram:
        PENDING ──────────────────────────────────────► CANCELLED
          │                                                ▲
          │ confirm                                        │
          ▼                                                │
        CONFIRMED ─────────────────────────────────────►───┤
          │                                                │
          │ process                                        │
          ▼                                                │
        PROCESSING ────────────────────────────────────►───┘
          │
          │ ship
          ▼
        SHIPPED ─────────────┬─────────────► RETURNED
          │                  │
          │ dispatch         └─────────────► REFUNDED
          ▼
        OUT_FOR_DELIVERY
          │
          │ deliver
          ▼
        DELIVERED

    Forward moves along the main chain may skip states. RETURNED and
    REFUNDED are reachable from CONFIRMED through OUT_FOR_DELIVERY.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _ORDER_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["OrderStatus"]:
        """Get list of valid target states, in lifecycle order.

        Returns:
            List of states that can be transitioned to.
        """
        targets = _ORDER_TRANSITIONS.get(self, set())
        return [status for status in OrderStatus if status in targets]

    def is_cancellable(self) -> bool:
        """Check if order can still be cancelled.

        Returns:
            True if order has not yet left the warehouse.
        """
        return self in _CANCELLABLE

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state.

        Returns:
            True if no further transitions are possible.
        """
        return len(_ORDER_TRANSITIONS.get(self, set())) == 0


_MAIN_CHAIN: list[OrderStatus] = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]

_CANCELLABLE: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}
)

_AFTER_SALE_SOURCES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.OUT_FOR_DELIVERY,
    }
)


def _build_transitions() -> dict[OrderStatus, set[OrderStatus]]:
    transitions: dict[OrderStatus, set[OrderStatus]] = {status: set() for status in OrderStatus}
    for index, status in enumerate(_MAIN_CHAIN):
        transitions[status].update(_MAIN_CHAIN[index + 1 :])
    for status in _CANCELLABLE:
        transitions[status].add(OrderStatus.CANCELLED)
    for status in _AFTER_SALE_SOURCES:
        transitions[status].update({OrderStatus.RETURNED, OrderStatus.REFUNDED})
    return transitions


# Order state transitions (defined outside enum to avoid Enum restrictions)
_ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = _build_transitions()


# ============================================================================
# Transition Validators
# ============================================================================


def validate_order_transition(
    order_id: str,
    current_status: OrderStatus,
    target_status: OrderStatus,
) -> None:
    """Validate and raise if order state transition is invalid.

    Args:
        order_id: Order identifier for error message.
        current_status: Current order status.
        target_status: Target order status.

    Raises:
        InvalidStateTransitionError: If transition is not valid.
    """
    if not current_status.can_transition_to(target_status):
        raise InvalidStateTransitionError(
            entity_type="Order",
            entity_id=order_id,
            current_state=current_status.value,
            target_state=target_status.value,
            allowed_transitions=[s.value for s in current_status.allowed_transitions()],
        )
