"""Tests for the order status state machine."""

import pytest

from storefront.domain import OrderStatus
from storefront.domain.exceptions import InvalidStateTransitionError
from storefront.domain.state_machines import validate_order_transition


class TestOrderStatus:
    """Tests for OrderStatus transitions."""

    def test_pending_can_confirm(self) -> None:
        assert OrderStatus.PENDING.can_transition_to(OrderStatus.CONFIRMED)

    def test_forward_moves_may_skip_states(self) -> None:
        """PENDING can jump straight to SHIPPED."""
        assert OrderStatus.PENDING.can_transition_to(OrderStatus.SHIPPED)
        assert OrderStatus.CONFIRMED.can_transition_to(OrderStatus.DELIVERED)

    def test_cannot_move_backwards(self) -> None:
        assert not OrderStatus.SHIPPED.can_transition_to(OrderStatus.PROCESSING)
        assert not OrderStatus.CONFIRMED.can_transition_to(OrderStatus.PENDING)

    def test_cannot_stay_in_place(self) -> None:
        assert not OrderStatus.PROCESSING.can_transition_to(OrderStatus.PROCESSING)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING],
    )
    def test_cancellable_before_shipping(self, status: OrderStatus) -> None:
        assert status.is_cancellable()
        assert status.can_transition_to(OrderStatus.CANCELLED)

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.SHIPPED,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.RETURNED,
            OrderStatus.REFUNDED,
        ],
    )
    def test_not_cancellable_after_shipping(self, status: OrderStatus) -> None:
        assert not status.is_cancellable()
        assert not status.can_transition_to(OrderStatus.CANCELLED)

    def test_returns_and_refunds_from_fulfilment_states(self) -> None:
        for status in (
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.OUT_FOR_DELIVERY,
        ):
            assert status.can_transition_to(OrderStatus.RETURNED)
            assert status.can_transition_to(OrderStatus.REFUNDED)

    def test_pending_cannot_be_refunded(self) -> None:
        assert not OrderStatus.PENDING.can_transition_to(OrderStatus.REFUNDED)

    def test_terminal_states(self) -> None:
        """DELIVERED, CANCELLED, RETURNED and REFUNDED have no way out."""
        for status in (
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.RETURNED,
            OrderStatus.REFUNDED,
        ):
            assert status.is_terminal()
            assert status.allowed_transitions() == []

    def test_allowed_transitions_are_in_lifecycle_order(self) -> None:
        assert OrderStatus.SHIPPED.allowed_transitions() == [
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
            OrderStatus.RETURNED,
            OrderStatus.REFUNDED,
        ]


class TestValidateOrderTransition:
    """Tests for validate_order_transition."""

    def test_valid_transition_passes(self) -> None:
        validate_order_transition("ORD-1", OrderStatus.PENDING, OrderStatus.CONFIRMED)

    def test_invalid_transition_raises_with_details(self) -> None:
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_order_transition("ORD-1", OrderStatus.DELIVERED, OrderStatus.SHIPPED)

        details = exc_info.value.details
        assert details["current_state"] == "delivered"
        assert details["target_state"] == "shipped"
        assert details["allowed_transitions"] == []
