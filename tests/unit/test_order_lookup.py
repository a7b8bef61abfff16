"""
Unit tests for OrderLookupService.
"""

from typing import Any, Dict, List

import pytest

from conftest import SAMPLE_ORDER
from order_relay.dal import OrderSource
from order_relay.handlers.utils.errors import InternalRelayError, OrderNotFoundError, UpstreamTimeoutError
from order_relay.logic.order_lookup import OrderLookupService
from order_relay.models.lookup import LookupStrategy


class StubOrderSource:
    """Order source returning canned envelopes and recording calls."""

    def __init__(self, by_id: Any = None, by_name: Any = None, error: Exception = None):
        self.by_id = by_id
        self.by_name = by_name
        self.error = error
        self.calls: List[tuple] = []

    def get_order_by_id(self, order_id: str) -> Dict[str, Any]:
        self.calls.append(("by_id", order_id))
        if self.error:
            raise self.error
        return self.by_id

    def find_orders_by_name(self, order_name: str) -> Dict[str, Any]:
        self.calls.append(("by_name", order_name))
        if self.error:
            raise self.error
        return self.by_name


def test_stub_satisfies_order_source_protocol():
    assert isinstance(StubOrderSource(), OrderSource)


class TestLookupById:
    """Test cases for the by_id strategy."""

    def test_returns_order_from_envelope_verbatim(self):
        source = StubOrderSource(by_id={"order": SAMPLE_ORDER})
        service = OrderLookupService(source, LookupStrategy.BY_ID)

        order = service.lookup("450789469")

        assert order == SAMPLE_ORDER
        assert list(order) == list(SAMPLE_ORDER)
        assert source.calls == [("by_id", "450789469")]

    @pytest.mark.parametrize("envelope", [{}, {"order": None}])
    def test_missing_order_is_not_found(self, envelope):
        service = OrderLookupService(StubOrderSource(by_id=envelope), LookupStrategy.BY_ID)

        with pytest.raises(OrderNotFoundError) as exc_info:
            service.lookup("999")

        assert exc_info.value.status_code == 404
        assert exc_info.value.order_id == "999"

    def test_empty_order_object_is_returned(self):
        service = OrderLookupService(StubOrderSource(by_id={"order": {}}), LookupStrategy.BY_ID)

        assert service.lookup("450789469") == {}

    def test_non_object_order_is_internal_error(self):
        service = OrderLookupService(StubOrderSource(by_id={"order": [SAMPLE_ORDER]}), LookupStrategy.BY_ID)

        with pytest.raises(InternalRelayError):
            service.lookup("450789469")


class TestLookupByNameFilter:
    """Test cases for the by_name_filter strategy."""

    def test_returns_first_match(self):
        second = {**SAMPLE_ORDER, "id": 1}
        source = StubOrderSource(by_name={"orders": [SAMPLE_ORDER, second]})
        service = OrderLookupService(source, LookupStrategy.BY_NAME_FILTER)

        order = service.lookup("#1001")

        assert order == SAMPLE_ORDER
        assert source.calls == [("by_name", "#1001")]

    @pytest.mark.parametrize("envelope", [{}, {"orders": []}, {"orders": None}])
    def test_no_matches_is_not_found(self, envelope):
        service = OrderLookupService(StubOrderSource(by_name=envelope), LookupStrategy.BY_NAME_FILTER)

        with pytest.raises(OrderNotFoundError):
            service.lookup("#9999")

    def test_non_list_orders_is_internal_error(self):
        service = OrderLookupService(StubOrderSource(by_name={"orders": SAMPLE_ORDER}), LookupStrategy.BY_NAME_FILTER)

        with pytest.raises(InternalRelayError):
            service.lookup("#1001")


def test_strategy_is_parsed_from_string():
    service = OrderLookupService(StubOrderSource(), "by_name_filter")

    assert service.strategy is LookupStrategy.BY_NAME_FILTER


def test_upstream_errors_propagate():
    source = StubOrderSource(error=UpstreamTimeoutError(10))
    service = OrderLookupService(source, LookupStrategy.BY_ID)

    with pytest.raises(UpstreamTimeoutError):
        service.lookup("450789469")
