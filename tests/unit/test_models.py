"""
Unit Tests for OKEx Wire Models

These tests verify that:
- Order fields map to their wire names and back without loss
- Unset optional fields are omitted from the wire
- Acknowledgements are recognized only when they carry "event" or "op"
- Error acknowledgements convert to VenueError with every extra field kept
- Trade accessors convert wire strings to Decimal and datetime

Run with:
    pytest tests/unit/test_models.py -v
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.errors import NumberParseError, TimestampError, VenueError
from exchanges.okex import (
    AmendOrder,
    CancelOrder,
    Order,
    OrderSide,
    OrderType,
    PositionSide,
    Trade,
    TradeMode,
    TradesPush,
    WebsocketResponse,
    WsRequest,
)


# ============================================
# Tests for Order Wire Format
# ============================================

class TestOrderWireFormat:
    """Tests for Order serialization"""

    def test_round_trip_preserves_every_field(self):
        """Verify serialize -> parse reproduces the original order exactly"""
        order = Order(
            symbol="BTC-USDT-SWAP",
            trade_mode=TradeMode.ISOLATED,
            currency="USDT",
            client_order_id="abc123",
            tag="t1",
            side=OrderSide.SELL,
            position_side=PositionSide.LONG,
            order_type=OrderType.IOC,
            qty="0.010",
            price="50000.5",
            reduce_only=False,
            target_currency="base_ccy",
        )
        request = WsRequest[Order](id="1", op="order", args=[order])

        wire = request.model_dump_json(by_alias=True, exclude_none=True)
        parsed = WsRequest[Order].model_validate_json(wire)

        assert parsed.args[0] == order
        assert parsed.id == "1"
        assert parsed.op == "order"

    def test_round_trip_keeps_absent_fields_absent(self):
        """Verify unset optional fields stay unset after a round trip"""
        order = Order(symbol="BTC-USDT", order_type=OrderType.MARKET, qty="5")

        parsed = Order.model_validate(order.to_wire())

        assert parsed == order
        assert parsed.price is None
        assert parsed.reduce_only is None
        assert parsed.position_side is None

    def test_wire_names(self):
        """Verify Python names are renamed to the venue's field names"""
        wire = Order(
            symbol="BTC-USDT",
            order_type=OrderType.LIMIT,
            qty="1",
            price="2",
            reduce_only=True,
            client_order_id="x",
            target_currency="quote_ccy",
            currency="USDT",
        ).to_wire()

        assert set(wire) == {"instId", "tdMode", "side", "ordType", "sz", "px", "reduceOnly", "clOrdId", "tgtCcy", "ccy"}

    def test_defaults_are_cross_and_buy(self):
        """Verify default trade mode and side"""
        order = Order(symbol="BTC-USDT", order_type=OrderType.LIMIT, qty="1", price="1")

        assert order.trade_mode is TradeMode.CROSS
        assert order.side is OrderSide.BUY

    def test_parse_from_wire_names(self):
        """Verify orders can be built from wire dictionaries"""
        order = Order.model_validate({"instId": "ETH-USDT", "tdMode": "cash", "side": "sell", "ordType": "fok", "sz": "3"})

        assert order.symbol == "ETH-USDT"
        assert order.trade_mode is TradeMode.CASH
        assert order.order_type is OrderType.FOK

    def test_quantity_is_required(self):
        """Verify an order without quantity is invalid"""
        with pytest.raises(ValidationError):
            Order(symbol="BTC-USDT", order_type=OrderType.LIMIT)

    def test_known_position_side_parses_to_enum(self):
        order = Order.model_validate({"instId": "BTC-USDT-SWAP", "ordType": "limit", "sz": "1", "posSide": "short"})

        assert order.position_side is PositionSide.SHORT

    def test_unknown_position_side_passes_through(self):
        """Verify a posSide value outside the known set is kept as text"""
        order = Order.model_validate({"instId": "BTC-USDT-SWAP", "ordType": "limit", "sz": "1", "posSide": "hedge"})

        assert order.position_side == "hedge"
        assert order.to_wire()["posSide"] == "hedge"


class TestCancelAndAmendModels:
    """Tests for reference validation on cancel/amend arguments"""

    def test_cancel_requires_an_id(self):
        with pytest.raises(ValidationError):
            CancelOrder(symbol="BTC-USDT")

    def test_cancel_by_client_id(self):
        assert CancelOrder(symbol="BTC-USDT", client_order_id="c1").to_wire() == {"instId": "BTC-USDT", "clOrdId": "c1"}

    def test_amend_requires_new_value(self):
        with pytest.raises(ValidationError):
            AmendOrder(symbol="BTC-USDT", order_id="1")


# ============================================
# Tests for Acknowledgements
# ============================================

class TestWebsocketResponse:
    """Tests for acknowledgement recognition and error conversion"""

    def test_subscribe_ack(self):
        """Verify subscribe acks parse and are not errors"""
        response = WebsocketResponse.model_validate_json(
            '{"event":"subscribe","arg":{"channel":"trades","instId":"BTC-USDT"},"connId":"a4d3ae55"}'
        )

        assert response.event == "subscribe"
        assert response.is_error is False
        assert response.to_error() is None

    def test_order_ack_success(self):
        """Verify an order ack with code 0 is not an error"""
        response = WebsocketResponse.model_validate(
            {"id": "1512", "op": "order", "code": "0", "msg": "", "data": [{"ordId": "12345689", "sCode": "0"}]}
        )

        assert response.op == "order"
        assert response.is_error is False

    def test_message_without_event_or_op_is_not_an_ack(self):
        """Verify arbitrary objects are rejected"""
        with pytest.raises(ValidationError):
            WebsocketResponse.model_validate({"arg": {"channel": "trades"}, "data": []})

    def test_numeric_code_is_accepted(self):
        """Verify numeric codes are normalized to text"""
        response = WebsocketResponse.model_validate({"event": "error", "code": 60012, "msg": "Invalid request"})

        assert response.code == "60012"

    def test_error_ack_converts_to_venue_error(self):
        """Verify code, message and extra fields survive conversion"""
        response = WebsocketResponse.model_validate({
            "id": "1512",
            "op": "order",
            "code": "1",
            "msg": "Operation failed.",
            "data": [{"sCode": "51008", "sMsg": "Order failed. Insufficient balance"}],
            "inTime": "1695190491421339",
        })

        error = response.to_error()

        assert isinstance(error, VenueError)
        assert error.code == 1
        assert error.msg == "Operation failed."
        assert error.extra["id"] == "1512"
        assert error.extra["data"][0]["sCode"] == "51008"
        assert error.extra["inTime"] == "1695190491421339"
        assert str(error) == "code: 1, msg: Operation failed."


# ============================================
# Tests for Push Events
# ============================================

class TestTradesPush:
    """Tests for the example trades push event"""

    PAYLOAD = {
        "arg": {"channel": "trades", "instId": "BTC-USDT"},
        "data": [{
            "instId": "BTC-USDT",
            "tradeId": "130639474",
            "px": "42219.9",
            "sz": "0.12060306",
            "side": "sell",
            "ts": "1630048897897",
            "count": "3",
        }],
    }

    def test_parse_trades_push(self):
        """Verify push messages decode with typed accessors"""
        push = TradesPush.model_validate(self.PAYLOAD)
        trade = push.data[0]

        assert push.arg.inst_id == "BTC-USDT"
        assert trade.side is OrderSide.SELL
        assert trade.price == Decimal("42219.9")
        assert trade.size == Decimal("0.12060306")
        assert trade.timestamp == datetime(2021, 8, 27, 7, 21, 37, 897000, tzinfo=timezone.utc)

    def test_malformed_price_raises_number_parse_error(self):
        trade = Trade(instId="BTC-USDT", tradeId="1", px="abc", sz="1", side="buy", ts="1630048897897")

        with pytest.raises(NumberParseError):
            trade.price

    def test_malformed_timestamp_raises_timestamp_error(self):
        trade = Trade(instId="BTC-USDT", tradeId="1", px="1", sz="1", side="buy", ts="yesterday")

        with pytest.raises(TimestampError):
            trade.timestamp
