"""
OKEx WebSocket Wire Models

Pydantic models for everything the OKEx v5 WebSocket API exchanges with us:

Outbound:
    - Order / CancelOrder / AmendOrder: trading command arguments
    - SubscriptionArg: channel subscription arguments
    - WsRequest[T]: the {"id", "op", "args"} envelope around any of the above

Inbound:
    - WebsocketResponse: protocol acknowledgement (subscribe/login/order acks,
      error events). Never forwarded to the consumer channel.
    - TradesPush / Trade: an example push event for the "trades" channel.
      Any model can be used as the event type of OkexWebSocketClient.

Field names follow Python conventions; aliases carry the wire names
(instId, tdMode, ordType, sz, px, ...). Optional fields that are unset are
omitted from the wire rather than sent as null, which keeps
serialize -> parse round trips exact.

Documentation:
    https://www.okx.com/docs-v5/en/#order-book-trading-trade-ws-place-order
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.errors import VenueError
from core.utils.numbers import parse_decimal
from core.utils.time import to_utc_datetime


# ============================================
# Enumerations
# ============================================

class TradeMode(str, Enum):
    """Margin mode of an order (tdMode)"""

    ISOLATED = "isolated"
    CROSS = "cross"
    CASH = "cash"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class PositionSide(str, Enum):
    """Position side (posSide); leave unset in net mode"""

    NET = "net"
    LONG = "long"
    SHORT = "short"


class OrderType(str, Enum):
    """Order type (ordType)"""

    MARKET = "market"
    LIMIT = "limit"
    POST_ONLY = "post_only"
    FOK = "fok"
    IOC = "ioc"
    OPTIMAL_LIMIT_IOC = "optimal_limit_ioc"


# ============================================
# Base Wire Model
# ============================================

class WireModel(BaseModel):
    """Base for outbound models: accepts both Python names and wire aliases"""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump with wire names, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================
# Trading Commands
# ============================================

class Order(WireModel):
    """
    Order placement arguments.

    Quantity and price are strings: the venue mandates decimal text so no
    float rounding ever reaches the wire. Price is required for limit orders;
    setting it correctly is the caller's responsibility.

    Example:
        >>> Order(symbol="BTC-USDT", side=OrderSide.BUY, order_type=OrderType.LIMIT,
        ...       qty="1", price="50000").to_wire()
        {'instId': 'BTC-USDT', 'tdMode': 'cross', 'side': 'buy', 'ordType': 'limit', 'sz': '1', 'px': '50000'}
    """

    symbol: str = Field(..., alias="instId")
    trade_mode: TradeMode = Field(default=TradeMode.CROSS, alias="tdMode")
    currency: Optional[str] = Field(default=None, alias="ccy")
    client_order_id: Optional[str] = Field(default=None, alias="clOrdId")
    tag: Optional[str] = None
    side: OrderSide = OrderSide.BUY
    # Unknown position sides pass through as text
    position_side: Optional[Union[PositionSide, str]] = Field(default=None, alias="posSide")
    order_type: OrderType = Field(..., alias="ordType")
    qty: str = Field(..., alias="sz")
    price: Optional[str] = Field(default=None, alias="px")
    reduce_only: Optional[bool] = Field(default=None, alias="reduceOnly")
    target_currency: Optional[str] = Field(default=None, alias="tgtCcy")

    @field_validator("position_side")
    @classmethod
    def known_position_side(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, PositionSide):
            try:
                return PositionSide(value)
            except ValueError:
                return value
        return value


class CancelOrder(WireModel):
    """Cancel arguments; either order_id or client_order_id must be set"""

    symbol: str = Field(..., alias="instId")
    order_id: Optional[str] = Field(default=None, alias="ordId")
    client_order_id: Optional[str] = Field(default=None, alias="clOrdId")

    @model_validator(mode="after")
    def check_target(self) -> "CancelOrder":
        if not self.order_id and not self.client_order_id:
            raise ValueError("either order_id or client_order_id is required")
        return self


class AmendOrder(WireModel):
    """Amend arguments; needs an order reference and a new size or price"""

    symbol: str = Field(..., alias="instId")
    cancel_on_fail: Optional[bool] = Field(default=None, alias="cxlOnFail")
    order_id: Optional[str] = Field(default=None, alias="ordId")
    client_order_id: Optional[str] = Field(default=None, alias="clOrdId")
    request_id: Optional[str] = Field(default=None, alias="reqId")
    new_qty: Optional[str] = Field(default=None, alias="newSz")
    new_price: Optional[str] = Field(default=None, alias="newPx")

    @model_validator(mode="after")
    def check_amendment(self) -> "AmendOrder":
        if not self.order_id and not self.client_order_id:
            raise ValueError("either order_id or client_order_id is required")
        if self.new_qty is None and self.new_price is None:
            raise ValueError("either new_qty or new_price is required")
        return self


class SubscriptionArg(WireModel):
    """
    One channel subscription, e.g. {"channel": "trades", "instId": "BTC-USDT"}.

    Unknown keys (instFamily, ccy, ...) are passed through as given.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    channel: str
    inst_type: Optional[str] = Field(default=None, alias="instType")
    inst_id: Optional[str] = Field(default=None, alias="instId")


ArgsT = TypeVar("ArgsT", bound=BaseModel)


class WsRequest(WireModel, Generic[ArgsT]):
    """
    Request envelope: {"id": <uuid>, "op": <operation>, "args": [...]}.

    Subscription requests carry no id.
    """

    id: Optional[str] = None
    op: str
    args: List[ArgsT]


# ============================================
# Inbound: Protocol Acknowledgements
# ============================================

class WebsocketResponse(BaseModel):
    """
    Control-plane response to a request we sent.

    Subscription acks carry "event" ({"event": "subscribe", "arg": {...}}),
    trading acks carry "op" ({"id": ..., "op": "order", "code": "0", ...}).
    A message with neither is not an acknowledgement.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    event: Optional[str] = None
    op: Optional[str] = None
    code: Optional[str] = None
    msg: Optional[str] = None
    arg: Optional[Dict[str, Any]] = None
    data: Optional[List[Any]] = None
    conn_id: Optional[str] = Field(default=None, alias="connId")

    @field_validator("code", mode="before")
    @classmethod
    def code_as_text(cls, v: Any) -> Any:
        # The venue sends "0" but some gateways send 0
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def check_shape(self) -> "WebsocketResponse":
        if self.event is None and self.op is None:
            raise ValueError("acknowledgement needs an 'event' or 'op' field")
        return self

    @property
    def is_error(self) -> bool:
        return self.event == "error" or self.code not in (None, "", "0")

    def to_error(self) -> Optional[VenueError]:
        """
        Convert an error acknowledgement into a VenueError.

        Returns None for successful acknowledgements. Every field other than
        code and msg is preserved in VenueError.extra.
        """
        if not self.is_error:
            return None

        try:
            code = int(self.code) if self.code else -1
        except ValueError:
            code = -1

        extra = self.model_dump(by_alias=True, exclude={"code", "msg"}, exclude_none=True)
        if code == -1 and self.code:
            extra["code"] = self.code
        return VenueError(code, self.msg or "", extra)


# ============================================
# Inbound: Example Push Event (trades channel)
# ============================================

class PushArg(BaseModel):
    """Channel descriptor attached to every push message"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    channel: str
    inst_id: Optional[str] = Field(default=None, alias="instId")


class Trade(BaseModel):
    """One public trade from the "trades" channel"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    inst_id: str = Field(..., alias="instId")
    trade_id: str = Field(..., alias="tradeId")
    px: str
    sz: str
    side: OrderSide
    ts: str

    @property
    def price(self) -> Decimal:
        return parse_decimal(self.px)

    @property
    def size(self) -> Decimal:
        return parse_decimal(self.sz)

    @property
    def timestamp(self) -> datetime:
        return to_utc_datetime(self.ts)


class TradesPush(BaseModel):
    """
    Push message of the "trades" channel.

    Example:
        {"arg": {"channel": "trades", "instId": "BTC-USDT"},
         "data": [{"instId": "BTC-USDT", "tradeId": "130639474", "px": "42219.9",
                   "sz": "0.12060306", "side": "buy", "ts": "1630048897897"}]}
    """

    arg: PushArg
    data: List[Trade]
