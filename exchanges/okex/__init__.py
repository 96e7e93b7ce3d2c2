"""
OKEx Exchange Connector

Streaming session for the OKEx v5 WebSocket API: connection management,
a generic event loop forwarding decoded pushes to a consumer channel, and
order placement/cancel/amend commands sent over the same socket.

WebSocket Endpoints (joined to settings.okex_ws_base_url):
    - public:   market data channels (trades, tickers, books, ...)
    - private:  account channels and trading operations
    - business: candles and other business channels
"""

from .models import (
    AmendOrder,
    CancelOrder,
    Order,
    OrderSide,
    OrderType,
    PositionSide,
    PushArg,
    SubscriptionArg,
    Trade,
    TradeMode,
    TradesPush,
    WebsocketResponse,
    WsRequest,
)
from .ws_client import (
    ConnectionHandle,
    OkexWebSocketClient,
    create_event_channel,
    create_trades_client,
)

__all__ = [
    "AmendOrder",
    "CancelOrder",
    "ConnectionHandle",
    "OkexWebSocketClient",
    "Order",
    "OrderSide",
    "OrderType",
    "PositionSide",
    "PushArg",
    "SubscriptionArg",
    "Trade",
    "TradeMode",
    "TradesPush",
    "WebsocketResponse",
    "WsRequest",
    "create_event_channel",
    "create_trades_client",
]
