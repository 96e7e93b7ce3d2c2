"""
OKEx WebSocket Client

This module provides the persistent-connection session for the OKEx v5
WebSocket API. It handles:
- Opening and closing the socket (one live handle at a time)
- Sending raw text frames and typed trading commands
- An event loop that decodes push messages into a caller-chosen event type
  and forwards them, in arrival order, to a consumer channel
- Cooperative stop through a caller-owned run flag

There is no automatic reconnect: after any termination of the event loop the
caller decides whether to connect and subscribe again.

WebSocket Documentation:
    https://www.okx.com/docs-v5/en/#overview-websocket

Usage:
    queue = asyncio.Queue(maxsize=1000)
    running = asyncio.Event()
    running.set()

    async with OkexWebSocketClient(queue, TradesPush) as client:
        await client.connect("public")
        await client.subscribe([{"channel": "trades", "instId": "BTC-USDT"}])
        await client.event_loop(running)
"""

import asyncio
import inspect
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any, Awaitable, Callable, Dict, Generic, Iterable, List, Optional, Tuple, Type, TypeVar, Union
)

import aiohttp
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from core.config import Settings, settings as default_settings
from core.errors import (
    ConnectionClosedError,
    DeliveryError,
    FrameParseError,
    HandshakeError,
    InvalidOrderError,
    JsonError,
    NotConnectedError,
    SocketProtocolError,
    UrlError,
    wrap_error,
)
from core.logging import get_logger, log_frame, log_websocket_event
from core.utils.numbers import format_decimal
from .models import (
    AmendOrder,
    CancelOrder,
    Order,
    OrderSide,
    OrderType,
    SubscriptionArg,
    TradeMode,
    TradesPush,
    WebsocketResponse,
    WsRequest,
)


EventT = TypeVar("EventT")

ResponseHandler = Callable[[WebsocketResponse], Optional[Awaitable[None]]]

IGNORED_FRAMES = (
    aiohttp.WSMsgType.PING,
    aiohttp.WSMsgType.PONG,
    aiohttp.WSMsgType.BINARY,
    aiohttp.WSMsgType.CONTINUATION,
)


@dataclass
class ConnectionHandle:
    """
    A live socket plus its handshake metadata.

    Owned exclusively by one OkexWebSocketClient. Created by connect() and
    dropped by disconnect(), a close frame or an unparseable frame.
    """

    ws: aiohttp.ClientWebSocketResponse
    url: str
    protocol: Optional[str] = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class OkexWebSocketClient(Generic[EventT]):
    """
    Session for one logical OKEx WebSocket stream.

    The client is generic over the event type: anything pydantic can validate
    from JSON (a BaseModel subclass, a TypedDict, a Union of models, ...).
    Text frames that validate as the event type go to `sender`; frames that
    validate as a WebsocketResponse are acknowledgements and are only logged
    and passed to `response_handler`.

    Attributes:
        EXCHANGE: Exchange name used in log lines
        sender: Consumer channel; any object with an awaitable put(item)
        settings: Endpoint configuration (base URL, heartbeat, frame size)
        delivery_failures: Number of events the consumer channel refused

    Example:
        >>> queue = asyncio.Queue()
        >>> client = OkexWebSocketClient(queue, TradesPush)
        >>> await client.connect("public")
        >>> await client.limit_buy("BTC-USDT", "1", "50000")

    Notes:
        - No internal locking: run the event loop and commands on one task,
          or serialize access externally
        - Every operation needing a socket raises NotConnectedError when
          there is no live handle
    """

    EXCHANGE = "okex"

    def __init__(
        self,
        sender: Any,
        event_type: Union[Type[EventT], Any] = TradesPush,
        settings: Optional[Settings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        response_handler: Optional[ResponseHandler] = None
    ):
        """
        Initialize the session.

        Args:
            sender: Consumer channel for decoded events (e.g., asyncio.Queue)
            event_type: Type decoded push messages are validated against
            settings: Endpoint configuration (defaults to core.config.settings)
            session: aiohttp session to use; one is created (and owned) if omitted
            response_handler: Optional callback (sync or async) for acknowledgements
        """
        self.sender = sender
        self.settings = settings or default_settings
        self.response_handler = response_handler
        self.delivery_failures = 0

        self._event_adapter: TypeAdapter = TypeAdapter(event_type)
        self._session = session
        self._owns_session = session is None
        self._handle: Optional[ConnectionHandle] = None

        self.logger = get_logger(__name__)

    # ============================================
    # Context Manager
    # ============================================

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================================
    # Connection State
    # ============================================

    @property
    def socket(self) -> Optional[ConnectionHandle]:
        """The live connection handle, or None when disconnected"""
        return self._handle

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    def _require_handle(self, action: str) -> ConnectionHandle:
        if self._handle is None:
            raise NotConnectedError(f"Not able to {action}: not connected")
        return self._handle

    async def _drop_handle(self, raise_errors: bool = True) -> None:
        """
        Forget the current handle and close its socket.

        Args:
            raise_errors: When False, a failing close is only logged so the
                error that ended the event loop is the one raised
        """
        handle, self._handle = self._handle, None
        if handle is not None and not handle.ws.closed:
            try:
                await handle.ws.close()
            except (aiohttp.ClientError, OSError) as e:
                error = wrap_error(e)
                if raise_errors:
                    raise error from e
                self.logger.warning(f"Failed to close socket: {error}")

    # ============================================
    # Connection Management
    # ============================================

    async def connect(self, endpoint: str) -> None:
        """
        Connect to a WebSocket endpoint.

        Args:
            endpoint: Path relative to the configured base URL (e.g., "public")

        Raises:
            UrlError: If the joined URL is invalid
            HandshakeError: If the connection or WebSocket handshake fails

        Notes:
            - A previous handle is closed and replaced only after the new
              handshake succeeds
            - On failure the connection state is left unchanged
        """
        url = self.settings.ws_url(endpoint)
        self.logger.info(f"Connecting to {url}")

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        try:
            ws = await self._session.ws_connect(
                url,
                heartbeat=self.settings.ws_heartbeat,
                max_msg_size=self.settings.ws_max_msg_size
            )
        except aiohttp.InvalidURL as e:
            log_websocket_event(self.EXCHANGE, "error", endpoint, f"Invalid URL {url}")
            raise UrlError(f"Invalid URL {url}: {e}", e) from e
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            log_websocket_event(self.EXCHANGE, "error", endpoint, f"Handshake failed: {e}")
            raise HandshakeError(f"Error during handshake {e}", e) from e

        previous = self._handle
        self._handle = ConnectionHandle(ws=ws, url=url, protocol=getattr(ws, "protocol", None))

        if previous is not None and not previous.ws.closed:
            await previous.ws.close()

        log_websocket_event(self.EXCHANGE, "connected", endpoint)

    async def send_raw(self, text: str) -> None:
        """
        Send one text frame.

        Raises:
            NotConnectedError: If there is no live handle
            IOFailure / SocketProtocolError: If the write fails
        """
        handle = self._require_handle("send requests")
        log_frame(self.EXCHANGE, "out", "TEXT", text)
        try:
            await handle.ws.send_str(text)
        except (aiohttp.ClientError, OSError) as e:
            raise wrap_error(e) from e

    async def subscribe_request(self, request: str) -> None:
        """Send a pre-serialized subscription request."""
        await self.send_raw(request)

    async def disconnect(self) -> None:
        """
        Send a close frame and drop the handle.

        Raises:
            NotConnectedError: If already disconnected (a second call fails)
        """
        self._require_handle("close the connection")
        await self._drop_handle()
        log_websocket_event(self.EXCHANGE, "disconnected")

    async def close(self) -> None:
        """
        Close the socket (if any) and the owned HTTP session.

        Notes:
            - Safe to call multiple times
            - A session passed in by the caller is left open
        """
        try:
            if self._handle is not None:
                await self._drop_handle()
                self.logger.debug("WebSocket closed")
        finally:
            if self._owns_session and self._session is not None and not self._session.closed:
                await self._session.close()
                self.logger.debug("Session closed")

    # ============================================
    # Event Loop
    # ============================================

    async def event_loop(self, running: Any) -> None:
        """
        Read frames and dispatch them until stopped.

        Args:
            running: Run flag with an is_set() method (asyncio.Event or
                threading.Event). Checked before every frame.

        Returns:
            None when the flag is cleared or an empty text frame arrives
            (clean end of stream)

        Raises:
            NotConnectedError: If there is no live handle
            ConnectionClosedError: On a close frame (carries code and reason)
            FrameParseError: On a text frame that is neither an event nor an
                acknowledgement (carries the raw bytes)
            SocketProtocolError / IOFailure: On wire-level failures

        Frame Handling:
            - TEXT, empty: stop, success
            - TEXT: decode as event -> sender; else as acknowledgement -> log
            - PING/PONG/BINARY/CONTINUATION: ignored
            - CLOSE/CLOSING/CLOSED: handle dropped, ConnectionClosedError
            - ERROR: handle dropped, SocketProtocolError
        """
        while running.is_set():
            handle = self._require_handle("read events")

            try:
                msg = await handle.ws.receive()
            except (aiohttp.ClientError, OSError) as e:
                self._handle = None
                raise wrap_error(e) from e

            log_frame(self.EXCHANGE, "in", msg.type.name, msg.data)

            if msg.type == aiohttp.WSMsgType.TEXT:
                if not msg.data:
                    self.logger.info("Empty frame received, stream ended")
                    return
                await self._dispatch_text(msg.data)

            elif msg.type in IGNORED_FRAMES:
                pass

            elif msg.type == aiohttp.WSMsgType.CLOSE:
                self._handle = None
                error = ConnectionClosedError(msg.data, msg.extra)
                self.logger.error(str(error))
                raise error

            elif msg.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                self._handle = None
                error = ConnectionClosedError(
                    getattr(handle.ws, "close_code", None),
                    "socket closed unexpectedly"
                )
                self.logger.error(str(error))
                raise error

            elif msg.type == aiohttp.WSMsgType.ERROR:
                await self._drop_handle(raise_errors=False)
                source = msg.data if isinstance(msg.data, BaseException) else None
                self.logger.error(f"WebSocket error: {msg.data}")
                raise SocketProtocolError(f"WebSocket error: {msg.data}", source)

            # Let other tasks run between frames
            await asyncio.sleep(0)

        self.logger.info("Event loop stopped")

    async def _dispatch_text(self, data: str) -> None:
        try:
            event = self._event_adapter.validate_json(data)
        except ValidationError:
            pass
        else:
            await self._deliver(event)
            return

        try:
            response = WebsocketResponse.model_validate_json(data)
        except ValidationError as e:
            await self._drop_handle(raise_errors=False)
            error = FrameParseError(data, e)
            self.logger.error(str(error))
            raise error from e

        await self._acknowledge(response)

    async def _deliver(self, event: Any) -> None:
        # A refused event is counted and logged; the stream keeps running
        try:
            await self.sender.put(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.delivery_failures += 1
            error = DeliveryError(f"SendError: {e}", e)
            self.logger.warning(f"Dropped event: {error}")

    async def _acknowledge(self, response: WebsocketResponse) -> None:
        error = response.to_error()
        if error is not None:
            self.logger.warning(f"WebsocketResponse error: {error} | extra={error.extra}")
        else:
            self.logger.info(f"WebsocketResponse: {response.event or response.op} id={response.id}")

        if self.response_handler is not None:
            result = self.response_handler(response)
            if inspect.isawaitable(result):
                await result

    # ============================================
    # Subscriptions
    # ============================================

    async def subscribe(self, args: Iterable[Union[SubscriptionArg, Dict[str, Any]]]) -> None:
        """
        Subscribe to one or more channels.

        Example:
            >>> await client.subscribe([{"channel": "trades", "instId": "BTC-USDT"}])
        """
        await self._send_request("subscribe", SubscriptionArg, args, with_id=False)

    async def unsubscribe(self, args: Iterable[Union[SubscriptionArg, Dict[str, Any]]]) -> None:
        await self._send_request("unsubscribe", SubscriptionArg, args, with_id=False)

    # ============================================
    # Trading Commands
    # ============================================

    async def _send_request(
        self,
        op: str,
        arg_type: Type[BaseModel],
        args: Iterable[Any],
        with_id: bool = True
    ) -> Optional[str]:
        """
        Wrap args in a request envelope, serialize it and send it.

        Returns:
            The generated request id (None for requests sent without one)
        """
        self._require_handle("send requests")

        try:
            request = WsRequest[arg_type](
                id=str(uuid.uuid4()) if with_id else None,
                op=op,
                args=list(args)
            )
        except ValidationError as e:
            raise InvalidOrderError(f"Invalid {op} arguments: {e}", e) from e

        try:
            text = request.model_dump_json(by_alias=True, exclude_none=True)
        except PydanticSerializationError as e:
            raise JsonError(f"Failed to serialize {op} request: {e}", e) from e

        await self.send_raw(text)
        return request.id

    def _build(self, model: Type[BaseModel], **fields: Any) -> Any:
        try:
            return model(**fields)
        except ValidationError as e:
            raise InvalidOrderError(f"Invalid {model.__name__}: {e}", e) from e

    async def place_order(self, order: Order) -> str:
        """
        Send one order ("order" operation).

        Returns:
            str: Request id, echoed back in the acknowledgement

        Raises:
            NotConnectedError: If there is no live handle (nothing is written)
            JsonError: If serialization fails
        """
        return await self._send_request("order", Order, [order])

    async def place_multiple_orders(self, orders: List[Order]) -> str:
        """Send several orders in one "batch-orders" request."""
        return await self._send_request("batch-orders", Order, orders)

    async def _place(
        self,
        side: OrderSide,
        symbol: str,
        qty: Any,
        price: Any,
        order_type: OrderType,
        target_currency: Optional[str] = None
    ) -> str:
        self._require_handle("send requests")
        order = self._build(
            Order,
            symbol=symbol,
            trade_mode=TradeMode.CROSS,
            side=side,
            position_side=None,  # net mode
            order_type=order_type,
            qty=format_decimal(qty),
            price=format_decimal(price) if price is not None else None,
            target_currency=target_currency,
        )
        return await self.place_order(order)

    async def limit_buy(
        self,
        symbol: str,
        qty: Any,
        price: Any,
        order_type: OrderType = OrderType.LIMIT
    ) -> str:
        """
        Buy in cross margin mode, net position mode.

        Args:
            symbol: Instrument id (e.g., "BTC-USDT")
            qty: Quantity as string (Decimal and int are rendered to text)
            price: Limit price as string
            order_type: Order type (limit, post_only, fok, ioc, ...)
        """
        return await self._place(OrderSide.BUY, symbol, qty, price, order_type)

    async def limit_sell(
        self,
        symbol: str,
        qty: Any,
        price: Any,
        order_type: OrderType = OrderType.LIMIT
    ) -> str:
        """Sell counterpart of limit_buy()."""
        return await self._place(OrderSide.SELL, symbol, qty, price, order_type)

    async def market_buy(self, symbol: str, qty: Any, target_currency: Optional[str] = None) -> str:
        """Market buy in cross mode; no price is sent."""
        return await self._place(OrderSide.BUY, symbol, qty, None, OrderType.MARKET, target_currency)

    async def market_sell(self, symbol: str, qty: Any, target_currency: Optional[str] = None) -> str:
        return await self._place(OrderSide.SELL, symbol, qty, None, OrderType.MARKET, target_currency)

    async def cancel_order(
        self,
        symbol: str,
        order_id: Optional[str] = None,
        client_order_id: Optional[str] = None
    ) -> str:
        """
        Cancel one order ("cancel-order").

        Raises:
            InvalidOrderError: If neither order_id nor client_order_id is given
        """
        self._require_handle("send requests")
        cancel = self._build(
            CancelOrder,
            symbol=symbol,
            order_id=order_id,
            client_order_id=client_order_id
        )
        return await self._send_request("cancel-order", CancelOrder, [cancel])

    async def cancel_multiple_orders(self, cancels: List[CancelOrder]) -> str:
        return await self._send_request("batch-cancel-orders", CancelOrder, cancels)

    async def amend_order(
        self,
        symbol: str,
        order_id: Optional[str] = None,
        client_order_id: Optional[str] = None,
        new_qty: Any = None,
        new_price: Any = None,
        cancel_on_fail: Optional[bool] = None,
        request_id: Optional[str] = None
    ) -> str:
        """
        Amend size and/or price of one order ("amend-order").

        Raises:
            InvalidOrderError: If no order reference or no new value is given
        """
        self._require_handle("send requests")
        amend = self._build(
            AmendOrder,
            symbol=symbol,
            order_id=order_id,
            client_order_id=client_order_id,
            new_qty=format_decimal(new_qty) if new_qty is not None else None,
            new_price=format_decimal(new_price) if new_price is not None else None,
            cancel_on_fail=cancel_on_fail,
            request_id=request_id,
        )
        return await self._send_request("amend-order", AmendOrder, [amend])

    async def amend_multiple_orders(self, amends: List[AmendOrder]) -> str:
        return await self._send_request("batch-amend-orders", AmendOrder, amends)


# ============================================
# Convenience Builders
# ============================================

def create_event_channel(
    maxsize: Optional[int] = None,
    settings: Optional[Settings] = None
) -> asyncio.Queue:
    """
    Create a bounded consumer channel for decoded events.

    Args:
        maxsize: Capacity (defaults to settings.event_queue_size; 0 = unbounded)
        settings: Settings to read the default capacity from
    """
    if maxsize is None:
        maxsize = (settings or default_settings).event_queue_size
    return asyncio.Queue(maxsize=maxsize)


def create_trades_client(
    settings: Optional[Settings] = None,
    maxsize: Optional[int] = None
) -> Tuple[OkexWebSocketClient[TradesPush], asyncio.Queue]:
    """
    Create a client decoding "trades" pushes, together with its channel.

    Example:
        >>> client, queue = create_trades_client()
        >>> async with client:
        ...     await client.connect("public")
        ...     await client.subscribe([{"channel": "trades", "instId": "BTC-USDT"}])
    """
    queue = create_event_channel(maxsize, settings)
    return OkexWebSocketClient(queue, TradesPush, settings=settings), queue
