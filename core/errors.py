"""
Unified Error Taxonomy

Every failure the client library can produce is represented by exactly one
exception class in this module. All of them derive from ClientError, so a
caller can catch the whole family with a single except clause and then branch
on the `kind` tag (or the broader `origin` group) without string matching.

Origins:
    - TRANSPORT: handshake, header, I/O, socket-protocol and close failures
    - ENCODING:  numbers, URLs, JSON, query strings, UTF-8, clocks
    - DELIVERY:  handing a decoded event to the consumer channel failed
    - VENUE:     a structured error reported by the exchange itself
    - DOMAIN:    symbol, listen key, order, price, period, auth, server state
    - MESSAGE:   free-text catch-all for anything not otherwise classified

Foreign exceptions (aiohttp, json, pydantic, OSError, ...) are converted with
wrap_error(), which keeps the original exception as `source` and `__cause__`.

Usage:
    from core.errors import ClientError, ErrorKind

    try:
        await client.place_order(order)
    except ClientError as e:
        if e.kind is ErrorKind.NOT_CONNECTED:
            await client.connect("private")
"""

import asyncio
import json
from decimal import InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union

import aiohttp
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_core import PydanticSerializationError


class ErrorOrigin(str, Enum):
    """Broad group a failure belongs to"""

    TRANSPORT = "transport"
    ENCODING = "encoding"
    DELIVERY = "delivery"
    VENUE = "venue"
    DOMAIN = "domain"
    MESSAGE = "message"


class ErrorKind(str, Enum):
    """Closed set of failure tags; each concrete error class owns one"""

    # Transport
    HANDSHAKE = "handshake"
    HEADER = "header"
    IO = "io"
    SOCKET_PROTOCOL = "socket_protocol"
    CONNECTION_CLOSED = "connection_closed"
    NOT_CONNECTED = "not_connected"

    # Encoding
    NUMBER_PARSE = "number_parse"
    URL = "url"
    JSON = "json"
    QUERY_STRING = "query_string"
    UTF8 = "utf8"
    TIMESTAMP = "timestamp"

    # Delivery
    DELIVERY = "delivery"

    # Venue-reported
    VENUE = "venue"

    # Domain validation
    INVALID_LISTEN_KEY = "invalid_listen_key"
    UNKNOWN_SYMBOL = "unknown_symbol"
    INVALID_ORDER = "invalid_order"
    INVALID_PRICE = "invalid_price"
    INVALID_PERIOD = "invalid_period"
    INTERNAL_SERVER = "internal_server"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNAUTHORIZED = "unauthorized"

    # Catch-all
    MESSAGE = "message"


# Custom error messages
INVALID_PRICE = "Invalid price."


# ============================================
# Base Class
# ============================================

class ClientError(Exception):
    """
    Base class for every error raised by the library.

    Attributes:
        kind: ErrorKind tag identifying the concrete failure
        origin: ErrorOrigin group of the tag
        source: Wrapped foreign exception, if this error was converted from one
    """

    kind: ErrorKind = ErrorKind.MESSAGE
    origin: ErrorOrigin = ErrorOrigin.MESSAGE

    def __init__(self, message: str = "", source: Optional[BaseException] = None):
        if not message and source is not None:
            message = str(source)
        super().__init__(message)
        self.message = message
        self.source = source
        if source is not None:
            self.__cause__ = source

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


# ============================================
# Transport Errors
# ============================================

class TransportError(ClientError):
    origin = ErrorOrigin.TRANSPORT


class HandshakeError(TransportError):
    """Network or WebSocket handshake failure"""

    kind = ErrorKind.HANDSHAKE


class HeaderError(TransportError):
    """TLS or header construction failure"""

    kind = ErrorKind.HEADER


class IOFailure(TransportError):
    kind = ErrorKind.IO


class SocketProtocolError(TransportError):
    """Malformed frame at the wire level"""

    kind = ErrorKind.SOCKET_PROTOCOL


class ConnectionClosedError(TransportError):
    """
    The venue sent a close frame.

    Attributes:
        code: WebSocket close code (None if the peer sent none)
        reason: Close reason text (may be empty)
    """

    kind = ErrorKind.CONNECTION_CLOSED

    def __init__(self, code: Optional[int] = None, reason: Optional[str] = None):
        self.code = code
        self.reason = reason or ""
        super().__init__(f"Disconnected (code={code}, reason={self.reason!r})")


class NotConnectedError(TransportError):
    """An operation needed a live connection handle and there was none"""

    kind = ErrorKind.NOT_CONNECTED


# ============================================
# Encoding Errors
# ============================================

class EncodingError(ClientError):
    origin = ErrorOrigin.ENCODING


class NumberParseError(EncodingError):
    """Malformed price or quantity"""

    kind = ErrorKind.NUMBER_PARSE


class UrlError(EncodingError):
    kind = ErrorKind.URL


class JsonError(EncodingError):
    """JSON serialization or deserialization failure"""

    kind = ErrorKind.JSON


class FrameParseError(JsonError):
    """
    An inbound text frame matched neither the event shape nor the
    acknowledgement shape.

    Attributes:
        payload: The raw frame bytes, kept for diagnosis
    """

    def __init__(self, payload: Union[bytes, str], source: Optional[BaseException] = None):
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        self.payload = payload
        super().__init__(f"Websocket Parse failed {payload!r}", source)


class QueryStringError(EncodingError):
    kind = ErrorKind.QUERY_STRING


class Utf8Error(EncodingError):
    kind = ErrorKind.UTF8


class TimestampError(EncodingError):
    """System clock or timestamp computation failure"""

    kind = ErrorKind.TIMESTAMP


# ============================================
# Delivery Errors
# ============================================

class DeliveryError(ClientError):
    """The consumer channel refused a decoded event (closed or full)"""

    kind = ErrorKind.DELIVERY
    origin = ErrorOrigin.DELIVERY


# ============================================
# Venue-Reported Errors
# ============================================

class VenueErrorPayload(BaseModel):
    """
    Structured error body returned by the exchange.

    Unknown keys are kept verbatim (in arrival order) in `extra` so that new
    fields added by the venue never break deserialization.
    """

    model_config = ConfigDict(extra="allow")

    code: int
    msg: str = ""

    @property
    def extra(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class VenueError(ClientError):
    """
    Error reported by the venue itself.

    Attributes:
        code: Numeric venue error code
        msg: Human readable venue message
        extra: Any additional fields the venue attached
    """

    kind = ErrorKind.VENUE
    origin = ErrorOrigin.VENUE

    def __init__(self, code: int, msg: str = "", extra: Optional[Dict[str, Any]] = None):
        self.code = code
        self.msg = msg
        self.extra: Dict[str, Any] = dict(extra or {})
        super().__init__(f"code: {code}, msg: {msg}")

    @classmethod
    def from_payload(cls, payload: Union[VenueErrorPayload, Dict[str, Any], str, bytes]) -> "VenueError":
        """
        Build a VenueError from a venue error body.

        Raises:
            JsonError: If the body is not a valid venue error shape
        """
        try:
            if isinstance(payload, VenueErrorPayload):
                body = payload
            elif isinstance(payload, dict):
                body = VenueErrorPayload.model_validate(payload)
            else:
                body = VenueErrorPayload.model_validate_json(payload)
        except ValidationError as e:
            raise JsonError(f"Invalid venue error body: {e}", e) from e
        return cls(body.code, body.msg, body.extra)


# ============================================
# Domain Validation Errors
# ============================================

class DomainError(ClientError):
    origin = ErrorOrigin.DOMAIN


class InvalidListenKeyError(DomainError):
    kind = ErrorKind.INVALID_LISTEN_KEY

    def __init__(self, listen_key: str):
        self.listen_key = listen_key
        super().__init__(f"invalid listen key : {listen_key}")


class UnknownSymbolError(DomainError):
    kind = ErrorKind.UNKNOWN_SYMBOL

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"unknown symbol {symbol}")


class InvalidOrderError(DomainError):
    """Invalid order parameters; the message says which"""

    kind = ErrorKind.INVALID_ORDER


class InvalidPriceError(DomainError):
    kind = ErrorKind.INVALID_PRICE

    def __init__(self, message: str = INVALID_PRICE):
        super().__init__(message)


class InvalidPeriodError(DomainError):
    kind = ErrorKind.INVALID_PERIOD

    def __init__(self, period: str):
        self.period = period
        super().__init__(f"invalid period {period}")


class InternalServerError(DomainError):
    kind = ErrorKind.INTERNAL_SERVER

    def __init__(self, message: str = "internal server error"):
        super().__init__(message)


class ServiceUnavailableError(DomainError):
    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, message: str = "service unavailable"):
        super().__init__(message)


class UnauthorizedError(DomainError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


# ============================================
# Catch-All
# ============================================

class MessageError(ClientError):
    """Free-text error for situations not otherwise classified"""


# ============================================
# Conversion of Foreign Exceptions
# ============================================

def wrap_error(exc: BaseException) -> ClientError:
    """
    Convert any exception into exactly one ClientError tag.

    ClientError instances are returned unchanged. The original exception is
    kept as `source` and chained as `__cause__`, so nothing is discarded.

    Args:
        exc: Exception raised by a library or the standard library

    Returns:
        ClientError: The classified error

    Example:
        >>> try:
        ...     json.loads("{")
        ... except ValueError as e:
        ...     err = wrap_error(e)
        >>> err.kind
        <ErrorKind.JSON: 'json'>
    """
    if isinstance(exc, ClientError):
        return exc

    # Order matters: subclasses are checked before their bases
    # (JSONDecodeError and UnicodeDecodeError are both ValueErrors,
    # and aiohttp's errors are OSErrors).
    if isinstance(exc, aiohttp.WSServerHandshakeError):
        return HandshakeError(f"Error during handshake {exc}", exc)
    if isinstance(exc, aiohttp.InvalidURL):
        return UrlError(str(exc), exc)
    if isinstance(exc, aiohttp.ClientConnectorError):
        return HandshakeError(str(exc), exc)
    if isinstance(exc, (aiohttp.ClientPayloadError, aiohttp.WebSocketError)):
        return SocketProtocolError(str(exc), exc)
    if isinstance(exc, aiohttp.ClientResponseError):
        return HeaderError(str(exc), exc)
    if isinstance(exc, aiohttp.ClientError):
        return IOFailure(str(exc), exc)
    if isinstance(exc, json.JSONDecodeError):
        return JsonError(str(exc), exc)
    if isinstance(exc, (ValidationError, PydanticSerializationError)):
        return JsonError(str(exc), exc)
    if isinstance(exc, UnicodeError):
        return Utf8Error(str(exc), exc)
    if isinstance(exc, InvalidOperation):
        return NumberParseError(f"invalid number: {exc}", exc)
    if isinstance(exc, OverflowError):
        return TimestampError(str(exc), exc)
    if isinstance(exc, asyncio.QueueFull):
        return DeliveryError("consumer channel is full", exc)
    if isinstance(exc, OSError):
        return IOFailure(str(exc), exc)

    return MessageError(f"{type(exc).__name__}: {exc}", exc)
