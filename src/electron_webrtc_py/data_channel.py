import asyncio
import base64
from collections import deque
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, Optional, Union

from electron_webrtc_py import remote_code
from electron_webrtc_py.enums import DataChannelEventType, DataChannelState, WrtcErrorType
from electron_webrtc_py.events import MessageEvent
from electron_webrtc_py.logger import logger
from electron_webrtc_py.peer_error import EventEmitterWithError, RTCError, RemoteOperationError
from electron_webrtc_py.utils.random_token import random_token

if TYPE_CHECKING:
    from electron_webrtc_py.peer_connection import RTCPeerConnection

MessageHandler = Callable[[MessageEvent], Any]


class RTCDataChannel(EventEmitterWithError[Union[str, WrtcErrorType]]):
    """Local mirror of a data channel living in the remote environment.

    Outbound channels start with a pending key and become initialized when the
    remote constructor acknowledges; inbound channels are initialized straight
    from the ``datachannel`` event. Either way the remote side starts reporting
    messages as soon as its object exists, which can be before anyone assigned
    ``onmessage``. Those messages wait in a FIFO buffer and are replayed, in
    arrival order, the moment a handler is attached.

    Lifecycle events (``init``, ``open``, ``close``, ``error``,
    ``bufferedamountlow``) are emitted with pyee.
    """

    ID_PREFIX = "dc_"

    def __init__(self, peer_connection: 'RTCPeerConnection', key: Optional[str] = None, label: str = ""):
        super().__init__()
        self._pc = peer_connection
        self._key = key or f"{self.ID_PREFIX}{random_token()}"
        self._topic = f"dc:{peer_connection._id}:{self._key}"
        self._initialized = False
        self._buffer: Deque[MessageEvent] = deque()
        self._onmessage: Optional[MessageHandler] = None

        self.id: Optional[int] = None
        self.label = label
        self.readyState: str = DataChannelState.Connecting.value
        self.bufferedAmount: int = 0

        peer_connection._daemon.on(self._topic, self._on_message)

    @property
    def key(self) -> str:
        return self._key

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def onmessage(self) -> Optional[MessageHandler]:
        return self._onmessage

    @onmessage.setter
    def onmessage(self, handler: Optional[MessageHandler]) -> None:
        self._onmessage = handler
        # A handler that replaces or clears itself stops the replay.
        while handler is not None and self._buffer and self._onmessage is handler:
            self._dispatch(handler, self._buffer.popleft())

    @property
    def buffered_messages(self) -> int:
        return len(self._buffer)

    def _initialize(self, channel: Dict[str, Any]) -> None:
        self._mirror(channel)
        self._initialized = True
        logger.debug(f"DC#{self._key} initialized: {channel}")
        self.emit(DataChannelEventType.Init.value)

    def _on_created(self, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        err = future.exception()
        if err is not None:
            self.readyState = DataChannelState.Closed.value
            self.emit_error(WrtcErrorType.ChannelError, err)
            return
        self._initialize(future.result() or {})

    def _mirror(self, channel: Dict[str, Any]) -> None:
        for name, value in channel.items():
            if value is None or name.startswith('_') or hasattr(type(self), name):
                continue
            setattr(self, name, value)

    def _on_message(self, message: Dict[str, Any]) -> None:
        type_ = message.get('type')
        logger.debug(f"DC#{self._key} << {type_}")

        if type_ == DataChannelEventType.Message.value:
            data = message.get('data')
            if message.get('binary'):
                data = base64.b64decode(data)
            self._deliver(MessageEvent(data))
        elif type_ == DataChannelEventType.Open.value:
            self._mirror(message.get('channel') or {})
            self.readyState = DataChannelState.Open.value
            self.emit(DataChannelEventType.Open.value)
        elif type_ == DataChannelEventType.Close.value:
            self.readyState = DataChannelState.Closed.value
            self._pc._daemon.remove_listener(self._topic, self._on_message)
            self.emit(DataChannelEventType.Close.value)
        elif type_ == DataChannelEventType.Error.value:
            self.emit_error(WrtcErrorType.ChannelError, RemoteOperationError(message.get('error')))
        elif type_ == DataChannelEventType.BufferedAmountLow.value:
            self.bufferedAmount = message.get('bufferedAmount', 0)
            self.emit(DataChannelEventType.BufferedAmountLow.value)
        else:
            logger.warning(f"DC#{self._key} Unrecognized message type: {type_}")

    def _deliver(self, event: MessageEvent) -> None:
        if self._onmessage is None:
            self._buffer.append(event)
            return
        self._dispatch(self._onmessage, event)

    def _dispatch(self, handler: MessageHandler, event: MessageEvent) -> None:
        result = handler(event)
        if asyncio.iscoroutine(result):
            asyncio.ensure_future(result)

    def send(self, data: Union[str, bytes, bytearray, memoryview]) -> None:
        if self.readyState != DataChannelState.Open.value:
            raise RTCError(
                WrtcErrorType.InvalidState,
                f"RTCDataChannel.readyState is '{self.readyState}', not 'open'"
            )

        if isinstance(data, str):
            body = remote_code.send_data(self._key, data, binary=False)
        elif isinstance(data, (bytes, bytearray, memoryview)):
            encoded = base64.b64encode(bytes(data)).decode('ascii')
            body = remote_code.send_data(self._key, encoded, binary=True)
        else:
            raise TypeError(f"Cannot send data of type {type(data).__name__}")

        self._pc._inject(remote_code.statement(self._pc._id, body))

    def close(self) -> None:
        if self.readyState in (DataChannelState.Closing.value, DataChannelState.Closed.value):
            return
        self.readyState = DataChannelState.Closing.value
        self._pc._inject(remote_code.statement(self._pc._id, remote_code.close_data_channel(self._key)))

    def __repr__(self) -> str:
        return f"<RTCDataChannel key={self._key} label={self.label!r} readyState={self.readyState}>"
