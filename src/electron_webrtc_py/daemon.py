import json
import asyncio
import itertools
import aiohttp
from typing import Any, Dict, Optional
from pyee.asyncio import AsyncIOEventEmitter

from electron_webrtc_py.logger import logger
from electron_webrtc_py.enums import DaemonMessageType, EnumAwareJSONEncoder, WrtcErrorType
from electron_webrtc_py.peer_error import RTCError, RemoteEvalError


class Daemon(AsyncIOEventEmitter):
    """Channel into the sandboxed environment that hosts the real WebRTC objects.

    ``eval`` submits a code fragment and returns a future for its injection
    acknowledgment. That future only reports whether the fragment itself ran;
    whatever asynchronous work the fragment schedules reports back later as a
    named message, emitted on this object under its topic.
    """

    def __init__(self):
        super().__init__()
        self.closing: bool = False

    async def start(self) -> None:
        pass

    def eval(self, code: str) -> asyncio.Future:
        raise NotImplementedError("eval must be implemented by a daemon transport")

    async def close(self) -> None:
        self.closing = True


class WebSocketDaemon(Daemon):
    def __init__(self, secure: bool, host: str, port: int, path: str, ping_interval: float = 5.0):
        super().__init__()
        self._disconnected: bool = True
        self._seq = itertools.count()
        self._pending_acks: Dict[int, asyncio.Future] = {}
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._ws_ping_task: Optional[asyncio.Task] = None
        self._writer_task: Optional[asyncio.Task] = None
        ws_protocol = "wss://" if secure else "ws://"
        self._url = f"{ws_protocol}{host}:{port}{path}"
        self.ping_interval = ping_interval

    async def start(self) -> None:
        if self.closing:
            raise RTCError(WrtcErrorType.DaemonClosed, "Cannot start a daemon that has been closed")

        if self._ws or not self._disconnected:
            logger.info("Daemon already connected")
            return

        self._session = aiohttp.ClientSession()

        try:
            self._ws = await self._session.ws_connect(self._url)
        except Exception as e:
            logger.error(f"Failed to connect to daemon at {self._url}: {e}")
            await self._cleanup()
            raise RTCError(WrtcErrorType.DaemonError, e)

        self._disconnected = False
        logger.info(f"Daemon connected to {self._url}")
        asyncio.create_task(self._listen())
        self._writer_task = asyncio.create_task(self._write_loop())
        self._schedule_heartbeat()

    def eval(self, code: str) -> asyncio.Future:
        ack = asyncio.get_event_loop().create_future()
        if self.closing:
            ack.set_exception(RTCError(WrtcErrorType.DaemonClosed, "Daemon is closed"))
            return ack

        seq = next(self._seq)
        self._pending_acks[seq] = ack
        # Fragments queued before start() are flushed in order once connected.
        self._outbox.put_nowait({"type": DaemonMessageType.Eval, "id": seq, "code": code})
        return ack

    async def _listen(self) -> None:
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._on_message(msg.data)
                elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                    break
        finally:
            await self._on_close()

    def _on_message(self, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.error("JSONDecodeError Invalid daemon message: %s", message)
            return

        type_ = data.get('type')
        if type_ == DaemonMessageType.EvalResult.value:
            self._on_eval_result(data.get('id'), data.get('error'))
        elif type_ == DaemonMessageType.Message.value:
            topic = data.get('topic')
            if not topic:
                logger.warning("Daemon message without topic: %s", message)
                return
            try:
                self.emit(topic, data.get('payload') or {})
            except Exception as e:
                # Handler errors stay local to their topic.
                logger.error(f"Handler for {topic} raised: {e!r}")
        else:
            logger.warning(f"Unrecognized daemon message type: {type_}")

    def _on_eval_result(self, seq: Any, error: Any) -> None:
        ack = self._pending_acks.pop(seq, None)
        if ack is None or ack.done():
            logger.debug(f"Ignoring eval result for unknown fragment {seq}")
            return
        if error:
            ack.set_exception(RemoteEvalError(error))
        else:
            ack.set_result(None)

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            if not self._ws_open():
                logger.info("Cannot send message, because daemon socket closed")
                continue
            try:
                await self._ws.send_str(json.dumps(message, cls=EnumAwareJSONEncoder))
            except Exception as e:
                logger.error(f"Error sending to daemon: {e}")

    def _schedule_heartbeat(self) -> None:
        if self._ws_ping_task:
            self._ws_ping_task.cancel()
        self._ws_ping_task = asyncio.create_task(self._heartbeat_loop())

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.ping_interval)
            self._outbox.put_nowait({"type": DaemonMessageType.Heartbeat})

    def _ws_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def _on_close(self) -> None:
        if self._disconnected:
            return

        logger.info("Daemon socket closed.")
        self.closing = True
        self._disconnected = True
        await self._cleanup()

    async def close(self) -> None:
        await super().close()
        if self._disconnected:
            self._cancel_pending_acks()
            return

        self._disconnected = True
        await self._cleanup()

    def _cancel_pending_acks(self) -> None:
        pending = list(self._pending_acks.values())
        self._pending_acks.clear()
        for ack in pending:
            ack.cancel()

    async def _cleanup(self) -> None:
        self._cancel_pending_acks()

        if self._ws_ping_task:
            self._ws_ping_task.cancel()
        self._ws_ping_task = None

        if self._writer_task:
            self._writer_task.cancel()
        self._writer_task = None

        if self._ws:
            await self._ws.close()
        self._ws = None

        if self._session:
            await self._session.close()
        self._session = None
