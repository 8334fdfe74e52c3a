import itertools
from typing import Any, Dict, Optional, Union
from aiortc import RTCIceCandidate, RTCSessionDescription

from electron_webrtc_py import remote_code
from electron_webrtc_py.correlation import CorrelationRegistry
from electron_webrtc_py.daemon import Daemon, WebSocketDaemon
from electron_webrtc_py.data_channel import RTCDataChannel
from electron_webrtc_py.enums import WrtcErrorType
from electron_webrtc_py.logger import logger
from electron_webrtc_py.options import RTCConfiguration, WrtcOptions, resolve_options
from electron_webrtc_py.peer_connection import RTCPeerConnection as PeerConnectionProxy
from electron_webrtc_py.peer_error import EventEmitterWithError
from electron_webrtc_py.utils.base36 import to_base36


class Wrtc(EventEmitterWithError[Union[str, WrtcErrorType]]):
    """Entry point: one daemon, the connections created through it, and its error events.

    Injection failures of any connection are re-emitted here as
    ``error`` events with the connection as second argument.
    """

    RTCSessionDescription = RTCSessionDescription
    RTCIceCandidate = RTCIceCandidate
    RTCDataChannel = RTCDataChannel

    def __init__(self, options: Optional[Dict[str, Any]] = None, daemon: Optional[Daemon] = None):
        super().__init__()
        self._options: WrtcOptions = resolve_options(options)
        if options and options.get('debug') is not None:
            logger.set_log_level(options['debug'])

        self.daemon: Daemon = daemon or self._create_daemon()
        self.registry = CorrelationRegistry(self.daemon)
        self._connection_ids = itertools.count()
        logger.debug(f"Wrtc created with options: {self._options}")

    def _create_daemon(self) -> WebSocketDaemon:
        return WebSocketDaemon(
            self._options['secure'],
            self._options['host'],
            self._options['port'],
            self._options['path'],
            self._options['ping_interval'],
        )

    async def start(self) -> None:
        """Connect to the remote environment."""
        await self.daemon.start()
        await self.daemon.eval(remote_code.BOOTSTRAP)
        logger.info("Wrtc started")

    @property
    def closing(self) -> bool:
        return self.daemon.closing

    def _next_connection_id(self) -> str:
        return to_base36(next(self._connection_ids))

    @logger.catch
    def RTCPeerConnection(self, configuration: Optional[RTCConfiguration] = None) -> PeerConnectionProxy:
        return PeerConnectionProxy(self, configuration)

    async def close(self) -> None:
        logger.info("Closing Wrtc daemon")
        await self.daemon.close()
