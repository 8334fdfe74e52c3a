import asyncio
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union
from aiortc import RTCIceCandidate, RTCSessionDescription
from aiortc.sdp import candidate_from_sdp, candidate_to_sdp

from electron_webrtc_py import remote_code
from electron_webrtc_py.data_channel import RTCDataChannel
from electron_webrtc_py.enums import (
    DataChannelEventType,
    IceConnectionState,
    IceGatheringState,
    PeerConnectionEventType,
    SignalingState,
    WrtcErrorType,
)
from electron_webrtc_py.events import MediaStreamEvent, RTCDataChannelEvent, RTCPeerConnectionIceEvent
from electron_webrtc_py.logger import logger
from electron_webrtc_py.options import DEFAULT_CONFIG, DataChannelInit, RTCConfiguration
from electron_webrtc_py.peer_error import EventEmitterWithError, RTCError, RemoteOperationError
from electron_webrtc_py.remote_code import to_js
from electron_webrtc_py.stats import StatsResponse, normalize_stats

if TYPE_CHECKING:
    from electron_webrtc_py.wrtc import Wrtc

Description = Union[RTCSessionDescription, Dict[str, Any]]
Candidate = Union[RTCIceCandidate, Dict[str, Any]]

CANDIDATE_PREFIX = "candidate:"


def description_to_dict(description: Description) -> Dict[str, Any]:
    if isinstance(description, RTCSessionDescription):
        return {"type": description.type, "sdp": description.sdp}
    return {"type": description.get('type'), "sdp": description.get('sdp')}


def description_from_dict(description: Description) -> RTCSessionDescription:
    if isinstance(description, RTCSessionDescription):
        return description
    return RTCSessionDescription(sdp=description.get('sdp') or "", type=description['type'])


def candidate_to_dict(candidate: Candidate) -> Dict[str, Any]:
    if isinstance(candidate, RTCIceCandidate):
        return {
            "candidate": CANDIDATE_PREFIX + candidate_to_sdp(candidate),
            "sdpMid": candidate.sdpMid,
            "sdpMLineIndex": candidate.sdpMLineIndex,
        }
    return dict(candidate)


def candidate_from_dict(candidate: Optional[Dict[str, Any]]) -> Optional[RTCIceCandidate]:
    """Parse a remote candidate init dict into an aiortc candidate.

    The conversion is lossy: aiortc keeps neither ``usernameFragment`` nor
    extensions such as ``generation`` or ``network-id``. Callers that relay
    candidates should pass ``RTCPeerConnectionIceEvent.candidate_init`` on
    instead.
    """
    if not candidate or not candidate.get('candidate'):
        return None
    sdp = candidate['candidate']
    if sdp.startswith(CANDIDATE_PREFIX):
        sdp = sdp[len(CANDIDATE_PREFIX):]
    rtc_ice_candidate = candidate_from_sdp(sdp)
    rtc_ice_candidate.sdpMid = candidate.get('sdpMid')
    rtc_ice_candidate.sdpMLineIndex = candidate.get('sdpMLineIndex')
    return rtc_ice_candidate


class RTCPeerConnection(EventEmitterWithError[Union[str, WrtcErrorType]]):
    """Proxy for a peer connection that lives in the remote environment.

    Operations build a code fragment, inject it through the daemon and await
    the completion message matched by the correlation registry. Connection
    state is never changed by a local call: it mirrors what the remote object
    reports on the ``pc:<id>`` topic. The only exception is
    ``setLocalDescription``, which records the description before the remote
    side confirms it.

    Unsolicited remote events are re-emitted with pyee under their W3C names
    (``icecandidate``, ``datachannel``, ...) after the matching state update.

    Pending operations never time out. ``close()`` does not reject them, so
    callers that need bounded latency wrap the await in ``asyncio.wait_for``.
    """

    def __init__(self, wrtc: 'Wrtc', configuration: Optional[RTCConfiguration] = None):
        if wrtc.daemon.closing:
            raise RTCError(
                WrtcErrorType.DaemonClosed,
                "Cannot create RTCPeerConnection, the electron-webrtc daemon has been closed"
            )
        super().__init__()
        self._wrtc = wrtc
        self._daemon = wrtc.daemon
        self._registry = wrtc.registry
        self._id: str = wrtc._next_connection_id()
        self._data_channels: Dict[str, RTCDataChannel] = {}
        self._offer: Optional[RTCSessionDescription] = None
        self._answer: Optional[RTCSessionDescription] = None

        self.signalingState: str = SignalingState.Stable.value
        self.iceConnectionState: str = IceConnectionState.New.value
        self.iceGatheringState: str = IceGatheringState.New.value
        self.localDescription: Optional[RTCSessionDescription] = None
        self.remoteDescription: Optional[RTCSessionDescription] = None

        self._daemon.on(f"pc:{self._id}", self._on_message)
        self._inject(remote_code.create_connection(self._id, configuration or DEFAULT_CONFIG))
        logger.debug(f"PC#{self._id} created")

    @property
    def id(self) -> str:
        return self._id

    @property
    def dataChannels(self) -> Dict[str, RTCDataChannel]:
        return dict(self._data_channels)

    # Event routing

    def _on_message(self, message: Dict[str, Any]) -> None:
        try:
            kind = PeerConnectionEventType(message.get('type'))
        except ValueError:
            logger.warning(f"PC#{self._id} Unrecognized event type: {message.get('type')}")
            return

        event = message.get('event') or {}
        logger.debug(f"{self._id} << {kind.value} {message}")

        payload = self._routes[kind](self, message, event)
        self.emit(kind.value, payload)

    def _route_add_stream(self, message, event):
        return MediaStreamEvent()

    def _route_data_channel(self, message, event):
        channel_info = message.get('channel') or {}
        key = message.get('key') or str(channel_info.get('id'))
        channel = RTCDataChannel(self, key=key, label=channel_info.get('label', ""))
        channel._initialize(channel_info)
        self._register_data_channel(channel)
        return RTCDataChannelEvent(channel)

    def _route_ice_candidate(self, message, event):
        self.iceGatheringState = message.get('iceGatheringState', self.iceGatheringState)
        offer = message.get('offer')
        if offer:
            self._offer = self._merge_description(self._offer, offer)
        candidate = event.get('candidate')
        return RTCPeerConnectionIceEvent(candidate_from_dict(candidate), candidate_init=candidate or None)

    def _route_ice_connection_state(self, message, event):
        self.iceConnectionState = message.get('iceConnectionState', self.iceConnectionState)
        return self.iceConnectionState

    def _route_remove_stream(self, message, event):
        return MediaStreamEvent(stream=event or None)

    def _route_signaling_state(self, message, event):
        self.signalingState = message.get('signalingState', self.signalingState)
        return self.signalingState

    def _route_passthrough(self, message, event):
        return event

    _routes: Dict[PeerConnectionEventType, Callable[..., Any]] = {
        PeerConnectionEventType.AddStream: _route_add_stream,
        PeerConnectionEventType.DataChannel: _route_data_channel,
        PeerConnectionEventType.IceCandidate: _route_ice_candidate,
        PeerConnectionEventType.IceConnectionStateChange: _route_ice_connection_state,
        PeerConnectionEventType.RemoveStream: _route_remove_stream,
        PeerConnectionEventType.SignalingStateChange: _route_signaling_state,
        PeerConnectionEventType.NegotiationNeeded: _route_passthrough,
        PeerConnectionEventType.IdentityResult: _route_passthrough,
        PeerConnectionEventType.IdpAssertionError: _route_passthrough,
        PeerConnectionEventType.IdpValidationError: _route_passthrough,
    }

    @staticmethod
    def _merge_description(current: Optional[RTCSessionDescription],
                           update: Dict[str, Any]) -> RTCSessionDescription:
        merged = description_to_dict(current) if current else {}
        merged.update({k: v for k, v in update.items() if v is not None})
        return description_from_dict(merged)

    def _register_data_channel(self, channel: RTCDataChannel) -> None:
        self._data_channels[channel.key] = channel

    # Negotiation

    async def createOffer(self, options: Optional[Dict[str, Any]] = None) -> RTCSessionDescription:
        if self._offer:
            return self._offer
        offer = await self._call_remote('createOffer', *self._js_options(options))
        self._offer = description_from_dict(offer)
        return self._offer

    async def createAnswer(self, options: Optional[Dict[str, Any]] = None) -> RTCSessionDescription:
        if self._answer:
            return self._answer
        answer = await self._call_remote('createAnswer', *self._js_options(options))
        self._answer = description_from_dict(answer)
        return self._answer

    async def setLocalDescription(self, description: Description) -> None:
        # Recorded before the remote side confirms, and kept if it fails.
        self.localDescription = description_from_dict(description)
        await self._call_remote(
            'setLocalDescription',
            f"new RTCSessionDescription({to_js(description_to_dict(description))})"
        )

    async def setRemoteDescription(self, description: Description) -> None:
        await self._call_remote(
            'setRemoteDescription',
            f"new RTCSessionDescription({to_js(description_to_dict(description))})"
        )
        self.remoteDescription = description_from_dict(description)

    async def addIceCandidate(self, candidate: Optional[Candidate]) -> None:
        if candidate is None:
            await self._call_remote('addIceCandidate')
            return
        await self._call_remote(
            'addIceCandidate',
            f"new RTCIceCandidate({to_js(candidate_to_dict(candidate))})"
        )

    async def getStats(self, callback: Optional[Callable[[StatsResponse], Any]] = None) -> StatsResponse:
        items = await self._request(remote_code.STATS_BODY)
        response = normalize_stats(items)
        if callback:
            callback(response)
        return response

    def createDataChannel(self, label: str, options: Optional[DataChannelInit] = None) -> RTCDataChannel:
        channel = RTCDataChannel(self, label=label)
        channel.once(DataChannelEventType.Init.value, lambda: self._register_data_channel(channel))
        created = self._request(remote_code.create_data_channel(channel.key, label, options or {}))
        created.add_done_callback(channel._on_created)
        return channel

    def close(self) -> None:
        if self.signalingState == SignalingState.Closed.value:
            logger.debug(f"PC#{self._id} already closed")
            return
        self._inject(remote_code.statement(self._id, remote_code.CLOSE_BODY))

    # Remote calls

    @staticmethod
    def _js_options(options: Optional[Dict[str, Any]]):
        return (to_js(options),) if options else ()

    def _call_remote(self, name: str, *args: str) -> asyncio.Future:
        return self._request(remote_code.call_method(name, *args))

    def _request(self, body: str) -> asyncio.Future:
        future = asyncio.get_event_loop().create_future()
        token = self._registry.issue()

        def on_success(result):
            if not future.done():
                future.set_result(result)

        def on_failure(err):
            if not future.done():
                future.set_exception(RemoteOperationError(err))

        self._registry.register(token, on_success, on_failure)
        self._inject(remote_code.request(self._id, token, body))
        return future

    def _inject(self, code: str) -> asyncio.Future:
        ack = self._daemon.eval(code)
        ack.add_done_callback(self._on_injected)
        return ack

    def _on_injected(self, ack: asyncio.Future) -> None:
        if ack.cancelled():
            return
        err = ack.exception()
        if err is None:
            return
        # Not tied to any pending operation: the fragment may not be attributable to one.
        self.emit_error(WrtcErrorType.InjectionFailed, err)
        self._wrtc.emit_error(WrtcErrorType.InjectionFailed, err, self)

    def __repr__(self) -> str:
        return f"<RTCPeerConnection id={self._id} signalingState={self.signalingState}>"
