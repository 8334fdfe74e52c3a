from electron_webrtc_py.enums import (
    DataChannelState,
    IceConnectionState,
    IceGatheringState,
    PeerConnectionEventType,
    SignalingState,
    WrtcErrorType,
)
from electron_webrtc_py.correlation import CorrelationRegistry
from electron_webrtc_py.daemon import Daemon, WebSocketDaemon
from electron_webrtc_py.data_channel import RTCDataChannel
from electron_webrtc_py.logger import LogLevel
from electron_webrtc_py.peer_connection import RTCPeerConnection
from electron_webrtc_py.peer_error import RTCError, RemoteEvalError, RemoteOperationError
from electron_webrtc_py.stats import StatsReport, StatsResponse
from electron_webrtc_py.wrtc import Wrtc

__all__ = [
    'Wrtc', 'Daemon', 'WebSocketDaemon', 'CorrelationRegistry', 'RTCPeerConnection',
    'RTCDataChannel', 'StatsReport', 'StatsResponse', 'RTCError', 'RemoteEvalError',
    'RemoteOperationError', 'LogLevel', 'SignalingState', 'IceConnectionState',
    'IceGatheringState', 'DataChannelState', 'PeerConnectionEventType', 'WrtcErrorType',
]
