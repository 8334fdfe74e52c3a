from typing import Any, Dict, List, Optional, TypedDict, Union

from electron_webrtc_py.logger import LogLevel


class WrtcOptions(TypedDict, total=False):
    debug: Optional[LogLevel]
    host: Optional[str]
    port: Optional[int]
    path: Optional[str]
    secure: Optional[bool]
    ping_interval: Optional[float]


class RTCIceServer(TypedDict, total=False):
    urls: Union[str, List[str]]
    username: str
    credential: str


class RTCConfiguration(TypedDict, total=False):
    iceServers: List[RTCIceServer]
    iceTransportPolicy: str
    bundlePolicy: str
    sdpSemantics: str


class DataChannelInit(TypedDict, total=False):
    ordered: bool
    maxPacketLifeTime: int
    maxRetransmits: int
    protocol: str
    negotiated: bool
    id: int


DEFAULT_CONFIG: RTCConfiguration = {
    "iceServers": [
        {"urls": "stun:stun.l.google.com:19302"},
    ],
    "sdpSemantics": "unified-plan",
}

DEFAULT_OPTIONS: WrtcOptions = {
    "debug": LogLevel.Disabled,
    "host": "localhost",
    "port": 9223,
    "path": "/",
    "secure": False,
    "ping_interval": 5.0,
}


def resolve_options(options: Optional[Dict[str, Any]]) -> WrtcOptions:
    resolved: WrtcOptions = dict(DEFAULT_OPTIONS)
    resolved.update(options or {})

    # Set path correctly.
    path = resolved.get('path') or "/"
    if path[0] != "/":
        path = "/" + path
    if path[-1] != "/":
        path += "/"
    resolved['path'] = path
    return resolved
