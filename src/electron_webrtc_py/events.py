from dataclasses import dataclass
from typing import Any, Dict, Optional

from aiortc import RTCIceCandidate


@dataclass
class RTCPeerConnectionIceEvent:
    # None once gathering has finished
    candidate: Optional[RTCIceCandidate] = None
    # Remote candidate init dict as reported, suitable for addIceCandidate
    candidate_init: Optional[Dict[str, Any]] = None


@dataclass
class RTCDataChannelEvent:
    channel: Any


@dataclass
class MediaStreamEvent:
    # Media streams are not proxied, the remote event only reports the stream id.
    stream: Optional[Dict[str, Any]] = None


@dataclass
class MessageEvent:
    data: Any

