import json
from enum import Enum, unique


@unique
class SignalingState(Enum):
    Stable = "stable"
    HaveLocalOffer = "have-local-offer"
    HaveRemoteOffer = "have-remote-offer"
    HaveLocalPranswer = "have-local-pranswer"
    HaveRemotePranswer = "have-remote-pranswer"
    Closed = "closed"


@unique
class IceConnectionState(Enum):
    New = "new"
    Checking = "checking"
    Connected = "connected"
    Completed = "completed"
    Failed = "failed"
    Disconnected = "disconnected"
    Closed = "closed"


@unique
class IceGatheringState(Enum):
    New = "new"
    Gathering = "gathering"
    Complete = "complete"


@unique
class DataChannelState(Enum):
    Connecting = "connecting"
    Open = "open"
    Closing = "closing"
    Closed = "closed"


@unique
class PeerConnectionEventType(Enum):
    """Unsolicited events reported by a remote peer connection."""
    AddStream = "addstream"
    DataChannel = "datachannel"
    IceCandidate = "icecandidate"
    IceConnectionStateChange = "iceconnectionstatechange"
    RemoveStream = "removestream"
    SignalingStateChange = "signalingstatechange"
    NegotiationNeeded = "negotiationneeded"
    IdentityResult = "identityresult"
    IdpAssertionError = "idpassertionerror"
    IdpValidationError = "idpvalidationerror"


@unique
class DataChannelEventType(Enum):
    """Events reported by a remote data channel, plus the local init event."""
    Init = "init"
    Open = "open"
    Message = "message"
    Close = "close"
    Error = "error"
    BufferedAmountLow = "bufferedamountlow"


@unique
class WrtcEventType(Enum):
    Error = "error"


class DaemonMessageType(Enum):
    Eval = "eval"
    EvalResult = "eval-result"
    Message = "message"
    Heartbeat = "heartbeat"


class WrtcErrorType(Enum):
    DaemonClosed = "daemon-closed"
    InjectionFailed = "injection-failed"
    OperationFailed = "operation-failed"
    InvalidState = "invalid-state"
    DaemonError = "daemon-error"
    ChannelError = "channel-error"


class EnumAwareJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)
