from typing import Any, Dict, Generic, Optional, TypeVar, Union
from pyee.asyncio import AsyncIOEventEmitter

from electron_webrtc_py.enums import WrtcErrorType, WrtcEventType
from electron_webrtc_py.logger import logger

ErrorType = TypeVar('ErrorType', bound=Union[str, WrtcErrorType])

class RTCError(Generic[ErrorType], Exception):
    def __init__(self, type: ErrorType, err: Union[str, Exception]):
        if isinstance(err, str):
            super().__init__(err)
        else:
            super().__init__(str(err))
            self.__dict__.update(err.__dict__)
        self.type = type


class RemoteEvalError(RTCError[WrtcErrorType]):
    """A code fragment failed while being injected into the remote environment."""

    def __init__(self, err: Union[str, Dict[str, Any]]):
        if isinstance(err, dict):
            self.remote_name = err.get('name')
            err = err.get('message') or str(err)
        else:
            self.remote_name = None
        super().__init__(WrtcErrorType.InjectionFailed, err)


class RemoteOperationError(RTCError[WrtcErrorType]):
    """A remote operation completed with an error (e.g. a negotiation failure)."""

    def __init__(self, err: Any):
        self.remote_name: Optional[str] = None
        if isinstance(err, dict):
            self.remote_name = err.get('name')
            message = err.get('message') or str(err)
        else:
            message = str(err)
        super().__init__(WrtcErrorType.OperationFailed, message)


class EventEmitterWithError(Generic[ErrorType], AsyncIOEventEmitter):
    def emit_error(self, type: ErrorType, err: Union[str, Exception], *args: Any) -> None:
        logger.error("EventEmitterWithError Error: %s", err)
        if not isinstance(err, RTCError):
            err = RTCError(type, err)
        # pyee raises unhandled error events from inside loop callbacks
        if not self.listeners(WrtcEventType.Error.value):
            return
        self.emit(WrtcEventType.Error.value, err, *args)
