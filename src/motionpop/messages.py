"""
Inbound message contract for the external sensor application.

Messages are JSON objects `{"type": ..., "data": {...}}`. The set of types is
closed; `MessageRouter` refuses to build unless every type has a handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

import orjson

logger = logging.getLogger(__name__)


class MessageError(ValueError):
    """Raised for inbound messages that do not match the contract."""


class MessageType(str, Enum):
    PING = "ping"
    SET_WRIST = "setWrist"
    CONFIG = "config"
    START_GAME = "startGame"
    RESET_GAME = "resetGame"


@dataclass(frozen=True)
class Ping:
    type = MessageType.PING


@dataclass(frozen=True)
class SetWrist:
    wrist: str
    x: float
    y: float
    active: bool = True
    type = MessageType.SET_WRIST


@dataclass(frozen=True)
class Config:
    use_external_sensors: Optional[bool] = None
    debug_mode: Optional[bool] = None
    type = MessageType.CONFIG


@dataclass(frozen=True)
class StartGame:
    type = MessageType.START_GAME


@dataclass(frozen=True)
class ResetGame:
    type = MessageType.RESET_GAME


InboundMessage = Union[Ping, SetWrist, Config, StartGame, ResetGame]


def _number(data: Mapping[str, Any], key: str) -> float:
    v = data.get(key)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise MessageError(f"setWrist.{key} must be a number, got {v!r}")
    return float(v)


def _optional_bool(data: Mapping[str, Any], *keys: str) -> Optional[bool]:
    for key in keys:
        if key in data and data[key] is not None:
            v = data[key]
            if not isinstance(v, bool):
                raise MessageError(f"config.{key} must be a boolean, got {v!r}")
            return v
    return None


def _parse_set_wrist(data: Mapping[str, Any]) -> SetWrist:
    wrist = data.get("wrist")
    if not isinstance(wrist, str) or not wrist:
        raise MessageError("setWrist requires a 'wrist' name")
    active = data.get("active", True)
    if active is None:
        active = True
    return SetWrist(wrist=wrist, x=_number(data, "x"), y=_number(data, "y"), active=bool(active))


def _parse_config(data: Mapping[str, Any]) -> Config:
    return Config(
        use_external_sensors=_optional_bool(data, "useExternalSensors", "useTouchDesignerSensors"),
        debug_mode=_optional_bool(data, "debugMode"),
    )


def decode(raw: Union[bytes, str, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    try:
        obj = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MessageError(f"not valid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise MessageError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def parse_message(raw: Union[bytes, str, Mapping[str, Any]]) -> InboundMessage:
    obj = decode(raw)
    try:
        mtype = MessageType(obj.get("type"))
    except ValueError as e:
        raise MessageError(f"unknown message type {obj.get('type')!r}") from e

    data = obj.get("data")
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise MessageError(f"{mtype.value}.data must be an object")

    if mtype is MessageType.PING:
        return Ping()
    if mtype is MessageType.SET_WRIST:
        return _parse_set_wrist(data)
    if mtype is MessageType.CONFIG:
        return _parse_config(data)
    if mtype is MessageType.START_GAME:
        return StartGame()
    if mtype is MessageType.RESET_GAME:
        return ResetGame()
    raise MessageError(f"no parser for message type {mtype.value!r}")


Handler = Callable[[Any], None]


class MessageRouter:
    """Dispatches parsed messages to one handler per `MessageType`."""

    def __init__(self, handlers: Dict[MessageType, Handler]) -> None:
        missing = [t.value for t in MessageType if t not in handlers]
        if missing:
            raise ValueError(f"no handler for message types: {', '.join(missing)}")
        self._handlers = dict(handlers)

    def dispatch(self, msg: InboundMessage) -> None:
        self._handlers[msg.type](msg)

    def handle_raw(self, raw) -> bool:
        """Parse and dispatch; malformed messages are logged and dropped."""
        try:
            msg = parse_message(raw)
        except MessageError as e:
            logger.warning("Dropping malformed message: %s", e)
            return False
        logger.debug("Inbound %s", msg.type.value)
        self.dispatch(msg)
        return True
