"""
Live-control adapter for the single externally driven drone.

Two input paths feed the live drone:
- a websocket relay that forwards pose/battery telemetry from a physical device
- keyboard direction flags, used whenever the device feed is down

Wire format (relay → dashboard), one JSON object per frame:
    {"type": "connection-status", "payload": {"deviceConnected": bool}}
    {"type": "drone-update", "payload": {"id": str, "position": {"x": .., "y": ..},
                                          "heading": float, "battery": float|null,
                                          "online": bool}}
On connect the adapter identifies itself with {"type": "client-type", "payload": "dashboard"}.
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

import websockets

if TYPE_CHECKING:
    from .simulation import SwarmSimulation


logger = logging.getLogger(__name__)


# key names mapped to the direction they steer
_KEY_DIRECTIONS = {
    "w": "up", "arrowup": "up", "up": "up",
    "s": "down", "arrowdown": "down", "down": "down",
    "a": "left", "arrowleft": "left", "left": "left",
    "d": "right", "arrowright": "right", "right": "right",
}


@dataclass
class KeyboardState:
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    def press(self, key: str) -> bool:
        # returns False for keys that do not steer
        direction = _KEY_DIRECTIONS.get(key.lower())
        if direction is None:
            return False
        setattr(self, direction, True)
        return True

    def release(self, key: str) -> bool:
        direction = _KEY_DIRECTIONS.get(key.lower())
        if direction is None:
            return False
        setattr(self, direction, False)
        return True

    def direction(self) -> Tuple[float, float]:
        # screen coordinates: +y points down, so "up" is negative y
        # note: down wins over up and right wins over left when both are held
        vx = 0.0
        vy = 0.0
        if self.up:
            vy = -1.0
        if self.down:
            vy = 1.0
        if self.left:
            vx = -1.0
        if self.right:
            vx = 1.0
        return (vx, vy)


def _as_number(value: Any) -> Optional[float]:
    # bool is an int subclass; a flag is never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json.loads accepts NaN and Infinity literals; neither is a usable reading
    if not math.isfinite(value):
        return None
    return float(value)


# one telemetry message for the live drone; absent fields are None/False
@dataclass(frozen=True)
class LiveDroneUpdate:
    id: str
    position: Optional[Tuple[float, float]] = None
    heading: Optional[float] = None

    # has_battery separates "battery: null" (unknown) from "no battery field"
    has_battery: bool = False
    battery: Optional[float] = None

    online: Optional[bool] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["LiveDroneUpdate"]:
        """
        Build an update from a decoded payload, skipping any field that is
        missing or of the wrong type. Returns None when there is no usable id.
        """
        if not isinstance(payload, dict):
            return None
        drone_id = payload.get("id")
        if not isinstance(drone_id, str) or not drone_id:
            return None

        position = None
        raw_pos = payload.get("position")
        if isinstance(raw_pos, dict):
            x = _as_number(raw_pos.get("x"))
            y = _as_number(raw_pos.get("y"))
            if x is not None and y is not None:
                position = (x, y)
            else:
                logger.debug("Dropping malformed position %r", raw_pos)

        heading = _as_number(payload.get("heading"))

        has_battery = False
        battery = None
        if "battery" in payload:
            raw_batt = payload["battery"]
            if raw_batt is None:
                has_battery = True
            else:
                battery = _as_number(raw_batt)
                has_battery = battery is not None

        online = payload.get("online")
        if not isinstance(online, bool):
            online = None

        return cls(
            id=drone_id,
            position=position,
            heading=heading,
            has_battery=has_battery,
            battery=battery,
            online=online,
        )


class LiveControlAdapter:
    """
    Websocket client that feeds relay telemetry into a SwarmSimulation.

    The adapter never touches simulation state directly; it calls the
    simulation's locked ingest/set methods. Connection loss is never fatal:
    run() reconnects forever with a fixed backoff.
    """

    def __init__(self, simulation: "SwarmSimulation", url: str, reconnect_delay_s: float = 2.0):
        self.simulation = simulation
        self.url = url
        self.reconnect_delay_s = reconnect_delay_s
        self.connected = False
        self._stopped = False

    def stop(self) -> None:
        self._stopped = True

    def handle_message(self, raw: Any) -> bool:
        """Apply one raw frame. Returns True if it changed simulation input."""
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-JSON frame %r", raw)
            return False

        if not isinstance(msg, dict):
            return False

        kind = msg.get("type")
        payload = msg.get("payload")

        if kind == "connection-status":
            if isinstance(payload, dict) and isinstance(payload.get("deviceConnected"), bool):
                self.simulation.set_device_connected(payload["deviceConnected"])
                return True
            return False

        if kind == "drone-update":
            update = LiveDroneUpdate.from_payload(payload)
            if update is None:
                logger.debug("Ignoring drone-update without usable id: %r", payload)
                return False
            self.simulation.set_device_connected(True)
            return self.simulation.ingest_live_update(update)

        return False

    async def _session(self) -> None:
        async with websockets.connect(self.url) as ws:
            self.connected = True
            logger.info("Connected to live relay at %s", self.url)
            await ws.send(json.dumps({"type": "client-type", "payload": "dashboard"}))
            async for raw in ws:
                self.handle_message(raw)
                if self._stopped:
                    break

    async def run(self) -> None:
        while not self._stopped:
            try:
                await self._session()
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
                logger.warning("Live relay connection failed: %s", exc)
            finally:
                if self.connected:
                    logger.info("Live relay disconnected, falling back to keyboard control")
                self.connected = False
                self.simulation.set_device_connected(False)

            if self._stopped:
                break
            await asyncio.sleep(self.reconnect_delay_s)
