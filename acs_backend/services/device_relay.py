"""
Relay of device commands to the on-device backend.

The management API never touches the interface-board bus itself. Door
openings, fire-alarm cancels, event flushes and status polls are
forwarded over HTTP to the device backend (``DEVICE_BACKEND_URL``), which
serialises access to the hardware. Every call is bounded by ``DEVICE_TIMEOUT_SEC``.

Failure classes:
  * connection refused, timeout, non-2xx reply -> ``DeviceUnreachable``
  * 2xx reply that is not the expected JSON      -> ``DeviceProtocolError``
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime
from typing import Any, Type, TypeVar

import pydantic
import requests

from ..core.config import Settings
from ..core.errors import DeviceProtocolError, DeviceUnreachable, ValidationError
from ..schemas.device import DeviceReply, DoorOpenResult, FireCancelResult, TimeSyncResult


logger = logging.getLogger("device-relay")

DATETIME_LAYOUT = "%Y-%m-%d %H:%M:%S"

R = TypeVar("R", bound=DeviceReply)


class DeviceRelay:
    def __init__(self, base_url: str, *, timeout_sec: float = 10.0, clock_timeout_sec: float = 5.0) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout_sec = timeout_sec
        self.clock_timeout_sec = clock_timeout_sec

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeviceRelay":
        return cls(
            settings.device_backend_url,
            timeout_sec=settings.device_timeout_sec,
            clock_timeout_sec=settings.clock_command_timeout_sec,
        )

    def _post(self, path: str, data: dict[str, str] | None = None) -> Any:
        url = self.base_url + path
        logger.info("%s <- %s", path, data or {})
        try:
            resp = requests.post(url, data=data, timeout=self.timeout_sec)
        except requests.Timeout as exc:
            logger.warning("Device backend timed out url=%s timeout=%ss", url, self.timeout_sec)
            raise DeviceUnreachable(f"device backend timed out after {self.timeout_sec}s") from exc
        except requests.RequestException as exc:
            logger.warning("Device backend request failed url=%s: %s", url, exc)
            raise DeviceUnreachable(f"device backend request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            logger.warning("Device backend answered HTTP %s url=%s", resp.status_code, url)
            raise DeviceUnreachable(f"device backend answered HTTP {resp.status_code}")
        logger.info("%s -> %s", path, resp.text)
        try:
            return resp.json()
        except ValueError as exc:
            raise DeviceProtocolError(f"device backend reply to {path} is not JSON") from exc

    @staticmethod
    def _parse(model: Type[R], payload: Any, path: str) -> R:
        try:
            return model.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise DeviceProtocolError(f"unexpected reply to {path}: {payload!r}") from exc

    def open_door(self, ib_addr: int, output_addr: int, mode: int) -> DoorOpenResult:
        payload = self._post(
            "api/dooropen",
            {"ibaddr": str(ib_addr), "outputaddr": str(output_addr), "mode": str(mode)},
        )
        return self._parse(DoorOpenResult, payload, "api/dooropen")

    def cancel_fire_alarm(self, ib_addr: int) -> FireCancelResult:
        payload = self._post("api/firecancel", {"ibaddr": str(ib_addr)})
        return self._parse(FireCancelResult, payload, "api/firecancel")

    def event_sync(self) -> DeviceReply:
        """Ask the device backend to flush buffered access events into the event store."""
        payload = self._post("api/eventsync")
        return self._parse(DeviceReply, payload, "api/eventsync")

    def status_sync(self) -> Any:
        """Current board/door states as reported by the device backend; nothing is cached."""
        payload = self._post("api/statussync")
        if not isinstance(payload, (dict, list)):
            raise DeviceProtocolError("unexpected reply to api/statussync")
        return payload

    def _run_clock_command(self, cmd: list[str], errors: list[str]) -> bool:
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, timeout=self.clock_timeout_sec)
        except subprocess.TimeoutExpired:
            errors.append(f"{cmd[0]} timed out")
            logger.warning("Clock command timed out cmd=%s", cmd)
            return False
        except OSError as exc:
            errors.append(f"{cmd[0]} failed: {exc}")
            logger.warning("Clock command failed cmd=%s: %s", cmd, exc)
            return False
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            errors.append(f"{cmd[0]} exited {completed.returncode}: {detail}")
            logger.warning("Clock command exited %s cmd=%s: %s", completed.returncode, cmd, detail)
            return False
        return True

    def sync_device_time(self, value: str) -> TimeSyncResult:
        """
        Set the OS clock, then write it to the hardware clock.

        Each step is attempted regardless of the other; failures are
        reported in the result rather than raised.
        """
        try:
            dt = datetime.strptime(value.strip(), DATETIME_LAYOUT)
        except ValueError as exc:
            raise ValidationError("datetime must be formatted as YYYY-MM-DD HH:MM:SS") from exc
        formatted = dt.strftime(DATETIME_LAYOUT)
        errors: list[str] = []
        system_ok = self._run_clock_command(["date", "-s", formatted], errors)
        hardware_ok = self._run_clock_command(["hwclock", "-w"], errors)
        logger.info("SyncDatetime %s system=%s hardware=%s", formatted, system_ok, hardware_ok)
        return TimeSyncResult(
            datetime=formatted,
            system_clock_ok=system_ok,
            hardware_clock_ok=hardware_ok,
            errors=errors,
        )
