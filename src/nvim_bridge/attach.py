"""UI attach negotiation against the engine's reported API version."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from nvim_bridge.errors import TransportError, UnsupportedVersion
from nvim_bridge.runtime import telemetry
from nvim_bridge.session.transport import SessionTransport


@dataclass(frozen=True, slots=True)
class ApiVersion:
    major: int
    minor: int
    patch: int

    @classmethod
    def from_api_info(cls, info: Any) -> "ApiVersion":
        """Read ``[channel_id, {"version": {...}}]`` as returned by the engine."""

        try:
            version = info[1]["version"]
            return cls(
                major=int(version["major"]),
                minor=int(version["minor"]),
                patch=int(version["patch"]),
            )
        except (IndexError, KeyError, TypeError, ValueError) as exc:
            raise TransportError(
                f"Malformed api info: {info!r}", method="nvim_get_api_info"
            ) from exc

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True, slots=True)
class AttachCapabilities:
    rgb: bool
    popupmenu_external: bool
    ext_tabline: bool = False

    def as_options(self) -> Dict[str, bool]:
        options = {"rgb": self.rgb, "popupmenu_external": self.popupmenu_external}
        if self.ext_tabline:
            options["ext_tabline"] = True
        return options


def capabilities_for_version(version: ApiVersion) -> AttachCapabilities:
    """Map an API version to the attach options it supports.

    The first rule compares every component independently, so
    e.g. ``0.3.0`` is not matched by it.
    """

    major, minor, patch = version.major, version.minor, version.patch
    if major >= 0 and minor >= 2 and patch >= 1:
        return AttachCapabilities(rgb=True, popupmenu_external=True, ext_tabline=True)
    if major == 0 and minor == 2:
        # 0.2.0 cannot drive an external tabline
        return AttachCapabilities(rgb=True, popupmenu_external=True)
    raise UnsupportedVersion(version)


class AttachNegotiator:
    """Queries the engine version and performs ``nvim_ui_attach``."""

    def __init__(self, *, logger_name: str | None = "nvim_bridge.session") -> None:
        self._logger_name = logger_name

    async def get_api_version(self, session: SessionTransport) -> ApiVersion:
        info = await session.request("nvim_get_api_info", [])
        return ApiVersion.from_api_info(info)

    async def attach(
        self, session: SessionTransport, cols: int, rows: int
    ) -> AttachCapabilities:
        version = await self.get_api_version(session)
        telemetry.record_event(
            "session.attach",
            data={"version": str(version), "cols": cols, "rows": rows},
            logger_name=self._logger_name,
        )
        capabilities = capabilities_for_version(version)
        options: Mapping[str, bool] = capabilities.as_options()
        await session.request("nvim_ui_attach", [cols, rows, dict(options)])
        telemetry.record_event(
            "session.attached",
            data=dict(options),
            logger_name=self._logger_name,
        )
        return capabilities


__all__ = [
    "ApiVersion",
    "AttachCapabilities",
    "AttachNegotiator",
    "capabilities_for_version",
]
