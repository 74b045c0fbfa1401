from __future__ import annotations

import pytest

from nvim_bridge.attach import (
    ApiVersion,
    AttachCapabilities,
    AttachNegotiator,
    capabilities_for_version,
)
from nvim_bridge.errors import TransportError, UnsupportedVersion

from helpers import FakeSession, api_info


@pytest.mark.parametrize(
    "version",
    [(0, 2, 1), (0, 2, 2), (0, 4, 3), (1, 2, 1)],
)
def test_full_capabilities_for_patched_versions(version) -> None:
    caps = capabilities_for_version(ApiVersion(*version))

    assert caps == AttachCapabilities(
        rgb=True, popupmenu_external=True, ext_tabline=True
    )


def test_external_tabline_disabled_for_0_2_0() -> None:
    caps = capabilities_for_version(ApiVersion(0, 2, 0))

    assert caps == AttachCapabilities(rgb=True, popupmenu_external=True)
    assert caps.as_options() == {"rgb": True, "popupmenu_external": True}


@pytest.mark.parametrize("version", [(0, 1, 5), (0, 1, 7), (0, 3, 0), (1, 0, 0)])
def test_unsupported_versions_raise(version) -> None:
    with pytest.raises(UnsupportedVersion) as excinfo:
        capabilities_for_version(ApiVersion(*version))

    assert excinfo.value.version == ApiVersion(*version)


def test_api_version_from_malformed_info() -> None:
    with pytest.raises(TransportError):
        ApiVersion.from_api_info([1, {}])


@pytest.mark.asyncio
async def test_attach_issues_ui_attach_with_options(recorded_events) -> None:
    session = FakeSession({"nvim_get_api_info": api_info(0, 2, 1)})

    caps = await AttachNegotiator().attach(session, 80, 24)

    assert caps.ext_tabline is True
    assert session.calls("nvim_ui_attach") == [
        [80, 24, {"rgb": True, "popupmenu_external": True, "ext_tabline": True}]
    ]
    assert "session.attach" in recorded_events.names()


@pytest.mark.asyncio
async def test_attach_fails_before_ui_attach_for_old_engine() -> None:
    session = FakeSession({"nvim_get_api_info": api_info(0, 1, 5)})

    with pytest.raises(UnsupportedVersion):
        await AttachNegotiator().attach(session, 80, 24)

    assert session.calls("nvim_ui_attach") == []
