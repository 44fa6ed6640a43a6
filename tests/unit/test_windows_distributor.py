from __future__ import annotations

import pytest

from deploy_test_utils import (
    FakeReleaseClient,
    RecordingRunner,
    base_config,
    github_config,
    make_context,
    release,
)
from services.distribution.windows import (
    WindowsVelopackBuildDistributor,
    installer_asset_name,
    installer_suffix,
)
from services.errors import ReleaseHostError


def _distributor(tmp_path, channel, *, client=None, config=None, runtime="win-x64"):
    context = make_context(
        tmp_path,
        config or github_config(base_config()),
        runner=RecordingRunner(),
        release_client=client,
    )
    return WindowsVelopackBuildDistributor(
        context,
        application_name="DragonFruit.OnionFruit.Windows.exe",
        operating_system_name="win",
        runtime_identifier=runtime,
        channel=channel,
    )


def test_installer_naming() -> None:
    assert installer_asset_name("OnionFruit", "win-arm64") == "OnionFruit-win-arm64-Setup.exe"
    assert installer_suffix("win") == "x64"
    assert installer_suffix("win-arm64") == "arm64"


def test_unknown_channel_is_rejected(tmp_path) -> None:
    with pytest.raises(ValueError):
        _distributor(tmp_path, "win-x86")


def test_primary_channel_renames_installer_and_manifest(tmp_path) -> None:
    client = FakeReleaseClient(
        releases=[
            release(
                "2024.1019.0",
                "OnionFruit-2024.1019.0-win-full.nupkg",
                "OnionFruit-win-Setup.exe",
                "RELEASES",
            )
        ]
    )

    _distributor(tmp_path, "win", client=client).post_publish_action("2024.1019.0")

    assert client.renamed == [(11, "install-x64.exe"), (12, "ONIONFRUITUPGRADE")]


def test_secondary_channel_renames_installer_only(tmp_path) -> None:
    client = FakeReleaseClient(
        releases=[
            release(
                "2024.1019.2",
                "OnionFruit-2024.1019.2-win-arm64-full.nupkg",
                "OnionFruit-win-arm64-Setup.exe",
                "RELEASES-win-arm64",
            ),
            release("2024.1019.1", "OnionFruit-win-arm64-Setup.exe"),
        ]
    )

    _distributor(tmp_path, "win-arm64", client=client, runtime="win-arm64").post_publish_action(
        "2024.1019.2"
    )

    assert client.renamed == [(11, "install-arm64.exe")]


def test_missing_installer_asset_raises(tmp_path) -> None:
    client = FakeReleaseClient(releases=[release("2024.1019.0", "RELEASES")])

    with pytest.raises(ReleaseHostError):
        _distributor(tmp_path, "win", client=client).post_publish_action("2024.1019.0")

    assert client.renamed == []


def test_ambiguous_release_tag_raises(tmp_path) -> None:
    client = FakeReleaseClient(
        releases=[
            release("2024.1019.0", "OnionFruit-win-Setup.exe"),
            release("2024.1019.0", "OnionFruit-win-Setup.exe"),
        ]
    )

    with pytest.raises(ReleaseHostError):
        _distributor(tmp_path, "win", client=client).post_publish_action("2024.1019.0")


def test_without_release_client_nothing_is_renamed(tmp_path) -> None:
    distributor = _distributor(tmp_path, "win", config=base_config())

    distributor.post_publish_action("2024.1019.0")

    assert distributor.context.release_client is None


def test_secondary_channel_drops_flat_manifest_after_packing(tmp_path) -> None:
    distributor = _distributor(tmp_path, "win-arm64", runtime="win-arm64")
    releases = distributor.releases_dir
    releases.mkdir(parents=True)
    (releases / "RELEASES").write_text("", encoding="utf-8")
    (releases / "RELEASES-win-arm64").write_text("", encoding="utf-8")
    (releases / "OnionFruit-win-arm64-Setup.exe").write_bytes(b"MZ")

    distributor.post_package_action()

    assert sorted(path.name for path in releases.iterdir()) == ["OnionFruit-win-arm64-Setup.exe"]


def test_primary_channel_keeps_flat_manifest(tmp_path) -> None:
    distributor = _distributor(tmp_path, "win")
    releases = distributor.releases_dir
    releases.mkdir(parents=True)
    (releases / "RELEASES").write_text("", encoding="utf-8")

    distributor.post_package_action()

    assert (releases / "RELEASES").exists()
