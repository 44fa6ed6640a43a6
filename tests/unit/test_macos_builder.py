from __future__ import annotations

import datetime
from dataclasses import replace
from pathlib import Path

import pytest

from app.config import MacOSConfig
from deploy_test_utils import (
    RecordingRunner,
    base_config,
    is_dotnet_publish,
    make_context,
    write_launchd_plist,
)
from services.build.macos import PLIST_BUDDY, MacOSProgramBuilder
from services.distribution.macos import MacOSVelopackBuildDistributor
from services.targets import Architecture, BuildTarget


def _publish_into_output(cmd) -> None:
    output = Path(cmd.args[cmd.args.index("-o") + 1])
    output.mkdir(parents=True, exist_ok=True)
    (output / "onionfruit").write_bytes(b"\xcf\xfa\xed\xfe")
    (output / "onionfruit-helper").write_bytes(b"\xcf\xfa\xed\xfe")


def _solution_assets(tmp_path) -> Path:
    solution = tmp_path / "solution"
    (solution / "macos" / "icons").mkdir(parents=True)
    (solution / "macos" / "icons" / "OnionFruit.icns").write_bytes(b"icns")
    (solution / "macos" / "Info.plist").write_text("<plist />", encoding="utf-8")
    (solution / "macos" / "entitlements.plist").write_text("<plist />", encoding="utf-8")
    write_launchd_plist(
        solution / "macos" / "daemons" / "network.dragonfruit.helper.plist",
        "Contents/MacOS/onionfruit-helper",
    )
    return solution


def _macos_config(**overrides) -> MacOSConfig:
    values = dict(
        icons_directory="macos/icons",
        info_plist="macos/Info.plist",
        entitlements_plist="macos/entitlements.plist",
        launch_daemons="macos/daemons",
    )
    values.update(overrides)
    return MacOSConfig(**values)


def _builder(tmp_path, macos: MacOSConfig, runner: RecordingRunner) -> MacOSProgramBuilder:
    config = replace(base_config(), macos=macos)
    context = make_context(tmp_path, config, runner=runner)
    return MacOSProgramBuilder("2024.1019.2", BuildTarget.parse("osx-arm64"), context)


def test_build_assembles_complete_bundle(tmp_path) -> None:
    _solution_assets(tmp_path)
    runner = RecordingRunner()
    runner.on(is_dotnet_publish, _publish_into_output)
    builder = _builder(tmp_path, _macos_config(), runner)

    builder.build()

    bundle = builder.bundle_path
    assert bundle.name == "OnionFruit.app"
    assert not builder.temporary_bundle_path.exists()
    assert builder.executable_path == bundle / "Contents" / "MacOS" / "onionfruit"
    assert builder.executable_path.is_file()
    assert (bundle / "Contents" / "Resources" / "OnionFruit.icns").is_file()
    assert (bundle / "Contents" / "Info.plist").is_file()
    assert (
        bundle / "Contents" / "Library" / "LaunchDaemons" / "network.dragonfruit.helper.plist"
    ).is_file()

    (publish,) = [cmd for cmd in runner.commands if is_dotnet_publish(cmd)]
    assert publish.args[publish.args.index("-o") + 1] == str(
        builder.temporary_bundle_path / "Contents" / "MacOS"
    )

    (plist_buddy,) = runner.find(PLIST_BUDDY)
    year = datetime.datetime.now(datetime.timezone.utc).year
    assert plist_buddy.args == (
        "-c",
        f"Set :NSHumanReadableCopyright Copyright © {year} DragonFruit Network",
        "-c",
        "Set :CFBundleShortVersionString 2024.1019.2",
        str(builder.temporary_bundle_path / "Contents" / "Info.plist"),
    )


def test_build_without_info_plist_fails(tmp_path) -> None:
    _solution_assets(tmp_path)
    runner = RecordingRunner()
    runner.on(is_dotnet_publish, _publish_into_output)
    builder = _builder(tmp_path, _macos_config(info_plist=""), runner)

    with pytest.raises(FileNotFoundError):
        builder.build()

    assert not builder.bundle_path.exists()
    assert runner.find(PLIST_BUDDY) == []


def test_missing_icons_directory_only_warns(tmp_path, caplog) -> None:
    _solution_assets(tmp_path)
    runner = RecordingRunner()
    runner.on(is_dotnet_publish, _publish_into_output)
    builder = _builder(tmp_path, _macos_config(icons_directory="macos/absent"), runner)

    builder.build()

    assert not (builder.bundle_path / "Contents" / "Resources").exists()
    assert any("skipping icon copy" in record.getMessage() for record in caplog.records)


def test_packaging_arguments_default_to_ad_hoc_signing(tmp_path) -> None:
    builder = _builder(tmp_path, MacOSConfig(), RecordingRunner())

    assert builder.packaging_arguments() == ["--noInst", "--signAppIdentity=-"]


def test_packaging_arguments_with_identity_and_entitlements(tmp_path) -> None:
    solution = _solution_assets(tmp_path)
    macos = _macos_config(code_signing_identity="Developer ID Application: DragonFruit")
    builder = _builder(tmp_path, macos, RecordingRunner())

    assert builder.packaging_arguments() == [
        "--noInst",
        "--signAppIdentity=Developer ID Application: DragonFruit",
        f"--signEntitlements={solution / 'macos' / 'entitlements.plist'}",
    ]


def test_distributor_packs_the_bundle(tmp_path) -> None:
    builder = _builder(tmp_path, MacOSConfig(), RecordingRunner())

    distributor = builder.create_build_distributor()

    assert isinstance(distributor, MacOSVelopackBuildDistributor)
    assert distributor.staging_path == builder.bundle_path
    assert distributor.architecture is Architecture.ARM64
    assert distributor.channel == "mac-arm64"
    assert distributor.operating_system_name == "osx"
    assert distributor.application_name == "onionfruit"
