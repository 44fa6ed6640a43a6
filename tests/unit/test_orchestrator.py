from __future__ import annotations

import datetime
from dataclasses import replace
from pathlib import Path

import pytest

from app import orchestrator
from deploy_test_utils import (
    FakeReleaseClient,
    RecordingRunner,
    base_config,
    github_config,
    is_dotnet_publish,
    is_vpk,
    make_solution,
    option_value,
    release,
)
from services.errors import CommandError, DeployError, UnsupportedTargetError
from shared import logging_config

TODAY = datetime.date(2024, 10, 19)


@pytest.fixture(autouse=True)
def reset_logging():
    logging_config._reset_for_tests()
    yield
    logging_config._reset_for_tests()


def _windows_runner(client: FakeReleaseClient) -> RecordingRunner:
    runner = RecordingRunner()

    def publish(cmd) -> None:
        output = Path(cmd.args[cmd.args.index("-o") + 1])
        output.mkdir(parents=True, exist_ok=True)
        (output / "DragonFruit.OnionFruit.Windows.exe").write_bytes(b"MZ")

    def pack(cmd) -> None:
        releases = Path(option_value(cmd, "outputDir"))
        (releases / "OnionFruit-win-Setup.exe").write_bytes(b"MZ")
        (releases / "RELEASES").write_text("", encoding="utf-8")

    def upload(cmd) -> None:
        tag = option_value(cmd, "tag")
        client.releases.insert(0, release(tag, "OnionFruit-win-Setup.exe", "RELEASES"))

    runner.on(is_dotnet_publish, publish)
    runner.on(is_vpk("pack"), pack)
    runner.on(is_vpk("upload"), upload)
    return runner


def test_validate_project_rejects_other_extensions(tmp_path) -> None:
    project = tmp_path / "App.fsproj"
    project.write_text("", encoding="utf-8")

    with pytest.raises(FileNotFoundError):
        orchestrator.validate_project(project)
    with pytest.raises(FileNotFoundError):
        orchestrator.validate_project(tmp_path / "Missing.csproj")


def test_find_solution_root_walks_upwards(tmp_path) -> None:
    project = make_solution(tmp_path)

    assert orchestrator.find_solution_root(project.parent, "OnionFruit.sln") == tmp_path / "solution"
    with pytest.raises(FileNotFoundError):
        orchestrator.find_solution_root(project.parent, "Other.sln")
    with pytest.raises(DeployError):
        orchestrator.find_solution_root(project.parent, "")


def test_windows_deployment_end_to_end(tmp_path) -> None:
    project = make_solution(tmp_path)
    client = FakeReleaseClient(releases=[release("2024.1019.0")])
    runner = _windows_runner(client)

    version = orchestrator.deploy(
        project,
        "win-x64",
        None,
        github_config(base_config()),
        release_client=client,
        runner=runner,
        working_dir=tmp_path / "work",
        host_platform="linux",
        today=TODAY,
    )

    assert version == "2024.1019.1"
    steps = [cmd.args[0] if cmd.args[0] == "publish" else cmd.args[3] for cmd in runner.commands]
    assert steps == ["publish", "download", "[win]", "upload"]
    (publish,) = runner.find("dotnet", "publish")
    assert publish.args[-1] == str(project.resolve())
    assert "-p:Version=2024.1019.1" in publish.args
    assert client.renamed == [(10, "install-x64.exe"), (11, "ONIONFRUITUPGRADE")]
    assert (tmp_path / "work" / "staging" / "DragonFruit.OnionFruit.Windows.exe").is_file()


def test_explicit_version_skips_lookup(tmp_path) -> None:
    project = make_solution(tmp_path)
    runner = _windows_runner(FakeReleaseClient())

    version = orchestrator.deploy(
        project,
        "win-arm64",
        "2024.1019.9",
        base_config(),
        runner=runner,
        working_dir=tmp_path / "work",
        host_platform="linux",
        today=TODAY,
    )

    assert version == "2024.1019.9"
    assert runner.find("dotnet", "tool", "run", "vpk", "download") == []
    assert runner.find("dotnet", "tool", "run", "vpk", "upload") == []
    (pack,) = runner.find("dotnet", "tool", "run", "vpk", "[win]")
    assert option_value(pack, "channel") == "win-arm64"


def test_unsupported_target_is_rejected(tmp_path) -> None:
    project = make_solution(tmp_path)

    with pytest.raises(UnsupportedTargetError):
        orchestrator.deploy(
            project,
            "linux-x64",
            "1.0.0",
            base_config(),
            runner=RecordingRunner(),
            working_dir=tmp_path / "work",
        )


def test_skip_build_requires_existing_executable(tmp_path) -> None:
    project = make_solution(tmp_path)
    runner = RecordingRunner()
    config = replace(base_config(), skip_build=True)

    with pytest.raises(FileNotFoundError):
        orchestrator.deploy(
            project,
            "win-x64",
            "1.0.0",
            config,
            runner=runner,
            working_dir=tmp_path / "work",
            host_platform="linux",
        )

    assert runner.commands == []


def test_skip_build_reuses_previous_output(tmp_path) -> None:
    project = make_solution(tmp_path)
    staging = tmp_path / "work" / "staging"
    staging.mkdir(parents=True)
    (staging / "DragonFruit.OnionFruit.Windows.exe").write_bytes(b"MZ")
    runner = RecordingRunner()
    config = replace(base_config(), skip_build=True)

    orchestrator.deploy(
        project,
        "win-x64",
        "1.0.0",
        config,
        runner=runner,
        working_dir=tmp_path / "work",
        host_platform="linux",
    )

    assert runner.find("dotnet", "publish") == []
    assert len(runner.find("dotnet", "tool", "run", "vpk")) == 1


def test_failing_step_aborts_pipeline(tmp_path) -> None:
    project = make_solution(tmp_path)
    runner = RecordingRunner()
    runner.on(is_dotnet_publish, lambda cmd: 1)

    with pytest.raises(CommandError):
        orchestrator.deploy(
            project,
            "win-x64",
            "1.0.0",
            base_config(),
            runner=runner,
            working_dir=tmp_path / "work",
            host_platform="linux",
        )

    assert len(runner.commands) == 1


def test_main_returns_error_for_invalid_project(tmp_path) -> None:
    assert orchestrator.main([str(tmp_path / "missing.csproj"), "win-x64"]) == 1


def test_main_opens_release_page_after_success(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ONIONDEPLOY_GITHUB__USER", "dragonfruitnetwork")
    monkeypatch.setenv("ONIONDEPLOY_GITHUB__REPO", "onionfruit")
    monkeypatch.setenv("ONIONDEPLOY_GITHUB__TOKEN", "ghp_secret")
    calls = []
    opened = []
    monkeypatch.setattr(
        orchestrator,
        "deploy",
        lambda project, target, version, config, **kwargs: calls.append((project, target, version, kwargs)),
    )
    monkeypatch.setattr(orchestrator.webbrowser, "open", opened.append)

    assert orchestrator.main(["App.csproj", "win-x64", "2024.1019.0"]) == 0

    ((project, target, version, kwargs),) = calls
    assert (project, target, version) == (Path("App.csproj"), "win-x64", "2024.1019.0")
    assert kwargs["release_client"] is not None
    assert opened == ["https://github.com/dragonfruitnetwork/onionfruit/releases"]


def test_main_does_not_open_browser_on_failure(tmp_path, monkeypatch) -> None:
    opened = []

    def failing_deploy(*args, **kwargs):
        raise CommandError("dotnet publish", 1)

    monkeypatch.setattr(orchestrator, "deploy", failing_deploy)
    monkeypatch.setattr(orchestrator.webbrowser, "open", opened.append)

    assert orchestrator.main(["App.csproj", "win-x64"]) == 1
    assert opened == []


def test_missing_target_argument_prints_usage() -> None:
    with pytest.raises(SystemExit) as excinfo:
        orchestrator.main(["App.csproj"])

    assert excinfo.value.code == 2


def test_main_reports_filesystem_errors(monkeypatch) -> None:
    def locked_staging(*args, **kwargs):
        raise PermissionError(13, "Permission denied", "staging")

    monkeypatch.setattr(orchestrator, "deploy", locked_staging)

    assert orchestrator.main(["App.csproj", "win-x64"]) == 1
