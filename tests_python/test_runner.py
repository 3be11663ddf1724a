"""Behavioural tests for the full check → prepare → build → publish chain.

Each test drives :func:`run_action` against a fake autopub executable that
mimics the real tool's filesystem effects, so the hand-off of ``.autopub``
between separate workspaces can be exercised end-to-end.
"""

from __future__ import annotations

import dataclasses
import json
import os
import shutil
import typing as typ
from pathlib import Path

import pytest
from autopub_test_helpers import (
    decode_output_file,
    read_tool_log,
    write_fake_autopub,
    write_release_file,
)


@dataclasses.dataclass(slots=True)
class Job:
    """Filesystem of a single simulated CI job."""

    workspace: Path
    runner_temp: Path
    github_output: Path

    @property
    def slot(self) -> Path:
        return self.runner_temp / "autopub-artifacts" / "autopub-data"


class RecordingInstaller:
    """Installer double returning the fake autopub executable."""

    def __init__(self, autopub_common: object, executable: Path) -> None:
        self._tool_cls = autopub_common.InstalledTool
        self._executable = executable
        self.calls: list[tuple[object, Path, tuple[str, ...]]] = []

    def __call__(
        self, spec: object, env_dir: Path, *, plugins: typ.Sequence[str] = ()
    ) -> object:
        self.calls.append((spec, env_dir, tuple(plugins)))
        return self._tool_cls(self._executable, (spec.requirement(), *plugins))


@pytest.fixture
def tool_log(tmp_path: Path) -> Path:
    return tmp_path / "tool.log"


@pytest.fixture
def installer(autopub_common: object, tmp_path: Path) -> RecordingInstaller:
    return RecordingInstaller(autopub_common, write_fake_autopub(tmp_path / "bin"))


@pytest.fixture
def make_job(tmp_path: Path) -> typ.Callable[[str], Job]:
    def _make(name: str) -> Job:
        root = tmp_path / name
        job = Job(root / "workspace", root / "runner-temp", root / "output.txt")
        job.workspace.mkdir(parents=True)
        job.runner_temp.mkdir(parents=True)
        return job

    return _make


@pytest.fixture
def run(
    autopub_common: object, installer: RecordingInstaller, tool_log: Path
) -> typ.Callable[..., object]:
    def _run(
        job: Job,
        command: str,
        *,
        extra_env: dict[str, str] | None = None,
        step_summary: Path | None = None,
        **inputs: str,
    ) -> object:
        config = autopub_common.resolve_config(
            {"command": command}
            | {key.replace("_", "-"): value for key, value in inputs.items()},
            {
                "GITHUB_WORKSPACE": str(job.workspace),
                "RUNNER_TEMP": str(job.runner_temp),
            },
        )
        base_env = {"PATH": os.environ.get("PATH", ""), "FAKE_AUTOPUB_LOG": str(tool_log)}
        return autopub_common.run_action(
            config,
            job.github_output,
            installer=installer,
            base_env=base_env | (extra_env or {}),
            step_summary=step_summary,
        )

    return _run


def _download(source: Job, target: Job) -> None:
    """Emulate ``actions/download-artifact`` fetching ``source``'s upload."""
    shutil.copytree(source.slot, target.slot, dirs_exist_ok=True)


class TestCheck:
    """Release detection by the producer command."""

    def test_patch_release_is_detected_and_staged(
        self, run: typ.Callable[..., object], make_job: typ.Callable[[str], Job]
    ) -> None:
        job = make_job("job-a")
        write_release_file(job.workspace, "patch", "Fixes a crash.")

        result = run(job, "check", github_token="gh")

        outputs = decode_output_file(job.github_output)
        assert outputs["has-release"] == "true"
        assert outputs["release-type"] == "patch"
        assert outputs["release-notes"] == "Fixes a crash."
        assert outputs["artifact-staged"] == "true"
        assert Path(outputs["artifact-path"]) == job.slot
        assert result.artifact_path == job.slot
        staged = json.loads(
            (job.slot / "payload" / "release_info.json").read_text(encoding="utf-8")
        )
        assert staged["release_type"] == "patch"

    def test_missing_release_file_is_a_soft_failure(
        self,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = make_job("job-a")

        result = run(job, "check", fail_on_missing="false")

        outputs = decode_output_file(job.github_output)
        assert outputs["has-release"] == "false"
        assert outputs["artifact-staged"] == "false"
        assert result.artifact_path is None
        assert not job.slot.exists(), "No artifact should be produced"
        assert "::notice" in capsys.readouterr().err

    def test_missing_release_file_fails_when_requested(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
    ) -> None:
        job = make_job("job-a")

        with pytest.raises(autopub_common.CommandFailedError, match="fail-on-missing"):
            run(job, "check", fail_on_missing="true")

        assert not job.slot.exists()

    def test_invalid_release_file_is_fatal(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
    ) -> None:
        job = make_job("job-a")
        (job.workspace / "RELEASE.md").write_text("No type here\n", encoding="utf-8")

        with pytest.raises(autopub_common.CommandFailedError) as exc:
            run(job, "check")

        assert exc.value.exit_code == 1
        assert "missing a release type" in exc.value.output

    def test_crash_without_release_info_is_fatal(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
    ) -> None:
        job = make_job("job-a")
        state = job.workspace / ".autopub"
        state.mkdir()
        (state / "release_info.json").write_text(
            json.dumps({"has_release": False}), encoding="utf-8"
        )

        with pytest.raises(autopub_common.CommandFailedError):
            run(job, "check", extra_env={"FAKE_AUTOPUB_EXIT": "2"})

    def test_upload_can_be_disabled(
        self, run: typ.Callable[..., object], make_job: typ.Callable[[str], Job]
    ) -> None:
        job = make_job("job-a")
        write_release_file(job.workspace, "minor", "New feature.")

        result = run(job, "check", upload_artifact="false")

        assert result.artifact_path is None
        assert not job.slot.exists()
        assert decode_output_file(job.github_output)["has-release"] == "true"


class TestConsumers:
    """Commands that depend on state produced by ``check``."""

    def test_prepare_without_artifact_fails_closed(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
        installer: RecordingInstaller,
        tool_log: Path,
    ) -> None:
        job = make_job("job-b")

        with pytest.raises(autopub_common.ArtifactNotFoundError):
            run(job, "prepare")

        assert installer.calls == [], "Nothing should be installed without state"
        assert read_tool_log(tool_log) == []

    def test_prepare_without_download_needs_local_state(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
    ) -> None:
        job = make_job("job-b")

        with pytest.raises(autopub_common.ArtifactNotFoundError, match="download-artifact"):
            run(job, "prepare", download_artifact="false")

    def test_same_job_chain_without_download(
        self, run: typ.Callable[..., object], make_job: typ.Callable[[str], Job]
    ) -> None:
        job = make_job("job-a")
        write_release_file(job.workspace, "major", "Breaking change.")
        run(job, "check", upload_artifact="false")

        run(job, "prepare", download_artifact="false")

        outputs = decode_output_file(job.github_output)
        assert outputs["version"] == "2.0.0"
        assert outputs["release-type"] == "major"

    def test_publish_without_tokens_fails_before_running(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
        installer: RecordingInstaller,
        tool_log: Path,
    ) -> None:
        job = make_job("job-c")

        with pytest.raises(autopub_common.MissingCredentialError):
            run(job, "publish", github_token="", pypi_token="")

        assert installer.calls == []
        assert read_tool_log(tool_log) == [], "No publish attempt should be made"

    def test_restored_state_without_release_skips_command(
        self,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
        installer: RecordingInstaller,
    ) -> None:
        job = make_job("job-b")
        state = job.workspace / ".autopub"
        state.mkdir()
        (state / "release_info.json").write_text(
            json.dumps({"has_release": False}), encoding="utf-8"
        )

        result = run(job, "build", download_artifact="false")

        assert result.skipped is True
        assert installer.calls == []
        assert decode_output_file(job.github_output)["has-release"] == "false"

    def test_failing_consumer_raises(
        self,
        autopub_common: object,
        run: typ.Callable[..., object],
        make_job: typ.Callable[[str], Job],
    ) -> None:
        job_a = make_job("job-a")
        write_release_file(job_a.workspace, "patch", "Fix.")
        run(job_a, "check")
        job_b = make_job("job-b")
        _download(job_a, job_b)

        with pytest.raises(autopub_common.CommandFailedError, match="exit code 4"):
            run(job_b, "build", extra_env={"FAKE_AUTOPUB_EXIT": "4"})


def test_artifact_hand_off_between_jobs(
    run: typ.Callable[..., object],
    make_job: typ.Callable[[str], Job],
    tool_log: Path,
    tmp_path: Path,
) -> None:
    """``check`` in one job feeds ``prepare`` and ``build`` in others."""
    job_a = make_job("job-a")
    write_release_file(job_a.workspace, "minor", "Adds a feature.")
    run(job_a, "check", github_token="gh")

    job_b = make_job("job-b")
    _download(job_a, job_b)
    summary = tmp_path / "summary.md"
    result = run(job_b, "prepare", step_summary=summary)

    outputs = decode_output_file(job_b.github_output)
    assert outputs["has-release"] == "true"
    assert outputs["release-type"] == "minor"
    assert outputs["version"] == "1.3.0"
    assert outputs["artifact-staged"] == "false", "prepare must never re-upload"
    assert result.release_info.release_notes == "Adds a feature."
    assert "- Version: 1.3.0" in summary.read_text(encoding="utf-8")

    job_c = make_job("job-c")
    _download(job_a, job_c)
    run(job_c, "build", extra_env={"FAKE_AUTOPUB_DROP_INFO": "1"})

    outputs = decode_output_file(job_c.github_output)
    assert outputs["release-type"] == "minor", "Restored values must survive"
    assert outputs["release-notes"] == "Adds a feature."

    commands = [(entry["command"], Path(entry["cwd"])) for entry in read_tool_log(tool_log)]
    assert commands == [
        ("check", job_a.workspace),
        ("prepare", job_b.workspace),
        ("build", job_c.workspace),
    ]

def test_same_job_chain_with_default_download_keeps_version(
    run: typ.Callable[..., object],
    make_job: typ.Callable[[str], Job],
) -> None:
    """``publish`` after ``prepare`` in one job sees the prepared version."""
    job_a = make_job("job-a")
    write_release_file(job_a.workspace, "minor", "Adds a feature.")
    run(job_a, "check")
    job_b = make_job("job-b")
    _download(job_a, job_b)
    run(job_b, "prepare")

    _download(job_a, job_b)
    run(job_b, "publish", github_token="gh")

    outputs = decode_output_file(job_b.github_output)
    assert outputs["version"] == "1.3.0"
    assert outputs["release-type"] == "minor"
    info = json.loads(
        (job_b.workspace / ".autopub" / "release_info.json").read_text(encoding="utf-8")
    )
    assert info["version"] == "1.3.0", "Restored state must not be reset to check's"
