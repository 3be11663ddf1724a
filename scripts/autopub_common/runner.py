"""End-to-end pipeline for one action invocation."""

from __future__ import annotations

import dataclasses
import typing as typ
from pathlib import Path

from . import workflow_commands as wf
from .artifacts import ArtifactBridge, ArtifactStore
from .dispatcher import dispatch, require_credentials
from .errors import CommandFailedError, ReleaseInfoError
from .installer import InstalledTool, install_tool
from .outputs import project_outputs, write_outputs
from .release_info import ReleaseInfo, release_info_path
from .summary import write_step_summary

if typ.TYPE_CHECKING:
    from .dispatcher import CommandResult
    from .inputs import ActionConfig, VersionSpec

__all__ = ["Installer", "RunResult", "run_action"]


class Installer(typ.Protocol):
    def __call__(
        self,
        spec: VersionSpec,
        env_dir: Path,
        *,
        plugins: typ.Sequence[str] = (),
    ) -> InstalledTool: ...


@dataclasses.dataclass(slots=True)
class RunResult:
    """Outcome of :func:`run_action`."""

    command: str
    outputs: dict[str, str]
    release_info: ReleaseInfo | None
    artifact_path: Path | None = None
    skipped: bool = False
    exit_code: int | None = None


def _interpret_check(
    result: CommandResult, info: ReleaseInfo | None, config: ActionConfig
) -> ReleaseInfo:
    """Decide whether ``check`` succeeded from its release info, not its exit code.

    autopub exits non-zero both when validation fails and when there is no
    release file at all; only ``has_release`` in the fresh release info tells
    the two apart.
    """
    if info is None:
        if not result.succeeded:
            message = f"autopub check failed with exit code {result.exit_code}"
            raise CommandFailedError(
                message, exit_code=result.exit_code, output=result.output
            )
        message = "autopub check finished without writing release_info.json"
        raise ReleaseInfoError(message)
    if info.has_release:
        if not result.succeeded:
            message = f"autopub check failed with exit code {result.exit_code}"
            raise CommandFailedError(
                message, exit_code=result.exit_code, output=result.output
            )
        return info
    if config.fail_on_missing:
        message = "No release file found and 'fail-on-missing' is enabled"
        raise CommandFailedError(
            message, exit_code=result.exit_code, output=result.output
        )
    wf.notice("No release file found; nothing to release.", title="autopub check")
    return info


def _restore_previous(bridge: ArtifactBridge, config: ActionConfig) -> ReleaseInfo:
    if config.download_artifact:
        with wf.group(f"Restoring artifact '{config.artifact_name}'"):
            if bridge.reuses_local_state:
                wf.info(
                    f"{config.state_dir} already holds artifact "
                    f"'{config.artifact_name}'; keeping local changes"
                )
                return bridge.restore()
            info = bridge.restore()
            wf.info(f"Restored {bridge.slot} into {config.state_dir}")
            return info
    return bridge.require_local_state()


def _finalise(
    result: RunResult,
    github_output: Path,
    config: ActionConfig,
    step_summary: Path | None,
) -> RunResult:
    outputs = dict(result.outputs)
    outputs["artifact-staged"] = "true" if result.artifact_path else "false"
    outputs["artifact-path"] = (
        result.artifact_path.as_posix() if result.artifact_path else ""
    )
    write_outputs(github_output, outputs)
    if step_summary is not None:
        write_step_summary(
            step_summary,
            command=config.command,
            outputs=result.outputs,
            artifact_name=config.artifact_name,
            artifact_path=result.artifact_path,
        )
    return result


def run_action(
    config: ActionConfig,
    github_output: Path,
    *,
    installer: Installer = install_tool,
    base_env: typ.Mapping[str, str] | None = None,
    step_summary: Path | None = None,
) -> RunResult:
    """Install autopub, run the configured command and publish outputs.

    Parameters
    ----------
    config : ActionConfig
        Resolved action inputs.
    github_output : Path
        ``GITHUB_OUTPUT`` file receiving the step outputs.
    installer : Installer
        Callable installing autopub; :func:`install_tool` in production.
    base_env : Mapping[str, str] | None
        Environment autopub inherits; defaults to the current process's.
    step_summary : Path | None
        ``GITHUB_STEP_SUMMARY`` file to append to, when set.

    Raises
    ------
    AutopubActionError
        Any failure in the error taxonomy. The "no release file" case with
        ``fail-on-missing`` disabled is reported as success instead.
    """
    for token in (config.github_token, config.pypi_token):
        if token:
            wf.add_mask(token)

    command = config.command
    require_credentials(command, config)

    store = ArtifactStore(config.artifact_root)
    bridge = ArtifactBridge(command, config.state_dir, store, config.artifact_name)

    previous: ReleaseInfo | None = None
    if bridge.is_producer:
        bridge.begin_check()
    else:
        previous = _restore_previous(bridge, config)
        if not previous.has_release:
            wf.notice(
                f"Restored release info has no pending release; skipping {command}.",
                title=f"autopub {command}",
            )
            bridge.finish()
            return _finalise(
                RunResult(command, project_outputs(previous), previous, skipped=True),
                github_output,
                config,
                step_summary,
            )

    tool = installer(
        config.version_spec, config.tool_env_dir, plugins=config.extra_plugins
    )

    with wf.group(f"autopub {command}"):
        result = dispatch(
            command,
            config,
            tool.executable,
            base_env=base_env,
        )
    current = ReleaseInfo.load(release_info_path(config.state_dir))

    artifact_path: Path | None = None
    if bridge.is_producer:
        current = _interpret_check(result, current, config)
        if config.upload_artifact:
            artifact_path = bridge.persist(current)
        else:
            bridge.finish()
    else:
        if not result.succeeded:
            message = f"autopub {command} failed with exit code {result.exit_code}"
            raise CommandFailedError(
                message, exit_code=result.exit_code, output=result.output
            )
        bridge.finish()

    return _finalise(
        RunResult(
            command,
            project_outputs(current, previous),
            current.merged_over(previous) if current is not None else previous,
            artifact_path=artifact_path,
            exit_code=result.exit_code,
        ),
        github_output,
        config,
        step_summary,
    )
