"""Docker implementation of the SandboxProvider and Sandbox ports.

Each run gets one long-lived, resource-capped container with the workspace
mounted at /workspace. Steps are executed with `docker exec`; their output is
redirected to log files inside the mounted workspace so that it can be read
from the host even after the container has been killed.
"""

import asyncio
import os
import shlex
import stat
from pathlib import Path, PurePosixPath

import docker
from docker.errors import DockerException, ImageNotFound, NotFound
from docker.models.containers import Container

from project_eval.config.domain.sandbox import SandboxConfig
from project_eval.sandbox.domain.observer import SandboxObserver
from project_eval.sandbox.domain.sandbox import SandboxSpec, SandboxStep
from project_eval.sandbox.infrastructure.errors import SandboxUnavailableError
from project_eval.workspace.domain.workspace import ARTIFACT_DIR, LOG_DIR, RUN_CONFIG_FILE

_MOUNT_POINT = PurePosixPath("/workspace")
_PID_FILE = ARTIFACT_DIR / "app.pid"
_PROBE_TIMEOUT_MS = 2000
_LABEL_PREFIX = "project-eval"
_MAX_READ_BYTES = 4 * 1024 * 1024
# docker reports no exit code when an exec could not be observed to finish.
_UNKNOWN_EXIT_CODE = 255

_PROBE_SCRIPT = """\
const req = require("http").get("http://127.0.0.1:{port}/", (res) => {{
  res.resume();
  process.exit(0);
}});
req.on("error", () => process.exit(1));
req.setTimeout({timeout_ms}, () => {{
  req.destroy();
  process.exit(1);
}});
"""


class DockerSandboxProvider:
    """Launches DockerSandbox instances from static SandboxConfig."""

    def __init__(self, config: SandboxConfig, observer: SandboxObserver) -> None:
        self._config = config
        self._observer = observer
        self._client: docker.DockerClient | None = None

    async def launch(self, spec: SandboxSpec) -> "DockerSandbox":
        return await asyncio.to_thread(self._launch, spec)

    def _launch(self, spec: SandboxSpec) -> "DockerSandbox":
        client = self._connect()
        workspace = spec.workspace
        project_path = workspace.project_dir.relative_to(workspace.root).as_posix()
        workdir = _MOUNT_POINT / project_path if project_path != "." else _MOUNT_POINT
        memory = f"{self._config.memory_mb}m"

        try:
            container = client.containers.run(
                self._config.image,
                ["sleep", "infinity"],
                detach=True,
                init=True,
                working_dir=str(workdir),
                volumes={str(workspace.root): {"bind": str(_MOUNT_POINT), "mode": "rw"}},
                environment=dict(self._config.environment),
                user=self._config.user,
                nano_cpus=int(self._config.cpu_cores * 1_000_000_000),
                mem_limit=memory,
                memswap_limit=memory,
                pids_limit=self._config.pids_limit,
                network_mode=self._config.network_mode,
                security_opt=["no-new-privileges"],
                cap_drop=["ALL"],
                labels={
                    f"{_LABEL_PREFIX}.run-id": spec.run_id,
                    f"{_LABEL_PREFIX}.framework": spec.framework,
                },
            )
        except ImageNotFound as exc:
            raise SandboxUnavailableError(
                f"image {self._config.image!r} is not available"
            ) from exc
        except DockerException as exc:
            raise SandboxUnavailableError(f"cannot start container: {exc}") from exc

        return DockerSandbox(
            container=container,
            config=self._config,
            observer=self._observer,
            run_id=spec.run_id,
            workdir=workdir,
            host_project_dir=workspace.project_dir,
            report_path=workspace.report_path,
        )

    def _connect(self) -> docker.DockerClient:
        if self._client is not None:
            return self._client
        try:
            client = docker.from_env()
            client.ping()
        except DockerException as exc:
            raise SandboxUnavailableError(f"cannot connect to docker: {exc}") from exc
        self._client = client
        return client


class DockerSandbox:
    """One running container bound to one workspace."""

    def __init__(
        self,
        container: Container,
        config: SandboxConfig,
        observer: SandboxObserver,
        run_id: str,
        workdir: PurePosixPath,
        host_project_dir: Path,
        report_path: Path,
    ) -> None:
        self._container = container
        self._config = config
        self._observer = observer
        self._run_id = run_id
        self._workdir = workdir
        self._host_project_dir = host_project_dir
        self._report_path = report_path

    async def install(self) -> int:
        return await self._run_step("install", self._config.install_command)

    async def start_app(self) -> None:
        command = self._config.start_command.format(port=self._config.app_port)
        log = LOG_DIR / "app.log"
        # setsid makes the server a process group leader so stop_app can kill the tree.
        script = (
            f"setsid sh -c {shlex.quote(f'echo $$ > {_PID_FILE}; exec {command}')}"
            f" > {log} 2>&1 &"
        )
        await self._exec(["sh", "-c", script], detach=True)

    async def probe(self) -> bool:
        script = _PROBE_SCRIPT.format(
            port=self._config.app_port, timeout_ms=_PROBE_TIMEOUT_MS
        )
        exit_code, _ = await self._exec(["node", "-e", script])
        return exit_code == 0

    async def run_tests(self) -> int:
        command = self._config.test_command.format(
            config=RUN_CONFIG_FILE, port=self._config.app_port
        )
        return await self._run_step("test", command)

    async def stop_app(self) -> None:
        pid = f"$(cat {_PID_FILE})"
        script = (
            f"if [ -f {_PID_FILE} ]; then"
            f" kill -s TERM -- -{pid} 2>/dev/null; sleep 1; kill -s KILL -- -{pid} 2>/dev/null;"
            " fi; true"
        )
        await self._exec(["sh", "-c", script])

    async def output(self, step: SandboxStep) -> str:
        path = self._host_project_dir / LOG_DIR / f"{step}.log"
        return await asyncio.to_thread(_read_text, path, self._host_project_dir)

    async def report(self) -> str | None:
        text = await asyncio.to_thread(
            _read_text, self._report_path, self._host_project_dir
        )
        return text or None

    async def destroy(self) -> None:
        await asyncio.to_thread(self._destroy)

    def _destroy(self) -> None:
        try:
            # Files created in the container must stay removable by the host.
            self._container.exec_run(
                ["sh", "-c", f"chmod -R a+rwX {_MOUNT_POINT} 2>/dev/null; true"],
                user="root",
            )
        except NotFound:
            return
        except DockerException as exc:
            self._observer.sandbox_cleanup_degraded(run_id=self._run_id, reason=str(exc))
        try:
            self._container.remove(force=True)
        except NotFound:
            return
        except DockerException as exc:
            raise SandboxUnavailableError(f"cannot remove container: {exc}") from exc

    async def _run_step(self, step: SandboxStep, command: str) -> int:
        log = LOG_DIR / f"{step}.log"
        exit_code, _ = await self._exec(["sh", "-c", f"{command} > {log} 2>&1"])
        return exit_code

    async def _exec(self, cmd: list[str], detach: bool = False) -> tuple[int, bytes]:
        return await asyncio.to_thread(self._exec_sync, cmd, detach)

    def _exec_sync(self, cmd: list[str], detach: bool) -> tuple[int, bytes]:
        try:
            result = self._container.exec_run(cmd, workdir=str(self._workdir), detach=detach)
        except DockerException as exc:
            raise SandboxUnavailableError(f"cannot exec in container: {exc}") from exc
        exit_code = _UNKNOWN_EXIT_CODE if result.exit_code is None else result.exit_code
        return exit_code, result.output or b""


def _read_text(path: Path, root: Path) -> str:
    """Read a file the sandboxed project could have written.

    Only a regular file that resolves inside root is read, never through a
    symlink, and only its last _MAX_READ_BYTES. Anything else reads as empty.
    """
    try:
        if not path.resolve().is_relative_to(root.resolve()):
            return ""
        fd = os.open(path, os.O_RDONLY | os.O_NOFOLLOW | os.O_NONBLOCK)
    except OSError:
        return ""
    try:
        with os.fdopen(fd, "rb") as fh:
            info = os.fstat(fh.fileno())
            if not stat.S_ISREG(info.st_mode):
                return ""
            if info.st_size > _MAX_READ_BYTES:
                fh.seek(info.st_size - _MAX_READ_BYTES)
            raw = fh.read(_MAX_READ_BYTES)
    except OSError:
        return ""
    return raw.decode("utf-8", errors="replace")
