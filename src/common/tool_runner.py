"""Narrow interface for running external packaging tools.

Every fpm/ronn/gzip/WiX/makeappx call goes through ``ToolRunner.run`` so the
rest of the code only sees "output or ToolInvocationError". Tests swap in a
fake runner instead of patching subprocess everywhere.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled, Timer
from errors import ToolInvocationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Captured outcome of one tool invocation."""

    command: List[str]
    returncode: int
    output: str

    @property
    def lines(self) -> List[str]:
        return [line for line in self.output.splitlines() if line.strip()]


class ToolRunner:
    """Runs external processes synchronously and captures combined output."""

    def __init__(self, env: Optional[Mapping[str, str]] = None, timeout: Optional[float] = None):
        self._env: Dict[str, str] = dict(env if env is not None else os.environ)
        self._timeout = timeout

    @property
    def path(self) -> str:
        return self._env.get("PATH", "")

    def extend_path(self, directory: str) -> str:
        """Append a directory to PATH for subsequent calls; returns the old PATH."""
        original = self.path
        self._env["PATH"] = original + os.pathsep + directory if original else directory
        return original

    def restore_path(self, original: str) -> None:
        self._env["PATH"] = original

    def which(self, tool: str) -> Optional[str]:
        return shutil.which(tool, path=self.path)

    def run(self, command: Sequence[str], *, cwd: Optional[str] = None, check: bool = True) -> ToolResult:
        """Run ``command`` and return its output.

        Raises:
            ToolInvocationError: on non-zero exit (when ``check``) or when the
                executable cannot be started or times out.
        """
        cmd = [str(part) for part in command]
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "Tool invocation",
                    extra=extra_context(event="tool_start", component="tool_runner", target=cmd[0], cwd=cwd),
                )
            logger.info("Running: %s", " ".join(cmd))
            try:
                proc = subprocess.run(  # noqa: S603
                    cmd,
                    cwd=cwd,
                    env=self._env,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    timeout=self._timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as exc:
                partial = exc.output or ""
                if isinstance(partial, bytes):
                    partial = partial.decode("utf-8", errors="replace")
                message = f"timed out after {self._timeout}s"
                logger.error("%s %s", cmd[0], message)
                raise ToolInvocationError(cmd, None, f"{message}\n{partial}" if partial else message) from exc
            except OSError as exc:
                raise ToolInvocationError(cmd, None, str(exc)) from exc

        result = ToolResult(command=cmd, returncode=proc.returncode, output=proc.stdout or "")
        if is_debug_enabled(logger):
            logger.debug(
                "Tool finished",
                extra=extra_context(
                    event="tool_exit",
                    component="tool_runner",
                    target=cmd[0],
                    outcome="success" if proc.returncode == 0 else "failure",
                    returncode=proc.returncode,
                    duration_ms=t.duration_ms(),
                ),
            )
        if check and proc.returncode != 0:
            raise ToolInvocationError(cmd, proc.returncode, result.output)
        return result
