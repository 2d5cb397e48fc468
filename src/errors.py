"""Exception hierarchy for packaging failures.

Every fatal condition surfaces as a ``PackagingError`` subclass whose message
names the missing precondition or the failing tool. The CLI maps these to
exit codes; nothing here is retried.
"""

from __future__ import annotations

from typing import Optional, Sequence


class PackagingError(RuntimeError):
    """Base class for all packaging failures."""


class BuildPrerequisiteMissing(PackagingError):
    """Upstream build output does not match what the package format needs."""

    @classmethod
    def rebuild_required(cls, runtime: str, configuration: str, reason: str) -> "BuildPrerequisiteMissing":
        return cls(
            f"{reason}. Please ensure you have run "
            f"'build --clean --crossgen --runtime {runtime} --configuration {configuration}'!"
        )


class UnsupportedPlatform(PackagingError):
    """No package type can be inferred, or the requested one is unsupported here."""

    @classmethod
    def for_distro(cls, distro: Optional[str]) -> "UnsupportedPlatform":
        return cls(f"Building packages for {distro or 'this platform'} is unsupported!")


class PlatformMismatch(PackagingError):
    """An explicit package type was requested on the wrong platform family."""

    def __init__(self, required_platform: str, package_type: str):
        self.required_platform = required_platform
        self.package_type = package_type
        super().__init__(f"Must be on {required_platform} to build '{package_type}' packages!")


class DependencyMissing(PackagingError):
    """A required external tool is not installed."""

    def __init__(self, tool: str, remediation: str):
        self.tool = tool
        self.remediation = remediation
        super().__init__(f"Package dependency '{tool}' not found. {remediation}")


class MissingExpectedFile(PackagingError):
    """A file that has to be renamed is absent from the output tree."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Expected file is missing from the build output: {path}")


class ToolInvocationError(PackagingError):
    """An external tool exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: Optional[int], output: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        tool = self.command[0] if self.command else "<unknown>"
        message = f"Execution of '{tool}' failed with exit code {returncode}"
        if output:
            message += f":\n{output.rstrip()}"
        super().__init__(message)


class UnparseableToolOutput(PackagingError):
    """The artifact path could not be recovered from a tool's output."""

    def __init__(self, output: str):
        self.output = output
        last = output.strip().splitlines()[-1] if output.strip() else "<empty>"
        super().__init__(f"Could not find the created package path in tool output: {last}")
