"""
Running external executables such as mash.

A wrapper subclass names its executable and knows how to turn keyword
arguments into an argument vector; this module finds the executable,
runs it with captured output and maps the ways a run can go wrong onto
SketchphyloError subclasses.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from sketchphylo.core.exceptions import SketchphyloError

logger = logging.getLogger(__name__)

Resolver = Callable[[str], "str | None"]

# Longest command line and stderr excerpt quoted in error messages
_COMMAND_EXCERPT = 200
_STDERR_EXCERPT = 500


def _excerpt(text: str, limit: int, marker: str = "...") -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + marker


class ToolNotFoundError(SketchphyloError):
    """Raised when an executable cannot be located."""

    def __init__(self, tool_name: str, install_hint: str = ""):
        lines = [f"Install {tool_name} or add its directory to PATH."]
        if install_hint:
            lines.append(f"For example:\n  {install_hint}")
        super().__init__(
            message=f"Required tool '{tool_name}' not found in PATH",
            suggestion="\n\n".join(lines),
        )
        self.tool_name = tool_name


class ToolExecutionError(SketchphyloError):
    """Raised when an executable exits with a non-zero status.

    The first line of the message is always ``"<tool> failed with exit
    code N"`` so callers can quote it on its own.
    """

    def __init__(
        self,
        tool_name: str,
        command: list[str],
        return_code: int,
        stderr: str,
    ):
        super().__init__(
            message="\n\n".join([
                f"{tool_name} failed with exit code {return_code}",
                f"Command: {_excerpt(' '.join(command), _COMMAND_EXCERPT)}",
                "Error output:\n"
                + _excerpt(stderr.strip(), _STDERR_EXCERPT, "\n...[truncated]"),
            ]),
            suggestion=(
                "Check that the sketch files are intact and were written by "
                "the installed mash version."
            ),
        )
        self.tool_name = tool_name
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class ToolTimeoutError(SketchphyloError):
    """Raised when an executable is killed after running past its timeout."""

    def __init__(self, tool_name: str, timeout_seconds: float, command: list[str]):
        super().__init__(
            message=(
                f"{tool_name} timed out after {timeout_seconds:.0f} seconds\n\n"
                f"Command: {_excerpt(' '.join(command), _COMMAND_EXCERPT)}"
            ),
            suggestion="Raise 'timeout' in the pipeline configuration, or remove it.",
        )
        self.tool_name = tool_name
        self.timeout_seconds = timeout_seconds
        self.command = command


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one finished process (whatever its exit status)."""

    command: tuple[str, ...]
    return_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float

    @property
    def success(self) -> bool:
        return self.return_code == 0

    @property
    def command_string(self) -> str:
        return " ".join(self.command)

    def raise_for_status(self, tool_name: str) -> ToolResult:
        """Return self, or raise ToolExecutionError for a non-zero exit status."""
        if not self.success:
            raise ToolExecutionError(
                tool_name, list(self.command), self.return_code, self.stderr
            )
        return self


class ExternalTool(ABC):
    """Base for wrappers around one command-line executable.

    Subclasses set ``TOOL_NAME`` (and optionally ``TOOL_ALIASES`` and
    ``INSTALL_HINT``) and implement ``build_command``. Executable lookups
    go through a replaceable resolver, ``shutil.which`` by default, and
    are cached per tool name, including failed lookups.

    Example:
        Mash.set_executable_resolver(lambda name: f"/usr/bin/{name}")
        ...
        Mash.reset_executable_resolver()
    """

    TOOL_NAME: ClassVar[str]
    TOOL_ALIASES: ClassVar[tuple[str, ...]] = ()
    INSTALL_HINT: ClassVar[str] = ""

    _executable_cache: ClassVar[dict[str, Path | None]] = {}
    _executable_resolver: ClassVar[Resolver] = staticmethod(shutil.which)

    @classmethod
    def _resolve(cls) -> Path | None:
        for candidate in (cls.TOOL_NAME, *cls.TOOL_ALIASES):
            found = cls._executable_resolver(candidate)
            if found:
                return Path(found)
        return None

    @classmethod
    def get_executable(cls) -> Path:
        """Path of the executable.

        Raises:
            ToolNotFoundError: If neither the tool name nor an alias resolves.
        """
        if cls.TOOL_NAME not in cls._executable_cache:
            cls._executable_cache[cls.TOOL_NAME] = cls._resolve()
        path = cls._executable_cache[cls.TOOL_NAME]
        if path is None:
            raise ToolNotFoundError(cls.TOOL_NAME, cls.INSTALL_HINT)
        return path

    @classmethod
    def check_available(cls) -> bool:
        try:
            cls.get_executable()
        except ToolNotFoundError:
            return False
        return True

    @classmethod
    def clear_cache(cls) -> None:
        cls._executable_cache.clear()

    @classmethod
    def set_executable_resolver(cls, resolver: Resolver) -> None:
        """Look executables up with ``resolver`` instead of PATH."""
        cls._executable_resolver = staticmethod(resolver)
        cls.clear_cache()

    @classmethod
    def reset_executable_resolver(cls) -> None:
        cls._executable_resolver = staticmethod(shutil.which)
        cls.clear_cache()

    @abstractmethod
    def build_command(self, **kwargs: object) -> list[str]:
        """Full argument vector, executable first."""

    def run(self, *, timeout: float | None = None, **kwargs: object) -> ToolResult:
        """Run the command built from ``kwargs`` and capture its output.

        A non-zero exit status is returned, not raised; use ``run_or_raise``
        to treat it as an error.

        Raises:
            ToolNotFoundError: If the executable is missing.
            ToolTimeoutError: If the process outlives ``timeout`` seconds.
        """
        command = self.build_command(**kwargs)
        logger.debug("Running: %s", " ".join(command))

        started = time.perf_counter()
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolTimeoutError(self.TOOL_NAME, timeout or 0, command) from e
        except FileNotFoundError as e:
            # Removed after the lookup succeeded
            raise ToolNotFoundError(self.TOOL_NAME, self.INSTALL_HINT) from e

        result = ToolResult(
            command=tuple(command),
            return_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.debug(
            "%s exited with %d after %.2fs",
            self.TOOL_NAME,
            result.return_code,
            result.elapsed_seconds,
        )
        return result

    def run_or_raise(self, *, timeout: float | None = None, **kwargs: object) -> ToolResult:
        """Like ``run``, but a non-zero exit status raises ToolExecutionError."""
        return self.run(timeout=timeout, **kwargs).raise_for_status(self.TOOL_NAME)
