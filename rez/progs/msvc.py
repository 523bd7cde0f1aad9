from __future__ import annotations
from typing import Iterable
from typing import Iterator
from typing import Mapping

from abc import ABC, abstractmethod
from logging import getLogger
import errno
import locale
import os
import subprocess
import sys

from rez import errors

__all__ = (
    "COMPILER",
    "DEFAULT_QUERY_SCRIPT",
    "DEFAULT_ARCH",
    "EnvironmentProvider",
    "VcvarsQueryProvider",
    "apply_msvc_toolchain",
    "apply_env",
    "console_encoding",
    "parse_env_lines",
)

logger = getLogger("rez.msvc")

COMPILER = "cl"

#
# VS utilities
#
DEFAULT_QUERY_SCRIPT = r"C:\Program Files (x86)\Microsoft Visual Studio\2019\Community\VC\Auxiliary\Build\vcvarsall.bat"
DEFAULT_ARCH = "x64"

QUERY_SCRIPT_VAR = "REZ_TOOLCHAIN_QUERY_PATH"
ARCH_VAR = "REZ_ARCH"


def console_encoding() -> str:
    # cmd.exe's `set` writes in the OEM code page.
    if sys.platform == "win32":
        return "oem"
    return locale.getpreferredencoding(False)


class EnvironmentProvider(ABC):
    """Source of the raw ``KEY=VALUE`` lines that make up a toolchain environment."""

    @abstractmethod
    def describe(self) -> str: ...

    @abstractmethod
    def query(self) -> Iterator[str]:
        """Yields output lines as they arrive.

        Raises :class:`errors.QueryLaunchFailure` when nothing could be started
        and :class:`errors.QueryExecutionFailure` once the output is exhausted
        and the query turned out to have failed.
        """


class VcvarsQueryProvider(EnvironmentProvider):
    script: str
    arch: str

    def __init__(self, script=DEFAULT_QUERY_SCRIPT, arch=DEFAULT_ARCH):
        self.script = script
        self.arch = arch

    def __repr__(self):
        return f"VcvarsQueryProvider(script={self.script!r}, arch={self.arch!r})"

    @classmethod
    def from_environment(cls, environ: Mapping[str, str]) -> VcvarsQueryProvider:
        script = environ.get(QUERY_SCRIPT_VAR)
        arch = environ.get(ARCH_VAR)

        return cls(
            script=script if script is not None else DEFAULT_QUERY_SCRIPT,
            arch=arch if arch is not None else DEFAULT_ARCH,
        )

    def format_query_command(self) -> str:
        # NOTE: cmd.exe strips the outer pair of quotes, leaving the script path quoted.
        return f'cmd.exe /c ""{self.script}" {self.arch} && set"'

    def describe(self) -> str:
        return self.format_query_command()

    def query(self) -> Iterator[str]:
        command = self.format_query_command()

        try:
            process = subprocess.Popen(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                encoding=console_encoding(),
                errors="surrogateescape",
                newline="",
            )
        except OSError as e:
            raise errors.QueryLaunchFailure(command, e.errno or 0) from e

        assert process.stdout is not None

        with process.stdout:
            yield from process.stdout

        status = process.wait()

        if status != 0:
            raise errors.QueryExecutionFailure(command, status)


def parse_env_lines(lines: Iterable[str]) -> dict[str, str]:
    """Splits every line on its first ``=``.

    Stops at the first line which can't be used as an environment variable.
    """

    env: dict[str, str] = {}

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if len(line) == 0:
            continue

        key, sep, value = line.partition("=")

        if not sep or len(key) == 0 or "\0" in line:
            raise errors.EnvironmentApplyFailure(line, errno.EINVAL)

        env[key] = value

    return env


def apply_env(env: Mapping[str, str]) -> None:
    """Sets every pair in the current process environment, stopping at the first failure."""

    for key, value in env.items():
        try:
            os.environ[key] = value
        except (OSError, ValueError) as e:
            code = getattr(e, "errno", None) or errno.EINVAL
            raise errors.EnvironmentApplyFailure(f"{key}={value}", code) from e


def _cache_size(file: str) -> int:
    try:
        return os.path.getsize(file)
    except OSError:
        return 0


def apply_msvc_toolchain(
    cache_dir_path: str,
    cache_file_path: str,
    environ: Mapping[str, str] | None = None,
    provider: EnvironmentProvider | None = None,
) -> dict[str, str]:
    """Sets up the environment MSVC command line tools need and returns it.

    The environment is queried once through `provider` (``vcvarsall.bat`` by
    default) and kept in `cache_file_path`. A non-empty cache file is trusted
    as is: changing the architecture or the script later won't refresh it.
    Removing the file forces a new query.

    Every cached pair is set in ``os.environ``; the returned mapping holds the
    same pairs for launchers that take explicit overrides.
    """

    if environ is None:
        environ = os.environ

    os.makedirs(cache_dir_path, exist_ok=True)

    # Same codec as the query pipe, so cached lines keep their bytes.
    with open(
        cache_file_path,
        mode="a+",
        encoding=console_encoding(),
        errors="surrogateescape",
        newline="",
    ) as cache:
        if _cache_size(cache_file_path) == 0:
            if provider is None:
                provider = VcvarsQueryProvider.from_environment(environ)

            logger.debug(f"Querying msvc toolchain: {provider.describe()}")

            try:
                for line in provider.query():
                    if "=" not in line:
                        continue

                    cache.write(line if line.endswith("\n") else f"{line}\n")
            except errors.ToolchainError:
                cache.truncate(0)
                raise

            cache.flush()
        else:
            logger.debug(f"Using cached msvc environment: {cache_file_path!r}")

        cache.seek(0)
        env = parse_env_lines(cache)

    apply_env(env)

    logger.debug(f"Applied {len(env)} msvc environment variables")
    return env
