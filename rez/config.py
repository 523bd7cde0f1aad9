from __future__ import annotations
from typing import Mapping
from typing import Sequence

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from os.path import exists, join
import os

from rez import errors
from rez.progs import msvc
from rez.progs.msvc import EnvironmentProvider

__all__ = (
    "Lang",
    "ResolvedConfig",
    "load",
    "detect_windows_environment",
    "get_environment_variable",
    "format_build_command",
)

logger = getLogger("rez.config")

DEFINITION_PATH_CPP = "rez.cpp"
DEFINITION_PATH_C = "rez.c"

CACHE_DIR = ".rez"
CACHE_FILE_BASENAME = "rez-env.txt"
ARTIFACT_DIR_BASENAME = "bin"
ARTIFACT_BINARY = "delegate-rez"

DEFAULT_COMPILER_WINDOWS = msvc.COMPILER
DEFAULT_COMPILER_UNIX_CPP = "c++"
DEFAULT_COMPILER_UNIX_C = "cc"

WINDOWS_MARKER_VAR = "COMSPEC"


class Lang(StrEnum):
    CPP = "C++"
    C = "C"


# Per language: compiler override variable, flags variable.
_LANG_VARS = {
    Lang.CPP: ("CXX", "CXXFLAGS"),
    Lang.C: ("CC", "CFLAGS"),
}


@dataclass(frozen=True)
class ResolvedConfig:
    debug: bool
    cache_dir_path: str
    cache_file_path: str
    windows: bool
    definition_path: str
    definition_lang: Lang
    compiler: str
    artifact_dir_path: str
    artifact_file_path: str
    build_command: str
    environment: dict[str, str] = field(default_factory=dict, repr=False)


def get_environment_variable(
    key: str, environ: Mapping[str, str] | None = None
) -> str | None:
    if environ is None:
        environ = os.environ
    return environ.get(key)


def _get_non_empty(key: str, environ: Mapping[str, str]) -> str | None:
    value = get_environment_variable(key, environ)

    if value is None or len(value) == 0:
        return None
    return value


def detect_windows_environment(environ: Mapping[str, str] | None = None) -> bool:
    # NOTE: WSL, Cygwin, MSYS2 and Git Bash don't export COMSPEC consistently,
    # so only native cmd.exe/PowerShell hosts count as Windows here.
    return get_environment_variable(WINDOWS_MARKER_VAR, environ) is not None


def format_build_command(
    compiler: str,
    definition_path: str,
    artifact_file_path: str,
    flags: Sequence[str] = (),
    *,
    msvc: bool = False,
) -> str:
    flags_formatted = "".join(f"{f} " for f in flags if len(f) > 0)

    if msvc:
        return f"{compiler} {flags_formatted}{definition_path} /link /out:{artifact_file_path}"

    return f"{compiler} -o {artifact_file_path} {flags_formatted}{definition_path}"


def _locate_definition() -> tuple[str, Lang]:
    if exists(DEFINITION_PATH_CPP):
        return DEFINITION_PATH_CPP, Lang.CPP

    if exists(DEFINITION_PATH_C):
        return DEFINITION_PATH_C, Lang.C

    raise errors.DefinitionNotFound([DEFINITION_PATH_CPP, DEFINITION_PATH_C])


def load(
    debug=False,
    environ: Mapping[str, str] | None = None,
    provider: EnvironmentProvider | None = None,
) -> ResolvedConfig:
    """Resolves how the task definition in the working directory gets compiled.

    Settings come from `environ` (the process environment by default). When
    the MSVC driver is selected its environment is bootstrapped into
    ``os.environ`` and also kept in ``ResolvedConfig.environment``. Nothing is
    compiled or run.
    """

    if environ is None:
        environ = os.environ

    cache_dir_path = CACHE_DIR
    cache_file_path = join(cache_dir_path, CACHE_FILE_BASENAME)

    windows = detect_windows_environment(environ)

    definition_path, definition_lang = _locate_definition()
    compiler_var, flags_var = _LANG_VARS[definition_lang]

    if windows:
        compiler = DEFAULT_COMPILER_WINDOWS
    elif definition_lang == Lang.CPP:
        compiler = DEFAULT_COMPILER_UNIX_CPP
    else:
        compiler = DEFAULT_COMPILER_UNIX_C

    compiler_override = _get_non_empty(compiler_var, environ)

    if compiler_override is not None:
        compiler = compiler_override

    is_msvc = compiler == DEFAULT_COMPILER_WINDOWS
    environment: dict[str, str] = {}

    if is_msvc:
        environment = msvc.apply_msvc_toolchain(
            cache_dir_path, cache_file_path, environ=environ, provider=provider
        )

    artifact_dir_path = join(cache_dir_path, ARTIFACT_DIR_BASENAME)
    executable = ARTIFACT_BINARY

    if windows:
        executable += ".exe"

    artifact_file_path = join(artifact_dir_path, executable)

    flags = [
        _get_non_empty("CPPFLAGS", environ) or "",
        _get_non_empty(flags_var, environ) or "",
    ]

    build_command = format_build_command(
        compiler,
        definition_path,
        artifact_file_path,
        flags,
        msvc=is_msvc,
    )

    config = ResolvedConfig(
        debug=debug,
        cache_dir_path=cache_dir_path,
        cache_file_path=cache_file_path,
        windows=windows,
        definition_path=definition_path,
        definition_lang=definition_lang,
        compiler=compiler,
        artifact_dir_path=artifact_dir_path,
        artifact_file_path=artifact_file_path,
        build_command=build_command,
        environment=environment,
    )

    logger.debug(f"config={config!r}")
    return config
