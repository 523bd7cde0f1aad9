from __future__ import annotations

from rez.task import Context
from rez.task import Config
from rez.task import Result
from rez.config import Lang
from rez.config import ResolvedConfig
from rez.config import load
from rez.config import format_build_command
from rez.progs.msvc import EnvironmentProvider
from rez.progs.msvc import VcvarsQueryProvider
from rez.progs.msvc import apply_msvc_toolchain

__version__ = "0.0.1"

__all__ = (
    "Context",
    "Config",
    "Result",
    "Lang",
    "ResolvedConfig",
    "load",
    "format_build_command",
    "EnvironmentProvider",
    "VcvarsQueryProvider",
    "apply_msvc_toolchain",
)
