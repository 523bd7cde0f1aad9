from __future__ import annotations
from typing import Mapping
from typing import Sequence

from dataclasses import dataclass
from dataclasses import field
import subprocess
import shlex
import os
import sys

__all__ = ("Context", "Result", "Config", "merge_environment")


@dataclass
class Config:
    dry_run: bool = field(default=False)
    echo: bool = field(default=True)


@dataclass
class Result:
    return_code: int


def merge_environment(
    overrides: Mapping[str, str] | None,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Returns `base` (the process environment by default) with `overrides` on top.

    Windows treats variable names case-insensitively, while ``set`` reports them
    as ``Path``, ``include`` and so on. Override keys are upper-cased there so
    they replace the inherited values instead of sitting next to them.
    """

    if base is None:
        base = os.environ

    env = dict(base)

    if overrides is None:
        return env

    if sys.platform == "win32":
        env = {k.upper(): v for k, v in env.items()}
        env.update({k.upper(): v for k, v in overrides.items()})
    else:
        env.update(overrides)

    return env


def format_command(command: str | Sequence[str]) -> str:
    if isinstance(command, str):
        return command

    if sys.platform == "win32":
        return subprocess.list2cmdline(command)
    return shlex.join(command)


@dataclass
class Context:
    root: str
    config: Config = field(default_factory=Config)

    def exists(self, p: str) -> bool:
        return os.path.exists(p)

    def run(
        self,
        command: str | Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> Result:
        """Runs `command` and waits for it.

        A string goes through the platform shell untouched, a sequence is
        launched directly. `env` holds overrides merged over the current
        process environment for the child only.
        """

        if self.config.dry_run or self.config.echo:
            print(f"> {format_command(command)}", flush=True)

        if self.config.dry_run:
            return Result(return_code=0)

        shell = isinstance(command, str)

        process = subprocess.Popen(
            command if shell else list(command),
            shell=shell,
            env=merge_environment(env),
            cwd=self.root,
        )
        process.wait()

        return Result(return_code=process.returncode)

    def mkdir(self, dir: str) -> Result:
        if self.config.dry_run:
            return self.run(f"mkdir {dir}")
        os.makedirs(dir, exist_ok=True)
        return Result(0)
