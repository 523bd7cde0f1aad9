from __future__ import annotations
from typing import Iterator

import os

import pytest

from rez import errors
from rez.progs.msvc import EnvironmentProvider

REZ_VARS = (
    "COMSPEC",
    "CXX",
    "CC",
    "CPPFLAGS",
    "CXXFLAGS",
    "CFLAGS",
    "REZ_TOOLCHAIN_QUERY_PATH",
    "REZ_ARCH",
)


class FakeProvider(EnvironmentProvider):
    def __init__(self, lines: list[str], status=0):
        self.lines = lines
        self.status = status
        self.calls = 0

    def describe(self) -> str:
        return "fake-query"

    def query(self) -> Iterator[str]:
        self.calls += 1
        yield from self.lines

        if self.status != 0:
            raise errors.QueryExecutionFailure(self.describe(), self.status)


class ForbiddenProvider(EnvironmentProvider):
    def describe(self) -> str:
        return "forbidden"

    def query(self) -> Iterator[str]:
        raise AssertionError("query must not run on a cache hit")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in REZ_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def restore_environ(clean_env):
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path
