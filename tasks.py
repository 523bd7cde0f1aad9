from os import getcwd
from os.path import join, dirname
import sys

from invoke import task, Context

project_folder = dirname(__file__)

sources = (
    join(project_folder, "rez"),
    join(project_folder, "tests"),
    join(project_folder, "tasks.py"),
)

env_path = join(getcwd(), ".venv")

if sys.platform == "win32":
    python_exe = join(env_path, "Scripts", "python.exe")
else:
    python_exe = join(env_path, "bin", "python")


@task
def configure(c: Context, clean=False):
    with c.cd(project_folder):
        if clean:
            c.run(f"{sys.executable} -c \"import shutil; shutil.rmtree(r'{env_path}', ignore_errors=True)\"")

        c.run(f"{sys.executable} -m venv {env_path}")
        c.run(f"{python_exe} -m pip install --upgrade pip")
        c.run(f"{python_exe} -m pip install --editable .[dev,test]")


@task()
def format(c: Context) -> None:
    c.run(f"{python_exe} -m ruff format {' '.join(sources)}")


@task()
def lint(c: Context) -> None:
    c.run(f"{python_exe} -m mypy {join(project_folder, 'rez')}")
    c.run(f"{python_exe} -m ruff check --respect-gitignore {' '.join(sources)}")
    c.run(f"{python_exe} -m ruff format --respect-gitignore --check --diff {' '.join(sources)}")


@task()
def test(c: Context, verbose=False) -> None:
    with c.cd(project_folder):
        c.run(f"{python_exe} -m pytest {'-v' if verbose else ''} tests")
