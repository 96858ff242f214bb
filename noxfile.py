"""Nox sessions for NetMusicPlayer development tasks."""

from __future__ import annotations

import nox

PACKAGE = "net_music_player"

nox.options.error_on_missing_interpreters = False
nox.options.sessions = ["lint", "typecheck", "tests"]


@nox.session
def lint(session: nox.Session) -> None:
    """Run ruff linting and formatting checks."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(name="lint-fix")
def lint_fix(session: nox.Session) -> None:
    """Apply ruff fixes and formatting."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")
    session.run("ruff", "format", ".")


@nox.session
def tests(session: nox.Session) -> None:
    """Run pytest without the tests that need a real libvlc."""
    session.install("-e", ".[dev]")
    session.run("pytest", "-q", env={"NM_PLAYER_CI": "1"})


@nox.session
def typecheck(session: nox.Session) -> None:
    session.install("-e", ".", "mypy")
    session.run("mypy", f"src/{PACKAGE}")


@nox.session
def build(session: nox.Session) -> None:
    """Build sdist and wheel artifacts."""
    session.install("build")
    session.run("python", "-m", "build")


@nox.session
def coverage(session: nox.Session) -> None:
    session.install("-e", ".[dev]", "coverage")
    session.run(
        "coverage", "run", f"--source={PACKAGE}", "-m", "pytest", env={"NM_PLAYER_CI": "1"}
    )
    session.run("coverage", "report", "--fail-under=80", "-m")


@nox.session(name="tests-dev", venv_backend="none")
def tests_dev(session: nox.Session) -> None:
    """Fast local pytest using active venv."""
    session.run("python", "-m", "pytest", "-q", external=True)
