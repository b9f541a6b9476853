"""Nox sessions for the sekha-sdk test suite and type checks."""

import nox

PYTHONS = ["3.10", "3.11", "3.12", "3.13"]

nox.options.sessions = ["tests", "type_check"]
nox.options.default_venv_backend = "uv"


@nox.session(python=PYTHONS)
def tests(session):
    """Run the unit tests (no coverage)."""
    session.install(".[dev]")
    session.run("pytest", "tests/unit", "-q", "--no-cov", *session.posargs)


@nox.session(python=PYTHONS[-1])
def coverage(session):
    """Run the unit tests with a coverage report for sekha_sdk."""
    session.install(".[dev]")
    session.run("pytest", "tests/unit", *session.posargs)


@nox.session(python=PYTHONS)
def type_check(session):
    """Run mypy in strict mode over the package."""
    session.install(".[dev]")
    session.run("mypy", "src/sekha_sdk", *session.posargs)
