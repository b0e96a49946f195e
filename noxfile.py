"""Nox sessions for linting, testing, and type checking."""

import nox

# Python versions to test against
PYTHON_ALL_VERSIONS = ["3.12", "3.13", "3.14"]
PYTHON_MAIN_VERSION = "3.14"
PYTHON_OTHER_VERSIONS = list(set(PYTHON_ALL_VERSIONS) - {PYTHON_MAIN_VERSION})

# Default sessions to run when no session is explicitly specified
nox.options.sessions = [
    "tests_with_coverage",
    "lint",
    "type_check",
    "fmt_check",
    "install_test",
]

# Use UV virtual environment backend by default
nox.options.default_venv_backend = "uv|virtualenv"


@nox.session(python=PYTHON_OTHER_VERSIONS)
def tests(session):
    """Run the test suite with pytest."""
    session.install("-e", ".[test]")
    session.run("pytest", "tests", *session.posargs)


@nox.session(python=PYTHON_MAIN_VERSION)
def tests_with_coverage(session):
    """Run tests with coverage reporting."""
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        "--cov=acqmerge",
        "--cov-report=term-missing",
        "--cov-report=xml",
        "tests/",
        *session.posargs,
    )


@nox.session(python=PYTHON_MAIN_VERSION)
def lint(session):
    """Run linting checks with ruff."""
    session.install("ruff")
    session.run("ruff", "check", ".")


@nox.session(python=PYTHON_MAIN_VERSION)
def type_check(session):
    """Run type checking with mypy."""
    session.install("-e", ".[test]")
    session.install("mypy")
    session.run("mypy", "acqmerge", "tests")


@nox.session(python=PYTHON_MAIN_VERSION)
def fmt_check(session):
    """Check code formatting with ruff."""
    session.install("ruff")
    session.run("ruff", "format", "--check", "--diff", ".")


@nox.session(python=PYTHON_MAIN_VERSION)
def fmt(session):
    """Auto-format code with ruff."""
    session.install("ruff")
    session.run("ruff", "format", ".")


@nox.session(python=PYTHON_ALL_VERSIONS, venv_backend="venv")
def install_test(session):
    """Test that the package can be installed cleanly in a fresh environment."""
    session.install(".")
    session.run("python", "-c", "import acqmerge; print(acqmerge.__name__)")
