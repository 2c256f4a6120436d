"""Tests for version information and entry points."""

import re
import subprocess
import sys

from orgrender import __version__


def test_version_flag():
    """Test the console script reports package, python and platform."""
    result = subprocess.run(["orgrender", "--version"], capture_output=True, text=True)

    assert result.returncode == 0
    assert result.stdout.startswith(f"orgrender {__version__} (python ")
    assert "platform" in result.stdout


def test_module_entry_point():
    """Test `python -m orgrender` runs the same CLI."""
    result = subprocess.run(
        [sys.executable, "-m", "orgrender", "--version"],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0
    assert result.stdout.startswith(f"orgrender {__version__} ")


def test_module_requires_command():
    """Test running without a subcommand is a usage error."""
    result = subprocess.run([sys.executable, "-m", "orgrender"], capture_output=True, text=True)

    assert result.returncode == 2
    assert "usage: orgrender" in result.stderr


def test_version_is_semver():
    """Test the version string is MAJOR.MINOR.PATCH."""
    assert re.fullmatch(r"\d+\.\d+\.\d+", __version__)
