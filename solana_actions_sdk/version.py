"""
Version information for the Solana Actions SDK.

The version is read from the installed distribution, or from pyproject.toml
when running from a source checkout.
"""
import importlib.metadata
import pathlib
import tomli

DISTRIBUTION = "solana-actions-sdk"
FALLBACK_VERSION = "0.1.0"


def _pyproject_version() -> str:
    path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
    try:
        with path.open("rb") as f:
            data = tomli.load(f)
        return data["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION


try:
    __version__ = importlib.metadata.version(DISTRIBUTION)
except importlib.metadata.PackageNotFoundError:
    __version__ = _pyproject_version()

# Sent to Action APIs so they can tell SDK clients apart
USER_AGENT = f"{DISTRIBUTION}/{__version__}"
