"""update-plus: backup, update and restore for OpenClaw and its skills."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("update-plus")
except PackageNotFoundError:
    # Running from a source checkout
    __version__ = "0.0.0+local"
