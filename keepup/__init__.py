"""keepup — a minimal process supervisor driven by a JSON config file."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("keepup")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
