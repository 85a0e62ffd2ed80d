# PashuAI - agricultural and livestock advisory chat backend.
# Created: 2026-10-06

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pashuai")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"
