"""TIFF layer for bifslide.

This package provides the pieces every tiled-TIFF recognizer builds on:
typed access to directories and tags, the generic tiled backend that
serves an assembled pyramid, and the exception types recognizers raise.

Key Components:
    - TifffileContainer: tifffile-backed container of TIFF directories
    - DirectoryCursor: forward-only walk over a container's directories
    - register_tiled_backend: attach an ordered pyramid to a slide handle
    - FormatNotSupportedError / BadDataError: "not ours" vs. "ours but broken"
"""

from bifslide.tiff.backend import (
    QuickHash,
    add_associated_image,
    generic_tile_reader,
    register_tiled_backend,
)
from bifslide.tiff.container import (
    DirectoryCursor,
    TiffContainerProtocol,
    TiffDirectoryProtocol,
    TifffileContainer,
    TifffileDirectory,
    is_codec_configured,
)
from bifslide.tiff.exceptions import BadDataError, FormatNotSupportedError, SlideError
from bifslide.tiff.types import (
    AssociatedImage,
    SlideHandle,
    TiledBackend,
    TiledLevel,
)

__all__ = [
    "AssociatedImage",
    "BadDataError",
    "DirectoryCursor",
    "FormatNotSupportedError",
    "QuickHash",
    "SlideError",
    "SlideHandle",
    "TiffContainerProtocol",
    "TiffDirectoryProtocol",
    "TifffileContainer",
    "TifffileDirectory",
    "TiledBackend",
    "TiledLevel",
    "add_associated_image",
    "generic_tile_reader",
    "is_codec_configured",
    "register_tiled_backend",
]
