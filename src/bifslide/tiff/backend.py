"""Generic tiled-TIFF backend shared by the vendor recognizers.

Recognizers decide *which* directories form the pyramid; this module
turns that decision into a TiledBackend on the slide handle, registers
associated images, and feeds the quickhash.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray

from bifslide.config import settings
from bifslide.tiff.container import (
    TiffContainerProtocol,
    TiffDirectoryProtocol,
    TifffileDirectory,
    is_codec_configured,
)
from bifslide.tiff.exceptions import BadDataError
from bifslide.tiff.types import (
    AssociatedImage,
    SlideHandle,
    TiledBackend,
    TiledLevel,
    TileReader,
)
from bifslide.utils.logging import get_logger

logger = get_logger(__name__)

# ASCII tags copied from the primary directory as tiff.* properties
TIFF_STRING_PROPERTIES: tuple[tuple[int, str], ...] = (
    (269, "tiff.DocumentName"),
    (270, "tiff.ImageDescription"),
    (271, "tiff.Make"),
    (272, "tiff.Model"),
    (305, "tiff.Software"),
    (306, "tiff.DateTime"),
    (315, "tiff.Artist"),
    (316, "tiff.HostComputer"),
    (33432, "tiff.Copyright"),
)


class QuickHash:
    """SHA-256 accumulator identifying a slide.

    Fed with the raw tiles of the smallest pyramid level and, once
    detection succeeds, with the slide properties.
    """

    __slots__ = ("_hash",)

    def __init__(self) -> None:
        self._hash = hashlib.sha256()

    def update(self, data: bytes) -> None:
        self._hash.update(data)

    def update_string(self, value: str | None) -> None:
        """Hash a string including a terminator, so ("ab", "c") != ("a", "bc")."""
        if value is not None:
            self._hash.update(value.encode("utf-8"))
        self._hash.update(b"\0")

    def update_properties(self, properties: Mapping[str, str]) -> None:
        """Hash every property in key order."""
        for key in sorted(properties):
            self.update_string(key)
            self.update_string(properties[key])

    def hexdigest(self) -> str:
        return self._hash.hexdigest()


def add_associated_image(
    images: MutableMapping[str, AssociatedImage] | None,
    name: str,
    directory: TiffDirectoryProtocol,
) -> None:
    """Register `directory` as the associated image `name`.

    The directory is validated even when `images` is None, so a dry-run
    detection fails exactly where a real one would.

    Raises:
        BadDataError: If the image geometry or codec is unusable.
    """
    width = directory.image_width()
    height = directory.image_length()
    if width is None or height is None:
        raise BadDataError("Can't read image dimensions")

    compression = directory.compression()
    if compression is None:
        raise BadDataError("Can't read compression scheme")
    if not is_codec_configured(compression):
        raise BadDataError(f"Unsupported TIFF compression: {compression}")

    if images is not None:
        images[name] = AssociatedImage(
            name=name,
            directory=directory.index,
            width=width,
            height=height,
        )


def _tiled_level(
    directory: TiffDirectoryProtocol,
    base_width: int,
    base_height: int,
) -> TiledLevel:
    width = directory.image_width() or 0
    height = directory.image_length() or 0
    if width <= 0 or height <= 0:
        raise BadDataError(f"Can't read dimensions of directory {directory.index}")
    tile_width = directory.tile_width()
    tile_height = directory.tile_length()
    if tile_width is None or tile_height is None:
        raise BadDataError(f"Directory {directory.index} is not tiled")
    downsample = (base_width / width + base_height / height) / 2
    return TiledLevel(
        directory=directory.index,
        width=width,
        height=height,
        tile_width=tile_width,
        tile_height=tile_height,
        downsample=downsample,
    )


def _hash_tiles(quickhash: QuickHash, directory: TiffDirectoryProtocol) -> None:
    total = sum(directory.tile_byte_counts())
    if total > settings.QUICKHASH_MAX_BYTES:
        raise BadDataError(
            f"Tiles are too big to hash ({total} > {settings.QUICKHASH_MAX_BYTES} bytes)"
        )
    for i in range(directory.tile_count()):
        quickhash.update(directory.raw_tile(i))


def register_tiled_backend(
    slide: SlideHandle | None,
    container: TiffContainerProtocol,
    primary_directory: int,
    level_directories: Sequence[int],
    tile_reader: TileReader,
    quickhash: QuickHash | None,
    overlaps: Sequence[tuple[int, int]] = (),
) -> None:
    """Attach a generic tiled backend serving `level_directories`.

    Args:
        slide: Handle receiving the backend and tiff.* properties, or None
            to only validate.
        container: Container holding the directories.
        primary_directory: Directory whose tags describe the whole slide.
        level_directories: Pyramid directories, highest resolution first.
        tile_reader: Routine decoding one tile of one directory.
        quickhash: Accumulator fed with the smallest level's tiles.
        overlaps: Per-level (x, y) tile overlaps; empty when tiles abut.

    Raises:
        BadDataError: If a level has no usable geometry, or the smallest
            level is too large to hash.
    """
    if not level_directories:
        raise ValueError("level_directories must not be empty")
    if overlaps and len(overlaps) != len(level_directories):
        raise ValueError(
            f"Expected {len(level_directories)} overlaps, got {len(overlaps)}"
        )

    base = container.directory(level_directories[0])
    base_width = base.image_width() or 0
    base_height = base.image_length() or 0
    if base_width <= 0 or base_height <= 0:
        raise BadDataError(f"Can't read dimensions of directory {base.index}")

    levels = tuple(
        _tiled_level(container.directory(index), base_width, base_height)
        for index in level_directories
    )

    if quickhash is not None:
        _hash_tiles(quickhash, container.directory(level_directories[-1]))

    if slide is None:
        return

    primary = container.directory(primary_directory)
    for code, name in TIFF_STRING_PROPERTIES:
        value = primary.ascii_tag(code)
        if value is not None:
            slide.properties[name] = value

    slide.backend = TiledBackend(
        container=container,
        primary_directory=primary_directory,
        levels=levels,
        tile_reader=tile_reader,
        overlaps=tuple(overlaps),
    )
    logger.debug(
        "Registered tiled backend",
        primary_directory=primary_directory,
        level_count=len(levels),
    )


def generic_tile_reader(
    directory: TiffDirectoryProtocol,
    tile_index: int,
) -> NDArray[Any]:
    """Decode one tile of a tifffile-backed directory.

    Returns:
        Array of shape (tile_height, tile_width, samples). Tiles that are
        absent from the file decode as zeros.

    Raises:
        TypeError: If the directory is not backed by tifffile.
    """
    if not isinstance(directory, TifffileDirectory):
        raise TypeError(
            f"generic_tile_reader needs a tifffile directory, got {type(directory).__name__}"
        )
    page = directory.page
    data = directory.raw_tile(tile_index)
    tile, _, shape = page.decode(data or None, tile_index, jpegtables=page.jpegtables)
    if tile is None:
        return np.zeros(shape[-3:], dtype=page.dtype)
    return np.asarray(tile).reshape(shape[-3:])
