"""Type definitions shared by the TIFF layer and the vendor recognizers.

A SlideHandle is the caller-owned sink that recognizers write into:
a flat string property map, the associated images, and (on success) the
tiled backend serving the pyramid.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bifslide.tiff.container import TiffContainerProtocol, TiffDirectoryProtocol

# Standard cross-vendor property names
PROPERTY_NAME_VENDOR = "openslide.vendor"
PROPERTY_NAME_OBJECTIVE_POWER = "openslide.objective-power"
PROPERTY_NAME_MPP_X = "openslide.mpp-x"
PROPERTY_NAME_MPP_Y = "openslide.mpp-y"
PROPERTY_NAME_QUICKHASH1 = "openslide.quickhash-1"
PROPERTY_NAME_LEVEL_COUNT = "openslide.level-count"

TileReader = Callable[[TiffDirectoryProtocol, int], Any]


@dataclass(frozen=True)
class AssociatedImage:
    """A non-pyramid image stored in its own TIFF directory.

    Attributes:
        name: Registered name ("label", "thumbnail", ...).
        directory: TIFF directory index holding the image.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    name: str
    directory: int
    width: int
    height: int


@dataclass(frozen=True)
class TiledLevel:
    """Geometry of one pyramid level served by the tiled backend.

    Index 0 in a backend's level tuple is the highest resolution.
    """

    directory: int
    width: int
    height: int
    tile_width: int
    tile_height: int
    downsample: float


@dataclass
class TiledBackend:
    """Generic tiled-TIFF reader state registered for an assembled pyramid.

    Attributes:
        container: Container the tiles are read from.
        primary_directory: Directory of the highest-resolution level.
        levels: Levels ordered by decreasing resolution.
        tile_reader: Routine decoding one tile of one directory.
        overlaps: Per-level (x, y) tile overlaps; empty when tiles abut.
    """

    container: TiffContainerProtocol
    primary_directory: int
    levels: tuple[TiledLevel, ...]
    tile_reader: TileReader
    overlaps: tuple[tuple[int, int], ...] = ()

    @property
    def level_count(self) -> int:
        """Return the number of pyramid levels."""
        return len(self.levels)

    def read_tile(self, level: int, tile_index: int) -> Any:
        """Decode one tile of a pyramid level.

        Raises:
            IndexError: If level is out of range.
        """
        if level < 0 or level >= self.level_count:
            raise IndexError(f"Level {level} out of range [0, {self.level_count - 1}]")
        directory = self.container.directory(self.levels[level].directory)
        return self.tile_reader(directory, tile_index)


@dataclass
class SlideHandle:
    """Caller-owned sink populated by a successful recognizer.

    The detection pipeline creates a fresh handle per recognizer attempt
    and discards it when the attempt fails, so recognizers never need to
    undo their writes.
    """

    properties: dict[str, str] = field(default_factory=dict)
    associated_images: dict[str, AssociatedImage] = field(default_factory=dict)
    backend: TiledBackend | None = None
