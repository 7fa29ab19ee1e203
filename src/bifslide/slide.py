"""Slide detection pipeline and the opened-slide object.

open_slide runs every registered recognizer against a TIFF file in turn.
A recognizer that raises FormatNotSupportedError is skipped and its
partially written handle is thrown away; BadDataError stops the search.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tifffile import TiffFileError

from bifslide.tiff.backend import QuickHash
from bifslide.tiff.container import TiffContainerProtocol, TifffileContainer
from bifslide.tiff.exceptions import FormatNotSupportedError, SlideError
from bifslide.tiff.types import (
    PROPERTY_NAME_LEVEL_COUNT,
    PROPERTY_NAME_QUICKHASH1,
    AssociatedImage,
    SlideHandle,
    TiledBackend,
)
from bifslide.utils.logging import correlation_context, get_logger
from bifslide.vendor.ventana import try_ventana

if TYPE_CHECKING:
    from types import TracebackType

logger = get_logger(__name__)

Recognizer = Callable[
    [TiffContainerProtocol, SlideHandle | None, QuickHash | None], None
]

# Tried in order; the first recognizer that does not reject the file wins
RECOGNIZERS: tuple[tuple[str, Recognizer], ...] = (("ventana", try_ventana),)


def _open_container(path: Path) -> TifffileContainer:
    if not path.exists():
        raise FormatNotSupportedError("File not found", path=path)
    try:
        return TifffileContainer(path)
    except TiffFileError as e:
        raise FormatNotSupportedError(f"Not a TIFF file: {e}", path=path) from e


def _recognize(
    container: TiffContainerProtocol,
    path: Path,
    record: bool,
) -> tuple[str, SlideHandle | None, QuickHash | None]:
    """Run recognizers until one accepts the container.

    Args:
        container: Container to inspect.
        path: File path, used for error context.
        record: If False, recognizers run without a slide handle.

    Returns:
        (vendor name, filled handle or None, quickhash or None)

    Raises:
        FormatNotSupportedError: If every recognizer rejects the file.
        BadDataError: If a recognizer finds its format but bad data.
    """
    for name, recognizer in RECOGNIZERS:
        slide = SlideHandle() if record else None
        quickhash = QuickHash() if record else None
        with correlation_context(vendor=name):
            try:
                recognizer(container, slide, quickhash)
            except FormatNotSupportedError as e:
                logger.debug("Recognizer rejected file", reason=e.message)
                continue
            except SlideError as e:
                raise e.with_path(path) from e
        return name, slide, quickhash
    raise FormatNotSupportedError("Unsupported or missing image file", path=path)


def _store_level_properties(properties: dict[str, str], backend: TiledBackend) -> None:
    properties[PROPERTY_NAME_LEVEL_COUNT] = str(backend.level_count)
    for i, level in enumerate(backend.levels):
        prefix = f"openslide.level[{i}]"
        properties[f"{prefix}.width"] = str(level.width)
        properties[f"{prefix}.height"] = str(level.height)
        properties[f"{prefix}.downsample"] = repr(level.downsample)
        properties[f"{prefix}.tile-width"] = str(level.tile_width)
        properties[f"{prefix}.tile-height"] = str(level.tile_height)


def detect_vendor(path: str | Path) -> str | None:
    """Return the vendor of a slide file, or None if no recognizer accepts it.

    Detection runs without recording properties or images.

    Raises:
        BadDataError: If the file is recognized but internally inconsistent.
    """
    resolved = Path(path).resolve()
    try:
        container = _open_container(resolved)
    except FormatNotSupportedError:
        return None
    try:
        with correlation_context(slide_path=resolved), container:
            vendor, _, _ = _recognize(container, resolved, record=False)
    except FormatNotSupportedError:
        return None
    return vendor


def can_open(path: str | Path) -> bool:
    """Return True if some recognizer accepts the file without errors."""
    try:
        return detect_vendor(path) is not None
    except SlideError:
        return False


class Slide:
    """An opened, recognized whole-slide image.

    Usage:
        with open_slide("/path/to/slide.bif") as slide:
            print(slide.properties["openslide.vendor"])
            tile = slide.read_tile(level=0, tile_index=0)

    Attributes:
        path: Path to the slide file.
        vendor: Name of the recognizer that accepted the file.
    """

    __slots__ = ("_container", "_handle", "_path", "_vendor")

    def __init__(
        self,
        path: Path,
        vendor: str,
        container: TifffileContainer,
        handle: SlideHandle,
    ) -> None:
        self._path = path
        self._vendor = vendor
        self._container: TifffileContainer | None = container
        self._handle = handle

    @property
    def path(self) -> Path:
        """Return the path to the slide file."""
        return self._path

    @property
    def vendor(self) -> str:
        return self._vendor

    @property
    def properties(self) -> Mapping[str, str]:
        """Return a copy of the slide properties."""
        return dict(self._handle.properties)

    @property
    def associated_images(self) -> Mapping[str, AssociatedImage]:
        return dict(self._handle.associated_images)

    def _ensure_backend(self) -> TiledBackend:
        backend = self._handle.backend
        if self._container is None or backend is None:
            raise SlideError("Slide is closed", path=self._path)
        return backend

    @property
    def level_count(self) -> int:
        return self._ensure_backend().level_count

    @property
    def level_dimensions(self) -> tuple[tuple[int, int], ...]:
        """Return (width, height) per level, highest resolution first."""
        return tuple((lvl.width, lvl.height) for lvl in self._ensure_backend().levels)

    @property
    def level_downsamples(self) -> tuple[float, ...]:
        return tuple(lvl.downsample for lvl in self._ensure_backend().levels)

    def read_tile(self, level: int, tile_index: int) -> Any:
        """Decode one tile of a pyramid level.

        Raises:
            SlideError: If the slide is closed.
            IndexError: If level is out of range.
        """
        return self._ensure_backend().read_tile(level, tile_index)

    def close(self) -> None:
        """Close the slide file. Safe to call more than once."""
        if self._container is None:
            return
        self._container.close()
        self._container = None

    def __enter__(self) -> Slide:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and close the slide."""
        self.close()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"Slide(path={self._path!r}, vendor={self._vendor!r})"


def open_slide(path: str | Path) -> Slide:
    """Open and recognize a slide file.

    Args:
        path: Path to the slide file.

    Returns:
        An open Slide; close it or use it as a context manager.

    Raises:
        FormatNotSupportedError: If the file is missing, not a TIFF, or not
            accepted by any recognizer.
        BadDataError: If the file is recognized but internally inconsistent.
    """
    resolved = Path(path).resolve()
    container = _open_container(resolved)
    try:
        with correlation_context(slide_path=resolved):
            vendor, handle, quickhash = _recognize(container, resolved, record=True)
    except BaseException:
        container.close()
        raise

    # _recognize always returns a handle and hash when recording
    assert handle is not None and quickhash is not None
    if handle.backend is not None:
        _store_level_properties(handle.properties, handle.backend)
    quickhash.update_properties(handle.properties)
    handle.properties[PROPERTY_NAME_QUICKHASH1] = quickhash.hexdigest()

    logger.info("Opened slide", path=str(resolved), vendor=vendor)
    return Slide(resolved, vendor, container, handle)
