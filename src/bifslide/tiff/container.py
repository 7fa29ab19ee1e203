"""Directory and tag access for tiled TIFF containers.

Recognizers see a TIFF file as a sequence of directories (IFDs), each
exposing a handful of typed tag readers. TifffileContainer backs this
with tifffile; tests substitute an in-memory container implementing the
same protocols.

The walk over directories is done with an explicit DirectoryCursor
rather than a "current directory" stored on the container, so one
container can be inspected by several recognizers in turn.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from tifffile import TIFF, TiffFile, TiffPage

if TYPE_CHECKING:
    from types import TracebackType

# TIFF tag codes read by the recognizers
TAG_IMAGE_WIDTH = 256
TAG_IMAGE_LENGTH = 257
TAG_COMPRESSION = 259
TAG_IMAGE_DESCRIPTION = 270
TAG_TILE_WIDTH = 322
TAG_TILE_LENGTH = 323
TAG_XML_PACKET = 700


class TiffDirectoryProtocol(Protocol):
    """Read-only view of one TIFF directory.

    Every tag reader returns None when the tag is absent.
    """

    @property
    def index(self) -> int:
        """Position of this directory in the file."""
        ...

    def is_tiled(self) -> bool: ...

    def image_width(self) -> int | None: ...

    def image_length(self) -> int | None: ...

    def tile_width(self) -> int | None: ...

    def tile_length(self) -> int | None: ...

    def ascii_tag(self, code: int) -> str | None: ...

    def image_description(self) -> str | None: ...

    def compression(self) -> int | None: ...

    def xml_packet(self) -> bytes | None: ...

    def tile_count(self) -> int: ...

    def tile_byte_counts(self) -> tuple[int, ...]:
        """Return the stored (compressed) size of every tile."""
        ...

    def raw_tile(self, tile_index: int) -> bytes:
        """Return the still-compressed bytes of one tile."""
        ...


class TiffContainerProtocol(Protocol):
    """A TIFF file viewed as an indexable sequence of directories."""

    def directory_count(self) -> int: ...

    def directory(self, index: int) -> TiffDirectoryProtocol: ...


def is_codec_configured(compression: int) -> bool:
    """Return True if tifffile can decode the given TIFF compression scheme.

    Codecs beyond the built-in ones come from imagecodecs; a scheme whose
    codec is not installed reports False.
    """
    try:
        return compression in TIFF.DECOMPRESSORS
    except (ImportError, ValueError):
        return False


class DirectoryCursor:
    """Forward-only cursor over the directories of a container.

    Owned by a single walk; advancing it never affects other cursors on
    the same container.
    """

    __slots__ = ("_container", "_count", "_index")

    def __init__(self, container: TiffContainerProtocol, start: int = 0) -> None:
        """Create a cursor positioned on directory `start`.

        Raises:
            IndexError: If `start` is not a valid directory index.
        """
        self._container = container
        self._count = container.directory_count()
        if start < 0 or start >= self._count:
            raise IndexError(
                f"Directory {start} out of range [0, {self._count - 1}]"
            )
        self._index = start

    @property
    def index(self) -> int:
        """Return the index of the current directory."""
        return self._index

    @property
    def current(self) -> TiffDirectoryProtocol:
        """Return the current directory."""
        return self._container.directory(self._index)

    def advance(self) -> bool:
        """Move to the next directory.

        Returns:
            False if no directory remains; the cursor then stays put.
        """
        if self._index + 1 >= self._count:
            return False
        self._index += 1
        return True


class TifffileDirectory:
    """TiffDirectoryProtocol implementation over a tifffile page."""

    __slots__ = ("_index", "_page")

    def __init__(self, page: TiffPage, index: int) -> None:
        self._page = page
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    @property
    def page(self) -> TiffPage:
        """Return the underlying tifffile page."""
        return self._page

    def _value(self, code: int) -> object | None:
        tag = self._page.tags.get(code)
        if tag is None:
            return None
        return tag.value

    def _int_value(self, code: int) -> int | None:
        value = self._value(code)
        if value is None:
            return None
        return int(value)  # type: ignore[call-overload]

    def is_tiled(self) -> bool:
        return bool(self._page.is_tiled)

    def image_width(self) -> int | None:
        return self._int_value(TAG_IMAGE_WIDTH)

    def image_length(self) -> int | None:
        return self._int_value(TAG_IMAGE_LENGTH)

    def tile_width(self) -> int | None:
        return self._int_value(TAG_TILE_WIDTH)

    def tile_length(self) -> int | None:
        return self._int_value(TAG_TILE_LENGTH)

    def ascii_tag(self, code: int) -> str | None:
        value = self._value(code)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("latin-1")
        return str(value)

    def image_description(self) -> str | None:
        return self.ascii_tag(TAG_IMAGE_DESCRIPTION)

    def compression(self) -> int | None:
        return self._int_value(TAG_COMPRESSION)

    def xml_packet(self) -> bytes | None:
        value = self._value(TAG_XML_PACKET)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value
        if isinstance(value, str):
            return value.encode("utf-8")
        # BYTE arrays may come back as a tuple of ints
        return bytes(value)  # type: ignore[arg-type]

    def tile_count(self) -> int:
        return len(self._page.dataoffsets)

    def tile_byte_counts(self) -> tuple[int, ...]:
        return tuple(int(count) for count in self._page.databytecounts)

    def raw_tile(self, tile_index: int) -> bytes:
        offset = self._page.dataoffsets[tile_index]
        bytecount = self._page.databytecounts[tile_index]
        if bytecount == 0:
            return b""
        fh = self._page.parent.filehandle
        fh.seek(offset)
        return fh.read(bytecount)


class TifffileContainer:
    """TIFF container backed by tifffile.

    Usage:
        with TifffileContainer("/path/to/slide.bif") as container:
            cursor = DirectoryCursor(container)

    Raises:
        tifffile.TiffFileError: If the file is not a readable TIFF.
    """

    __slots__ = ("_directories", "_path", "_tiff")

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._tiff: TiffFile | None = TiffFile(self._path)
        self._directories: dict[int, TifffileDirectory] = {}

    @property
    def path(self) -> Path:
        """Return the path to the TIFF file."""
        return self._path

    def _ensure_open(self) -> TiffFile:
        tiff = self._tiff
        if tiff is None:
            raise ValueError(f"TIFF container is closed: {self._path}")
        return tiff

    def directory_count(self) -> int:
        return len(self._ensure_open().pages)

    def directory(self, index: int) -> TifffileDirectory:
        cached = self._directories.get(index)
        if cached is not None:
            return cached
        page = self._ensure_open().pages[index]
        if not isinstance(page, TiffPage):
            # frames only carry geometry; recognizers need the full tag set
            page = page.aspage()
        directory = TifffileDirectory(page, index)
        self._directories[index] = directory
        return directory

    def close(self) -> None:
        """Close the underlying file. Safe to call more than once."""
        if self._tiff is None:
            return
        self._tiff.close()
        self._tiff = None
        self._directories.clear()

    def __enter__(self) -> TifffileContainer:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and close the file."""
        self.close()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"TifffileContainer(path={str(self._path)!r})"
