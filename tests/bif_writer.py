"""Write small Ventana-shaped BigTIFF files with tifffile.

The files mirror the layout of real iScan output: tiled label and
thumbnail in directories 0 and 1, then pyramid levels marked with
`level=<n>` in their ImageDescription, the base level carrying the
iScan XMLPacket.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import tifffile
from fakes import ISCAN_XML

TAG_XML_PACKET = 700
TILE = (16, 16)
BASE_VALUE = 7


def _write_page(
    tif: tifffile.TiffWriter,
    shape: tuple[int, int],
    description: str,
    *,
    value: int = 0,
    tiled: bool = True,
    xml: bytes | None = None,
) -> None:
    extratags = [(TAG_XML_PACKET, 1, len(xml), xml, True)] if xml else None
    tif.write(
        np.full((*shape, 3), value, dtype=np.uint8),
        photometric="rgb",
        tile=TILE if tiled else None,
        description=description,
        extratags=extratags,
        metadata=None,
    )


def write_bif(
    path: Path,
    *,
    base_description: str = "level=0 mag=20 quality=95",
    xml: bytes | None = ISCAN_XML,
    tiled: bool = True,
) -> Path:
    """Write label, thumbnail, a 128x64 base level and a 64x32 level 1."""
    with tifffile.TiffWriter(path, bigtiff=True) as tif:
        _write_page(tif, (32, 48), "Label Image", tiled=tiled)
        _write_page(tif, (32, 32), "Thumbnail", tiled=tiled)
        _write_page(
            tif,
            (64, 128),
            base_description,
            value=BASE_VALUE,
            tiled=tiled,
            xml=xml,
        )
        _write_page(tif, (32, 64), "level=1 mag=10 quality=95", tiled=tiled)
    return path
