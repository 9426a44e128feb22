"""Pick a decoder for an uploaded BOM file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from bomconvert.errors import UnsupportedFormatError
from bomconvert.models import BOMFormat

logger = logging.getLogger(__name__)

EXTENSION_FORMATS: Dict[str, BOMFormat] = {
    "xlsx": BOMFormat.EXCEL,
    "xls": BOMFormat.EXCEL,
    "csv": BOMFormat.CSV,
    "json": BOMFormat.JSON,
}

# Advertised content types, used only to flag disagreements in the logs.
MIMETYPE_FORMATS: Dict[str, BOMFormat] = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": BOMFormat.EXCEL,
    "application/vnd.ms-excel": BOMFormat.EXCEL,
    "text/csv": BOMFormat.CSV,
    "application/csv": BOMFormat.CSV,
    "application/json": BOMFormat.JSON,
    "text/json": BOMFormat.JSON,
}


def file_extension(path: Union[str, Path]) -> str:
    return Path(path).suffix.lstrip(".").lower()


def detect_format(path: Union[str, Path], mimetype: Optional[str] = None) -> BOMFormat:
    """Return the decoder tag for ``path``.

    The filename extension decides. ``mimetype`` is informational only and is
    never allowed to override the extension.

    Raises:
        UnsupportedFormatError: the extension is not xlsx, xls, csv or json.
    """

    extension = file_extension(path)
    detected = EXTENSION_FORMATS.get(extension)
    if detected is None:
        raise UnsupportedFormatError(extension)

    if mimetype:
        advertised = MIMETYPE_FORMATS.get(mimetype.split(";")[0].strip().lower())
        if advertised is not None and advertised is not detected:
            logger.debug(
                "Mimetype %s disagrees with extension .%s; using %s",
                mimetype,
                extension,
                detected.value,
            )
    return detected
