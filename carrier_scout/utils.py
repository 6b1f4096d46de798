"""carrier_scout.utils: Утилиты для поиска входного файла, чтения идентификаторов и построения URL."""

from __future__ import annotations

import errno
import os
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union
from urllib.parse import quote

from carrier_scout.logger import logger

__all__: Sequence[str] = (
    "DEFAULT_INPUT_FILES",
    "discover_input",
    "read_identifiers",
    "normalize_identifier",
    "snapshot_url",
)

#: checked in order when no input file is given explicitly
DEFAULT_INPUT_FILES: Sequence[str] = ("batch.txt", "mc_list.txt")

_WHITESPACE_RE = re.compile(r"\s+")


def discover_input(explicit: Union[str, Path, None] = None) -> Path:
    """Возвращает путь к списку идентификаторов: явный путь или первый найденный файл по умолчанию."""
    if explicit is not None:
        p = Path(explicit).expanduser()
        if not p.is_file():
            logger.error("Input file not found: %s", p)
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(p))
        return p
    for name in DEFAULT_INPUT_FILES:
        p = Path(name)
        if p.is_file():
            return p.resolve()
    logger.error("No input file found (%s)", " or ".join(DEFAULT_INPUT_FILES))
    raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), " or ".join(DEFAULT_INPUT_FILES))


def read_identifiers(path: Union[str, Path]) -> List[str]:
    """Читает файл построчно, возвращает непустые строки без пробелов по краям."""
    p = Path(path)
    identifiers = [
        line.strip() for line in p.read_text(encoding="utf-8").splitlines() if line.strip()
    ]
    logger.debug("Loaded %d identifiers from %s", len(identifiers), p)
    return identifiers


def normalize_identifier(identifier: Optional[str]) -> str:
    """Удаляет все пробельные символы из идентификатора."""
    return _WHITESPACE_RE.sub("", identifier or "")


def snapshot_url(template: str, identifier: str) -> str:
    """Подставляет URL-кодированный идентификатор в шаблон снимка."""
    url = template.format(identifier=quote(normalize_identifier(identifier), safe=""))
    logger.debug("Snapshot URL: %s -> %s", identifier, url)
    return url
