import logging
import os
from pathlib import Path
from threading import Lock
from typing import Optional, TextIO

from models.models import Shlok
from retrieval.errors import SourceUnavailable

logger = logging.getLogger(__name__)

COMMENT_MARKER = "//"
HEADER_MARKER = "chapter,verse"
MIN_FIELDS = 5
BOM = "\ufeff"

# Global lock for the modification-time cache
lock = Lock()
_cache: dict[str, tuple[float, list[Shlok]]] = {}


def parse_csv_row(row: str) -> list[str]:
    """
    Split one CSV row on commas, honouring double quotes.

    A quote toggles quoted mode and is not copied into the field. The last
    field is only kept when it is non-empty.
    """
    result: list[str] = []
    inside_quotes = False
    current_value = ""

    for char in row:
        if char == '"':
            inside_quotes = not inside_quotes
        elif char == "," and not inside_quotes:
            result.append(current_value.strip())
            current_value = ""
        else:
            current_value += char

    if current_value:
        result.append(current_value.strip())

    return result


def strip_quotes(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def is_preamble(row: str) -> bool:
    return row.startswith(COMMENT_MARKER) or HEADER_MARKER in row


def row_to_shlok(columns: list[str]) -> Optional[Shlok]:
    if len(columns) < MIN_FIELDS:
        return None
    return Shlok(
        chapter=columns[0].strip(),
        verse=columns[1].strip(),
        sanskrit=strip_quotes(columns[2]),
        transliteration=strip_quotes(columns[3]),
        english_meaning=strip_quotes(columns[4]),
        application=strip_quotes(columns[5]) if len(columns) > 5 else "",
    )


def parse_shloks(text: str) -> list[Shlok]:
    # Spreadsheet exports may start with a byte order mark
    text = text.lstrip(BOM)
    rows = [row for row in text.split("\n") if row.strip()]

    # Skip comments and the header
    start_row = 0
    while start_row < len(rows) and is_preamble(rows[start_row]):
        start_row += 1

    shloks: list[Shlok] = []
    for row in rows[start_row:]:
        shlok = row_to_shlok(parse_csv_row(row))
        if shlok is not None:
            shloks.append(shlok)
    return shloks


def load_shloks(stream: TextIO) -> list[Shlok]:
    return parse_shloks(stream.read())


class DataSource:
    def __init__(
        self,
        file_path,
        fallback_path=None,
        cache_enabled: bool = False,
    ):
        self.file_path = Path(file_path)
        self.fallback_path = Path(fallback_path) if fallback_path else None
        self.cache_enabled = cache_enabled

    def resolve_path(self) -> Path:
        if self.file_path.exists():
            return self.file_path

        logger.warning(f"CSV file not found at primary path: {self.file_path}")
        if self.fallback_path is not None and self.fallback_path.exists():
            logger.info(f"Using fallback CSV path: {self.fallback_path}")
            return self.fallback_path

        raise SourceUnavailable(
            f"CSV file not found at {self.file_path}"
            + (f" or {self.fallback_path}" if self.fallback_path else "")
        )

    def read_csv(self) -> list[Shlok]:
        path = self.resolve_path()
        if self.cache_enabled:
            return self._read_cached(path)
        return self._read(path)

    def _read(self, path: Path) -> list[Shlok]:
        with open(path, mode="r", encoding="utf-8-sig") as file:
            shloks = load_shloks(file)
        if shloks:
            logger.info(f"Successfully loaded {len(shloks)} shloks from {path}")
        else:
            logger.error(f"No valid data rows found in {path}")
        return shloks

    def _read_cached(self, path: Path) -> list[Shlok]:
        key = str(path.resolve())
        mtime = os.path.getmtime(path)
        with lock:
            cached = _cache.get(key)
            if cached is not None and cached[0] == mtime:
                return list(cached[1])

        shloks = self._read(path)
        with lock:
            _cache[key] = (mtime, shloks)
        return list(shloks)


def clear_cache() -> None:
    with lock:
        _cache.clear()
