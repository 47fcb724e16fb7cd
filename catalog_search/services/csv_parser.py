"""
Tolerant streaming parser for large catalog exports.

Splits RFC4180-style text into rows, decodes each row through the
Shopify normalizer, applies the retention rule and reports progress.
Row-level failures are counted, never raised.
"""
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from catalog_search.config import config
from catalog_search.errors import EmptyCatalogError, IngestionError, NormalizationError
from catalog_search.logger import logger
from catalog_search.models.search import ParseResult, ParseStats
from catalog_search.normalizers.shopify import ShopifyNormalizer
from catalog_search.sentry import capture_parse_errors

ProgressCallback = Callable[[int, ParseStats], None]


class ParseCache:
    """
    Holds the most recent successful parse.
    Owned by the caller; the reference is swapped whole, never mutated.
    """

    def __init__(self):
        self._result: Optional[ParseResult] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[ParseResult]:
        with self._lock:
            return self._result

    def set(self, result: ParseResult) -> None:
        with self._lock:
            self._result = result

    def clear(self) -> None:
        with self._lock:
            self._result = None


def split_rows(text: str) -> Iterator[str]:
    """
    Yield raw row strings, keeping quoted newlines inside their row.
    Terminators are \\n, \\r\\n or a bare \\r outside quotes. Blank rows are
    yielded too; only the empty tail after a final terminator is not.
    """
    start = 0
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if char == '"':
            if in_quotes and i + 1 < length and text[i + 1] == '"':
                i += 2
                continue
            in_quotes = not in_quotes
        elif (char == "\n" or char == "\r") and not in_quotes:
            yield text[start:i]
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            start = i + 1
        i += 1

    if start < length:
        yield text[start:]


def split_fields(line: str) -> List[str]:
    """Split one row on commas outside quotes, unescaping doubled quotes."""
    fields = []
    current = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def _row_to_dict(headers: List[str], values: List[str]) -> Dict[str, str]:
    """Zip values onto headers by position; extras are ignored, gaps become ''."""
    return {
        header: values[index] if index < len(values) else ""
        for index, header in enumerate(headers)
    }


def parse_catalog(
    text: str,
    on_progress: Optional[ProgressCallback] = None,
    cache: Optional[ParseCache] = None,
    progress_interval: Optional[int] = None,
) -> ParseResult:
    """
    Parse a catalog export into sellable products.

    Args:
        text: Raw CSV text, header row first
        on_progress: Called with (percent, stats) every progress_interval rows
            and exactly once with 100 when done
        cache: Receives the result when parsing succeeds
        progress_interval: Rows between progress reports (default from config)

    Returns:
        ParseResult with retained products and statistics

    Raises:
        EmptyCatalogError: If there is no header or no data row
    """
    started = time.perf_counter()
    interval = progress_interval or config.PROGRESS_INTERVAL

    lines = list(split_rows(text or ""))
    non_blank = [index for index, line in enumerate(lines) if line.strip()]
    if len(non_blank) < 2:
        raise EmptyCatalogError(
            f"No data to parse: found {len(non_blank)} non-blank line(s), need a header and at least one row"
        )

    header_index = non_blank[0]
    headers = split_fields(lines[header_index].lstrip("\ufeff"))
    rows = lines[header_index + 1:]
    total = len(rows)
    stats = ParseStats()
    products = []
    first_error = None

    logger.info(f"Parsing catalog: {total} rows, {len(headers)} columns")

    for index, line in enumerate(rows, start=1):
        line = line.strip()
        if not line:
            stats.skipped_rows += 1
        else:
            try:
                product = ShopifyNormalizer.normalize_row(_row_to_dict(headers, split_fields(line)))
            except NormalizationError as e:
                stats.errors += 1
                stats.skipped_rows += 1
                logger.warning(f"Skipping row {index}: {e}")
                if first_error is None:
                    first_error = (index, e)
            else:
                if product.is_sellable:
                    products.append(product)
                else:
                    stats.skipped_rows += 1

        stats.total_rows = index
        stats.parsed_products = len(products)

        # The last row is reported by the final 100% callback below
        if on_progress and index % interval == 0 and index < total:
            stats.parse_time = time.perf_counter() - started
            on_progress(int(index * 100 / total + 0.5), stats.snapshot())

    stats.total_rows = total
    stats.parsed_products = len(products)
    stats.parse_time = time.perf_counter() - started

    if first_error is not None:
        capture_parse_errors(stats.errors, stats.total_rows, *first_error)

    if on_progress:
        on_progress(100, stats.snapshot())

    logger.info(
        f"Parsed {stats.parsed_products} products from {stats.total_rows} rows "
        f"({stats.skipped_rows} skipped, {stats.errors} errors) in {stats.parse_time:.3f}s"
    )

    result = ParseResult(products=products, stats=stats)
    if cache is not None:
        cache.set(result)
    return result


def load_catalog(
    text: str,
    cache: ParseCache,
    on_progress: Optional[ProgressCallback] = None,
) -> ParseResult:
    """Return the cached parse if there is one, otherwise parse and cache."""
    cached = cache.get()
    if cached is not None:
        logger.debug("Using cached catalog parse")
        return cached
    return parse_catalog(text, on_progress=on_progress, cache=cache)


def parse_catalog_file(
    path: str,
    on_progress: Optional[ProgressCallback] = None,
    cache: Optional[ParseCache] = None,
) -> ParseResult:
    """Read a UTF-8 export from disk and parse it."""
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise IngestionError(f"Failed to read catalog file {path}: {e}") from e
    return parse_catalog(text, on_progress=on_progress, cache=cache)
