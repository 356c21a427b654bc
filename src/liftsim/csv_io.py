from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Union

from .errors import InputFileError, LogWriteError
from .events import LogEntry
from .request import Request
from .simulation import validate_requests

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from dispatch.interface import DispatchPolicy

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

REQUEST_COLUMNS: Dict[str, str] = {
    "id": "Person ID",
    "origin_floor": "At Floor",
    "dest_floor": "Going to Floor",
    "release_time": "Time",
}

LOG_SUFFIX = "_log.csv"


def default_log_path(input_path: PathLike) -> Path:
    return Path(f"{input_path}{LOG_SUFFIX}")


def read_requests(path: PathLike) -> List[Request]:
    """Load and validate every request in a CSV file.

    Columns are matched by header name so their order does not matter. Any
    problem with the file or one of its rows rejects the whole file.
    """
    path = Path(path)
    if not path.is_file():
        raise InputFileError(f"The string does not correspond to a file: {path}")
    if path.suffix.lower() != ".csv":
        raise InputFileError(f"That file does not have a csv extension: {path}")

    try:
        with path.open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.DictReader(handle)
            headers = [name.strip() for name in reader.fieldnames or []]
            missing = [name for name in REQUEST_COLUMNS.values() if name not in headers]
            if missing:
                raise InputFileError(f"Missing column(s) in {path}: {', '.join(missing)}")
            reader.fieldnames = headers
            requests = [_parse_row(row, line) for line, row in enumerate(reader, start=2)]
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise InputFileError(f"Failed to read the input file: {exc}") from exc

    logger.info("Read %d requests from %s", len(requests), path)
    return validate_requests(requests)


def _parse_row(row: Dict[str, str], line: int) -> Request:
    values = {}
    for field_name, column in REQUEST_COLUMNS.items():
        raw = (row.get(column) or "").strip()
        try:
            values[field_name] = int(raw)
        except ValueError:
            raise InputFileError(f"Line {line}: column '{column}' is not an integer: {raw!r}") from None
    return Request(**values)


def write_log(path: PathLike, log: Iterable[LogEntry], policy: "DispatchPolicy") -> Path:
    path = Path(path)
    try:
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(policy.log_columns))
            writer.writeheader()
            for entry in log:
                writer.writerow(policy.log_row(entry))
    except OSError as exc:
        raise LogWriteError(f"Failed to create the log file: {exc}") from exc
    logger.info("Wrote event log to %s", path)
    return path
