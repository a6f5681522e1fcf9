from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import IO, Iterable, List, Optional, Union

from oscillation_analyzer.errors import MalformedLine, SourceUnavailable
from oscillation_analyzer.models.frames import SkippedLine, SourceRecords
from oscillation_analyzer.models.records import Record, schema_field_count

logger = logging.getLogger(__name__)

# One separator between fields: any single punctuation character that cannot
# appear inside a number or a word (optionally padded), or a run of whitespace.
# Letters, digits, '.', '+', '-' and '_' stay in the token so that garbage such
# as "1_5" or "nan" is rejected as a whole rather than split apart.
_SPLIT = re.compile(r"\s*[^0-9A-Za-z.+\-_\s]\s*|\s+")

# Plain decimal or exponent notation only; no underscores, no nan/inf words.
_FLOAT_TOKEN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INT_TOKEN = re.compile(r"[+-]?[0-9]+")
_NON_FINITE_WORDS = ("nan", "inf", "infinity")

TextSource = Union[str, Path, IO[str], Iterable[str]]


def is_skippable(line: str) -> bool:
    """Blank lines and '#' comments carry no record and are not errors."""
    s = line.strip()
    return not s or s.startswith("#")


def split_fields(line: str) -> List[str]:
    return _SPLIT.split(line.strip())


def to_float(token: str, field: str, line: str, line_no: Optional[int] = None) -> float:
    """Strict float conversion of one field; raises MalformedLine on anything else."""
    if not _FLOAT_TOKEN.fullmatch(token):
        kind = "non-finite" if token.lstrip("+-").lower() in _NON_FINITE_WORDS else "non-numeric"
        raise MalformedLine(line, f"{kind} {field} field {token!r}", line_no)
    x = float(token)
    if not math.isfinite(x):
        # overflow, e.g. 1e999
        raise MalformedLine(line, f"non-finite {field} field {token!r}", line_no)
    return x


def to_int(token: str, field: str, line: str, line_no: Optional[int] = None) -> int:
    if not _INT_TOKEN.fullmatch(token):
        raise MalformedLine(line, f"{field} {token!r} is not an integer", line_no)
    return int(token)


def parse_record(line: str, schema: str, line_no: Optional[int] = None) -> Optional[Record]:
    """
    Parse one text line into a Record.

    Returns None for blank/comment lines. Raises MalformedLine if the line holds fewer
    numeric tokens than the schema requires, or a required token is not a finite number.
    Tokens beyond the schema's field count are ignored.
    """
    n_fields = schema_field_count(schema)
    if is_skippable(line):
        return None

    tokens = split_fields(line)
    if len(tokens) < n_fields:
        raise MalformedLine(line, f"expected {n_fields} fields for '{schema}' schema, got {len(tokens)}", line_no)

    names = ("position", "primary", "total_stat_error", "background_count", "background_stat_error")
    vals = [to_float(tokens[k], names[k], line, line_no) for k in range(n_fields)]

    if n_fields == 2:
        return Record(position=vals[0], primary_value=vals[1])
    return Record(
        position=vals[0],
        primary_value=vals[1],
        total_stat_error=vals[2],
        background_count=vals[3],
        background_stat_error=vals[4],
    )


def format_record(record: Record, schema: str, sep: str = ",") -> str:
    """Serialize a Record back to one text line (repr-exact floats)."""
    n_fields = schema_field_count(schema)
    row = record.as_row()[:n_fields]
    return sep.join(repr(float(v)) for v in row)


def parse_lines(lines: Iterable[str], schema: str, label: str = "<lines>") -> SourceRecords:
    """Parse an iterable of lines, skipping (and counting) malformed ones."""
    schema_field_count(schema)
    records: List[Record] = []
    skipped: List[SkippedLine] = []

    for line_no, line in enumerate(lines, start=1):
        try:
            rec = parse_record(line, schema, line_no=line_no)
        except MalformedLine as e:
            skipped.append(SkippedLine(line_no=line_no, reason=e.reason, text=line.rstrip("\r\n")))
            logger.warning("%s: skipped malformed line %d (%s)", label, line_no, e.reason)
            continue
        if rec is not None:
            records.append(rec)

    warnings: List[str] = []
    if skipped:
        warnings.append(f"{label}: skipped {len(skipped)} malformed line(s)")

    return SourceRecords(
        label=label,
        schema=schema,
        records=tuple(records),
        skipped=tuple(skipped),
        warnings=tuple(warnings),
    )


def read_records(source: TextSource, schema: str, label: Optional[str] = None) -> SourceRecords:
    """
    Read all records of one text source.

    source:
      A path (str/Path) or an already open text stream / iterable of lines. Paths are
      opened and closed here; an unreadable path raises SourceUnavailable.
    """
    if isinstance(source, (str, Path)):
        p = Path(source).expanduser()
        lbl = label or p.name
        try:
            with open(p, "r", encoding="utf-8", errors="replace") as f:
                result = parse_lines(f, schema, label=lbl)
        except OSError as e:
            raise SourceUnavailable(str(p), f"{type(e).__name__}: {e.strerror or e}") from e
        logger.debug("%s: %d records (%s schema)", lbl, result.n_records, schema)
        return SourceRecords(
            label=result.label,
            schema=result.schema,
            records=result.records,
            skipped=result.skipped,
            warnings=result.warnings,
            source_path=p.resolve(),
        )

    return parse_lines(source, schema, label=label or getattr(source, "name", "<stream>"))
