"""
Load Data Sources

Injected source abstraction for the load stage. A source turns its input
into a polars DataFrame with exactly the target table's schema:

- FileSource: delimited file on disk
- StreamSource: delimited text from any file-like object
- FrameSource: in-memory DataFrame or list of records

Delimited sources follow bulk-insert semantics: the first row is a header
and is skipped, fields are split on the delimiter with no quoting, empty
fields are null, and every row must have exactly the table's field count.
"""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Optional, Sequence, Union

import polars as pl
import structlog

from sales_warehouse.config import Settings, get_settings

logger = structlog.get_logger(__name__)

Schema = Dict[str, pl.DataType]


@dataclass
class CsvOptions:
    """Parsing options for delimited sources"""
    delimiter: str = ","
    encoding: str = "utf8"
    null_values: List[str] = field(default_factory=lambda: [""])

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CsvOptions":
        sources = (settings or get_settings()).sources
        return cls(
            delimiter=sources.delimiter,
            encoding=sources.encoding,
            null_values=list(sources.null_values),
        )


class MalformedSourceError(ValueError):
    """A source row does not fit the table layout"""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class DataSource(ABC):
    """Something the bulk loader can read rows from"""

    name: str = "source"

    @abstractmethod
    def read(self, schema: Schema, options: CsvOptions) -> pl.DataFrame:
        """Read all rows, typed to ``schema``"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class DelimitedSource(DataSource):
    """Base for sources that yield delimited text with a header row"""

    @abstractmethod
    def read_text(self, options: CsvOptions) -> str:
        """Return the full decoded source text"""

    @staticmethod
    def _decode(payload: bytes, encoding: str) -> str:
        if encoding == "utf8-lossy":
            return payload.decode("utf-8-sig", errors="replace")
        if encoding in ("utf8", "utf-8"):
            return payload.decode("utf-8-sig")
        return payload.decode(encoding)

    def _data_lines(self, text: str, field_count: int, delimiter: str) -> List[str]:
        """Check every non-blank line's field count and drop the header"""
        lines = []
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            found = line.count(delimiter) + 1
            if found != field_count:
                raise MalformedSourceError(
                    f"{self.name}: line {number} has {found} fields, expected {field_count}",
                    line=number,
                )
            lines.append(line)
        return lines[1:]

    def read(self, schema: Schema, options: CsvOptions) -> pl.DataFrame:
        text = self.read_text(options)
        data_lines = self._data_lines(text, len(schema), options.delimiter)

        if not data_lines:
            logger.debug("Source has no data rows", source=self.name)
            return pl.DataFrame(schema=schema)

        payload = "\n".join(data_lines).encode("utf-8")
        return pl.read_csv(
            io.BytesIO(payload),
            has_header=False,
            schema=schema,
            separator=options.delimiter,
            quote_char=None,
            null_values=options.null_values,
            encoding="utf8",
        )


class FileSource(DelimitedSource):
    """Delimited file on disk"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.name = str(self.path)

    def read_text(self, options: CsvOptions) -> str:
        if not self.path.exists():
            raise FileNotFoundError(f"Source file not found: {self.path}")
        return self._decode(self.path.read_bytes(), options.encoding)


class StreamSource(DelimitedSource):
    """Delimited text read from a file-like object (text or binary)"""

    def __init__(self, stream: IO[Any], name: str = "stream"):
        self.stream = stream
        self.name = name

    def read_text(self, options: CsvOptions) -> str:
        data = self.stream.read()
        if isinstance(data, bytes):
            return self._decode(data, options.encoding)
        return data


class FrameSource(DataSource):
    """
    In-memory table.

    Accepts a polars DataFrame or a sequence of records. Columns must match
    the table's columns exactly; values are cast strictly, with ISO strings
    accepted for date columns. Integer columns refuse float and boolean
    input rather than truncating it.
    """

    def __init__(
        self,
        data: Union[pl.DataFrame, Sequence[Mapping[str, Any]]],
        name: str = "frame",
    ):
        self.data = data
        self.name = name

    def _to_frame(self) -> pl.DataFrame:
        if isinstance(self.data, pl.DataFrame):
            return self.data
        return pl.DataFrame([dict(row) for row in self.data], infer_schema_length=None)

    def read(self, schema: Schema, options: CsvOptions) -> pl.DataFrame:
        frame = self._to_frame()
        if frame.width == 0:
            # An empty record list carries no columns
            return pl.DataFrame(schema=schema)

        if set(frame.columns) != set(schema):
            missing = [c for c in schema if c not in frame.columns]
            extra = [c for c in frame.columns if c not in schema]
            raise MalformedSourceError(
                f"{self.name}: column mismatch (missing={missing}, unexpected={extra})"
            )

        columns = []
        for name, dtype in schema.items():
            source_dtype = frame.schema[name]
            column = pl.col(name)
            if dtype == pl.Int64 and (source_dtype.is_float() or source_dtype == pl.Boolean):
                # A cast would truncate fractions and turn flags into 0/1
                raise MalformedSourceError(f"{self.name}: column {name} is {source_dtype}, expected integers")
            if dtype == pl.Date and source_dtype == pl.Utf8:
                columns.append(column.str.to_date("%Y-%m-%d", strict=True))
            else:
                columns.append(column.cast(dtype, strict=True))
        return frame.select(columns)
