from __future__ import annotations

import io
import math
import re
import unicodedata
from dataclasses import dataclass, field
from functools import cmp_to_key
from html.parser import HTMLParser
from typing import Iterable

import pandas as pd

from report_viewer.errors import ReportIOError

BOARD_HEADER_KEYWORD = "board"
_NUMBER_PATTERN = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
_DIGIT_RUN = re.compile(r"(\d+)")


def parse_number(text: str) -> float | None:
    candidate = text.strip()
    if not _NUMBER_PATTERN.fullmatch(candidate):
        return None
    value = float(candidate)
    if math.isinf(value):
        return None
    return value


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _natural_key(text: str) -> tuple[str | int, ...]:
    # Even positions are text chunks and odd positions digit runs, so tuples
    # always compare like with like.
    parts = _DIGIT_RUN.split(_fold(text.strip()))
    return tuple(int(part) if index % 2 else part for index, part in enumerate(parts))


def compare_cells(left: str, right: str) -> int:
    left_number = parse_number(left)
    right_number = parse_number(right)
    if left_number is not None and right_number is not None:
        return (left_number > right_number) - (left_number < right_number)
    left_key = _natural_key(left)
    right_key = _natural_key(right)
    return (left_key > right_key) - (left_key < right_key)


@dataclass(slots=True)
class TableRow:
    cells: list[str]
    position: int
    visible: bool = True

    def cell(self, index: int) -> str:
        return self.cells[index] if 0 <= index < len(self.cells) else ""


@dataclass(slots=True)
class SortState:
    column: int | None = None
    descending: bool = False

    @property
    def direction(self) -> str:
        return "desc" if self.descending else "asc"


@dataclass(slots=True)
class ReportTable:
    headers: list[str]
    rows: list[TableRow] = field(default_factory=list)

    @classmethod
    def from_html(cls, html_text: str) -> ReportTable | None:
        parser = _TableExtractor()
        parser.feed(html_text)
        parser.close()
        if not parser.found_table:
            return None
        rows = [TableRow(cells=cells, position=i) for i, cells in enumerate(parser.body_rows)]
        return cls(headers=parser.headers, rows=rows)

    @classmethod
    def from_csv_text(cls, csv_text: str) -> ReportTable:
        try:
            df = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return cls(headers=[])
        except pd.errors.ParserError as exc:
            raise ReportIOError("parse CSV", exc) from exc
        rows = [
            TableRow(cells=[str(value).strip() for value in record], position=i)
            for i, record in enumerate(df.itertuples(index=False, name=None))
        ]
        return cls(headers=[str(column).strip() for column in df.columns], rows=rows)

    def header_index(self, name: str) -> int | None:
        for index, header in enumerate(self.headers):
            if header == name:
                return index
        return None


class TableViewState:
    """Filter and sort state for one loaded report table.

    Filtering only flips ``TableRow.visible``; sorting reorders ``rows``.
    Neither ever drops a row. A table without a board or ticket column
    simply leaves those features inactive.
    """

    def __init__(
        self,
        table: ReportTable,
        ticket_column: str = "TicketID",
        ticket_url_template: str = "{ticket_id}",
    ) -> None:
        self.table = table
        self.sort = SortState()
        self.board_filter: set[str] = set()
        self._ticket_url_template = ticket_url_template
        self.board_column = _find_board_column(table.headers)
        self.ticket_column_index = table.header_index(ticket_column)

    @property
    def rows(self) -> list[TableRow]:
        return self.table.rows

    @property
    def filter_enabled(self) -> bool:
        return self.board_column is not None

    def board_options(self) -> list[str]:
        if self.board_column is None:
            return []
        return sorted({row.cell(self.board_column) for row in self.rows})

    def set_board_filter(self, boards: Iterable[str]) -> None:
        # The "All Boards" option has an empty value and never filters.
        self.board_filter = {board for board in boards if board}
        self._apply_filter()

    def clear_board_filter(self) -> None:
        self.set_board_filter(())

    def visible_rows(self) -> list[TableRow]:
        return [row for row in self.rows if row.visible]

    def toggle_sort(self, column: int) -> SortState:
        if not 0 <= column < len(self.table.headers):
            raise IndexError(f"Column index out of range: {column}")
        if self.sort.column == column:
            self.sort.descending = not self.sort.descending
        else:
            self.sort = SortState(column=column, descending=False)

        def compare(left: TableRow, right: TableRow) -> int:
            return compare_cells(left.cell(column), right.cell(column))

        self.table.rows = sorted(self.rows, key=cmp_to_key(compare), reverse=self.sort.descending)
        self._apply_filter()
        return self.sort

    def ticket_url(self, ticket_id: str) -> str:
        return self._ticket_url_template.replace("{ticket_id}", ticket_id)

    def _apply_filter(self) -> None:
        for row in self.rows:
            row.visible = (
                self.board_column is None
                or not self.board_filter
                or row.cell(self.board_column) in self.board_filter
            )


def _find_board_column(headers: list[str]) -> int | None:
    # Last match wins, as in the browser viewer.
    found = None
    for index, header in enumerate(headers):
        if BOARD_HEADER_KEYWORD in header.lower():
            found = index
    return found


class _TableExtractor(HTMLParser):
    """Collects header and body cell texts from the first top-level table."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.found_table = False
        self.headers: list[str] = []
        self.body_rows: list[list[str]] = []
        self._depth = 0
        self._done = False
        self._row: list[str] | None = None
        self._row_has_data = False
        self._cell: list[str] | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self._done:
            return
        if tag == "table":
            self._depth += 1
            self.found_table = True
            return
        if self._depth != 1:
            return
        if tag == "tr":
            self._finish_row()
            self._row = []
            self._row_has_data = False
        elif tag in {"th", "td"} and self._row is not None:
            self._finish_cell()
            self._cell = []
            if tag == "td":
                self._row_has_data = True

    def handle_endtag(self, tag: str) -> None:
        if self._done:
            return
        if tag == "table":
            if self._depth == 1:
                self._finish_row()
                self._done = True
            self._depth = max(self._depth - 1, 0)
            return
        if self._depth != 1:
            return
        if tag in {"th", "td"}:
            self._finish_cell()
        elif tag == "tr":
            self._finish_row()

    def handle_data(self, data: str) -> None:
        if self._cell is not None and self._depth >= 1:
            self._cell.append(data)

    def _finish_cell(self) -> None:
        if self._cell is not None and self._row is not None:
            self._row.append("".join(self._cell).strip())
        self._cell = None

    def _finish_row(self) -> None:
        self._finish_cell()
        if self._row is None:
            return
        if self._row_has_data:
            self.body_rows.append(self._row)
        elif not self.headers and self._row:
            self.headers = self._row
        self._row = None
