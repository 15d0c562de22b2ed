# rocviz/svl/csv_tokens.py
import csv
import io
from typing import Iterable, List, Optional

from rocviz.errors import ShapeError


def split_csv_line(line: str, row: Optional[int] = None) -> List[str]:
    """Split one CSV line: double-quoted fields, "" for a literal quote."""
    if not line:
        return [""]
    try:
        return next(csv.reader([line]), [""])
    except csv.Error as e:
        where = f" on row {row}" if row is not None else ""
        raise ShapeError(f"Malformed CSV line{where}: {e}")


def quote_cell(cell: str) -> str:
    return '"' + cell.replace('"', '""') + '"'


def join_csv_row(cells: Iterable[str]) -> str:
    # quotes only cells holding a comma, a quote or a newline, plus a
    # leading cell that would otherwise read back as a '#' comment line
    cells = [str(c) for c in cells]
    buff = io.StringIO()
    csv.writer(buff, lineterminator="\n").writerow(cells)
    line = buff.getvalue().rstrip("\n")
    if cells and cells[0].lstrip().startswith("#") and not line.startswith('"'):
        line = quote_cell(cells[0]) + line[len(cells[0]):]
    return line
