from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


@dataclass(frozen=True)
class InputRow:
    index: int
    card_key: Optional[str]
    item_key: Optional[str]


def _cell(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value)
    return text if text.strip() else None


def read_input_table(
    path: Union[str, Path],
    *,
    sheet: Union[int, str] = 0,
    header: bool = True,
    card_key_column: int = 0,
    item_key_column: int = 1,
) -> List[InputRow]:
    """Read the card/item key columns of a spreadsheet or CSV file.

    Cells are read as text so numeric-looking codes keep their leading zeros;
    blank cells become ``None``. Rows are numbered from 1, header excluded.
    """

    file_path = Path(path)
    suffix = file_path.suffix.lower()
    header_row = 0 if header else None
    if suffix in EXCEL_SUFFIXES:
        frame = pd.read_excel(file_path, sheet_name=sheet, header=header_row, dtype=str, engine="openpyxl")
    elif suffix == ".csv":
        frame = pd.read_csv(file_path, header=header_row, dtype=str, keep_default_na=False, skip_blank_lines=False)
    else:
        raise ValueError(f"Unsupported input format: {file_path.suffix or '<none>'} (expected .xlsx, .xlsm or .csv)")
    width = max(card_key_column, item_key_column) + 1
    if frame.shape[1] < width:
        raise ValueError(f"Input table needs at least {width} columns, found {frame.shape[1]}")
    rows: List[InputRow] = []
    for position, values in enumerate(frame.itertuples(index=False, name=None), start=1):
        rows.append(
            InputRow(
                index=position,
                card_key=_cell(values[card_key_column]),
                item_key=_cell(values[item_key_column]),
            )
        )
    return rows


__all__ = ["InputRow", "read_input_table"]
