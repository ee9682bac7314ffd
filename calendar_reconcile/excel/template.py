from __future__ import annotations

from pathlib import Path

import pandas as pd

"""Sample upload workbook for operators.

Uses the first spelling of every column family, which keeps the historical
"Hastags" header operators already have in their own sheets.
"""

TEMPLATE_SHEET = "Calendar Entries"

TEMPLATE_ROWS = [
    {
        "Date": "2024-12-09",
        "Client": "Client A",
        "Post type": "Image",
        "Hastags": "#AI #Perpelex",
        "Campaign": "Yes",
        "priority": "High",
    },
    {
        "Date": "2024-12-09",
        "Client": "Client B",
        "Post type": "Video",
        "Hastags": "#Marketing #Growth",
        "Campaign": "No",
        "priority": "Medium",
    },
]

COLUMN_WIDTHS = {"A": 12, "B": 20, "C": 15, "D": 20, "E": 15, "F": 12}


def write_template(path: Path) -> Path:
    """Write the template workbook to ``path`` and return it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(TEMPLATE_ROWS)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        sheet = writer.sheets[TEMPLATE_SHEET]
        for letter, width in COLUMN_WIDTHS.items():
            sheet.column_dimensions[letter].width = width
    return path
