import logging
from datetime import date, datetime, timezone
from typing import Optional, Sequence

import pandas as pd
from pydantic import BaseModel

from ..schema.models import ItemRow
from .errors import ExportError
from .profiles import ItemColumn

logger = logging.getLogger(__name__)

BOM = "\ufeff"
CSV_CONTENT_TYPE = "text/csv; charset=utf-8"
DEFAULT_FILENAME_PREFIX = "明細一覧"

## Terminador usado só na escrita de cada registro: com \r\n o writer cita campos com \r ou \n
RECORD_TERMINATOR = "\r\n"


class CsvExport(BaseModel):
    """Artefato pronto para download; quem persiste é o chamador."""
    filename: str
    content_type: str = CSV_CONTENT_TYPE
    payload: bytes
    row_count: int = 0

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8-sig")


def export_filename(export_date: Optional[date] = None, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    export_date = export_date or datetime.now(timezone.utc).date()
    return f"{prefix}_{export_date.isoformat()}.csv"


def _csv_record(frame: pd.DataFrame, header: bool = False) -> str:
    text = frame.to_csv(index=False, header=header, lineterminator=RECORD_TERMINATOR)
    return text[: -len(RECORD_TERMINATOR)]


def rows_to_csv_text(rows: Sequence[ItemRow], columns: Sequence[ItemColumn]) -> str:
    """
    Cabeçalho com os labels + uma linha por item (valores já corrigidos pelo mestre).
    Campos com vírgula, aspas ou quebra de linha saem entre aspas, aspas internas dobradas.
    """
    keys = [col.key for col in columns]
    labels = [col.label for col in columns]

    try:
        data = [row.corrected_values(keys) for row in rows]
    except Exception as e:
        raise ExportError("Failed to resolve item columns for export", details=str(e)) from e

    df = pd.DataFrame(data, columns=labels, dtype=object)

    # Linhas unidas por \n, sem quebra final
    records = [_csv_record(df.iloc[0:0], header=True)]
    records.extend(_csv_record(df.iloc[[i]]) for i in range(len(df)))
    return "\n".join(records)


def export_items_csv(
    rows: Sequence[ItemRow],
    columns: Sequence[ItemColumn],
    export_date: Optional[date] = None,
    filename_prefix: str = DEFAULT_FILENAME_PREFIX,
) -> CsvExport:
    """BOM + UTF-8 para o Excel detectar a codificação."""
    text = rows_to_csv_text(rows, columns)
    filename = export_filename(export_date, filename_prefix)

    logger.info("CSV export built: %s (%d rows)", filename, len(rows))
    return CsvExport(
        filename=filename,
        payload=(BOM + text).encode("utf-8"),
        row_count=len(rows),
    )
