"""Column types and stored sentinel values shared by the legacy fiscalization tables.

The legacy schema has no booleans and no nullable deactivation dates:
- flags are CHAR(1) holding 'S' (si) or 'N' (no)
- "still active" is a deactivation date of 9999-12-31
- NOT NULL text columns that do not apply hold a single space
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import String

# CHAR(1) 'S'/'N' flag column
FlagSN = String(1)

SI = "S"
NO = "N"

# Deactivation date meaning "active forever"
FECHA_DESACTIVACION_NULA = datetime(9999, 12, 31)

# IDENTIFICACIONVEHICULO is NOT NULL and Oracle treats '' as NULL
IDENTIFICACION_VEHICULO_NO_APLICA = " "

OBSERVACION_MAX_LENGTH = 255


def to_flag(value: Optional[bool]) -> str:
    """Coerce a request boolean to the stored 'S'/'N' flag (None counts as False)."""
    return SI if value else NO
