from __future__ import annotations

import dataclasses
import math
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import numpy as np
import pandas as pd


def to_jsonable(value: Any) -> Any:
    """
    Best-effort conversion to JSON-serializable primitives.

    Used by every result's ``to_dict``. Non-finite floats become ``None`` since
    strict JSON has no NaN/Infinity; dataclasses and enums are unwrapped.
    """

    if value is None:
        return None

    if isinstance(value, Enum):
        return to_jsonable(value.value)

    if isinstance(value, bool):
        return value

    if isinstance(value, (str, int)):
        return value

    if isinstance(value, float):
        return value if math.isfinite(value) else None

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, Decimal):
        return float(value)

    if isinstance(value, pd.Timestamp):
        return value.isoformat()

    if isinstance(value, np.generic):
        return to_jsonable(value.item())

    if isinstance(value, np.ndarray):
        return [to_jsonable(v) for v in value.tolist()]

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if hasattr(value, "to_dict"):
            return value.to_dict()
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}

    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]

    return str(value)


def dataclass_to_dict(obj: Any) -> dict[str, Any]:
    """Field-by-field ``to_jsonable`` of a dataclass instance."""
    return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
