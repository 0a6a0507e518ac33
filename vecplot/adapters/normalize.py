from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

import numpy as np

from vecplot.errors import DataShapeError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def normalize_xy(
    y: Any = None,
    *,
    x: Any = None,
    data: Any = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Coerce x/y inputs to float64 arrays; lengths are checked when the chart renders."""
    y_values = _resolve_input(y=y, key="y", data=data)
    if y_values is None:
        raise DataShapeError("y input is required")
    y_arr = coerce_1d_numeric(y_values, label="y")

    if x is None:
        x_arr = np.arange(y_arr.size, dtype=np.float64)
    else:
        x_values = _resolve_input(y=x, key="x", data=data)
        x_arr = coerce_1d_numeric(x_values, label="x")
    return x_arr, y_arr


def normalize_values(values: Any, *, label: str = "values", data: Any = None) -> np.ndarray:
    resolved = _resolve_input(y=values, key="y", data=data)
    if resolved is None:
        raise DataShapeError(f"{label} input is required")
    return coerce_1d_numeric(resolved, label=label)


def normalize_datasets(values: Any, *, label: str = "values") -> list[np.ndarray]:
    """Accept one dataset or a sequence of datasets (box/violin input)."""
    if pd is not None and isinstance(values, pd.DataFrame):
        numeric_cols = [c for c in values.columns if _is_numeric_dtype(values[c])]
        if not numeric_cols:
            raise DataShapeError(f"{label} DataFrame has no numeric columns")
        return [coerce_1d_numeric(values[c], label=f"{label}[{c}]") for c in numeric_cols]
    if isinstance(values, np.ndarray) and values.ndim == 2:
        return [_coerce_ndarray(values[:, i], label=f"{label}[{i}]") for i in range(values.shape[1])]
    if (
        isinstance(values, Sequence)
        and not isinstance(values, (str, bytes, bytearray))
        and len(values) > 0
        and all(_is_array_like(v) for v in values)
    ):
        return [coerce_1d_numeric(v, label=f"{label}[{i}]") for i, v in enumerate(values)]
    return [coerce_1d_numeric(values, label=label)]


def normalize_grid(z: Any, *, label: str = "z") -> np.ndarray:
    if torch is not None and isinstance(z, torch.Tensor):
        arr = z.detach().cpu().to(torch.float64).numpy()
    elif pd is not None and isinstance(z, pd.DataFrame):
        arr = z.to_numpy(dtype=np.float64)
    else:
        try:
            arr = np.asarray(z, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise DataShapeError(f"{label} must be a rectangular numeric grid") from exc
    if arr.ndim != 2:
        raise DataShapeError(f"{label} must be 2-D, got {arr.ndim}-D")
    return arr


def normalize_categories(x: Any, *, label: str = "x") -> tuple[np.ndarray, tuple[str, ...] | None]:
    """Map category input to slot positions; string categories keep their labels."""
    if pd is not None and isinstance(x, pd.Series) and not _is_numeric_dtype(x):
        x = x.tolist()
    if isinstance(x, Sequence) and not isinstance(x, (str, bytes, bytearray)):
        if len(x) > 0 and all(isinstance(v, str) for v in x):
            labels = tuple(str(v) for v in x)
            return np.arange(len(labels), dtype=np.float64), labels
    return coerce_1d_numeric(x, label=label), None


def coerce_1d_numeric(value: Any, *, label: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise DataShapeError(f"{label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, pd.Series):
        return _coerce_ndarray(value.to_numpy(), label=label)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise DataShapeError(f"{label} must be 1-D")
        return _coerce_ndarray(value, label=label)

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        arr = np.asarray(list(value), dtype=object)
        if arr.ndim != 1:
            raise DataShapeError(f"{label} must be 1-D")
        return _coerce_ndarray(arr, label=label)

    raise DataShapeError(f"unsupported {label} input type: {type(value)!r}")


def _resolve_input(y: Any, key: str, data: Any) -> Any:
    if data is not None:
        if pd is None:
            raise DataShapeError("pandas is required when using `data=`")
        if not isinstance(data, pd.DataFrame):
            raise DataShapeError("`data` must be a pandas DataFrame")
        if isinstance(y, str):
            if y not in data.columns:
                raise DataShapeError(f"column not found: {y}")
            return data[y]
        if y is None:
            if key == "y":
                numeric_cols = [c for c in data.columns if _is_numeric_dtype(data[c])]
                if len(numeric_cols) != 1:
                    raise DataShapeError("when y is omitted, data must have exactly one numeric column")
                return data[numeric_cols[0]]
            return None
        return y

    if pd is not None and isinstance(y, pd.DataFrame):
        numeric_cols = [c for c in y.columns if _is_numeric_dtype(y[c])]
        if len(numeric_cols) != 1:
            raise DataShapeError("1-D DataFrame input must contain exactly one numeric column")
        return y[numeric_cols[0]]

    return y


def _is_array_like(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray)):
        return False
    if isinstance(value, (Sequence, np.ndarray)):
        return True
    if pd is not None and isinstance(value, pd.Series):
        return True
    return torch is not None and isinstance(value, torch.Tensor)


def _is_numeric_dtype(series: Any) -> bool:
    if pd is None:
        return False
    return bool(pd.api.types.is_numeric_dtype(series))


def _coerce_ndarray(arr: np.ndarray, *, label: str) -> np.ndarray:
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return arr.astype(np.float64, copy=False)

    out = np.empty(arr.shape[0], dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None:
            out[i] = np.nan
            continue
        if isinstance(raw, Decimal):
            out[i] = float(raw)
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise DataShapeError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
