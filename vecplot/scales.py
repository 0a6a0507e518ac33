from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import numpy as np

from vecplot.errors import DomainError


DEFAULT_TICK_TARGET = 6
DEFAULT_PAD_RATIO = 0.05
NICE_MULTIPLIERS = (1.0, 2.0, 5.0, 10.0)
_TICK_EPS = 1e-9


@dataclass(frozen=True)
class Domain:
    lo: float
    hi: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lo) and math.isfinite(self.hi)):
            raise DomainError(f"domain bounds must be finite: [{self.lo}, {self.hi}]")
        if self.lo > self.hi:
            raise DomainError(f"domain lower bound exceeds upper bound: [{self.lo}, {self.hi}]")

    @property
    def span(self) -> float:
        return self.hi - self.lo

    @property
    def degenerate(self) -> bool:
        return self.hi == self.lo

    def contains(self, value: float) -> bool:
        return self.lo <= value <= self.hi


@dataclass(frozen=True)
class PixelRange:
    lo: float
    hi: float

    @property
    def span(self) -> float:
        return self.hi - self.lo

    @property
    def midpoint(self) -> float:
        return 0.5 * (self.lo + self.hi)


@dataclass(frozen=True)
class Tick:
    value: float
    label: str


@dataclass(frozen=True)
class LinearScale:
    domain: Domain
    range: PixelRange

    def map(self, value: float) -> float:
        if self.domain.degenerate:
            return self.range.midpoint
        return self.range.lo + (value - self.domain.lo) / self.domain.span * self.range.span

    def map_array(self, values: np.ndarray) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64)
        if self.domain.degenerate:
            return np.full(arr.shape, self.range.midpoint, dtype=np.float64)
        return self.range.lo + (arr - self.domain.lo) / self.domain.span * self.range.span

    def inverse(self, pixel: float) -> float:
        if self.domain.degenerate or self.range.span == 0:
            return self.domain.lo
        return self.domain.lo + (pixel - self.range.lo) / self.range.span * self.domain.span

    def ticks(self, target: int = DEFAULT_TICK_TARGET) -> list[Tick]:
        values = generate_nice_ticks(self.domain.lo, self.domain.hi, target)
        labels = format_ticks_for_axis(values)
        return [Tick(value=float(v), label=label) for v, label in zip(values.tolist(), labels)]


def compute_domain(
    *arrays: np.ndarray,
    pad_ratio: float = DEFAULT_PAD_RATIO,
    include: tuple[float, ...] = (),
    explicit: tuple[float, float] | None = None,
) -> Domain:
    if explicit is not None:
        lo, hi = float(explicit[0]), float(explicit[1])
        return Domain(lo=lo, hi=hi)

    parts = [np.asarray(a, dtype=np.float64).ravel() for a in arrays]
    parts = [p for p in parts if p.size]
    if include:
        parts.append(np.asarray(include, dtype=np.float64))
    if not parts:
        return Domain(lo=0.0, hi=1.0)
    values = np.concatenate(parts)
    if not np.all(np.isfinite(values)):
        raise DomainError("data contains non-finite values")

    lo = float(np.min(values))
    hi = float(np.max(values))
    if lo == hi:
        delta = max(1.0, abs(lo) * pad_ratio)
        return Domain(lo=lo - delta, hi=hi + delta)
    pad = (hi - lo) * pad_ratio
    return Domain(lo=lo - pad, hi=hi + pad)


def nice_step(span: float, target: int = DEFAULT_TICK_TARGET) -> float:
    if target <= 0:
        raise ValueError("target must be > 0")
    if not math.isfinite(span) or span <= 0:
        raise DomainError(f"tick span must be finite and > 0: {span}")
    base = 10.0 ** math.floor(math.log10(span / target))
    return min((m * base for m in NICE_MULTIPLIERS), key=lambda s: abs(span / s - target))


def generate_nice_ticks(vmin: float, vmax: float, target: int = DEFAULT_TICK_TARGET) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    step = nice_step(vmax - vmin, target)
    first = math.ceil(vmin / step - _TICK_EPS)
    last = math.floor(vmax / step + _TICK_EPS)
    ticks = np.arange(first, last + 1, dtype=np.float64) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * _TICK_EPS)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * _TICK_EPS:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.2e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    # Integer labels keep their zeros (30, 40); fractional ones are trimmed.
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    # repr noise such as 0.30000000000000004 must not widen the label precision
    d = Decimal(f"{step:.12g}").normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
