"""
Chart-ready series for the price history view.

Points without a numeric price are left off the chart (they still appear in the
timeline). Each series is ascending by date; y-axis bounds are padded 5% either side.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import PriceKind, PricePoint
from reporting.format_utils import format_compact_currency, format_month_year

AXIS_PADDING = 0.05


class ChartPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    label: str
    price: float
    formatted_price: str
    event: Optional[str] = None


class ChartSeries(BaseModel):
    model_config = ConfigDict(frozen=True)

    points: List[ChartPoint] = Field(default_factory=list)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    axis_min: Optional[float] = None
    axis_max: Optional[float] = None
    axis_min_label: str = "N/A"
    axis_max_label: str = "N/A"


class PriceChart(BaseModel):
    model_config = ConfigDict(frozen=True)

    sale: ChartSeries
    rent: ChartSeries
    default_metric: Literal["sale", "rent"] = "sale"


def _series(points: list[PricePoint]) -> ChartSeries:
    priced = sorted((p for p in points if p.price is not None), key=lambda p: p.date)
    if not priced:
        return ChartSeries()
    prices = [p.price for p in priced]
    lo, hi = min(prices), max(prices)
    axis_min, axis_max = lo * (1 - AXIS_PADDING), hi * (1 + AXIS_PADDING)
    return ChartSeries(
        points=[
            ChartPoint(
                date=p.date,
                label=format_month_year(p.date),
                price=p.price,
                formatted_price=p.formatted_price,
                event=p.event,
            )
            for p in priced
        ],
        min_price=lo,
        max_price=hi,
        axis_min=axis_min,
        axis_max=axis_max,
        axis_min_label=format_compact_currency(axis_min),
        axis_max_label=format_compact_currency(axis_max),
    )


def build_price_series(points: list[PricePoint]) -> PriceChart:
    sale = _series([p for p in points if p.kind == PriceKind.SALE])
    rent = _series([p for p in points if p.kind == PriceKind.RENT])
    has_sale = any(p.kind == PriceKind.SALE for p in points)
    return PriceChart(
        sale=sale,
        rent=rent,
        default_metric="sale" if has_sale or not rent.points else "rent",
    )
