"""
Operations on :class:`~depositlab.core.models.AppSettings`.

All functions return a new settings object.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import replace

from .currency import format_number
from .models import AppSettings, Investment

# Colour tags offered for rate highlighting, in picker order
RATE_COLOR_PALETTE: list[str] = [
    "slate",
    "red",
    "orange",
    "amber",
    "yellow",
    "lime",
    "green",
    "emerald",
    "teal",
    "cyan",
    "sky",
    "blue",
    "indigo",
    "violet",
    "purple",
    "fuchsia",
    "pink",
    "rose",
]


def rate_key(rate: float) -> str:
    """Text key of a rate in ``rate_color_map`` (``1.20 -> '1.2'``)."""
    return format_number(rate)


def rate_color_tag(rate: float, custom_map: dict[str, str] | None = None) -> str:
    """
    Colour tag for ``rate``.

    A custom mapping wins; otherwise the palette is indexed by
    ``floor(rate * 100) % len(palette)`` so equal rates share a colour.
    """
    key = rate_key(rate)
    if custom_map and custom_map.get(key):
        return custom_map[key]
    return RATE_COLOR_PALETTE[math.floor(rate * 100) % len(RATE_COLOR_PALETTE)]


def _add_unique(items: list[str], value: str) -> list[str]:
    value = value.strip()
    if not value or value in items:
        return list(items)
    return [*items, value]


def add_saved_source(settings: AppSettings, name: str) -> AppSettings:
    return replace(settings, saved_sources=_add_unique(settings.saved_sources, name))


def remove_saved_source(settings: AppSettings, name: str) -> AppSettings:
    return replace(settings, saved_sources=[s for s in settings.saved_sources if s != name])


def add_saved_funder(settings: AppSettings, name: str) -> AppSettings:
    return replace(settings, saved_funders=_add_unique(settings.saved_funders, name))


def remove_saved_funder(settings: AppSettings, name: str) -> AppSettings:
    return replace(settings, saved_funders=[s for s in settings.saved_funders if s != name])


def set_rate_color(settings: AppSettings, rate: float | str, tag: str) -> AppSettings:
    """Pin the colour tag of one rate."""
    key = rate_key(float(rate))
    return replace(settings, rate_color_map={**settings.rate_color_map, key: tag})


def add_rate(settings: AppSettings, rate: float | str) -> AppSettings:
    """
    Register a rate with its current default colour.

    Unparseable values and rates that already have a mapping are ignored.
    """
    try:
        value = float(rate)
    except (TypeError, ValueError):
        return settings
    if math.isnan(value) or rate_key(value) in settings.rate_color_map:
        return settings
    return set_rate_color(settings, value, rate_color_tag(value))


def known_rates(investments: Iterable[Investment], settings: AppSettings) -> list[str]:
    """Rates in use or mapped, as text keys sorted numerically."""
    rates = {rate_key(inv.rate) for inv in investments}
    for key in settings.rate_color_map:
        try:
            rates.add(rate_key(float(key)))
        except ValueError:
            continue
    return sorted(rates, key=float)
