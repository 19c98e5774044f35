"""
Tests for settings operations and rate colour tags.
"""

from dataclasses import replace

from depositlab.core.models import AppSettings
from depositlab.core.settings import (
    RATE_COLOR_PALETTE,
    add_rate,
    add_saved_funder,
    add_saved_source,
    known_rates,
    rate_color_tag,
    rate_key,
    remove_saved_funder,
    remove_saved_source,
    set_rate_color,
)


class TestSavedNames:
    def test_add_strips_and_deduplicates(self):
        settings = add_saved_source(AppSettings(), "  ABC ")
        settings = add_saved_source(settings, "ABC")
        settings = add_saved_source(settings, "")
        assert settings.saved_sources == ["ABC"]

    def test_remove(self):
        settings = AppSettings(saved_sources=["A", "B"], saved_funders=["王", "李"])
        assert remove_saved_source(settings, "A").saved_sources == ["B"]
        assert remove_saved_funder(settings, "王").saved_funders == ["李"]
        assert settings.saved_sources == ["A", "B"]

    def test_add_funder(self):
        assert add_saved_funder(AppSettings(), "王").saved_funders == ["王"]


class TestRateColors:
    def test_palette_fallback(self):
        assert len(RATE_COLOR_PALETTE) == 18
        assert rate_color_tag(1.2) == "indigo"
        assert rate_color_tag(1.0) == "sky"

    def test_equal_rates_share_colour(self):
        assert rate_color_tag(1.5) == rate_color_tag(1.50)

    def test_custom_map_wins(self):
        assert rate_color_tag(1.2, {"1.2": "red"}) == "red"
        assert rate_color_tag(1.2, {"1.2": ""}) == "indigo"

    def test_rate_key(self):
        assert rate_key(1.20) == "1.2"
        assert rate_key(2.0) == "2"

    def test_set_rate_color(self):
        settings = set_rate_color(AppSettings(), "1.20", "rose")
        assert settings.rate_color_map == {"1.2": "rose"}

    def test_add_rate(self):
        settings = add_rate(AppSettings(), 1.5)
        assert settings.rate_color_map == {"1.5": "green"}
        # existing mapping is not replaced
        pinned = replace(settings, rate_color_map={"1.5": "rose"})
        assert add_rate(pinned, "1.5") is pinned

    def test_add_rate_ignores_garbage(self):
        settings = AppSettings()
        assert add_rate(settings, "abc") is settings
        assert add_rate(settings, "nan") is settings

    def test_known_rates(self, abc_investment, pooled_investment):
        settings = AppSettings(rate_color_map={"0.8": "red", "bogus": "blue", "1.2": "x"})
        assert known_rates([abc_investment, pooled_investment], settings) == [
            "0.8",
            "1",
            "1.2",
        ]
