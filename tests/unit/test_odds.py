"""Tests for fractional odds parsing and fair-odds display."""

import logging

import pytest

from furlong.odds import decimal_odds, fair_odds_display, implied_probability, parse_odds


class TestParseOdds:
    def test_dash_fraction(self):
        odds = parse_odds("5-2")
        assert odds.implied_probability == pytest.approx(2 / 7)
        assert odds.decimal == pytest.approx(3.5)
        assert odds.profit_multiple == pytest.approx(2.5)
        assert not odds.is_default

    def test_slash_fraction(self):
        assert implied_probability("7/2") == pytest.approx(2 / 9)

    def test_evens(self):
        odds = parse_odds("EVEN")
        assert odds.text == "EVEN"
        assert odds.implied_probability == pytest.approx(0.5)
        assert decimal_odds("evens") == pytest.approx(2.0)

    def test_bare_number_is_to_one(self):
        assert implied_probability("4") == pytest.approx(0.2)
        assert implied_probability(9) == pytest.approx(0.1)

    def test_malformed_defaults_to_two_to_one(self, caplog):
        with caplog.at_level(logging.WARNING, logger="furlong.odds"):
            odds = parse_odds("scratched?")
        assert odds.is_default
        assert odds.implied_probability == pytest.approx(1 / 3)
        assert "Malformed odds" in caplog.text

    def test_zero_and_negative_rejected(self):
        assert parse_odds("0-1").is_default
        assert parse_odds("-3").is_default
        assert parse_odds(None).is_default

    def test_custom_default(self):
        assert parse_odds("", default="9-2").implied_probability == pytest.approx(2 / 11)


class TestFairOddsDisplay:
    def test_whole_number(self):
        assert fair_odds_display(0.2) == "4-1"
        assert fair_odds_display(0.1) == "9-1"

    def test_rounding(self):
        # 0.7 / 0.3 = 2.33
        assert fair_odds_display(0.3) == "2-1"

    def test_even_money(self):
        assert fair_odds_display(0.5) == "EVEN"
        assert fair_odds_display(0.6) == "EVEN"

    def test_extremes(self):
        assert fair_odds_display(0.001) == "99-1"
        assert fair_odds_display(0.0) == "99-1"
        assert fair_odds_display(1.0) == "EVEN"
