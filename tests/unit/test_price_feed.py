"""
test_price_feed.py - Unit tests for price_feed.py

Tests:
- SettablePriceFeed: initial price, overwrite, validation
- PriceSource protocol
"""

import pytest
from lending import WAD, SettablePriceFeed, PriceSource, InvalidInput


class TestSettablePriceFeed:

    def test_initial_price(self):
        assert SettablePriceFeed(2000 * WAD).get_price() == 2000 * WAD

    def test_set_price_returns_previous(self):
        feed = SettablePriceFeed(2000 * WAD)
        assert feed.set_price(1300 * WAD) == 2000 * WAD
        assert feed.get_price() == 1300 * WAD

    def test_last_write_wins(self):
        feed = SettablePriceFeed(1)
        for price in (5, 3, 9):
            feed.set_price(price)
        assert feed.get_price() == 9

    @pytest.mark.parametrize("bad", [0, -1, 1.5, "2000"])
    def test_invalid_price_rejected(self, bad):
        feed = SettablePriceFeed(2000 * WAD)
        with pytest.raises(InvalidInput):
            feed.set_price(bad)
        assert feed.get_price() == 2000 * WAD

    def test_invalid_initial_price_rejected(self):
        with pytest.raises(InvalidInput):
            SettablePriceFeed(0)

    def test_repr_shows_decimal_price(self):
        assert repr(SettablePriceFeed(1300 * WAD)) == "SettablePriceFeed(1300.000000000000000000)"

    def test_is_price_source(self):
        assert isinstance(SettablePriceFeed(1), PriceSource)
