"""Tests for the static sector / beta tables and the in-memory price source."""

from datetime import date
from decimal import Decimal

from divfolio.data.client.static_price import StaticPriceSource
from divfolio.data.lookup import StaticBetaLookup, StaticSectorLookup


class TestLookups:
    def test_known_and_unknown_sector(self):
        lookup = StaticSectorLookup()
        assert lookup.sector("2330") == "半導體"
        assert lookup.sector("2881") == "金融"
        assert lookup.sector("0050") == "其他"

    def test_custom_sector_table(self):
        lookup = StaticSectorLookup({"0050": "ETF"}, default="未分类")
        assert lookup.sector("0050") == "ETF"
        assert lookup.sector("2330") == "未分类"

    def test_beta_defaults_to_one(self):
        lookup = StaticBetaLookup()
        assert lookup.beta("2330") == Decimal("1.1")
        assert lookup.beta("9999") == Decimal("1.0")


class TestStaticPriceSource:
    def test_exact_date_wins_over_default(self):
        source = StaticPriceSource({("2330", None): Decimal("500")})
        source.set_price("2330", date(2024, 1, 15), Decimal("580"))

        assert source.get_price("2330", date(2024, 1, 15)) == Decimal("580")
        assert source.get_price("2330", date(2024, 1, 16)) == Decimal("500")
        assert source.get_price("2317", date(2024, 1, 16)) is None
        assert len(source.calls) == 3
