"""Tests for price payload normalization and the asset catalog."""

from datetime import datetime, timezone

import pytest

from cryptofolio.services.market.catalog import ASSET_CATALOG, lookup_asset
from cryptofolio.services.market.normalize import normalize_quotes

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestCatalog:
    """Test asset id lookup."""

    def test_known_asset(self):
        info = lookup_asset("binancecoin")

        assert info.symbol == "BNB"
        assert info.name == "Binance Coin"

    def test_unknown_asset_fallback(self):
        info = lookup_asset("avalanche")

        assert info.symbol == "AVALANCHE"
        assert info.name == "Avalanche"

    def test_catalog_covers_ten_assets(self):
        assert len(ASSET_CATALOG) == 10
        symbols = [info.symbol for info in ASSET_CATALOG.values()]
        assert len(set(symbols)) == len(symbols)


class TestNormalizeQuotes:
    """Test building quotes from a simple/price payload."""

    def test_full_payload(self, coingecko_payload):
        quotes = normalize_quotes(["bitcoin", "ethereum", "solana"], coingecko_payload)

        assert [q.symbol for q in quotes] == ["BTC", "ETH", "SOL"]
        btc = quotes[0]
        assert btc.id == "bitcoin"
        assert btc.name == "Bitcoin"
        assert btc.price == 60000.0
        assert btc.change_24h_pct == -2.5
        assert btc.market_cap == 1180000000000.0
        assert btc.volume_24h == 25000000000.0
        assert btc.observed_at == datetime.fromtimestamp(1714564800, tz=timezone.utc)

    def test_order_follows_requested_ids(self, coingecko_payload):
        quotes = normalize_quotes(["solana", "bitcoin"], coingecko_payload)

        assert [q.symbol for q in quotes] == ["SOL", "BTC"]

    def test_missing_asset_skipped(self, coingecko_payload):
        quotes = normalize_quotes(["bitcoin", "cardano"], coingecko_payload)

        assert [q.symbol for q in quotes] == ["BTC"]

    def test_entry_without_price_skipped(self):
        payload = {"bitcoin": {"usd_24h_change": 1.0}, "ethereum": {"usd": 3000}}

        quotes = normalize_quotes(["bitcoin", "ethereum"], payload)

        assert [q.symbol for q in quotes] == ["ETH"]
        assert quotes[0].price == 3000.0

    def test_optional_fields_default_to_zero(self):
        payload = {"dogecoin": {"usd": 0.15}}

        quotes = normalize_quotes(["dogecoin"], payload, now=NOW)

        assert quotes[0].change_24h_pct == 0.0
        assert quotes[0].market_cap == 0.0
        assert quotes[0].volume_24h == 0.0
        assert quotes[0].observed_at == NOW

    def test_other_quote_currency(self):
        payload = {"bitcoin": {"eur": 55000.0, "eur_24h_change": 1.5}}

        quotes = normalize_quotes(["bitcoin"], payload, vs_currency="eur")

        assert quotes[0].price == 55000.0
        assert quotes[0].change_24h_pct == 1.5

    @pytest.mark.parametrize("payload", [{}, {"bitcoin": None}, {"bitcoin": "oops"}])
    def test_malformed_entries(self, payload):
        assert normalize_quotes(["bitcoin"], payload) == []
