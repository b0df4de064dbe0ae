"""Tests for the result store, yfinance adapters and runtime settings."""

from datetime import datetime, timezone

import numpy as np
import pandas as pd
import pytest

from signal_mcp.config import EngineSettings
from signal_mcp.data.adapters import (
    eps_revision_from_trend,
    fundamentals_inputs_from_info,
    regime_inputs_from_history,
    sector_etf,
    sentiment_inputs_from_market_data,
    statement_ratios,
)
from signal_mcp.data.store import ResultStore
from signal_mcp.engine.result import AnalysisResult
from signal_mcp.errors import ConfigurationError
from signal_mcp.studies.fundamentals import FundamentalsEngine
from signal_mcp.utils.provenance import PROVENANCE_COLUMNS, build_provenance

AS_OF = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _daily(close: list[float]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": pd.date_range("2024-01-01", periods=len(close), freq="B", tz="UTC"),
            "close": close,
        }
    )


@pytest.fixture
def fundamentals_result() -> AnalysisResult:
    inputs = {"profitability": 0.8, "growth": 0.4, "valuation": -0.2, "financial_strength": 0.5}
    return FundamentalsEngine().analyze("ACME", inputs, as_of=AS_OF)


class TestResultStore:
    """Tests for the diskcache-backed result store."""

    def test_save_and_get(self, store: ResultStore, fundamentals_result: AnalysisResult) -> None:
        """Test a saved record is returned with its id and provenance columns."""
        provenance = build_provenance("yfinance", as_of=AS_OF, endpoints=["info(ACME)", "eps_trend(ACME)"])
        record_id = store.save(fundamentals_result, provenance)
        record = store.get(record_id)

        assert record_id in store
        assert record["record_id"] == record_id
        assert record["symbol"] == "ACME"
        assert record["primary_api_source"] == "yfinance"
        assert record["api_endpoints_used"] == "info(ACME),eps_trend(ACME)"
        assert record["data_as_of"] == AS_OF.isoformat()
        assert len(record["fingerprint"]) == 16

    def test_missing_provenance_columns_are_none(
        self, store: ResultStore, fundamentals_result: AnalysisResult
    ) -> None:
        """Test every provenance column exists even without provenance."""
        record = store.get(store.save(fundamentals_result))

        for column in PROVENANCE_COLUMNS:
            assert record[column] is None

    def test_latest(self, store: ResultStore, fundamentals_result: AnalysisResult) -> None:
        """Test latest returns the newest record per module and symbol."""
        store.save(fundamentals_result)
        newest = store.save(fundamentals_result)

        assert store.latest("fundamentals", "acme")["record_id"] == newest
        assert store.latest("timing", "ACME") is None

    def test_load_result(self, store: ResultStore, fundamentals_result: AnalysisResult) -> None:
        """Test the stored record rebuilds the result."""
        record_id = store.save(fundamentals_result)
        restored = store.load_result(record_id)

        assert restored.signal is fundamentals_result.signal
        assert restored.composite_score == pytest.approx(0.4167)
        assert restored.to_record() == fundamentals_result.to_record()

    def test_unknown_id(self, store: ResultStore) -> None:
        """Test unknown ids give None."""
        assert store.get("nope") is None
        assert store.load_result("nope") is None
        assert "nope" not in store

    def test_same_result_same_fingerprint(
        self, store: ResultStore, fundamentals_result: AnalysisResult
    ) -> None:
        """Test identical results share a fingerprint under different ids."""
        a = store.get(store.save(fundamentals_result))
        b = store.get(store.save(fundamentals_result))

        assert a["record_id"] != b["record_id"]
        assert a["fingerprint"] == b["fingerprint"]


class TestFundamentalsAdapter:
    """Tests for mapping yfinance info onto fundamentals metrics."""

    def test_maps_fields(self) -> None:
        """Test ratios are mapped with source and quote URL."""
        info = {
            "symbol": "ACME",
            "returnOnEquity": 0.25,
            "trailingPE": 18.0,
            "debtToEquity": 150.0,
            "ebitda": 100.0,
            "interestExpense": -10.0,
            "totalRevenue": 50.0,
            "totalAssets": 100.0,
        }
        inputs = fundamentals_inputs_from_info(info, observed_at=AS_OF)

        assert inputs["roe"].value == 0.25
        assert inputs["roe"].source == "yfinance"
        assert inputs["roe"].url == "https://finance.yahoo.com/quote/ACME"
        assert inputs["roe"].observed_at == AS_OF
        assert inputs["debt_to_equity"].value == pytest.approx(1.5)
        assert inputs["interest_coverage"].value == pytest.approx(10.0)
        assert inputs["asset_turnover"].value == pytest.approx(0.5)

    def test_negative_pe_unavailable(self) -> None:
        """Test a negative P/E is treated as missing."""
        inputs = fundamentals_inputs_from_info({"trailingPE": -5.0, "forwardPE": 20.0})
        assert inputs["pe_ratio"].available is False

    def test_forward_pe_fallback(self) -> None:
        """Test forward P/E is used when trailing is absent."""
        inputs = fundamentals_inputs_from_info({"forwardPE": 20.0})
        assert inputs["pe_ratio"].value == 20.0

    def test_unsupported_metrics_unavailable(self) -> None:
        """Test metrics without a yfinance field are present but unavailable."""
        inputs = fundamentals_inputs_from_info({"returnOnEquity": "n/a"})

        assert inputs["roe"].available is False
        assert inputs["inventory_turnover"].available is False
        assert inputs["days_sales_outstanding"].available is False

    def test_feeds_engine(self) -> None:
        """Test adapter output scores through the fundamentals engine."""
        info = {"symbol": "ACME", "returnOnEquity": 0.30, "profitMargins": 0.25, "revenueGrowth": 0.30}
        result = FundamentalsEngine().analyze(
            "ACME", fundamentals_inputs_from_info(info, observed_at=AS_OF), as_of=AS_OF
        )

        assert result.component("profitability").available is True
        assert result.component("efficiency").available is False
        assert "missing inventory turnover data" in result.flags

    def test_statement_ratios(self) -> None:
        """Test ratios come from the most recent statement column."""
        latest, prior = pd.Timestamp("2023-12-31"), pd.Timestamp("2022-12-31")
        income = pd.DataFrame(
            {prior: [300.0, 200.0, 50.0, 10.0], latest: [400.0, 240.0, 80.0, -8.0]},
            index=["Total Revenue", "Cost Of Revenue", "EBIT", "Interest Expense"],
        )
        balance = pd.DataFrame(
            {prior: [450.0, 30.0, 40.0], latest: [500.0, 40.0, 50.0]},
            index=["Total Assets", "Inventory", "Accounts Receivable"],
        )
        ratios = statement_ratios(income, balance)

        assert ratios["asset_turnover"] == pytest.approx(0.8)
        assert ratios["inventory_turnover"] == pytest.approx(6.0)
        assert ratios["days_sales_outstanding"] == pytest.approx(50.0 / 400.0 * 365)
        assert ratios["interest_coverage"] == pytest.approx(10.0)

    def test_statement_ratios_missing_rows(self) -> None:
        """Test absent line items and zero denominators give None."""
        period = pd.Timestamp("2023-12-31")
        income = pd.DataFrame({period: [400.0]}, index=["Total Revenue"])
        balance = pd.DataFrame({period: [0.0]}, index=["Inventory"])
        ratios = statement_ratios(income, balance)

        assert ratios["asset_turnover"] is None
        assert ratios["inventory_turnover"] is None
        assert ratios["days_sales_outstanding"] is None
        assert statement_ratios(None, None) == dict.fromkeys(ratios)

    def test_info_totals_take_precedence(self) -> None:
        """Test info-derived ratios win over statements; statements fill the rest."""
        period = pd.Timestamp("2023-12-31")
        statements = {
            "income_stmt": pd.DataFrame({period: [400.0, 240.0]}, index=["Total Revenue", "Cost Of Revenue"]),
            "balance_sheet": pd.DataFrame({period: [500.0, 40.0]}, index=["Total Assets", "Inventory"]),
        }
        info = {"symbol": "ACME", "totalRevenue": 50.0, "totalAssets": 100.0}
        inputs = fundamentals_inputs_from_info(info, observed_at=AS_OF, statements=statements)

        assert inputs["asset_turnover"].value == pytest.approx(0.5)
        assert inputs["inventory_turnover"].value == pytest.approx(6.0)
        assert inputs["inventory_turnover"].source == "yfinance"
        assert inputs["days_sales_outstanding"].available is False


class TestSentimentAdapter:
    """Tests for sentiment inputs."""

    def test_eps_revision_from_trend(self) -> None:
        """Test the current-year row is preferred."""
        trend = pd.DataFrame(
            {"current": [0.5, 2.2], "30daysAgo": [0.5, 2.0]},
            index=["0q", "0y"],
        )
        assert eps_revision_from_trend(trend) == pytest.approx(0.1)

    def test_eps_revision_missing(self) -> None:
        """Test missing frames or columns give None."""
        assert eps_revision_from_trend(None) is None
        assert eps_revision_from_trend(pd.DataFrame({"current": [1.0]})) is None

    def test_market_data_inputs(self) -> None:
        """Test price-derived inputs and passthrough fields."""
        history = _daily([100.0 + i for i in range(30)])
        inputs = sentiment_inputs_from_market_data(
            "ACME",
            history,
            info={"shortPercentOfFloat": 0.05},
            put_call_ratio=0.8,
            fetched_at=AS_OF,
        )

        assert inputs["relative_strength"].value == pytest.approx(1.0)
        assert inputs["short_interest"].value == 0.05
        assert inputs["options_flow"].value == 0.8
        assert inputs["earnings_revisions"].available is False
        assert inputs["return_15d"].value == pytest.approx((129.0 - 114.0) / 114.0 * 100)
        assert inputs["market_return_15d"].available is False

    def test_sector_etf(self) -> None:
        """Test sector name lookup."""
        assert sector_etf({"sector": "Technology"}) == "XLK"
        assert sector_etf({"sector": "Unknown"}) is None
        assert sector_etf(None) is None


class TestRegimeAdapter:
    """Tests for regime inputs."""

    def test_from_history(self) -> None:
        """Test SPY changes and the VIX level."""
        spy = _daily([100.0 + i for i in range(60)])
        vix = _daily([22.0, 19.0, 18.0])
        inputs = regime_inputs_from_history(spy, vix, put_call_ratio=0.9)

        assert inputs["spy_price"].value == 159.0
        assert inputs["short_trend"].value == pytest.approx(20.0 / 139.0)
        assert inputs["medium_trend"].value == pytest.approx(50.0 / 109.0)
        assert inputs["vix"].value == 18.0
        assert inputs["vix"].observed_at == vix["date"].iloc[-1].to_pydatetime()
        assert inputs["breadth"].available is False

    def test_short_history(self) -> None:
        """Test too little history leaves trends unavailable."""
        inputs = regime_inputs_from_history(_daily(list(np.linspace(100, 110, 10))))

        assert inputs["short_trend"].available is False
        assert inputs["vix"].available is False


class TestEngineSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults when nothing is set."""
        for name in ("SIGNAL_MIN_BARS", "SIGNAL_PRICE_STALENESS_DAYS", "SIGNAL_HISTORY_PERIOD", "BATCH_DELAY_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        settings = EngineSettings.from_env()

        assert settings.min_bars == 30
        assert settings.history_period == "1y"
        assert settings.timing_config().staleness_days == 5.0

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from the environment."""
        monkeypatch.setenv("SIGNAL_MIN_BARS", "60")
        monkeypatch.setenv("SIGNAL_PRICE_STALENESS_DAYS", "3")
        monkeypatch.setenv("SIGNAL_HISTORY_PERIOD", "2Y")
        monkeypatch.setenv("BATCH_DELAY_SECONDS", "0")
        settings = EngineSettings.from_env()

        assert settings.timing_config().min_bars == 60
        assert settings.price_staleness_days == 3.0
        assert settings.history_period == "2y"
        assert settings.batch_delay_seconds == 0.0

    @pytest.mark.parametrize(
        "name,value",
        [
            ("SIGNAL_MIN_BARS", "lots"),
            ("SIGNAL_MIN_BARS", "1"),
            ("SIGNAL_PRICE_STALENESS_DAYS", "0"),
            ("SIGNAL_HISTORY_PERIOD", "1d"),
            ("BATCH_DELAY_SECONDS", "-1"),
        ],
    )
    def test_invalid(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        """Test invalid settings raise ConfigurationError."""
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            EngineSettings.from_env()
