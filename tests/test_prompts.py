"""Tests for prompt templates."""

from signal_mcp.prompts import get_prompt, list_prompts


class TestListPrompts:
    """Tests for list_prompts."""

    def test_names(self) -> None:
        """Test every prompt is listed with its arguments."""
        prompts = {p["name"]: p for p in list_prompts()}

        assert set(prompts) == {"explain_signal", "compare_signals", "market_briefing"}
        assert [a["name"] for a in prompts["explain_signal"]["arguments"]] == ["symbol", "module", "record_id"]
        assert prompts["market_briefing"]["arguments"] == []


class TestGetPrompt:
    """Tests for get_prompt."""

    def test_explain_signal(self) -> None:
        """Test the analyze call is filled in for the symbol."""
        prompt = get_prompt("explain_signal", {"symbol": "nvda", "module": "Timing"})
        message = prompt["messages"][0]

        assert message["role"] == "user"
        assert 'analyze_timing("NVDA")' in message["content"]

    def test_explain_stored_record(self) -> None:
        """Test a record id switches the prompt to the stored result."""
        prompt = get_prompt(
            "explain_signal", {"symbol": "NVDA", "module": "fundamentals", "record_id": "abc123"}
        )
        assert 'get_stored_result("abc123")' in prompt["messages"][0]["content"]

    def test_explain_regime(self) -> None:
        """Test the regime tool is called without a symbol."""
        prompt = get_prompt("explain_signal", {"symbol": "SPY", "module": "regime"})
        assert "analyze_regime()" in prompt["messages"][0]["content"]

    def test_compare_signals(self) -> None:
        """Test symbols are cleaned into the batch call."""
        prompt = get_prompt("compare_signals", {"symbols": "aapl, msft,,", "module": "sentiment"})
        content = prompt["messages"][0]["content"]

        assert "AAPL, MSFT" in content
        assert "run_batch(['AAPL', 'MSFT'], \"sentiment\")" in content

    def test_market_briefing(self) -> None:
        """Test the briefing prompt needs no arguments."""
        prompt = get_prompt("market_briefing", {})
        assert "analyze_regime()" in prompt["messages"][0]["content"]

    def test_unknown(self) -> None:
        """Test unknown prompts and modules give None."""
        assert get_prompt("nope", {}) is None
        assert get_prompt("explain_signal", {"symbol": "AAPL", "module": "macro"}) is None
        assert get_prompt("compare_signals", {"symbols": "AAPL", "module": "regime"}) is None
        assert get_prompt("compare_signals", {"symbols": " ", "module": "timing"}) is None
