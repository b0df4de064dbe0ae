"""Prompt templates for explaining signal results."""

from typing import Any

# Prompt definitions
PROMPTS = {
    "explain_signal": {
        "description": "Explain a composite signal component by component",
        "arguments": [
            {"name": "symbol", "required": True},
            {"name": "module", "required": True},
            {"name": "record_id", "required": False},
        ],
    },
    "compare_signals": {
        "description": "Compare one module's signals across several symbols",
        "arguments": [
            {"name": "symbols", "required": True},
            {"name": "module", "required": True},
        ],
    },
    "market_briefing": {
        "description": "Short market briefing built on the regime module",
        "arguments": [],
    },
}

ANALYZE_TOOLS = {
    "timing": "analyze_timing",
    "fundamentals": "analyze_fundamentals",
    "sentiment": "analyze_sentiment",
    "regime": "analyze_regime",
}


def list_prompts() -> list[dict[str, Any]]:
    """List available prompts."""
    return [
        {
            "name": name,
            "description": info["description"],
            "arguments": info["arguments"],
        }
        for name, info in PROMPTS.items()
    ]


def _message(content: str) -> dict[str, Any]:
    return {"messages": [{"role": "user", "content": content}]}


def get_prompt(name: str, arguments: dict[str, str]) -> dict[str, Any] | None:
    """
    Get a prompt by name with arguments filled in.

    Returns dict with 'messages' key for MCP GetPromptResult, or None for
    an unknown prompt or module.
    """
    if name not in PROMPTS:
        return None

    if name == "explain_signal":
        symbol = arguments.get("symbol", "").upper()
        module = arguments.get("module", "").lower()
        record_id = arguments.get("record_id")
        if module not in ANALYZE_TOOLS:
            return None
        tool = ANALYZE_TOOLS[module]
        call = f'{tool}()' if module == "regime" else f'{tool}("{symbol}")'
        step = f'get_stored_result("{record_id}")' if record_id else call
        return _message(
            f"""Explain the {module} signal for {symbol}.

Use this tool:
1. {step}

Then provide:
1. **Signal**: signal, composite_score and position_size in one line
2. **Drivers**: each component with its raw value, score, weight and
   contribution (score x weight), strongest first
3. **Gaps**: every unavailable component and every entry in flags
4. **Confidence**: the confidence value and what lowers it
   (missing components, stale data)
5. **Context**: any extension sections present (trend, levels, risk,
   regime), one line each

Use only numbers present in the result. Do not invent values.""",
        )

    if name == "compare_signals":
        symbols = [s.strip().upper() for s in arguments.get("symbols", "").split(",") if s.strip()]
        module = arguments.get("module", "").lower()
        if not symbols or module not in ANALYZE_TOOLS or module == "regime":
            return None
        return _message(
            f"""Compare the {module} signals of {", ".join(symbols)}.

Use this tool:
1. run_batch({symbols}, "{module}")

Then provide:
1. **Ranking**: a table of symbol, signal, composite_score, confidence,
   ordered by composite_score
2. **Failures**: symbols listed under failures and why
3. **Standouts**: for the top and bottom symbol, call
   get_stored_result(record_id) and name the two components that
   contributed most

Be direct. No hedging.""",
        )

    if name == "market_briefing":
        return _message(
            """Write a short market briefing.

Use these tools in order:
1. get_market_status()
2. analyze_regime()

Then provide:
1. **Session**: market state and check time
2. **Regime**: market_regime, trends, risk level and risk score
3. **Posture**: stock_analysis_multiplier and what it implies for
   position sizing
4. **Caveats**: flags and missing components

Keep it under 200 words.""",
        )

    return None
