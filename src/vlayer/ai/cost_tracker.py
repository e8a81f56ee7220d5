"""Token usage and estimated spend for one AI scan."""

from __future__ import annotations

from typing import Dict

from vlayer.ai.settings import INPUT_COST_PER_MILLION, OUTPUT_COST_PER_MILLION


class CostTracker:
    def __init__(self, budget_cents: float = 50.0) -> None:
        self.budget_cents = budget_cents
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_calls = 0

    def track_usage(self, input_tokens: int, output_tokens: int) -> None:
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_calls += 1

    def get_estimated_cost_cents(self) -> float:
        dollars = (
            self.total_input_tokens * INPUT_COST_PER_MILLION
            + self.total_output_tokens * OUTPUT_COST_PER_MILLION
        ) / 1_000_000
        return dollars * 100

    def is_over_budget(self) -> bool:
        return self.get_estimated_cost_cents() >= self.budget_cents

    def get_summary(self) -> str:
        dollars = self.get_estimated_cost_cents() / 100
        return (
            f"AI scan: {self.total_calls} calls, {self.total_input_tokens} input tokens, "
            f"{self.total_output_tokens} output tokens, ~${dollars:.3f}"
        )

    def get_stats(self) -> Dict[str, float]:
        return {
            "total_calls": self.total_calls,
            "total_input_tokens": self.total_input_tokens,
            "total_output_tokens": self.total_output_tokens,
            "estimated_cost_cents": self.get_estimated_cost_cents(),
        }

    def reset(self) -> None:
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_calls = 0
