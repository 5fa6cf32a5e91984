import pytest

from codexalpha.core.ai.pricing import PRICING, estimate_cost


def test_known_model_cost():
    # 1M input tokens at 0.15 + 1M output tokens at 0.6
    assert estimate_cost("gpt-4o-mini", 1_000_000, 1_000_000) == pytest.approx(0.75)


def test_small_call_cost():
    assert estimate_cost("gpt-4o", 1000, 500) == pytest.approx(0.0025 + 0.005)


def test_unknown_model_costs_nothing():
    assert estimate_cost("my-local-model", 10_000, 10_000) == 0.0


def test_prices_are_input_output_pairs():
    for model, (input_price, output_price) in PRICING.items():
        assert input_price > 0, model
        assert output_price > 0, model
