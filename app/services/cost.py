"""
AI vs human cost comparison.

Tokens are approximated as characters / 4. Prices are per 1M tokens
(gpt-4.1: $2 input, $8 output). Figures are rounded only when the
CostAnalysis is built, never in between.
"""

import math

from app.models import AiCost, CostAnalysis, HumanCost, Savings, TokenUsage

CHARS_PER_TOKEN = 4
PROMPT_CHARS_ESTIMATE = 5500
EMPTY_RESEARCH_CHARS = 1500
INPUT_USD_PER_MTOK = 2.0
OUTPUT_USD_PER_MTOK = 8.0
SCRIPTS_PER_RUN = 3
HUMAN_COST_BASIS = "Indian freelance content marketplace average"


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round (halves go up)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def estimate_cost(
    research_response_chars: int,
    writer_response_chars: int,
    usd_to_inr: float = 85.0,
    human_per_script_inr: float = 650,
    model: str = "gpt-4.1",
) -> CostAnalysis:
    """Build the cost comparison from measured response sizes."""
    research_chars = research_response_chars or EMPTY_RESEARCH_CHARS

    input_tokens = math.ceil(PROMPT_CHARS_ESTIMATE / CHARS_PER_TOKEN)
    output_tokens = math.ceil((research_chars + writer_response_chars) / CHARS_PER_TOKEN)

    total_usd = (
        input_tokens / 1_000_000 * INPUT_USD_PER_MTOK
        + output_tokens / 1_000_000 * OUTPUT_USD_PER_MTOK
    )
    total_inr = total_usd * usd_to_inr
    human_total = human_per_script_inr * SCRIPTS_PER_RUN

    return CostAnalysis(
        ai=AiCost(
            total_usd=round_half_up(total_usd, 4),
            total_inr=round_half_up(total_inr, 2),
            per_script_inr=round_half_up(total_inr / SCRIPTS_PER_RUN, 2),
            tokens=TokenUsage(
                input=input_tokens,
                output=output_tokens,
                total=input_tokens + output_tokens,
            ),
            model=model,
        ),
        human=HumanCost(
            total_inr=human_total,
            per_script_inr=human_per_script_inr,
            basis=HUMAN_COST_BASIS,
        ),
        savings=Savings(
            multiplier=f"{int(round_half_up(human_total / total_inr))}x",
            saved_inr=int(round_half_up(human_total - total_inr)),
        ),
    )
