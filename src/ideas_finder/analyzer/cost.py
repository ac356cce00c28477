"""Token-usage cost accounting for one analysis run.

Per-call cost is ``input * rate_in + (output + system) * rate_out`` where
``system = total - input - output`` is provider overhead billed at the
output rate.  Each call's cost is rounded to 10 decimal places and the
running total is kept as a Decimal, so the total always equals the exact
sum of the recorded per-call costs.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal

from ideas_finder.analyzer.schemas import Usage
from ideas_finder.analyzer.types import TokenUsageRecord

logger = logging.getLogger(__name__)

_COST_QUANTUM = Decimal("1e-10")


def call_cost(
    input_tokens: int,
    output_tokens: int,
    system_tokens: int,
    input_rate: float,
    output_rate: float,
) -> Decimal:
    """Return the cost of one call, rounded to 10 decimal places."""
    input_cost = (Decimal(input_tokens) * Decimal(str(input_rate))).quantize(_COST_QUANTUM)
    output_cost = (
        Decimal(output_tokens + system_tokens) * Decimal(str(output_rate))
    ).quantize(_COST_QUANTUM)
    return input_cost + output_cost


class CostAccumulator:
    """Running cost total plus the append-only list of per-call records.

    The total never decreases: every recorded call adds a non-negative cost,
    and records are never removed.
    """

    def __init__(self, input_rate: float, output_rate: float) -> None:
        self.input_rate = input_rate
        self.output_rate = output_rate
        self._total = Decimal(0)
        self._records: list[TokenUsageRecord] = []

    @property
    def total(self) -> float:
        return float(self._total)

    @property
    def total_decimal(self) -> Decimal:
        return self._total

    @property
    def records(self) -> tuple[TokenUsageRecord, ...]:
        return tuple(self._records)

    @property
    def call_count(self) -> int:
        return len(self._records)

    def record(self, usage: Usage | None, stage: str = "") -> TokenUsageRecord:
        """Add one completed call's usage and return its record.

        A missing usage block counts as a zero-cost call.  Negative system
        token counts (total smaller than input + output) are clamped to 0.
        """
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0
        total_tokens = usage.effective_total if usage else 0
        system_tokens = max(total_tokens - input_tokens - output_tokens, 0)

        cost = call_cost(
            input_tokens, output_tokens, system_tokens,
            self.input_rate, self.output_rate,
        )
        self._total += cost

        record = TokenUsageRecord(
            call_number=len(self._records) + 1,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            system_tokens=system_tokens,
            total_tokens=total_tokens,
            cost=float(cost),
            timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
            stage=stage,
        )
        self._records.append(record)

        logger.info(
            "Call #%d (%s): %d input + %d output + %d system = %d tokens, "
            "$%.6f (running total $%.6f)",
            record.call_number,
            stage or "-",
            input_tokens,
            output_tokens,
            system_tokens,
            total_tokens,
            record.cost,
            self.total,
            extra={
                "call_number": record.call_number,
                "stage": stage,
                "total_tokens": total_tokens,
                "cost_usd": record.cost,
            },
        )
        if system_tokens > 0:
            logger.debug(
                "Call #%d: %d system tokens billed at the output rate",
                record.call_number,
                system_tokens,
            )
        return record

    def reconciles(self) -> bool:
        """True when the running total equals the sum of recorded costs."""
        recorded = sum(
            (Decimal(str(r.cost)) for r in self._records), Decimal(0)
        )
        return recorded == self._total
