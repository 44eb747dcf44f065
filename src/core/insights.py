"""
AI-assisted insight generation using structured outputs.

Uses Pydantic models to ensure LLM outputs are well-structured
and can be rendered on screen and in the PDF report alike.
"""

import json
import logging
from datetime import date
from typing import Literal

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field

from core.models import InventoryStats, Medication

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a hospital pharmacy analyst helping the pharmacy team manage medication stock.

Your job is to:
1. Spot lots at risk of expiring before they are used
2. Suggest stock optimisation based on quantities
3. Summarise the overall health of the inventory

Write in a professional medical-administrative tone. Be direct and specific."""


class InsightsUnavailableError(Exception):
    """AI analysis could not be produced (not configured or endpoint failure)."""


class LotRisk(BaseModel):
    """A lot that needs attention because of its expiry date."""

    code: str = Field(description="The medication code")
    name: str = Field(description="The medication name")
    lot: str = Field(description="The lot/batch number")
    expiry_date: str = Field(description="Expiry date as YYYY-MM-DD")
    quantity: int = Field(description="Units on hand in this lot")
    risk_level: Literal["critical", "high", "medium"] = Field(
        description="critical = expired or expiring within 30 days"
    )
    recommendation: str = Field(description="Specific action to take")


class StockRecommendation(BaseModel):
    """An optimisation suggestion based on quantities."""

    medication: str
    action: Literal["redistribute", "reduce_orders", "reorder", "dispose", "monitor"]
    rationale: str = Field(description="Why this action, citing quantities")


class InventoryInsightReport(BaseModel):
    """Complete AI-generated inventory analysis."""

    summary: str = Field(description="2-3 sentence summary for the head pharmacist")
    lot_risks: list[LotRisk] = Field(description="Critical risks by lot, most urgent first")
    stock_recommendations: list[StockRecommendation] = Field(
        description="Stock optimisation suggestions"
    )
    overall_health: str = Field(description="Short assessment of the inventory as a whole")

    def to_markdown(self) -> str:
        """Render for the insight panel."""
        lines = ["### Summary", self.summary, "", "### Critical lot risks"]
        if self.lot_risks:
            for r in self.lot_risks:
                lines.append(
                    f"- **{r.name}** (Lot {r.lot}, Code {r.code}), {r.quantity} units, "
                    f"expires {r.expiry_date} [{r.risk_level.upper()}]: {r.recommendation}"
                )
        else:
            lines.append("- No lots at risk.")
        lines += ["", "### Stock optimisation"]
        if self.stock_recommendations:
            for s in self.stock_recommendations:
                lines.append(f"- **{s.medication}**: {s.action.replace('_', ' ')}. {s.rationale}")
        else:
            lines.append("- No changes suggested.")
        lines += ["", "### Overall health", self.overall_health]
        return "\n".join(lines)

    def to_text(self) -> str:
        """Plain text for the PDF report."""
        return self.to_markdown().replace("### ", "").replace("**", "")


class InsightGenerator:
    """
    Generates inventory insights using an LLM with structured output.

    What to trust vs verify:
    - TRUST: Pattern synthesis, wording of recommendations
    - VERIFY: Dates and quantities (the dashboard computes these itself)
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        client: OpenAI | None = None,
        temperature: float = 0.7,
        top_p: float = 0.95,
        max_items: int = 300,
    ):
        if client is None:
            if not api_key:
                raise InsightsUnavailableError("Configure your API key to get insights.")
            client = OpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.max_items = max_items

    def build_prompt(self, records: list[Medication], stats: InventoryStats, today: date) -> str:
        """Build the prompt: pre-computed stats plus one line per lot, soonest expiry first."""
        ordered = sorted(records, key=lambda m: m.expiry_date)
        shown = ordered[: self.max_items]
        lines = [
            f"- {m.name} (Lot: {m.lot}, Code: {m.code}): Qty {m.quantity}, "
            f"Expires: {m.expiry_date.isoformat()}"
            for m in shown
        ]
        omitted = len(ordered) - len(shown)
        if omitted > 0:
            lines.append(f"- ... {omitted} more lots with later expiry dates not listed")

        return f"""Analyse this medication inventory as of {today.isoformat()} and provide key recommendations:
1. Identify critical risks (upcoming expiries by lot).
2. Suggest stock optimisation based on quantities.
3. Summarise the overall health of the inventory.

## Key Metrics (pre-computed, use these exact numbers)
{json.dumps(stats.summary(), indent=2)}

## Inventory
{chr(10).join(lines)}"""

    def generate_insights(
        self, records: list[Medication], stats: InventoryStats, today: date
    ) -> InventoryInsightReport:
        """Generate a structured analysis of the current inventory."""
        if not records:
            raise InsightsUnavailableError("There are no medications to analyse.")

        prompt = self.build_prompt(records, stats, today)
        try:
            response = self.client.chat.completions.parse(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format=InventoryInsightReport,
                temperature=self.temperature,
                top_p=self.top_p,
            )
        except OpenAIError as e:
            logger.error(f"AI analysis failed: {e}")
            raise InsightsUnavailableError("AI analysis failed. Please try again later.") from e

        report = response.choices[0].message.parsed
        if report is None:
            logger.error("AI analysis returned no structured report")
            raise InsightsUnavailableError("The analysis could not be produced.")

        logger.info(f"AI analysis produced {len(report.lot_risks)} lot risks")
        return report
