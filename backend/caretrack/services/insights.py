"""
Insight generation for tracking records.

A language model is asked for a few advisory cards. Its answer is parsed into
either a validated insight list or None; None (and any model failure) falls
back to deterministic rule-based cards, so generation never fails.
"""

import json
import logging
import re
from datetime import datetime
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from ..core.errors import ModelUnavailableError
from ..llm.base import LLMMessage, LLMProvider
from ..models.tracking import ConditionType, Insight, TrackingRecord, TrackingStatistics
from .tracking_stats import calculate_statistics

logger = logging.getLogger(__name__)

MIN_EVENTS_FOR_ANALYSIS = 3
MAX_INSIGHTS = 4
RECENT_ENTRIES_IN_PROMPT = 10
GOOD_PERIOD_DAYS = 30

CONDITION_LABELS = {
    ConditionType.EPILEPSY: "epilepsy/seizures",
    ConditionType.DIABETES: "diabetes/glucose",
    ConditionType.MIGRAINE: "migraine/headaches",
    ConditionType.CUSTOM: "health events",
}

LANGUAGE_NAMES = {
    "es": "Spanish",
    "de": "German",
    "fr": "French",
    "it": "Italian",
    "pt": "Portuguese",
}

SYSTEM_PROMPT = (
    "You are a clinical data assistant. You analyze patient-reported tracking "
    "data and answer with a JSON array only."
)

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_insight_list = TypeAdapter(List[Insight])


def insufficient_data_insight(lang: str) -> Insight:
    if lang == "es":
        return Insight(
            icon="fa-info-circle",
            title="Datos insuficientes",
            description="Necesitas al menos 3 eventos registrados para generar análisis significativos.",
        )
    return Insight(
        icon="fa-info-circle",
        title="Insufficient data",
        description="You need at least 3 recorded events to generate meaningful insights.",
    )


def _time_of_day(hour: int, spanish: bool) -> str:
    if hour < 6:
        return "madrugada" if spanish else "early morning"
    if hour < 12:
        return "mañana" if spanish else "morning"
    if hour < 18:
        return "tarde" if spanish else "afternoon"
    return "noche" if spanish else "evening"


def basic_insights(stats: TrackingStatistics, lang: str = "en") -> List[Insight]:
    """Rule-based insights used whenever the model gives nothing usable."""
    es = lang == "es"
    insights: List[Insight] = []

    if stats.trend == "improving":
        insights.append(Insight(
            icon="fa-arrow-down",
            title="Tendencia positiva" if es else "Positive trend",
            description=(
                f"Los eventos han disminuido un {stats.trend_percent}% en los últimos 3 meses."
                if es else
                f"Events have decreased by {stats.trend_percent}% in the last 3 months."
            ),
        ))
    elif stats.trend == "worsening":
        insights.append(Insight(
            icon="fa-arrow-up",
            title="Aumento de eventos" if es else "Increase in events",
            description=(
                f"Los eventos han aumentado un {stats.trend_percent}% en los últimos 3 meses. "
                "Consulta con tu médico."
                if es else
                f"Events have increased by {stats.trend_percent}% in the last 3 months. "
                "Consult your doctor."
            ),
        ))

    if stats.most_common_hour is not None:
        hour = stats.most_common_hour
        label = _time_of_day(hour, es)
        insights.append(Insight(
            icon="fa-clock-o",
            title="Patrón horario" if es else "Time pattern",
            description=(
                f"La mayoría de eventos ocurren por la {label} (alrededor de las {hour}:00)."
                if es else
                f"Most events occur in the {label} (around {hour}:00)."
            ),
        ))

    if stats.days_since_last > GOOD_PERIOD_DAYS:
        insights.append(Insight(
            icon="fa-calendar-check-o",
            title="Buen período" if es else "Good period",
            description=(
                f"Han pasado {stats.days_since_last} días desde el último evento. ¡Sigue así!"
                if es else
                f"It's been {stats.days_since_last} days since the last event. Keep it up!"
            ),
        ))

    if insights:
        return insights

    return [Insight(
        icon="fa-info-circle",
        title="Seguimiento activo" if es else "Active tracking",
        description=(
            f"Tienes {stats.total_events} eventos registrados con un promedio de "
            f"{stats.monthly_avg} por mes."
            if es else
            f"You have {stats.total_events} recorded events with an average of "
            f"{stats.monthly_avg} per month."
        ),
    )]


def build_insights_prompt(record: TrackingRecord, stats: TrackingStatistics, lang: str) -> str:
    condition_label = CONDITION_LABELS.get(record.condition_type, "health events")
    most_common_hour = f"{stats.most_common_hour}:00" if stats.most_common_hour is not None else "N/A"

    recent_lines = []
    for entry in record.entries[:RECENT_ENTRIES_IN_PROMPT]:
        local = entry.date.astimezone()
        line = f"- {local.date().isoformat()} {local.hour}:00: {entry.type or 'event'}"
        if entry.triggers:
            line += f", triggers: {', '.join(entry.triggers)}"
        recent_lines.append(line)

    medications = ""
    if record.medications:
        medications = "Medications:\n" + "\n".join(f"- {m.name} {m.dose}".rstrip() for m in record.medications)

    return f"""Analyze this {condition_label} tracking data and provide 3-4 actionable medical insights.

Data summary:
- Total events: {stats.total_events}
- Days since last event: {stats.days_since_last}
- Monthly average: {stats.monthly_avg}
- Trend: {stats.trend or 'unknown'} ({stats.trend_percent}% change)
- Most common type: {stats.most_common_type or 'N/A'}
- Most common hour: {most_common_hour}
- Condition type: {record.condition_type.value}

Recent entries (last {RECENT_ENTRIES_IN_PROMPT}):
{chr(10).join(recent_lines)}

{medications}

Return a JSON array with insights. Each insight should have:
- icon: FontAwesome icon class (e.g., "fa-clock", "fa-chart-line", "fa-exclamation-triangle", "fa-lightbulb-o")
- title: Short title (max 5 words)
- description: Actionable insight (1-2 sentences)

Language for response: {LANGUAGE_NAMES.get(lang, 'English')}

Return ONLY the JSON array, no markdown or explanation."""


def parse_insights_response(text: str) -> Optional[List[Insight]]:
    """
    Parse model output into insights.

    Returns:
        Up to MAX_INSIGHTS validated insights, or None if the text is not a
        non-empty JSON array of {icon, title, description} objects
    """
    cleaned = _FENCE.sub("", text or "").strip()
    try:
        payload = json.loads(cleaned)
        if isinstance(payload, dict) and isinstance(payload.get("insights"), list):
            payload = payload["insights"]
        insights = _insight_list.validate_python(payload)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.debug(f"Unparseable insights response: {e}")
        return None

    return insights[:MAX_INSIGHTS] or None


class InsightGenerator:
    """Produces 1-4 insight cards for a tracking record."""

    def __init__(
        self,
        llm_provider: Optional[LLMProvider] = None,
        model: Optional[str] = None,
        temperature: float = 0.3,
    ):
        self._llm_provider = llm_provider
        self.model = model
        self.temperature = temperature

    async def generate(
        self,
        record: TrackingRecord,
        lang: str = "en",
        now: Optional[datetime] = None,
    ) -> List[Insight]:
        """
        Generate insights for a record in the requested language.

        Never raises because of the model: any failure yields rule-based insights.
        """
        stats = calculate_statistics(record.entries, now)

        if stats.total_events < MIN_EVENTS_FOR_ANALYSIS:
            return [insufficient_data_insight(lang)]

        return await self._model_insights(record, stats, lang) or basic_insights(stats, lang)

    async def _model_insights(
        self,
        record: TrackingRecord,
        stats: TrackingStatistics,
        lang: str,
    ) -> Optional[List[Insight]]:
        try:
            text = await self._invoke_model(build_insights_prompt(record, stats, lang))
        except ModelUnavailableError as e:
            logger.warning(f"Insight model unavailable, using rule-based insights: {e.message}")
            return None

        insights = parse_insights_response(text)
        if insights is None:
            logger.warning("Insight model returned an unparseable answer, using rule-based insights")
        return insights

    async def _invoke_model(self, prompt: str) -> str:
        if self._llm_provider is None:
            raise ModelUnavailableError("No language model configured")

        try:
            response = await self._llm_provider.chat_completion(
                [LLMMessage.text("system", SYSTEM_PROMPT), LLMMessage.text("user", prompt)],
                temperature=self.temperature,
                model=self.model,
            )
        except Exception as e:
            raise ModelUnavailableError(str(e)) from e

        return response.content
