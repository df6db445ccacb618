"""
Narrative budget summaries.

Two generators share one interface:
- LocalFallbackGenerator: deterministic text built only from plan fields
- RemoteProviderGenerator: a text-generation endpoint called with a bounded timeout

NarrativeService tries the remote generator when it is configured and falls
back to the local text on any failure. It never raises and never touches the
numbers of the plan it describes.
"""

import json
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

import requests

from tripsplit.core.config import settings
from tripsplit.core.logging import get_logger
from tripsplit.models.budget import AdHocPlan, BudgetPlan

logger = get_logger(__name__)

Plan = Union[AdHocPlan, BudgetPlan]

FALLBACK_PREFIX = "Fallback suggestion:\n"

PROMPT_INSTRUCTIONS = (
    "Provide a concise per-day budget, recommended daily limits per category, "
    "and mention over/under budget alerts if any. Output as plain text."
)


class NarrativeUnavailable(Exception):
    """The remote provider could not produce a narrative."""
    pass


class NarrativeGenerator(Protocol):
    def generate(self, plan: Plan, context: Optional[Dict[str, Any]] = None) -> str:
        ...


def _plan_facts(plan: Plan) -> Tuple[Any, int, List[Tuple[str, Any]], List[str]]:
    """(per-day budget, days, [(category, amount)], [alert text]) for either plan type."""
    if isinstance(plan, BudgetPlan):
        return (
            plan.daily_budget,
            plan.duration_days,
            [(a.category.label, a.allocated_amount) for a in plan.category_allocations],
            [alert.message for alert in plan.alerts],
        )
    return (
        plan.per_day_budget,
        plan.days,
        [(c.name, c.amount) for c in plan.categories],
        list(plan.alerts),
    )


class LocalFallbackGenerator:
    def generate(self, plan: Plan, context: Optional[Dict[str, Any]] = None) -> str:
        per_day, days, categories, alerts = _plan_facts(plan)

        lines = [f"Per-day budget: {per_day} over {days} days"]
        if categories:
            lines.append("Category allocations:")
            lines.extend(f"- {name}: {amount}" for name, amount in categories)
        if alerts:
            lines.append("Alerts:")
            lines.extend(f"- {alert}" for alert in alerts)
        return "\n".join(lines)


class RemoteProviderGenerator:
    """POSTs {"prompt": ...} with a bearer token; accepts JSON or plain text back."""

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session

    def build_prompt(self, plan: Plan, context: Optional[Dict[str, Any]] = None) -> str:
        context = context or {}
        per_day, days, categories, _ = _plan_facts(plan)
        total = plan.total_budget

        lines = []
        if context.get("trip_name"):
            lines.append(f"Trip: {context['trip_name']}")
        lines.append(f"Total budget: {total}")
        if context.get("start_date") and context.get("end_date"):
            lines.append(f"Dates: {context['start_date']} to {context['end_date']} ({days} days)")
        else:
            lines.append(f"Duration: {days} days, {per_day} per day")
        if categories:
            lines.append("Categories:")
            lines.extend(f"- {name}: {amount}" for name, amount in categories)
        lines.append(PROMPT_INSTRUCTIONS)
        return "\n".join(lines)

    def generate(self, plan: Plan, context: Optional[Dict[str, Any]] = None) -> str:
        if not self.url or not self.api_key:
            raise NarrativeUnavailable("AI not configured (set GEMINI_API_KEY and GEMINI_API_URL)")

        post = self.session.post if self.session is not None else requests.post
        try:
            response = post(
                self.url,
                json={"prompt": self.build_prompt(plan, context)},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise NarrativeUnavailable(f"AI request timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise NarrativeUnavailable(f"AI request error: {e}")

        if not response.ok:
            raise NarrativeUnavailable(
                f"AI request failed: status={response.status_code} body={response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            text = data.get("output") or data.get("text") or data.get("result") or json.dumps(data)
        elif data is not None:
            text = json.dumps(data)
        else:
            text = response.text

        if not text or not str(text).strip():
            raise NarrativeUnavailable("AI returned an empty response")
        return str(text).strip()


class NarrativeService:
    def __init__(
        self,
        remote: Optional[NarrativeGenerator] = None,
        local: Optional[LocalFallbackGenerator] = None,
    ):
        self.remote = remote
        self.local = local or LocalFallbackGenerator()

    @classmethod
    def from_settings(cls) -> "NarrativeService":
        remote = None
        if settings.GEMINI_API_KEY and settings.GEMINI_API_URL:
            remote = RemoteProviderGenerator(
                url=settings.GEMINI_API_URL,
                api_key=settings.GEMINI_API_KEY,
                timeout=settings.NARRATIVE_TIMEOUT_SECONDS,
            )
        return cls(remote=remote)

    def fallback(self, plan: Plan, context: Optional[Dict[str, Any]] = None) -> str:
        return FALLBACK_PREFIX + self.local.generate(plan, context)

    def suggest(self, plan: Plan, context: Optional[Dict[str, Any]] = None) -> str:
        if self.remote is None:
            logger.info("narrative_provider_not_configured")
            return self.fallback(plan, context)

        try:
            return self.remote.generate(plan, context)
        except NarrativeUnavailable as e:
            logger.warning("narrative_fallback", reason=str(e))
        except Exception:
            logger.exception("narrative_provider_crashed")
        return self.fallback(plan, context)
