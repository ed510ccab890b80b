"""Eligibility engine for farmer-to-scheme matching.

The matching judgment is delegated to an inference backend.  This module
owns everything around that single call:

    * ``build_query`` renders the profile, every catalog scheme and the
      evaluation rules into one deterministic query text.
    * ``parse_response`` turns the backend's answer into
      ``RawRecommendation`` entries, rejecting text that is not the agreed
      JSON shape.
    * ``EligibilityEngine.generate`` runs exactly one bounded inference
      call and reconciles the answer against the catalog.

``evaluate_rules`` applies the same rules in plain code.  It never
filters the backend's answer; it exists so the rule framing is testable
and so each generation can log how many schemes look plausible.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Final

import orjson
import structlog
from pydantic import ValidationError

from src.models.profile import Profile
from src.models.recommendation import RawRecommendation, RecommendationResult
from src.models.scheme import Scheme
from src.services.catalog import SchemeCatalog
from src.services.errors import (
    IncompleteProfileError,
    InferenceMalformedError,
    InferenceUnavailableError,
)
from src.services.inference import InferenceBackend
from src.services.validator import reconcile

logger = structlog.get_logger(__name__)

_CODE_FENCE_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s*```(?:json)?\s*(.*?)\s*```\s*$",
    re.DOTALL | re.IGNORECASE,
)

# Keys the backend may use for the result array, in order of preference.
_RESULT_KEYS: Final[tuple[str, ...]] = ("recommendations", "schemes")

_EVALUATION_RULES: Final[tuple[str, ...]] = (
    "Compare the farmer's land size and annual income against each scheme's limits. "
    "Limits are inclusive.",
    'A scheme whose states are "All India" applies in every state; otherwise the '
    "farmer's state must be one of the listed states.",
    'An income limit of "No limit" means the scheme has no income ceiling.',
    'A land limit of "No limit" means the scheme has no land restriction; '
    '"At least" and "Up to" bound only one side.',
    'A scheme whose crops are "All crops" applies to any crop; otherwise the '
    "farmer's primary crop must be one of the listed crops.",
    "Only recommend schemes from the list above, referring to them by their ID.",
)

_RESPONSE_FORMAT: Final[str] = (
    'Return ONLY a JSON object with a "recommendations" key containing an array of objects:\n'
    "{\n"
    '  "recommendations": [\n'
    "    {\n"
    '      "scheme_id": <integer scheme ID>,\n'
    '      "explanation": "Brief 1-2 sentence reason for eligibility"\n'
    "    }\n"
    "  ]\n"
    "}\n"
    'If no scheme applies, return {"recommendations": []}.'
)


# ---------------------------------------------------------------------------
# Deterministic rule check
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RuleCheck:
    """Outcome of checking one profile against one scheme's limits."""

    scheme_id: int
    state_ok: bool
    income_ok: bool
    land_ok: bool
    crop_ok: bool
    reasons: list[str] = field(default_factory=list)

    @property
    def plausible(self) -> bool:
        return self.state_ok and self.income_ok and self.land_ok and self.crop_ok


def _matches_allow_list(value: str, allowed: list[str], unrestricted: bool) -> bool:
    if unrestricted:
        return True
    needle = value.strip().lower()
    return any(item.lower() == needle for item in allowed)


def evaluate_rules(profile: Profile, scheme: Scheme) -> RuleCheck:
    """Check *profile* against the state, income, land and crop rules of *scheme*.

    Comparisons are case-insensitive for state and crop names, and all
    numeric limits are inclusive.
    """
    reasons: list[str] = []

    state_ok = _matches_allow_list(profile.state, scheme.supported_states, scheme.all_states)
    if not state_ok:
        reasons.append(f"state {profile.state} is not covered")

    income_ok = scheme.max_income is None or profile.income <= scheme.max_income
    if not income_ok:
        reasons.append(f"income must be at most Rs. {scheme.max_income:,}")

    land = profile.land_size_acres
    land_ok = True
    if scheme.min_land is not None and land < scheme.min_land:
        land_ok = False
        reasons.append(f"land must be at least {_fmt_acres(scheme.min_land)} acres")
    if scheme.max_land is not None and land > scheme.max_land:
        land_ok = False
        reasons.append(f"land must be at most {_fmt_acres(scheme.max_land)} acres")

    crop_ok = _matches_allow_list(profile.crop, scheme.eligible_crops, scheme.all_crops)
    if not crop_ok:
        reasons.append(f"crop {profile.crop} is not covered")

    return RuleCheck(
        scheme_id=scheme.id,
        state_ok=state_ok,
        income_ok=income_ok,
        land_ok=land_ok,
        crop_ok=crop_ok,
        reasons=reasons,
    )


# ---------------------------------------------------------------------------
# Query composition
# ---------------------------------------------------------------------------


def _fmt_acres(value: Decimal) -> str:
    return format(value.normalize(), "f")


def _fmt_income_limit(scheme: Scheme) -> str:
    if scheme.max_income is None:
        return "No limit"
    return f"Up to ₹{scheme.max_income:,}"


def _fmt_land_limit(scheme: Scheme) -> str:
    if not scheme.has_land_limit:
        return "No limit"
    lo, hi = scheme.min_land, scheme.max_land
    if lo is not None and hi is not None:
        return f"{_fmt_acres(lo)} to {_fmt_acres(hi)} acres"
    if lo is not None:
        return f"At least {_fmt_acres(lo)} acres"
    return f"Up to {_fmt_acres(hi)} acres"


def _fmt_scheme(scheme: Scheme) -> str:
    benefit = f"₹{scheme.benefit_amount:,}" if scheme.benefit_amount is not None else "Not specified"
    states = "All India" if scheme.all_states else ", ".join(scheme.supported_states)
    crops = "All crops" if scheme.all_crops else ", ".join(scheme.eligible_crops)
    return "\n".join(
        [
            f"- ID: {scheme.id}",
            f"  Name: {scheme.name}",
            f"  Eligibility: {scheme.description}",
            f"  Benefit: {benefit}",
            f"  Income Limit: {_fmt_income_limit(scheme)}",
            f"  Land Limit: {_fmt_land_limit(scheme)}",
            f"  States: {states}",
            f"  Crops: {crops}",
        ]
    )


def build_query(profile: Profile, catalog: SchemeCatalog) -> str:
    """Compose the eligibility query for *profile* over every scheme in *catalog*.

    The text depends only on its inputs, so identical inputs always
    produce an identical query.
    """
    sections = [
        "Based on the farmer's profile below, identify which government schemes "
        "they are eligible for.",
        "\n".join(
            [
                "Farmer Profile:",
                f"- State: {profile.state}",
                f"- Land Size: {profile.land_size} acres",
                f"- Annual Income: ₹{profile.income:,}",
                f"- Primary Crop: {profile.crop}",
                f"- Category: {profile.category}",
            ]
        ),
        "Available Schemes to evaluate:\n"
        + "\n".join(_fmt_scheme(s) for s in catalog.list_schemes()),
        "Evaluation Rules:\n"
        + "\n".join(f"{i}. {rule}" for i, rule in enumerate(_EVALUATION_RULES, start=1)),
        "Response Format:\n" + _RESPONSE_FORMAT,
    ]
    return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_RE.match(text)
    return match.group(1) if match else text.strip()


def _coerce_entry(item: Any) -> RawRecommendation | None:
    if not isinstance(item, dict):
        return None
    scheme_id = item.get("scheme_id")
    if isinstance(scheme_id, bool) or not isinstance(item.get("explanation"), str):
        return None
    try:
        return RawRecommendation.model_validate(
            {"scheme_id": scheme_id, "explanation": item["explanation"]}
        )
    except ValidationError:
        return None


def parse_response(raw_text: str) -> list[RawRecommendation]:
    """Parse the backend's answer into raw ``{scheme_id, explanation}`` entries.

    Raises
    ------
    InferenceMalformedError
        If the text is not a JSON object holding a ``recommendations`` (or
        ``schemes``) array.
    """
    body = _strip_code_fence(raw_text or "")
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError as exc:
        raise InferenceMalformedError("Inference answer is not valid JSON", raw=raw_text) from exc

    if not isinstance(data, dict):
        raise InferenceMalformedError("Inference answer is not a JSON object", raw=raw_text)

    items = next(
        (data[key] for key in _RESULT_KEYS if isinstance(data.get(key), list)),
        None,
    )
    if items is None:
        raise InferenceMalformedError(
            "Inference answer has no recommendations array", raw=raw_text
        )

    entries: list[RawRecommendation] = []
    for item in items:
        entry = _coerce_entry(item)
        if entry is None:
            logger.debug("eligibility.skipped_entry", entry=str(item)[:200])
            continue
        entries.append(entry)
    return entries


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class EligibilityEngine:
    """Delegates one profile's eligibility judgment to an inference backend.

    Each ``generate`` call makes exactly one backend call, bounded by
    *timeout_seconds*, and never retries.  The engine holds no state
    between calls.
    """

    def __init__(self, backend: InferenceBackend, *, timeout_seconds: float = 60.0) -> None:
        self._backend = backend
        self._timeout_seconds = timeout_seconds

    @property
    def backend(self) -> InferenceBackend:
        return self._backend

    async def generate(
        self,
        profile: Profile,
        catalog: SchemeCatalog,
    ) -> list[RecommendationResult]:
        missing = profile.missing_fields
        if missing:
            raise IncompleteProfileError(missing)

        start = time.perf_counter()
        query = build_query(profile, catalog)

        plausible = sum(
            1 for scheme in catalog.list_schemes() if evaluate_rules(profile, scheme).plausible
        )
        logger.debug(
            "eligibility.query_built",
            profile_id=profile.id,
            schemes=len(catalog),
            rule_plausible=plausible,
            query_length=len(query),
        )

        try:
            async with asyncio.timeout(self._timeout_seconds):
                raw_text = await self._backend.infer(query)
        except TimeoutError as exc:
            logger.error(
                "eligibility.inference_timeout",
                backend=self._backend.name,
                timeout_seconds=self._timeout_seconds,
            )
            raise InferenceUnavailableError(
                f"Inference did not answer within {self._timeout_seconds}s"
            ) from exc

        results = reconcile(parse_response(raw_text), catalog)

        logger.info(
            "eligibility.generated",
            profile_id=profile.id,
            backend=self._backend.name,
            recommended=len(results),
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return results
