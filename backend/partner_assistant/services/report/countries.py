"""Country list handling for onboarding reports."""

import hashlib
import math
import re
import unicodedata
from typing import Dict, List

from partner_assistant.models import OnboardingFormData

_SEPARATORS = re.compile(r"[\W_]+")


def country_slug(name: str) -> str:
    """
    Anchor-safe slug: casefolded, accents stripped, runs of anything other
    than letters or digits collapsed to '-'.

    Letters of any script are kept, so '日本' stays '日本'. A name with no
    letters or digits at all gets a short hash of the name as its suffix.
    """
    decomposed = unicodedata.normalize("NFKD", name.strip().casefold())
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slug = _SEPARATORS.sub("-", base).strip("-")
    if slug:
        return slug
    return "country-" + hashlib.sha1(name.strip().encode("utf-8")).hexdigest()[:8]


def collect_countries(form: OnboardingFormData) -> List[str]:
    """
    Ordered, deduplicated country names from the three slots plus the
    comma-separated additional field.

    Names that differ only in case, accents or punctuation ('Côte d'Ivoire',
    'cote d ivoire') share a slug and count as duplicates (first one wins),
    so every country yields unique section ids.
    """
    candidates = [form.country1, form.country2, form.country3]
    candidates.extend(form.additional_countries.split(","))

    countries: List[str] = []
    seen = set()
    for candidate in candidates:
        name = candidate.strip()
        if not name:
            continue
        slug = country_slug(name)
        if slug in seen:
            continue
        seen.add(slug)
        countries.append(name)
    return countries


def estimate_minutes(country_count: int) -> Dict[str, int]:
    """Expected report duration: two agents per country plus one API agent."""
    agent_count = country_count * 2 + 1
    return {
        "min": agent_count * 2,
        "max": agent_count * 6,
        # 3.2 minutes per agent: two minutes plus a 30% chance of a four minute retry
        "average": math.ceil(agent_count * 16 / 5),
    }
