"""
Opportunity Service
Curated opportunity catalog per pathway plus LLM-backed local search.
"""
import hashlib
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.schemas.common import UserResponses
from app.schemas.opportunities import Opportunity
from app.services.cache import cache_get, cache_set
from app.services.json_repair import LLMResponseParseError, extract_json
from app.services.llm_client import LLMClient
from app.services import prompts
from app.utils.logger import logger

LOCAL_SEARCH_CACHE_TTL = 3600


def _opp(id, type, title, description, provider, duration, location=None, level=None) -> Opportunity:
    return Opportunity(
        id=id, type=type, title=title, description=description,
        provider=provider, duration=duration, location=location, level=level,
    )


OPPORTUNITY_CATALOG: Dict[str, List[Opportunity]] = {
    "Software Engineering": [
        _opp("1", "internship", "Summer Internship - Backend Development",
             "Join a growing tech startup in Mexico City working on scalable backend systems",
             "TechStartup LATAM", "3 months", location="Remote/Mexico City"),
        _opp("2", "course", "Advanced Node.js & TypeScript",
             "Master modern backend development with Node.js, TypeScript, and PostgreSQL",
             "Coursera", "8 weeks", level="Intermediate"),
        _opp("3", "study_plan", "Full Stack Developer Roadmap",
             "6-month program covering frontend, backend, databases, and DevOps",
             "Self-paced", "6 months"),
    ],
    "Product Management": [
        _opp("4", "internship", "Product Management Internship",
             "Work with experienced PMs at a Series B startup building products for LATAM",
             "InnovateCo", "6 months", location="Hybrid - Buenos Aires"),
        _opp("5", "course", "Product Management Fundamentals",
             "Learn product strategy, user research, and roadmap planning",
             "Reforge", "4 weeks", level="Beginner"),
        _opp("6", "summer_camp", "Product Leader Summit",
             "Network with product leaders and learn from industry experts",
             "Product School", "1 week", location="Online"),
    ],
    "UX/UI Design": [
        _opp("7", "internship", "Design Internship - Design Systems",
             "Build design systems and components for a growing fintech platform",
             "FinTechXYZ", "4 months", location="Remote"),
        _opp("8", "course", "Interaction Design & Prototyping",
             "Master Figma, prototyping, and user-centered design principles",
             "DesignLab", "10 weeks", level="Beginner"),
        _opp("9", "study_plan", "UX Design Career Path",
             "Guide to becoming a professional UX designer",
             "Nielsen Norman Group", "3 months"),
    ],
    "Data Science": [
        _opp("10", "internship", "Data Science Internship - ML Engineering",
             "Work on machine learning projects in production environments",
             "DataCorp LATAM", "6 months", location="São Paulo - Remote"),
        _opp("11", "course", "Machine Learning Specialization",
             "Deep dive into ML algorithms, deep learning, and MLOps",
             "Coursera", "12 weeks", level="Intermediate"),
        _opp("12", "study_plan", "Data Science 100 Days Challenge",
             "Daily learning program with real-world projects",
             "DataCamp", "100 days"),
    ],
    "Startup Founder": [
        _opp("13", "internship", "Founder Immersion - Startup Accelerator",
             "Fast-track program for aspiring entrepreneurs with mentorship",
             "Startup Academy LATAM", "3 months", location="Hybrid - Colombia"),
        _opp("14", "course", "How to Start a Startup",
             "Learn fundraising, product-market fit, and scaling strategies",
             "Y Combinator", "6 weeks", level="Beginner"),
        _opp("15", "summer_camp", "Founder Bootcamp",
             "Intensive summer program with investor pitch preparation",
             "FounderInstitute", "8 weeks", location="Mexico City"),
    ],
    "Business Strategy": [
        _opp("16", "course", "Strategic Planning & Business Execution",
             "Learn frameworks used by top strategy consultants",
             "MasterClass", "8 weeks", level="Intermediate"),
        _opp("17", "internship", "Management Consulting Internship",
             "Work on strategic projects with multinational companies",
             "ConsultingCorp", "6 months", location="Hybrid - Santiago"),
        _opp("18", "study_plan", "MBA Preparation Program",
             "Prepare for MBA applications and business leadership",
             "Self-curated", "4 months"),
    ],
}


def get_opportunities(pathways: List[str]) -> List[Dict[str, Any]]:
    """Catalog entries for each pathway in request order; unknown pathways add nothing"""
    opportunities = []
    for pathway in pathways:
        for opp in OPPORTUNITY_CATALOG.get(pathway, []):
            opportunities.append(opp.model_dump(by_alias=True, exclude_none=True))
    return opportunities


def _cache_key(
    pathway: str, location: str, specific_topic: Optional[str], user_responses: Optional[UserResponses]
) -> str:
    context = user_responses.model_dump_json() if user_responses else ""
    raw = "|".join([
        pathway.strip().lower(), location.strip().lower(), (specific_topic or "").strip().lower(), context,
    ])
    return f"local_opps:{hashlib.sha256(raw.encode('utf-8')).hexdigest()[:32]}"


async def search_local_opportunities(
    llm: LLMClient,
    pathway: str,
    location: str,
    specific_topic: Optional[str] = None,
    user_responses: Optional[UserResponses] = None,
) -> List[Dict[str, Any]]:
    """
    Ask the LLM for real opportunities in the student's city.

    Successful searches are cached in Redis for an hour, keyed by the
    pathway, location, topic and student context.
    """
    key = _cache_key(pathway, location, specific_topic, user_responses)
    cached = await cache_get(key)
    if cached is not None:
        logger.info(f"[LocalSearch] Cache hit for {pathway} @ {location}")
        return cached

    prompt = prompts.build_local_search_prompt(pathway, location, specific_topic, user_responses)
    text = await llm.generate_text(prompt, max_tokens=2000, temperature=0.8, operation="local_search")
    if not text:
        raise LLMResponseParseError("Empty response from LLM")

    data = extract_json(text, require_key="opportunities")
    raw = data["opportunities"]
    if not isinstance(raw, list):
        raise LLMResponseParseError("Invalid response structure (opportunities is not a list)", raw_text=text)

    opportunities = []
    for idx, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            continue
        item.setdefault("id", f"local-{idx}")
        item.setdefault("type", "local_opportunity")
        try:
            Opportunity.model_validate(item)
        except ValidationError:
            logger.warning(f"[LocalSearch] Incomplete opportunity kept as-is: {item.get('title')!r}")
        opportunities.append(item)

    logger.info(f"[LocalSearch] Found {len(opportunities)} opportunities", extra={"count": len(opportunities)})
    await cache_set(key, opportunities, ttl=LOCAL_SEARCH_CACHE_TTL)
    return opportunities
