"""
Pathway Service
Recommends career pathways from the onboarding profile and helps students
explore a chosen pathway (free-text advice and starter activities).
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.schemas.common import UserResponses
from app.schemas.onboarding import Grade, Pathway, PersonalizedActivity, StudentProfile
from app.services.json_repair import LLMResponseParseError, extract_json, extract_json_array
from app.services.llm_client import LLMClient
from app.services import prompts
from app.utils.logger import logger


def average_grade(grades: List[Grade]) -> str:
    """Mean grade to one decimal, or "N/A" when no grades were entered"""
    if not grades:
        return "N/A"
    return f"{sum(g.grade for g in grades) / len(grades):.1f}"


def top_subjects(grades: List[Grade], limit: int = 3) -> str:
    if not grades:
        return "N/A"
    best = sorted(grades, key=lambda g: g.grade, reverse=True)[:limit]
    return ", ".join(f"{g.subject} ({g.grade:g}/10)" for g in best)


async def analyze_responses(llm: LLMClient, profile: StudentProfile) -> List[Dict[str, Any]]:
    """Ask the LLM for three pathway recommendations"""
    prompt = prompts.build_analysis_prompt(
        profile,
        average_grade=average_grade(profile.grades),
        top_subjects=top_subjects(profile.grades),
    )
    text = await llm.generate_text(prompt, max_tokens=2000, temperature=0.7, operation="analyze_responses")

    analysis = extract_json(text, require_key="pathways")
    pathways = analysis["pathways"]
    if not isinstance(pathways, list):
        raise LLMResponseParseError("Failed to parse LLM response: pathways is not a list", raw_text=text)

    result = []
    for item in pathways:
        try:
            result.append(Pathway.model_validate(item).model_dump(by_alias=True))
        except ValidationError as e:
            logger.warning(f"[Pathways] Dropping malformed pathway: {e.errors()[:1]}")

    if not result:
        raise LLMResponseParseError("Failed to parse LLM response: missing pathways", raw_text=text)
    return result


async def analyze_suggestion(
    llm: LLMClient, pathway: str, suggestion: str, user_responses: Optional[UserResponses]
) -> str:
    prompt = prompts.build_suggestion_prompt(pathway, suggestion, user_responses)
    return await llm.generate_text(prompt, max_tokens=1000, temperature=0.7, operation="pathway_suggestion")


# Served when the model's activity list cannot be parsed
DEFAULT_ACTIVITIES: Dict[str, List[Dict[str, Any]]] = {
    "Desarrollo Tecnológico": [
        {
            "title": "Completa tu primer curso de programación gratis",
            "description": "Inscríbete en freeCodeCamp en español y termina las primeras 10 lecciones de JavaScript.",
            "timeframe": "2-3 horas",
            "difficulty": "beginner",
            "link": "https://www.freecodecamp.org/espanol/",
            "relevance": "Ideal para empezar sin experiencia previa",
        },
        {
            "title": "Construye tu primera página web",
            "description": "Crea una página simple con HTML y CSS en CodePen y experimenta con colores y fuentes.",
            "timeframe": "1-2 horas",
            "difficulty": "beginner",
            "link": "https://codepen.io/",
            "relevance": "Verás resultados inmediatos de tu código",
        },
        {
            "title": "Únete a una comunidad tech latina",
            "description": "Entra a una comunidad de desarrolladores de América Latina y presenta lo que quieres aprender.",
            "timeframe": "30 minutos",
            "difficulty": "beginner",
            "link": None,
            "relevance": "Conectas con personas en tu misma situación",
        },
    ],
    "Emprendimiento": [
        {
            "title": "Define tu idea de negocio con Lean Canvas",
            "description": "Mapea clientes, problema y solución de tu idea en una sola página.",
            "timeframe": "1 hora",
            "difficulty": "beginner",
            "link": "https://leanstack.com/lean-canvas",
            "relevance": "Ordena tus ideas de forma clara",
        },
        {
            "title": "Entrevista a 5 potenciales clientes",
            "description": "Hazles tres preguntas sobre sus necesidades y anota lo que responden.",
            "timeframe": "Esta semana",
            "difficulty": "intermediate",
            "link": None,
            "relevance": "Validas la idea antes de invertir tiempo y dinero",
        },
        {
            "title": "Crea una landing page gratis",
            "description": "Usa Carrd o Google Sites para explicar tu idea y juntar correos de interesados.",
            "timeframe": "2 horas",
            "difficulty": "beginner",
            "link": "https://carrd.co/",
            "relevance": "Presencia online sin programar",
        },
    ],
    "Gestión & Negocios": [
        {
            "title": "Completa un curso de Excel intermedio",
            "description": "Aprende fórmulas, tablas dinámicas y gráficos con el curso gratuito de GCFGlobal.",
            "timeframe": "3-4 horas",
            "difficulty": "beginner",
            "link": "https://edu.gcfglobal.org/es/excel-2016/",
            "relevance": "Herramienta base en cualquier rol de negocios",
        },
        {
            "title": "Analiza un caso de negocio real",
            "description": "Lee un caso de estudio y escribe qué habrías hecho diferente.",
            "timeframe": "2 horas",
            "difficulty": "intermediate",
            "link": "https://hbr.org/",
            "relevance": "Desarrolla pensamiento estratégico con ejemplos reales",
        },
        {
            "title": "Practica una presentación ejecutiva",
            "description": "Prepara 5 minutos sobre un tema que dominas, grábate y revisa tu claridad.",
            "timeframe": "1-2 horas",
            "difficulty": "intermediate",
            "link": None,
            "relevance": "Comunicar bien es clave en gestión",
        },
    ],
}

FALLBACK_PATHWAY = "Desarrollo Tecnológico"


def default_activities(pathway: str) -> List[Dict[str, Any]]:
    return [dict(a) for a in DEFAULT_ACTIVITIES.get(pathway, DEFAULT_ACTIVITIES[FALLBACK_PATHWAY])]


async def generate_activities(
    llm: LLMClient, pathway: str, user_responses: Optional[UserResponses]
) -> List[Dict[str, Any]]:
    """
    Starter activities for a pathway.

    Unparseable model output falls back to the curated list; LLM transport
    errors still propagate.
    """
    prompt = prompts.build_activities_prompt(pathway, user_responses)
    text = await llm.generate_text(prompt, max_tokens=1500, temperature=0.7, operation="pathway_activities")

    try:
        raw = extract_json_array(text)
    except LLMResponseParseError as e:
        logger.warning(f"[Activities] Could not parse activities for '{pathway}': {e}; using defaults")
        return default_activities(pathway)

    activities = []
    for item in raw:
        try:
            activities.append(PersonalizedActivity.model_validate(item).model_dump(by_alias=True))
        except ValidationError:
            continue

    if not activities:
        logger.warning(f"[Activities] No valid activities for '{pathway}'; using defaults")
        return default_activities(pathway)
    return activities
