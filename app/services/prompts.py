"""
Prompt builders. Students are LATAM high-school and university students, so
every prompt asks for Spanish output; the JSON keys stay in English camelCase
because the frontend reads them directly.
"""
import json
from typing import Any, Dict, List, Optional

from app.schemas.action_plan import GenerateActionPlanRequest
from app.schemas.common import UserResponses
from app.schemas.onboarding import StudentProfile
from app.services.questionnaire import (
    PREFERENCE_QUESTIONS,
    UNIVERSITY_PURPOSE_QUESTIONS,
    summarize_choice_responses,
    summarize_open_responses,
)

SPANISH_ONLY = "RESPONDE TODO EN ESPAÑOL."
JSON_ONLY = "Responde SOLO con JSON válido, sin texto adicional ni bloques de código."


def _education_label(school_type: Optional[str]) -> str:
    return "Colegio" if school_type == "colegio" else "Universidad"


def format_user_context(user_responses: Optional[UserResponses]) -> str:
    """Free-form context block from whatever questionnaire data the dashboard sent"""
    if not user_responses:
        return ""

    parts: List[str] = []
    open_answers = {k: v for k, v in user_responses.open_responses.items() if v}
    if open_answers:
        parts.append("Respuestas abiertas del estudiante:")
        parts.extend(f"- {key}: {value}" for key, value in open_answers.items())

    preferences = {k: v for k, v in user_responses.preference_responses.items() if v}
    if preferences:
        parts.append("Preferencias del estudiante:")
        parts.extend(f"- {key}: {value}" for key, value in preferences.items())

    if user_responses.selected_pathways:
        parts.append(f"Caminos elegidos: {', '.join(user_responses.selected_pathways)}")

    if user_responses.school_type:
        parts.append(f"Nivel educativo: {_education_label(user_responses.school_type)}")
    if user_responses.current_year:
        parts.append(f"Año actual: {user_responses.current_year}")

    return "\n".join(parts)


def build_analysis_prompt(profile: StudentProfile, average_grade: str, top_subjects: str) -> str:
    return f"""
Eres un consejero vocacional. Analiza el perfil de este estudiante y recomienda exactamente 3 caminos profesionales.

PERFIL
- Nombre: {profile.name}
- Nivel educativo: {_education_label(profile.school_type)}
- Institución: {profile.school_name}
- Año actual: {profile.current_year}
- Promedio: {average_grade}/10
- Mejores materias: {top_subjects}

REFLEXIONES ABIERTAS
{summarize_open_responses(profile.open_responses)}

PREFERENCIAS Y ESTILO
{summarize_choice_responses(PREFERENCE_QUESTIONS, profile.preference_responses)}

VISIÓN UNIVERSITARIA Y PROPÓSITO
{summarize_choice_responses(UNIVERSITY_PURPOSE_QUESTIONS, profile.university_purpose_responses)}

Las respuestas de visión universitaria pesan mucho: indican si el estudiante busca una formación teórica o práctica,
un campus residencial o urbano, especialización o amplitud, clases grandes o seminarios, y cuánto quiere mezclar vida
académica y social. Úsalas para sugerir el tipo de institución o programa que encaja con cada camino.

Para cada camino entrega:
1. Por qué encaja con el perfil (incluye el tipo de programa o institución recomendado)
2. Entre 5 y 7 pasos de acción concretos
3. Tiempo estimado para alcanzar competencia, en meses

Formato JSON:
{{
  "pathways": [
    {{
      "name": "Nombre del camino",
      "rationale": "Por qué encaja",
      "actionSteps": ["Paso 1", "Paso 2"],
      "timeline": "X meses"
    }}
  ]
}}

Las recomendaciones deben ser ambiciosas pero alcanzables para un estudiante de LATAM con metas internacionales.
{JSON_ONLY}
{SPANISH_ONLY}
""".strip()


def build_action_plan_prompt(data: GenerateActionPlanRequest) -> str:
    school = data.school_info
    pathways = "\n".join(f"{i}. {p}" for i, p in enumerate(data.selected_pathways, start=1))
    return f"""
Eres un asesor de carrera creando un plan de acción personalizado de 12 semanas para {data.name}.

ESTUDIANTE
- Educación: {_education_label(school.school_type)} - {school.school_name}
- Año actual: {school.current_year}
- Visión personal:
{summarize_open_responses(data.open_responses)}
- Preferencias y estilo de aprendizaje:
{summarize_choice_responses(PREFERENCE_QUESTIONS, data.preference_responses)}

CAMINOS ELEGIDOS
{pathways}

El plan debe ser realista para un estudiante en LATAM, usar programas, plataformas y organizaciones reales,
avanzar de fundamentos a aplicaciones, priorizar opciones gratuitas o de bajo costo y preparar para
oportunidades internacionales.

Formato JSON:
{{
  "title": "Tu Plan de Acción Personalizado - 12 Semanas",
  "overview": "Objetivos principales del plan",
  "weeks": [
    {{
      "week": 1,
      "title": "Título de la semana",
      "pathwayFocus": "Camino en foco",
      "tasks": [
        {{"task": "Tarea concreta", "priority": "high", "dailyHabit": true, "estimatedTime": "30 min diarios"}}
      ],
      "milestone": "Qué deberías lograr al final de la semana"
    }}
  ],
  "opportunities": [
    {{
      "type": "internship",
      "title": "Programa",
      "provider": "Organización",
      "pathway": "Camino",
      "description": "Descripción breve",
      "applicationPeriod": "Enero-Marzo",
      "deadline": "Si se conoce",
      "cost": "free",
      "url": "Si existe",
      "recommendedWeek": 3
    }}
  ],
  "resources": [
    {{"type": "book", "title": "Recurso", "pathway": "Camino", "description": "Para qué sirve", "cost": "free", "url": "", "timing": "Semanas 1-4"}}
  ],
  "reminders": [
    {{"week": 1, "title": "Recordatorio", "description": "Qué revisar", "type": "checkpoint", "priority": "high"}}
  ],
  "checkpoints": [
    {{"week": 4, "title": "Checkpoint del Mes 1", "checkpoint": "Qué revisar", "successMetrics": ["Métrica 1", "Métrica 2"]}}
  ]
}}

Requisitos:
- Exactamente 12 semanas
- Al menos 10 oportunidades, 15 recursos y 20 recordatorios
- priority solo puede ser "high", "medium" o "low"
- Cierra todas las llaves y corchetes, sin comas finales y sin saltos de línea dentro de los strings
{JSON_ONLY}
""".strip()


def build_suggestion_prompt(pathway: str, suggestion: str, user_responses: Optional[UserResponses]) -> str:
    context = format_user_context(user_responses)
    context_block = f"Esto sabemos del estudiante:\n{context}\n\n" if context else ""
    return f"""
Eres un consejero de orientación profesional ayudando a un estudiante a explorar el camino "{pathway}".

El estudiante compartió esta idea o inquietud:
"{suggestion}"

{context_block}Responde con:
1. Un reconocimiento cálido y personalizado de su idea
2. Consejos concretos para perseguir este interés
3. Primeros pasos que pueda dar hoy o esta semana
4. Recursos, comunidades u oportunidades para explorar
5. Cómo se conecta con su camino y sus objetivos

Máximo 300 palabras, tono cercano y práctico.
{SPANISH_ONLY}
""".strip()


def build_activities_prompt(pathway: str, user_responses: Optional[UserResponses]) -> str:
    context = format_user_context(user_responses)
    context_block = f"Esto sabemos del estudiante:\n{context}\n\n" if context else ""
    return f"""
Eres un asesor de carrera ayudando a un estudiante latinoamericano a explorar el camino "{pathway}".

{context_block}Propón entre 4 y 5 actividades ESPECÍFICAS que pueda hacer hoy o esta semana:
- Gratuitas o de muy bajo costo
- Concretas (nada de "aprende programación")
- Con recursos locales o en línea disponibles en América Latina
- Mezclando niveles principiante e intermedio
- Con enlaces reales cuando existan

Devuelve SOLO un array JSON:
[
  {{
    "title": "Título",
    "description": "Qué hará y qué aprenderá",
    "timeframe": "2 horas",
    "difficulty": "beginner",
    "link": "https://...",
    "relevance": "Por qué encaja con su perfil"
  }}
]

difficulty solo puede ser "beginner", "intermediate" o "advanced".
{SPANISH_ONLY}
""".strip()


DETAILED_PLAN_SYSTEM_PROMPT = (
    "Eres un experto en planificación educativa y desarrollo de carrera. "
    "Respondes SOLO con JSON válido, sin texto adicional."
)


def build_detailed_plan_prompt(
    opportunities: List[Dict[str, Any]],
    pathways: List[str],
    user_responses: Optional[UserResponses],
) -> str:
    lines = []
    for idx, opp in enumerate(opportunities, start=1):
        provider = opp.get("provider") or opp.get("company") or "Proveedor no especificado"
        lines.append(f"{idx}. {opp.get('title', 'Oportunidad')} - {opp.get('description', '')} ({provider})")

    context = format_user_context(user_responses)
    context_block = f"\nCONTEXTO DEL ESTUDIANTE\n{context}\n" if context else ""

    return f"""
CAMINOS DEL ESTUDIANTE: {', '.join(pathways) if pathways else 'No especificados'}

OPORTUNIDADES SELECCIONADAS
{chr(10).join(lines)}
{context_block}
Crea un plan de acción detallado que integre estas oportunidades en un orden lógico: pasos preparatorios antes
de postular, requisitos y plazos, y un cronograma realista que no sobrecargue al estudiante.

Formato JSON:
{{
  "overview": "Resumen del plan (2-3 líneas)",
  "totalDuration": "3-6 meses",
  "steps": [
    {{
      "step": 1,
      "title": "Título del paso",
      "description": "Descripción (1-2 líneas)",
      "timeline": "Semana 1-2",
      "priority": "high",
      "relatedOpportunity": "Oportunidad relacionada",
      "tasks": ["Tarea 1", "Tarea 2", "Tarea 3"]
    }}
  ],
  "milestones": [{{"week": 4, "description": "Hito"}}],
  "tips": ["Consejo 1", "Consejo 2"]
}}

Entre 5 y 8 pasos con 3 a 5 tareas cada uno, 3 a 5 hitos y 4 a 6 consejos.
{JSON_ONLY}
""".strip()


def build_local_search_prompt(
    pathway: str,
    location: str,
    specific_topic: Optional[str],
    user_responses: Optional[UserResponses],
) -> str:
    topic_block = (
        f"\nTEMA ESPECÍFICO: {specific_topic}\nCentra la búsqueda en este tema.\n" if specific_topic else ""
    )
    context = format_user_context(user_responses)
    context_block = f"\nCONTEXTO DEL ESTUDIANTE\n{context}\n" if context else ""
    example = {
        "opportunities": [
            {
                "id": "unique-id",
                "title": "Título de la oportunidad",
                "description": "Qué es y qué ofrece (2-3 líneas)",
                "provider": "Organización",
                "duration": "3 meses, sábados 10-14h, evento único...",
                "location": f"Lugar específico dentro de {location}",
                "type": "local_opportunity",
            }
        ]
    }
    return f"""
Eres un experto en oportunidades educativas y profesionales locales.

UBICACIÓN: {location}
CAMINO: {pathway}{topic_block}{context_block}
Identifica entre 4 y 6 oportunidades REALES disponibles en {location}: talleres, eventos, meetups, mentorías,
empresas con pasantías, centros culturales. Deben ser presenciales en esa ubicación y accesibles para el nivel
educativo del estudiante. Ordénalas por relevancia, sin agrupar por tipo.

Formato JSON:
{json.dumps(example, ensure_ascii=False, indent=2)}

{JSON_ONLY}
""".strip()
