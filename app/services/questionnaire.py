"""
Onboarding questionnaire catalog.

Question ids are the keys the browser uses in openResponses,
preferenceResponses and universityPurposeResponses.
"""
from typing import Dict, List, Mapping, Optional

from app.schemas.onboarding import ChoiceQuestion, OpenEndedQuestion, QuestionCatalog

NO_ANSWER = "Sin respuesta"

OPEN_ENDED_QUESTIONS: List[OpenEndedQuestion] = [
    OpenEndedQuestion(
        id="futureVision",
        label="Si pudieras diseñar tu día perfecto dentro de cinco años, ¿qué estarías haciendo?",
        placeholder="Cuéntanos qué haces, con quién y dónde.",
    ),
    OpenEndedQuestion(
        id="dailyFeeling",
        label="Cuando imaginas tu futuro, ¿qué emoción esperas sentir todos los días?",
        placeholder="Tranquilidad, emoción, propósito, impacto...",
    ),
    OpenEndedQuestion(
        id="problemEnjoyment",
        label="¿Qué tipo de problemas disfrutas resolver?",
        placeholder="Retos técnicos, situaciones sociales, temas creativos, estrategia...",
    ),
    OpenEndedQuestion(
        id="skillFocus",
        label="Si tuvieras más tiempo libre, ¿en qué te gustaría mejorar?",
        placeholder="Habilidades concretas o áreas que quieras dominar.",
    ),
    OpenEndedQuestion(
        id="oneWeekJob",
        label="Si pudieras probar cualquier trabajo durante una semana, ¿cuál elegirías?",
        placeholder="Qué rol te intriga y qué te gustaría aprender de él.",
    ),
]

PREFERENCE_QUESTIONS: List[ChoiceQuestion] = [
    ChoiceQuestion(
        id="consideredCollege",
        question="¿Alguna vez has pensado en ir a la universidad?",
        options=["Sí", "Tal vez", "No"],
    ),
    ChoiceQuestion(
        id="wantsCollege",
        question="¿Quieres ir a la universidad?",
        options=["Sí", "Tal vez", "No"],
    ),
    ChoiceQuestion(
        id="environmentComfort",
        question="¿Qué entorno se siente más cómodo para ti?",
        options=["Interiores", "Al aire libre", "Sin preferencia"],
    ),
    ChoiceQuestion(
        id="workStyle",
        question="Cuando trabajas en algo importante, ¿qué se siente más natural?",
        options=["Trabajar de forma independiente", "Trabajar en equipo", "Una mezcla de ambos"],
    ),
    ChoiceQuestion(
        id="dayPreference",
        question="¿Qué tipo de día disfrutarías más?",
        options=["Una rutina predecible", "Algo diferente cada día", "Algo intermedio"],
    ),
    ChoiceQuestion(
        id="workPace",
        question="¿Qué ritmo de trabajo se siente más natural para ti?",
        options=["Un ritmo estable y predecible", "Una mezcla según la tarea", "Un ritmo rápido y energético"],
    ),
    ChoiceQuestion(
        id="taskComfort",
        question="¿Qué tipo de tarea te resulta más cómoda?",
        options=[
            "Tareas con instrucciones claras",
            "Tareas donde puedes sumar tus ideas",
            "Tareas donde decides todo desde cero",
        ],
    ),
    ChoiceQuestion(
        id="activityPreference",
        question="¿Qué tipo de actividad te resulta más satisfactoria?",
        options=["Usar tus manos o moverte", "Pensar, planear o analizar", "Una combinación de ambas"],
    ),
    ChoiceQuestion(
        id="technologyComfort",
        question="¿Cómo te sientes al trabajar con tecnología?",
        options=[
            "Me siento cómodo/a y hasta lo disfruto",
            "La uso cuando es necesario",
            "Prefiero usar lo mínimo posible",
        ],
    ),
    ChoiceQuestion(
        id="communicationStyle",
        question="¿Qué estilo de comunicación encaja mejor contigo?",
        options=[
            "Conversar uno a uno",
            "Hablar con grupos pequeños",
            "Trabajar en silencio y comunicar sólo cuando toca",
        ],
    ),
]

UNIVERSITY_PURPOSE_QUESTIONS: List[ChoiceQuestion] = [
    ChoiceQuestion(
        id="universityPurpose",
        question="¿Para qué quieres que te sirva la universidad?",
        options=[
            "Dominar conocimiento teórico profundo",
            "Habilidades prácticas listas para el trabajo",
            "Un poco de ambas",
        ],
    ),
    ChoiceQuestion(
        id="campusEnvironment",
        question="¿Dónde te imaginas estudiando?",
        options=["Una burbuja universitaria", "Un campus en una ciudad grande", "No estoy seguro/a"],
    ),
    ChoiceQuestion(
        id="specialization",
        question="¿Prefieres ser experto/a en una especialidad o generalista?",
        options=["Experto en una especialidad", "Generalista que combina ideas", "Depende del tema"],
    ),
    ChoiceQuestion(
        id="learningStyle",
        question="¿Cómo aprendes mejor?",
        options=[
            "Clases grandes con profesores famosos",
            "Seminarios pequeños con interacción cercana",
            "Una mezcla de ambos",
        ],
    ),
    ChoiceQuestion(
        id="academicSocialIntegration",
        question="¿Cómo quieres que se relacionen tu vida académica y social?",
        options=["Estrechamente integradas", "Claramente separadas", "Sin preferencia"],
    ),
]


def get_catalog() -> QuestionCatalog:
    return QuestionCatalog(
        open_ended=OPEN_ENDED_QUESTIONS,
        preferences=PREFERENCE_QUESTIONS,
        university_purpose=UNIVERSITY_PURPOSE_QUESTIONS,
    )


def empty_open_responses() -> Dict[str, str]:
    return {q.id: "" for q in OPEN_ENDED_QUESTIONS}


def empty_preference_responses() -> Dict[str, str]:
    return {q.id: "" for q in PREFERENCE_QUESTIONS}


def empty_university_purpose_responses() -> Dict[str, str]:
    return {q.id: "" for q in UNIVERSITY_PURPOSE_QUESTIONS}


def _answer(responses: Mapping[str, Optional[str]], question_id: str) -> str:
    value = (responses or {}).get(question_id)
    value = value.strip() if isinstance(value, str) else ""
    return value or NO_ANSWER


def summarize_open_responses(responses: Mapping[str, Optional[str]]) -> str:
    """One "- label: answer" line per open-ended question, in catalog order"""
    return "\n".join(f"- {q.label}: {_answer(responses, q.id)}" for q in OPEN_ENDED_QUESTIONS)


def summarize_choice_responses(
    questions: List[ChoiceQuestion], responses: Mapping[str, Optional[str]]
) -> str:
    return "\n".join(f"- {q.question}: {_answer(responses, q.id)}" for q in questions)
