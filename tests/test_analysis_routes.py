import json

from app.services.pathway_service import FALLBACK_PATHWAY, average_grade, default_activities, top_subjects
from app.schemas.onboarding import Grade

PROFILE = {
    "name": "Camila Rojas",
    "schoolType": "colegio",
    "schoolName": "Liceo Bicentenario",
    "currentYear": 11,
    "openResponses": {"futureVision": "Diseñando apps para mi comunidad", "dailyFeeling": ""},
    "preferenceResponses": {"workStyle": "Trabajar en equipo"},
    "universityPurposeResponses": {"universityPurpose": "Un poco de ambas"},
    "grades": [
        {"subject": "Matemáticas", "grade": 9.5},
        {"subject": "Historia", "grade": 7},
        {"subject": "Física", "grade": 9.1},
        {"subject": "Arte", "grade": 8},
    ],
}

PATHWAYS = [
    {
        "name": "Desarrollo Tecnológico",
        "rationale": "Disfruta los retos técnicos",
        "actionSteps": ["Aprender Python", "Construir un proyecto"],
        "timeline": "6 meses",
    },
    {
        "name": "Emprendimiento",
        "rationale": "Quiere impacto en su comunidad",
        "actionSteps": ["Validar una idea"],
        "timeline": "12 meses",
    },
    {
        "name": "Ciencia de Datos",
        "rationale": "Fuerte en matemáticas",
        "actionSteps": ["Curso de estadística"],
        "timeline": "9 meses",
    },
]


def test_grade_summaries():
    grades = [Grade(subject="Matemáticas", grade=9.5), Grade(subject="Historia", grade=7), Grade(subject="Arte", grade=10)]

    assert average_grade(grades) == "8.8"
    assert top_subjects(grades, limit=2) == "Arte (10/10), Matemáticas (9.5/10)"
    assert average_grade([]) == "N/A"
    assert top_subjects([]) == "N/A"


def test_analyze_responses_returns_pathways(client, fake_llm):
    fake_llm.queue(f"Aquí va el análisis:\n```json\n{json.dumps({'pathways': PATHWAYS})}\n```")

    resp = client.post("/api/analyze-responses", json=PROFILE)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["pathways"] == PATHWAYS

    call = fake_llm.calls[0]
    assert call["max_tokens"] == 2000
    assert call["temperature"] == 0.7
    assert "Promedio: 8.4/10" in call["prompt"]
    assert "Matemáticas (9.5/10), Física (9.1/10), Arte (8/10)" in call["prompt"]
    assert "Sin respuesta" in call["prompt"]


def test_analyze_responses_without_grades_uses_na(client, fake_llm):
    fake_llm.queue(json.dumps({"pathways": PATHWAYS}))

    resp = client.post("/api/analyze-responses", json={**PROFILE, "grades": []})

    assert resp.status_code == 200
    assert "Promedio: N/A/10" in fake_llm.calls[0]["prompt"]


def test_analyze_responses_missing_fields_is_400(client, fake_llm):
    resp = client.post("/api/analyze-responses", json={"name": "Camila"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"].startswith("Missing required fields")
    assert fake_llm.calls == []


def test_analyze_responses_unparseable_output_is_500(client, fake_llm):
    fake_llm.queue("Lo siento, no puedo generar recomendaciones ahora.")

    resp = client.post("/api/analyze-responses", json=PROFILE)

    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_analyze_responses_without_api_key_is_500(client):
    resp = client.post("/api/analyze-responses", json=PROFILE)

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert "ANTHROPIC_API_KEY" in body["error"]


def test_pathway_suggestion_returns_text(client, fake_llm):
    fake_llm.queue("¡Gran idea! Empieza por un club de robótica.")

    resp = client.post(
        "/api/analyze-pathway-suggestion",
        json={
            "pathway": "Desarrollo Tecnológico",
            "userSuggestion": "Me gustaría crear robots",
            "userResponses": {"selectedPathways": ["Desarrollo Tecnológico"], "schoolType": "colegio"},
        },
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "analysis": "¡Gran idea! Empieza por un club de robótica."}
    assert "Me gustaría crear robots" in fake_llm.calls[0]["prompt"]
    assert "Caminos elegidos: Desarrollo Tecnológico" in fake_llm.calls[0]["prompt"]


def test_pathway_suggestion_requires_suggestion(client, fake_llm):
    resp = client.post("/api/analyze-pathway-suggestion", json={"pathway": "Emprendimiento"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_pathway_activities_parsed_from_array(client, fake_llm):
    activities = [
        {
            "title": "Curso de Python",
            "description": "Primeras lecciones",
            "timeframe": "2 horas",
            "difficulty": "beginner",
            "link": "https://example.org",
            "relevance": "Base para todo",
        }
    ]
    fake_llm.queue(json.dumps(activities))

    resp = client.post("/api/generate-pathway-activities", json={"pathway": "Desarrollo Tecnológico"})

    assert resp.status_code == 200
    assert resp.json()["activities"] == activities


def test_pathway_activities_fall_back_to_defaults(client, fake_llm):
    fake_llm.queue("No tengo actividades para ti.")

    resp = client.post("/api/generate-pathway-activities", json={"pathway": "Emprendimiento"})

    assert resp.status_code == 200
    assert resp.json()["activities"] == default_activities("Emprendimiento")


def test_unknown_pathway_defaults_to_fallback_list():
    assert default_activities("Astronomía") == default_activities(FALLBACK_PATHWAY)
