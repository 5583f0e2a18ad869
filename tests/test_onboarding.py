from app.services.questionnaire import (
    NO_ANSWER,
    PREFERENCE_QUESTIONS,
    empty_open_responses,
    empty_university_purpose_responses,
    summarize_choice_responses,
)


def test_questions_endpoint_returns_catalog(client):
    resp = client.get("/api/onboarding/questions")

    assert resp.status_code == 200
    questions = resp.json()["questions"]
    assert len(questions["openEnded"]) == 5
    assert len(questions["preferences"]) == 10
    assert [q["id"] for q in questions["universityPurpose"]] == [
        "universityPurpose",
        "campusEnvironment",
        "specialization",
        "learningStyle",
        "academicSocialIntegration",
    ]
    assert all(len(q["options"]) == 3 for q in questions["preferences"])


def test_empty_response_maps():
    assert empty_open_responses() == {
        "futureVision": "",
        "dailyFeeling": "",
        "problemEnjoyment": "",
        "skillFocus": "",
        "oneWeekJob": "",
    }
    assert set(empty_university_purpose_responses().values()) == {""}


def test_blank_answers_render_as_no_answer():
    summary = summarize_choice_responses(PREFERENCE_QUESTIONS[:2], {"consideredCollege": "Sí", "wantsCollege": "  "})

    lines = summary.splitlines()
    assert lines[0].endswith(": Sí")
    assert lines[1].endswith(f": {NO_ANSWER}")
