"""
Load test script for the CaminoAI backend.

Simulates a student going through the dashboard:
  1. Health check and questionnaire fetch
  2. Pathway analysis from an onboarding profile
  3. 12-week action plan generation
  4. Opportunity browsing
  5. Save then reload the plan (only with LOAD_TEST_TOKEN)

Run:
    pip install -e ".[load]"
    locust -f tests/load/locustfile.py --host https://YOUR-RAILWAY-URL

Then open http://localhost:8089 to configure users/spawn rate and start.
LLM endpoints are rate limited per IP; keep the user count modest or the
run mostly measures 429s.
"""

import os
import time
from locust import HttpUser, task, between, SequentialTaskSet


AUTH_TOKEN = os.getenv("LOAD_TEST_TOKEN", "")  # Supabase access token
PHONE_NUMBER = os.getenv("LOAD_TEST_PHONE", "+56900000000")

PROFILE = {
    "name": "Carga Test",
    "schoolType": "colegio",
    "schoolName": "Liceo de Prueba",
    "currentYear": 11,
    "openResponses": {
        "futureVision": "Construyendo productos de software",
        "problemEnjoyment": "Retos técnicos",
    },
    "preferenceResponses": {"workStyle": "Una mezcla de ambos"},
    "universityPurposeResponses": {"universityPurpose": "Un poco de ambas"},
    "grades": [{"subject": "Matemáticas", "grade": 9.5}, {"subject": "Historia", "grade": 8}],
}


def headers():
    h = {"X-Correlation-ID": f"load-test-{time.monotonic()}"}
    if AUTH_TOKEN:
        h["Authorization"] = f"Bearer {AUTH_TOKEN}"
    return h


class PlanFlow(SequentialTaskSet):
    """Analyze -> generate plan -> browse opportunities -> save/load."""

    pathways = None
    plan = None

    @task
    def analyze(self):
        with self.client.post(
            "/api/analyze-responses",
            json=PROFILE,
            headers=headers(),
            name="/api/analyze-responses",
            catch_response=True,
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Analysis failed: {resp.status_code}")
                return
            self.pathways = [p["name"] for p in resp.json().get("pathways", [])][:2]
            if not self.pathways:
                resp.failure("No pathways in response")

    @task
    def generate_plan(self):
        if not self.pathways:
            return
        payload = {
            "name": PROFILE["name"],
            "selectedPathways": self.pathways,
            "schoolInfo": {
                "schoolType": PROFILE["schoolType"],
                "schoolName": PROFILE["schoolName"],
                "currentYear": PROFILE["currentYear"],
            },
            "openResponses": PROFILE["openResponses"],
            "preferenceResponses": PROFILE["preferenceResponses"],
        }
        with self.client.post(
            "/api/generate-action-plan",
            json=payload,
            headers=headers(),
            name="/api/generate-action-plan",
            catch_response=True,
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Plan failed: {resp.status_code}")
                return
            self.plan = resp.json().get("plan")

    @task
    def browse_opportunities(self):
        self.client.post(
            "/api/get-opportunities",
            json={"pathways": ["Software Engineering", "Data Science"]},
            headers=headers(),
            name="/api/get-opportunities",
        )

    @task
    def save_and_load(self):
        if not (self.plan and AUTH_TOKEN):
            return
        self.client.post(
            "/api/action-plan/save",
            json={"plan": self.plan},
            headers=headers(),
            name="/api/action-plan/save",
        )
        self.client.get("/api/action-plan/load", headers=headers(), name="/api/action-plan/load")

    @task
    def stop(self):
        self.interrupt()


class CaminoUser(HttpUser):
    """Simulates a typical dashboard session."""

    wait_time = between(1, 3)

    @task(3)
    def health_check(self):
        self.client.get("/health", name="/health")

    @task(2)
    def questions(self):
        self.client.get("/api/onboarding/questions", name="/api/onboarding/questions")

    @task(1)
    def list_reminders(self):
        self.client.get(
            "/api/reminders/list",
            params={"phoneNumber": PHONE_NUMBER},
            headers=headers(),
            name="/api/reminders/list",
        )

    @task(1)
    def metrics(self):
        self.client.get("/metrics", name="/metrics")

    tasks = {PlanFlow: 1}
