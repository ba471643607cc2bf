import pytest

from app.services.text_extractor import DOCX_MEDIA_TYPE
from conftest import make_docx

RESUME_DOCX = make_docx("SKILLS: Python, Docker")


async def add_student(client, name, **fields):
    response = await client.post("/api/students", json={"name": name, **fields})
    assert response.status_code == 201
    return response.json()["id"]


class TestOverviewBreakdowns:
    """Test cases for the distribution sections of /api/analytics/overview"""

    @pytest.mark.asyncio
    async def test_skill_distribution_and_interests(self, client, student):
        await add_student(client, "Grace", interests="Robotics", skills=[
            {"name": "python", "level": "beginner"}, {"name": "SQL"},
        ])
        await add_student(client, "Linus", interests="Robotics")
        await add_student(client, "Alan", interests="Chess")

        body = (await client.get("/api/analytics/overview")).json()

        assert body["skill_distribution"] == [
            {"skill_name": "python", "student_count": 2, "levels": ["beginner", "advanced"]},
            {"skill_name": "sql", "student_count": 1, "levels": ["beginner"]},
        ]
        assert body["interest_stats"] == [
            {"interests": "Robotics", "count": 2},
            {"interests": "Chess", "count": 1},
        ]

    @pytest.mark.asyncio
    async def test_survey_stats(self, client, student):
        survey = (await client.post("/api/surveys", json={
            "title": "Welcome",
            "questions": [{"id": "interests", "text": "Interests?", "type": "text"}],
        })).json()
        await client.post(f"/api/surveys/{survey['id']}/responses", json={
            "student_id": student, "responses": {"interests": "Chess"},
        })

        body = (await client.get("/api/analytics/overview")).json()
        assert body["survey_stats"] == [
            {"id": survey["id"], "title": "Welcome", "is_active": True, "responses": 1}
        ]


class TestSkillTrends:
    """Test cases for recent skill additions"""

    @pytest.mark.asyncio
    async def test_skills_added_today(self, client, student):
        await add_student(client, "Grace", skills=[{"name": "SQL"}, {"name": "Excel"}])

        body = (await client.get("/api/analytics/skills")).json()
        assert len(body["skill_trends"]) == 1
        assert body["skill_trends"][0]["skills_added"] == 3

    @pytest.mark.asyncio
    async def test_no_skills(self, client):
        body = (await client.get("/api/analytics/skills")).json()
        assert body["skill_trends"] == []


class TestStudentAnalytics:
    """Test cases for /api/analytics/students/{id}"""

    @pytest.mark.asyncio
    async def test_student_breakdown(self, client, student):
        await client.post(
            f"/api/students/{student}/resume",
            files={"resume": ("resume.docx", RESUME_DOCX, DOCX_MEDIA_TYPE)},
        )
        await client.put(f"/api/students/{student}", json={"short_term_goals": "Ship a project"})

        response = await client.get(f"/api/analytics/students/{student}")
        assert response.status_code == 200
        body = response.json()

        assert body["student"]["name"] == "Ada Student"
        assert body["student"]["total_skills"] == 2
        assert body["student"]["resume_versions"] == 1
        assert body["student"]["surveys_completed"] == 0
        assert {s["skill_name"]: s["proficiency_level"] for s in body["skills_breakdown"]} == {
            "Python": "advanced",
            "docker": "intermediate",
        }
        assert body["survey_responses"] == []
        assert body["goal_progress"]["short_term_goals"] == "Ship a project"
        assert body["goal_progress"]["updated_at"] is not None

    @pytest.mark.asyncio
    async def test_missing_student(self, client):
        response = await client.get("/api/analytics/students/999")
        assert response.status_code == 404


class TestGoalAnalytics:
    """Test cases for /api/analytics/goals"""

    @pytest.mark.asyncio
    async def test_common_goals(self, client):
        await add_student(client, "Grace", short_term_goals="Internship")
        linus = await add_student(
            client, "Linus", short_term_goals="Internship", long_term_goals="Startup"
        )
        await add_student(client, "Alan", short_term_goals="")

        body = (await client.get("/api/analytics/goals")).json()
        assert body["short_term_goals"] == [{"goal": "Internship", "count": 2}]
        assert body["long_term_goals"] == [{"goal": "Startup", "count": 1}]
        assert body["goal_updates"] == []

        await client.put(f"/api/students/{linus}", json={"long_term_goals": "Open source"})

        body = (await client.get("/api/analytics/goals")).json()
        assert body["long_term_goals"] == [{"goal": "Open source", "count": 1}]
        assert len(body["goal_updates"]) == 1
        assert body["goal_updates"][0]["updates"] == 1
