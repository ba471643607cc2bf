import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def roster(client, student):
    """Three students: Ada (fixture), Grace and Linus."""
    grace = (await client.post("/api/students", json={
        "name": "Grace",
        "email": "grace@example.com",
        "year_grade": "Junior",
        "major_focus": "Data Science",
        "interests": "Robotics and AI",
        "short_term_goals": "Summer internship",
        "skills": [
            {"name": "SQL", "level": "beginner"},
            {"name": "Tableau", "level": "intermediate"},
        ],
    })).json()
    linus = (await client.post("/api/students", json={
        "name": "Linus",
        "email": "linus@example.com",
        "year_grade": "Senior",
        "major_focus": "Computer Engineering",
        "long_term_goals": "Kernel maintainer",
        "skills": [
            {"name": "Python", "level": "beginner"},
            {"name": "C", "level": "advanced"},
            {"name": "Rust"},
            {"name": "Go"},
            {"name": "Docker"},
        ],
    })).json()
    return {"ada": student, "grace": grace["id"], "linus": linus["id"]}


def names(rows):
    return [row["name"] for row in rows]


class TestSearch:
    """Test cases for GET /api/students/search"""

    @pytest.mark.asyncio
    async def test_query_matches_text_fields(self, client, roster):
        response = await client.get("/api/students/search", params={"query": "robot"})
        assert response.status_code == 200
        assert names(response.json()) == ["Grace"]

    @pytest.mark.asyncio
    async def test_query_matches_skill_names(self, client, roster):
        rows = (await client.get("/api/students/search", params={"query": "PYTHON"})).json()
        assert names(rows) == ["Ada Student", "Linus"]
        assert rows[1]["skill_count"] == 5

    @pytest.mark.asyncio
    async def test_skills_any_of_list(self, client, roster):
        rows = (await client.get("/api/students/search", params={"skills": "sql, rust"})).json()
        assert names(rows) == ["Grace", "Linus"]

    @pytest.mark.asyncio
    async def test_field_filters(self, client, roster):
        by_year = (await client.get("/api/students/search", params={"year_grade": "Senior"})).json()
        assert names(by_year) == ["Linus"]

        by_major = (await client.get("/api/students/search", params={"major_focus": "data"})).json()
        assert names(by_major) == ["Grace"]

        by_goal = (await client.get("/api/students/search", params={"goals": "kernel"})).json()
        assert names(by_goal) == ["Linus"]

        by_interest = (await client.get("/api/students/search", params={"interests": "ai"})).json()
        assert names(by_interest) == ["Grace"]

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, client, roster):
        rows = (await client.get("/api/students/search", params={"query": "%"})).json()
        assert rows == []

    @pytest.mark.asyncio
    async def test_no_filters_returns_everyone(self, client, roster):
        rows = (await client.get("/api/students/search")).json()
        assert names(rows) == ["Ada Student", "Grace", "Linus"]


class TestFilter:
    """Test cases for POST /api/students/filter"""

    @pytest.mark.asyncio
    async def test_skill_and_level_match_same_skill(self, client, roster):
        response = await client.post("/api/students/filter", json={
            "filters": {"skills": ["python"], "skill_levels": ["advanced"]},
        })
        assert response.status_code == 200
        assert names(response.json()) == ["Ada Student"]

    @pytest.mark.asyncio
    async def test_year_major_and_min_skills(self, client, roster):
        by_year = (await client.post("/api/students/filter", json={
            "filters": {"year_grades": ["Junior", "Senior"]},
        })).json()
        assert names(by_year) == ["Grace", "Linus"]

        by_major = (await client.post("/api/students/filter", json={
            "filters": {"majors": ["engineering", "biology"]},
        })).json()
        assert names(by_major) == ["Linus"]

        by_count = (await client.post("/api/students/filter", json={
            "filters": {"min_skills": 2},
        })).json()
        assert names(by_count) == ["Grace", "Linus"]

    @pytest.mark.asyncio
    async def test_sort_by_skill_count(self, client, roster):
        rows = (await client.post("/api/students/filter", json={"sortBy": "skills_count"})).json()
        assert names(rows) == ["Linus", "Grace", "Ada Student"]

    @pytest.mark.asyncio
    async def test_group_by_major(self, client, roster):
        groups = (await client.post("/api/students/filter", json={"groupBy": "major"})).json()
        assert {key: names(rows) for key, rows in groups.items()} == {
            "Other": ["Ada Student"],
            "Data Science": ["Grace"],
            "Computer Engineering": ["Linus"],
        }

    @pytest.mark.asyncio
    async def test_group_by_skill_count(self, client, roster):
        groups = (await client.post("/api/students/filter", json={"groupBy": "skills"})).json()
        assert {key: names(rows) for key, rows in groups.items()} == {
            "High (5+ skills)": ["Linus"],
            "Medium (3-4 skills)": [],
            "Low (1-2 skills)": ["Ada Student", "Grace"],
        }

    @pytest.mark.asyncio
    async def test_unknown_sort_rejected(self, client, roster):
        response = await client.post("/api/students/filter", json={"sortBy": "age"})
        assert response.status_code == 422


class TestFilterOptions:
    """Test cases for GET /api/students/filter-options"""

    @pytest.mark.asyncio
    async def test_distinct_values(self, client, roster):
        response = await client.get("/api/students/filter-options")
        assert response.status_code == 200
        body = response.json()

        assert [o["value"] for o in body["skills"]] == [
            "C", "Docker", "Go", "Python", "Rust", "SQL", "Tableau"
        ]
        assert [o["value"] for o in body["skill_levels"]] == ["beginner", "intermediate", "advanced"]
        assert [o["value"] for o in body["year_grades"]] == ["Junior", "Senior"]
        assert [o["value"] for o in body["majors"]] == ["Computer Engineering", "Data Science"]

    @pytest.mark.asyncio
    async def test_empty_database(self, client):
        body = (await client.get("/api/students/filter-options")).json()
        assert body == {"skills": [], "skill_levels": [], "year_grades": [], "majors": []}
