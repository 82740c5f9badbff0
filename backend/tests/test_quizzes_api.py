"""
StudyGrove Backend — Quiz API Tests
====================================

What we test:
    ✅ Quiz CRUD with ownership checks
    ✅ Empty question/answer strings are stored as sent
    ✅ /check returns the grader's verdict verbatim
    ✅ Grader failures surface as 500 "Failed to check answer" and nothing else
"""

import pytest

from studygrove.exceptions import CircuitBreakerOpenError, GradingServiceError
from studygrove.services.llm_base import GradeResult

pytestmark = pytest.mark.asyncio

QUIZ = {
    "title": "Cell biology",
    "description": "Chapter 3",
    "questions": [
        {"question": "Powerhouse of the cell?", "answer": "Mitochondria"},
        {"question": "Site of photosynthesis?", "answer": "Chloroplast"},
    ],
}


async def _create(client, headers, **overrides):
    body = {**QUIZ, **overrides}
    response = await client.post("/api/quizzes", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestQuizCrud:
    async def test_create_quiz(self, test_client, alice_headers):
        quiz = await _create(test_client, alice_headers)

        assert quiz["userId"] == "alice"
        assert quiz["title"] == "Cell biology"
        assert quiz["description"] == "Chapter 3"
        assert quiz["questions"] == QUIZ["questions"]
        assert quiz["highScore"] == 0
        assert quiz["createdAt"]

    async def test_description_is_optional(self, test_client, alice_headers):
        body = {"title": "No description", "questions": QUIZ["questions"]}
        response = await test_client.post("/api/quizzes", json=body, headers=alice_headers)

        assert response.status_code == 201
        assert response.json()["description"] is None

    async def test_empty_pairs_are_accepted(self, test_client, alice_headers):
        quiz = await _create(test_client, alice_headers, questions=[{"question": "", "answer": ""}])

        assert quiz["questions"] == [{"question": "", "answer": ""}]

    async def test_question_without_answer_is_400(self, test_client, alice_headers):
        body = {"title": "Broken", "questions": [{"question": "Q?"}]}
        response = await test_client.post("/api/quizzes", json=body, headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "questions.0.answer"

    async def test_list_is_scoped_and_newest_first(self, test_client, alice_headers, bob_headers):
        older = await _create(test_client, alice_headers, title="older")
        newer = await _create(test_client, alice_headers, title="newer")
        await _create(test_client, bob_headers, title="bob's")

        response = await test_client.get("/api/quizzes", headers=alice_headers)

        assert response.status_code == 200
        assert [q["id"] for q in response.json()] == [newer["id"], older["id"]]

    async def test_get_own_quiz(self, test_client, alice_headers):
        quiz = await _create(test_client, alice_headers)

        response = await test_client.get(f"/api/quizzes/{quiz['id']}", headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["questions"] == QUIZ["questions"]

    async def test_get_other_users_quiz_is_forbidden(self, test_client, alice_headers, bob_headers):
        quiz = await _create(test_client, alice_headers)

        response = await test_client.get(f"/api/quizzes/{quiz['id']}", headers=bob_headers)

        assert response.status_code == 403
        assert response.json() == {"message": "Forbidden"}

    async def test_get_unknown_quiz_is_404(self, test_client, alice_headers):
        response = await test_client.get("/api/quizzes/777", headers=alice_headers)

        assert response.status_code == 404
        assert response.json() == {"message": "Quiz not found"}

    async def test_delete_quiz(self, test_client, alice_headers):
        quiz = await _create(test_client, alice_headers)

        response = await test_client.delete(f"/api/quizzes/{quiz['id']}", headers=alice_headers)
        after = await test_client.get(f"/api/quizzes/{quiz['id']}", headers=alice_headers)

        assert response.status_code == 204
        assert after.status_code == 404

    async def test_delete_other_users_quiz_is_forbidden(self, test_client, alice_headers, bob_headers):
        quiz = await _create(test_client, alice_headers)

        response = await test_client.delete(f"/api/quizzes/{quiz['id']}", headers=bob_headers)

        assert response.status_code == 403

    async def test_requires_token(self, test_client):
        response = await test_client.get("/api/quizzes")

        assert response.status_code == 401


class TestCheckAnswer:
    BODY = {
        "question": "Powerhouse of the cell?",
        "userAnswer": "the mitochondrion",
        "correctAnswer": "Mitochondria",
    }

    async def test_returns_grader_verdict(self, test_client, alice_headers, grader):
        grader.result = GradeResult(correct=True, feedback="Singular form is fine.")

        response = await test_client.post("/api/quizzes/check", json=self.BODY, headers=alice_headers)

        assert response.status_code == 200
        assert response.json() == {"correct": True, "feedback": "Singular form is fine."}
        assert grader.calls == [
            ("Powerhouse of the cell?", "the mitochondrion", "Mitochondria"),
        ]

    async def test_incorrect_verdict(self, test_client, alice_headers, grader):
        grader.result = GradeResult(correct=False, feedback="That is the nucleus.")

        response = await test_client.post("/api/quizzes/check", json=self.BODY, headers=alice_headers)

        assert response.json() == {"correct": False, "feedback": "That is the nucleus."}

    @pytest.mark.parametrize(
        "error",
        [
            GradingServiceError(context={"reason": "timeout"}),
            CircuitBreakerOpenError(recovery_time=30),
        ],
    )
    async def test_grader_failure_is_500(self, test_client, alice_headers, grader, error):
        grader.error = error

        response = await test_client.post("/api/quizzes/check", json=self.BODY, headers=alice_headers)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to check answer"}

    async def test_requires_token_and_skips_grader(self, test_client, grader):
        response = await test_client.post("/api/quizzes/check", json=self.BODY)

        assert response.status_code == 401
        assert grader.calls == []

    async def test_missing_user_answer_is_400(self, test_client, alice_headers, grader):
        body = {k: v for k, v in self.BODY.items() if k != "userAnswer"}

        response = await test_client.post("/api/quizzes/check", json=body, headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "userAnswer"
        assert grader.calls == []
