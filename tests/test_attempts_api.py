from datetime import timedelta

from conftest import login

from models import utcnow


def _exam_with_questions(factory, teacher, **kw):
    exam = factory.exam(teacher, passing_score=60, **kw)
    questions = [
        factory.question(exam, correct_answer="b", question_type="multiple_choice"),
        factory.question(exam, correct_answer="true", question_type="true_false", options=[]),
        factory.question(exam, correct_answer="12", question_type="essay", options=[]),
    ]
    return exam, questions


def test_full_exam_flow(client, factory):
    teacher = factory.user("teacher", username="guru")
    factory.user("student", username="murid")
    exam, questions = _exam_with_questions(factory, teacher)
    headers = login(client, "murid")

    r = client.post(f"/exams/{exam.id}/attempts", headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    attempt_id = data["attemptId"]
    assert data["exam"]["id"] == exam.id
    assert data["exam"]["totalQuestions"] == 3
    assert [q["id"] for q in data["questions"]] == [q.id for q in questions]
    for q in data["questions"]:
        assert "correctAnswer" not in q
        assert "explanation" not in q

    answers = {str(questions[0].id): "b", str(questions[1].id): True, str(questions[2].id): 12}
    r = client.put(
        f"/exams/{exam.id}/attempts",
        json={"attemptId": attempt_id, "answers": answers, "timeSpent": 600},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    result = r.json()["data"]
    assert result["score"] == result["totalPoints"] == 30
    assert result["percentage"] == 100
    assert result["grade"] == "A"
    assert result["passed"] is True
    assert result["correctAnswers"] == 3
    assert result["wrongAnswers"] == result["skippedAnswers"] == 0

    r = client.get(f"/attempts/{attempt_id}/result", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["id"] == result["resultId"]
    assert r.json()["data"]["completionTime"] == 600

    r = client.get("/attempts/mine", headers=headers)
    mine = r.json()["data"]
    assert [a["id"] for a in mine] == [attempt_id]
    assert mine[0]["status"] == "completed"

    # the owning teacher may read the result too
    r = client.get(f"/attempts/{attempt_id}/result", headers=login(client, "guru"))
    assert r.status_code == 200


def test_resubmit_conflicts(client, factory):
    teacher = factory.user("teacher")
    factory.user("student", username="murid")
    exam, questions = _exam_with_questions(factory, teacher)
    headers = login(client, "murid")
    attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attemptId"]

    body = {"attemptId": attempt_id, "answers": {str(questions[0].id): "a"}}
    first = client.put(f"/exams/{exam.id}/attempts", json=body, headers=headers)
    assert first.status_code == 200
    assert first.json()["data"]["grade"] == "E"
    assert first.json()["data"]["skippedAnswers"] == 2

    again = client.put(f"/exams/{exam.id}/attempts", json=body, headers=headers)
    assert again.status_code == 409
    payload = again.json()
    assert payload["errors"][0]["code"] == "attempt_completed"
    assert payload["data"]["resultId"] == first.json()["data"]["resultId"]


def test_second_start_returns_existing_attempt(client, factory):
    teacher = factory.user("teacher")
    factory.user("student", username="murid")
    factory.user("student", username="siswa")
    exam, _ = _exam_with_questions(factory, teacher)
    murid = login(client, "murid")

    first = client.post(f"/exams/{exam.id}/attempts", headers=murid)
    again = client.post(f"/exams/{exam.id}/attempts", headers=murid)
    assert again.status_code == 409
    assert again.json()["errors"][0]["code"] == "already_attempted"
    assert again.json()["data"]["attemptId"] == first.json()["data"]["attemptId"]

    # another student is unaffected
    r = client.post(f"/exams/{exam.id}/attempts", headers=login(client, "siswa"))
    assert r.status_code == 200
    assert r.json()["data"]["attemptId"] != first.json()["data"]["attemptId"]


def test_start_window_errors(client, factory):
    teacher = factory.user("teacher")
    factory.user("student", username="murid")
    now = utcnow()
    future = factory.exam(teacher, start=now + timedelta(hours=1), end=now + timedelta(hours=2))
    past = factory.exam(teacher, start=now - timedelta(hours=2), end=now - timedelta(hours=1))
    inactive = factory.exam(teacher, is_active=False)
    headers = login(client, "murid")

    codes = []
    for exam in (future, past, inactive):
        r = client.post(f"/exams/{exam.id}/attempts", headers=headers)
        assert r.status_code == 400
        codes.append(r.json()["errors"][0]["code"])
    assert codes == ["exam_not_started", "exam_ended", "exam_inactive"]

    assert client.post("/exams/9999/attempts", headers=headers).status_code == 404


def test_teachers_cannot_take_exams(client, factory):
    teacher = factory.user("teacher", username="guru")
    exam, _ = _exam_with_questions(factory, teacher)
    r = client.post(f"/exams/{exam.id}/attempts", headers=login(client, "guru"))
    assert r.status_code == 403
    assert r.json()["errors"][0]["code"] == "students_only"


def test_submit_someone_elses_attempt(client, factory):
    teacher = factory.user("teacher")
    factory.user("student", username="murid")
    factory.user("student", username="siswa")
    exam, _ = _exam_with_questions(factory, teacher)
    attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=login(client, "murid")).json()["data"]["attemptId"]

    r = client.put(
        f"/exams/{exam.id}/attempts",
        json={"attemptId": attempt_id, "answers": {}},
        headers=login(client, "siswa"),
    )
    assert r.status_code == 404
    assert r.json()["errors"][0]["code"] == "invalid_attempt"


def test_result_visibility(client, factory):
    teacher = factory.user("teacher")
    factory.user("teacher", username="other")
    factory.user("student", username="murid")
    factory.user("student", username="siswa")
    exam, _ = _exam_with_questions(factory, teacher)
    murid = login(client, "murid")
    attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=murid).json()["data"]["attemptId"]

    r = client.get(f"/attempts/{attempt_id}/result", headers=murid)
    assert r.status_code == 404
    assert r.json()["errors"][0]["code"] == "result_not_found"

    client.put(f"/exams/{exam.id}/attempts", json={"attemptId": attempt_id, "answers": {}}, headers=murid)
    assert client.get(f"/attempts/{attempt_id}/result", headers=login(client, "siswa")).status_code == 403
    assert client.get(f"/attempts/{attempt_id}/result", headers=login(client, "other")).status_code == 403
    assert client.get("/attempts/31337/result", headers=murid).status_code == 404


def test_expire_sweep_is_admin_only(client, factory):
    factory.user("admin", username="root")
    teacher = factory.user("teacher", username="guru")
    exam, _ = _exam_with_questions(factory, teacher, duration=1)
    factory.user("student", username="murid")
    client.post(f"/exams/{exam.id}/attempts", headers=login(client, "murid"))

    assert client.post("/attempts/expire", headers=login(client, "guru")).status_code == 403

    r = client.post("/attempts/expire", headers=login(client, "root"))
    assert r.status_code == 200
    # a one-minute exam started a moment ago is not overdue yet
    assert r.json()["data"]["expired"] == 0
