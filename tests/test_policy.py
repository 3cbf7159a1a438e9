from types import SimpleNamespace

import policy


def _who(role, uid):
    return SimpleNamespace(role=role, id=uid)


ADMIN = _who("admin", 1)
TEACHER = _who("teacher", 2)
OTHER_TEACHER = _who("teacher", 3)
STUDENT = _who("student", 4)


def test_can_manage_exam_only_owner_or_admin():
    for owner in range(1, 20):
        for tid in range(1, 20):
            assert policy.can_manage_exam(_who("teacher", tid), owner) is (tid == owner)
        assert policy.can_manage_exam(ADMIN, owner) is True
        assert policy.can_manage_exam(STUDENT, owner) is False


def test_can_access_exam():
    assert policy.can_access_exam(ADMIN, 99)
    assert policy.can_access_exam(TEACHER, 2)
    assert not policy.can_access_exam(OTHER_TEACHER, 2)
    assert policy.can_access_exam(STUDENT, 2)
    assert not policy.can_access_exam(None, 2)


def test_answer_key_gate():
    assert policy.can_view_answer_key(ADMIN)
    assert policy.can_view_answer_key(TEACHER)
    assert not policy.can_view_answer_key(STUDENT)
    assert policy.can_view_answer_key(STUDENT, review=True)


def test_role_gates():
    assert policy.can_take_exam(STUDENT) and not policy.can_take_exam(TEACHER)
    assert policy.can_author_exams(TEACHER) and policy.can_author_exams(ADMIN)
    assert not policy.can_author_exams(STUDENT)
    assert policy.can_register_users(ADMIN) and not policy.can_register_users(TEACHER)


def test_can_view_result():
    assert policy.can_view_result(STUDENT, student_id=4, owner_id=2)
    assert not policy.can_view_result(_who("student", 5), student_id=4, owner_id=2)
    assert policy.can_view_result(TEACHER, student_id=4, owner_id=2)
    assert not policy.can_view_result(OTHER_TEACHER, student_id=4, owner_id=2)
    assert policy.can_view_result(ADMIN, student_id=4, owner_id=2)
