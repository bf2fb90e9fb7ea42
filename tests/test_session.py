import random

from examplayer.session import ExamSession

from conftest import make_exam, mcq


def test_new_session_starts_at_the_beginning(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    assert session.current_index == 0
    assert session.ledger.answers == {}
    assert session.ledger.correctness == {}
    assert session.is_complete is False
    assert session.can_go_previous is False
    assert session.can_go_next is False


def test_submit_records_answer_and_verdict(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    assert session.submit_answer("b") is True
    assert session.ledger.answers == {0: "b"}
    assert session.ledger.correctness == {0: True}
    assert session.can_go_next


def test_resubmit_overwrites(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    session.submit_answer("a")
    session.submit_answer("b")
    assert session.ledger.answers[0] == "b"
    assert session.ledger.correctness[0] is True


def test_next_at_last_question_completes(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    for _ in range(3):
        session.go_to_next()
    assert session.current_index == 3
    assert session.is_complete is False
    session.go_to_next()
    assert session.current_index == 3
    assert session.is_complete is True
    assert session.ledger.completed_at is not None


def test_previous_at_first_question_is_a_no_op(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.go_to_previous()
    session.go_to_previous()
    assert session.current_index == 0
    assert session.is_complete is False


def test_previous_undoes_next_from_interior(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.go_to_next()
    for _ in range(2):
        start = session.current_index
        session.go_to_next()
        session.go_to_previous()
        assert session.current_index == start
        session.go_to_next()


def test_skip_without_answer_leaves_ledger_empty(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.skip()
    assert session.current_index == 1
    assert 0 not in session.ledger.answers
    assert 0 not in session.ledger.correctness


def test_skip_after_answer_keeps_it(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.submit_answer("a")
    session.skip()
    assert session.ledger.answers == {0: "a"}


def test_jump_reopens_a_completed_exam(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.submit_answer("b")
    session.finish()
    assert session.is_complete
    assert session.jump_to(0)
    assert session.is_complete is False
    assert session.current_index == 0
    assert session.ledger.answers == {0: "b"}
    assert session.ledger.correctness == {0: False}


def test_jump_out_of_range_is_ignored(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.finish()
    assert session.jump_to(9) is False
    assert session.jump_to(-1) is False
    assert session.is_complete


def test_previous_does_not_leave_complete(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    for _ in range(4):
        session.go_to_next()
    assert session.is_complete
    session.go_to_previous()
    assert session.is_complete
    assert session.current_index == 3


def test_retry_restores_initial_ledger(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    session.submit_answer("b")
    session.go_to_next()
    session.submit_answer("no")
    session.finish()
    session.retry()
    assert session.ledger.answers == {}
    assert session.ledger.correctness == {}
    assert session.ledger.current_exercise_index == 0
    assert session.ledger.current_flashcard_index == 0
    assert session.is_complete is False


def test_empty_exam_is_complete_immediately() -> None:
    session = ExamSession(make_exam([]))
    assert session.is_complete
    assert session.current_exercise is None
    assert session.submit_answer("x") is None
    assert session.ledger.answers == {}
    session.retry()
    assert session.is_complete


def test_flashcard_self_grade_is_stored_directly() -> None:
    cards = [{"type": "flashcard", "content": f"q{i}", "answer": f"a{i}"} for i in range(4)]
    session = ExamSession(make_exam(cards, mode="flashcard"))
    session.go_to_next()
    session.go_to_next()
    assert session.submit_answer("wrong", False) is False
    assert session.ledger.correctness == {2: False}
    assert session.ledger.answers == {2: "wrong"}


def test_flashcard_mode_self_grades_any_exercise_type() -> None:
    session = ExamSession(make_exam([mcq(answer="a")], mode="flashcard"))
    assert session.submit_answer("right") is True
    assert session.ledger.correctness[0] is True


def test_unjudgeable_answer_is_recorded_without_verdict() -> None:
    session = ExamSession(make_exam([{"type": "essay", "content": "Discuss.", "answer": "x"}]))
    assert session.submit_answer("x") is None
    assert session.ledger.answers == {0: "x"}
    assert session.ledger.correctness == {}
    assert session.progress() == ["pending"]


def test_unjudgeable_resubmission_drops_old_verdict() -> None:
    exam = make_exam(
        [{"type": "fill-in", "content": "a ___ b ___", "options": ["x", "y"], "answer": "x,y"}]
    )
    session = ExamSession(exam)
    session.submit_answer("x,y")
    assert session.ledger.correctness == {0: True}
    session.submit_answer("x,y", None)
    assert session.ledger.correctness == {0: True}
    exam.exercises[0].answer = "x"
    session.submit_answer("x,y")
    assert session.ledger.correctness == {}
    assert set(session.ledger.correctness) <= set(session.ledger.answers)


def test_progress_reports_each_question(mcq_exam) -> None:
    session = ExamSession(mcq_exam)
    session.submit_answer("a")
    session.go_to_next()
    session.submit_answer("b")
    assert session.progress() == ["correct", "incorrect", "unanswered", "unanswered"]


def test_fill_in_matcher_is_kept_per_question(mixed_exam) -> None:
    session = ExamSession(mixed_exam, rng=random.Random(0))
    assert session.fill_in() is None
    session.jump_to(2)
    matcher = session.fill_in()
    assert matcher is session.fill_in()
    matcher.assign(0, "dog")
    matcher.assign(1, "fox")
    result = session.check_fill_in()
    assert result.all_correct is False
    assert session.ledger.answers[2] == "dog,fox"
    assert session.ledger.correctness[2] is False


def test_check_fill_in_correct(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    session.jump_to(2)
    session.fill_in().assign(0, "fox")
    session.fill_in().assign(1, "dog")
    assert session.check_fill_in().all_correct is True
    assert session.ledger.correctness[2] is True


def test_retry_rebuilds_fill_in_matchers(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    session.jump_to(2)
    session.fill_in().assign(0, "fox")
    session.retry()
    session.jump_to(2)
    assert session.fill_in().blanks == ["", ""]


def test_view_lesson_passes_through(mixed_exam) -> None:
    seen = []
    session = ExamSession(mixed_exam, on_view_lesson=lambda exam: seen.append(exam.id) or "opened")
    assert session.view_lesson() == "opened"
    assert seen == ["exam-1"]
    assert ExamSession(mixed_exam).view_lesson() is None


def test_flashcard_mode_still_fails_closed_on_unknown_types() -> None:
    session = ExamSession(make_exam([{"type": "essay", "content": "?", "answer": "x"}], mode="flashcard"))
    assert session.submit_answer("right") is None
    assert session.ledger.correctness == {}


def test_flashcard_mode_shows_fill_in_as_a_card() -> None:
    exam = make_exam(
        [{"type": "fill-in", "content": "a ___ b ___", "options": ["x", "y"], "answer": "x"}],
        mode="flashcard",
    )
    session = ExamSession(exam)
    assert session.fill_in() is None
    assert session.check_fill_in() is None
    assert session.ledger.correctness == {}


def test_exercise_mode_keeps_unjudgeable_fill_in_undefined() -> None:
    exam = make_exam([{"type": "fill-in", "content": "a ___ b ___", "options": ["x", "y"], "answer": "x"}])
    session = ExamSession(exam)
    session.fill_in().assign(0, "x")
    session.fill_in().assign(1, "y")
    result = session.check_fill_in()
    assert result.filled is True
    assert result.all_correct is None
    assert session.ledger.answers == {0: "x,y"}
    assert session.ledger.correctness == {}


def test_complete_exam_ignores_answers_and_fill_in() -> None:
    exam = make_exam(
        [mcq(), {"type": "fill-in", "content": "a ___", "options": ["x", "y"], "answer": "x"}]
    )
    session = ExamSession(exam)
    session.go_to_next()
    session.go_to_next()
    assert session.is_complete
    assert session.current_index == 1
    assert session.fill_in() is None
    assert session.check_fill_in() is None
    assert session.submit_answer("y") is None
    assert session.ledger.answers == {}
    assert session.analytics().incorrect_count == 0


def test_partial_fill_in_check_is_not_recorded(mixed_exam) -> None:
    session = ExamSession(mixed_exam)
    session.jump_to(2)
    session.fill_in().assign(0, "fox")
    result = session.check_fill_in()
    assert result.filled is False
    assert 2 not in session.ledger.answers
    assert 2 not in session.ledger.correctness
    assert session.can_go_next is False
