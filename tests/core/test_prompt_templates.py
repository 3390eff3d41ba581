from __future__ import annotations

from hirepipeline.core.prompts import (
    RESUME_SUB_SCORES,
    SUBMISSION_RUBRIC,
    assignment_user_prompt,
    rubric_labels,
)


def test_score_weights_add_up_to_their_scales():
    assert sum(RESUME_SUB_SCORES.values()) == 10
    assert sum(SUBMISSION_RUBRIC.values()) == 100
    assert set(rubric_labels()) == set(SUBMISSION_RUBRIC)


def test_assignment_prompt_lists_rubric(make_candidate, backend_job):
    candidate = make_candidate(status="Shortlisted", experience=3)

    prompt = assignment_user_prompt(
        candidate,
        backend_job,
        difficulty="Mid",
        time_limit_hours=72,
        token="capability-token-for-tests-0123456789abcdef",
    )

    assert "Functional correctness: 30 points" in prompt
    assert "Documentation: 10 points" in prompt
    assert "Assignment reference: capabili." in prompt
    assert "Pass threshold: 70/100." in prompt
