from __future__ import annotations

import json
from datetime import timedelta

import pytest
from structlog.testing import capture_logs

from hirepipeline.core import AssignmentPolicy, ResumeEvaluator
from hirepipeline.core.prefilter import NO_KEYWORDS_FEEDBACK
from hirepipeline.errors import ExtractionError, IllegalTransitionError, OracleUnavailableError
from hirepipeline.extraction import TextExtractor

TOKEN = "capability-token-for-tests-0123456789abcdef"


@pytest.fixture
def build_evaluator(store, blobs, clock):
    def factory(oracle, *, with_policy: bool = True, trace: bool = False) -> ResumeEvaluator:
        policy = None
        if with_policy:
            policy = AssignmentPolicy(
                oracle=oracle, store=store, now_provider=clock, token_factory=lambda: TOKEN
            )
        return ResumeEvaluator(
            store=store,
            blobs=blobs,
            extractor=TextExtractor(vision=oracle),
            oracle=oracle,
            assignment_policy=policy,
            trace_resume_text=trace,
            now_provider=clock,
        )

    return factory


def test_example_scenario_shortlists_and_creates_mid_assignment(
    store, make_candidate, backend_job, stub_oracle, build_evaluator, assignment_text, now
):
    candidate = make_candidate(experience=3)
    oracle = stub_oracle(['{"total_score": 8.7, "skills_score": 4.9}', assignment_text])

    evaluation = build_evaluator(oracle).evaluate(candidate, backend_job)

    assert evaluation.score == 9
    assert evaluation.status == "Shortlisted"
    assert evaluation.shortlisted
    assert evaluation.sub_scores == {"skills_score": 5, "experience_score": None, "fit_score": None}
    assert evaluation.used_fallback is False
    assert evaluation.assignment_error is None

    saved = store.get_candidate(candidate.id)
    assert saved.resume_score == 9
    assert saved.status == "Shortlisted"
    assert saved.resume_sub_scores["skills_score"] == 5
    assert "Resume score: 9/10" in saved.resume_feedback

    assignment = evaluation.assignment
    assert assignment is not None
    assert assignment.difficulty_level == "Mid"
    assert assignment.time_limit_hours == 72
    assert assignment.deadline == now + timedelta(hours=72)
    assert store.assignments_for_candidate(candidate.id)[0].id == assignment.id
    assert len(oracle.calls) == 2


def test_zero_keyword_resume_never_calls_oracle(
    store, make_candidate, backend_job, stub_oracle, build_evaluator
):
    candidate = make_candidate(
        resume="Pastry chef with ten years of experience baking sourdough bread and wedding cakes."
    )
    oracle = stub_oracle()

    evaluation = build_evaluator(oracle).evaluate(candidate, backend_job)

    assert oracle.calls == []
    assert evaluation.short_circuited is True
    assert evaluation.score == 0
    assert evaluation.status == "Not Shortlisted"
    saved = store.get_candidate(candidate.id)
    assert saved.resume_score == 0
    assert saved.status == "Not Shortlisted"
    assert saved.resume_feedback == NO_KEYWORDS_FEEDBACK
    assert store.list_assignments() == []


@pytest.mark.parametrize(
    "response",
    [
        '{"total_score": 9, "skills_score": 5, "summary": "Strong',
        "This candidate is an excellent fit, I would give them a 9.",
        "",
    ],
)
def test_malformed_output_resolves_to_fallback(
    store, make_candidate, backend_job, stub_oracle, build_evaluator, response
):
    candidate = make_candidate()
    oracle = stub_oracle([response])

    evaluation = build_evaluator(oracle).evaluate(candidate, backend_job)

    assert evaluation.used_fallback is True
    assert evaluation.score == 0
    assert evaluation.status == "Not Shortlisted"
    assert "human review" in evaluation.feedback
    assert store.get_candidate(candidate.id).resume_score == 0


@pytest.mark.parametrize(("raw", "expected"), [(14, 10), (-2, 0), ("6.5", 7), (6.49, 6)])
def test_scores_are_clamped_and_rounded(
    store, make_candidate, backend_job, stub_oracle, build_evaluator, raw, expected
):
    candidate = make_candidate()
    oracle = stub_oracle([json.dumps({"total_score": raw})])

    evaluation = build_evaluator(oracle, with_policy=False).evaluate(candidate, backend_job)

    saved = store.get_candidate(candidate.id)
    assert saved.resume_score == expected
    assert (saved.resume_score >= 7) == (saved.status == "Shortlisted")
    assert evaluation.assignment is None


def test_extraction_failure_leaves_candidate_unchanged(
    store, make_candidate, backend_job, stub_oracle, build_evaluator
):
    candidate = make_candidate(resume="too short")
    oracle = stub_oracle()

    with pytest.raises(ExtractionError):
        build_evaluator(oracle).evaluate(candidate, backend_job)

    saved = store.get_candidate(candidate.id)
    assert saved.status == "Applied"
    assert saved.resume_score is None
    assert oracle.calls == []


def test_missing_resume_reference_raises(store, make_candidate, backend_job, stub_oracle, build_evaluator):
    candidate = make_candidate(resume=None)

    with pytest.raises(ExtractionError):
        build_evaluator(stub_oracle()).evaluate(candidate, backend_job)


def test_already_screened_candidate_is_rejected(make_candidate, backend_job, stub_oracle, build_evaluator):
    candidate = make_candidate(status="Shortlisted")
    oracle = stub_oracle()

    with pytest.raises(IllegalTransitionError):
        build_evaluator(oracle).evaluate(candidate, backend_job)

    assert oracle.calls == []


def test_oracle_outage_propagates_without_writes(
    store, make_candidate, backend_job, stub_oracle, build_evaluator
):
    candidate = make_candidate()
    oracle = stub_oracle([OracleUnavailableError("oracle rate limit exceeded", status=429)])

    with pytest.raises(OracleUnavailableError):
        build_evaluator(oracle).evaluate(candidate, backend_job)

    assert store.get_candidate(candidate.id).status == "Applied"


def test_assignment_failure_keeps_shortlist_decision(
    store, make_candidate, backend_job, stub_oracle, build_evaluator
):
    candidate = make_candidate()
    oracle = stub_oracle(['{"total_score": 8}', "Too short."])

    evaluation = build_evaluator(oracle).evaluate(candidate, backend_job)

    assert evaluation.status == "Shortlisted"
    assert evaluation.assignment is None
    assert "too short" in evaluation.assignment_error
    assert store.get_candidate(candidate.id).status == "Shortlisted"
    assert store.list_assignments() == []


def test_trace_flag_logs_resume_preview(
    make_candidate, backend_job, stub_oracle, build_evaluator, resume_text
):
    candidate = make_candidate()
    oracle = stub_oracle(['{"total_score": 3}'])

    with capture_logs() as logs:
        build_evaluator(oracle, trace=True).evaluate(candidate, backend_job)

    traces = [entry for entry in logs if entry["event"] == "resume.text"]
    assert len(traces) == 1
    assert traces[0]["candidate_id"] == candidate.id
    assert traces[0]["preview"].startswith("Backend engineer")
    assert traces[0]["chars"] == len(resume_text)
