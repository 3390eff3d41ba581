"""Prompt templates sent to the scoring and generation oracles."""

from __future__ import annotations

from typing import Mapping

from ..schemas import Assignment, Candidate, Job

RESUME_SUB_SCORES: dict[str, int] = {
    "skills_score": 5,
    "experience_score": 3,
    "fit_score": 2,
}
"""Résumé sub-score maxima; 50% skills, 30% experience, 20% fit of a 10 point total."""

SUBMISSION_RUBRIC: dict[str, int] = {
    "functional_correctness": 30,
    "code_quality": 20,
    "architecture_design": 15,
    "security_reliability": 15,
    "performance": 10,
    "documentation": 10,
}
"""Submission rubric weights in points; the total is 100."""

_RUBRIC_LABELS: dict[str, str] = {
    "functional_correctness": "Functional correctness",
    "code_quality": "Code quality & maintainability",
    "architecture_design": "Architecture & design",
    "security_reliability": "Security & reliability",
    "performance": "Performance",
    "documentation": "Documentation",
}

RESUME_SYSTEM_PROMPT = f"""You are an expert technical recruiter for fintech engineering roles.
Score how well a resume fits a job on a 0-10 scale using fixed weights:
- skills_score: 0-{RESUME_SUB_SCORES['skills_score']} (50%) match of required skills and technologies
- experience_score: 0-{RESUME_SUB_SCORES['experience_score']} (30%) years and depth of relevant experience
- fit_score: 0-{RESUME_SUB_SCORES['fit_score']} (20%) domain and role fit
total_score is the sum of the three sub-scores (0-10).

Respond with a single JSON object and nothing else:
{{
  "skills_score": <number>,
  "experience_score": <number>,
  "fit_score": <number>,
  "total_score": <number>,
  "summary": "<2-3 sentence assessment>",
  "strengths": ["<strength>", "..."],
  "gaps": ["<gap>", "..."],
  "recommendation": "<shortlist or reject, with reasoning>"
}}"""

SUBMISSION_SYSTEM_PROMPT = (
    "You are an expert technical evaluator for fintech companies. Score coding "
    "assignment submissions with this fixed rubric (total 100 points):\n"
    + "\n".join(
        f"- {key}: 0-{points} ({_RUBRIC_LABELS[key]})"
        for key, points in SUBMISSION_RUBRIC.items()
    )
    + "\n\nRULES:\n"
    "- total_score is the sum of the rubric scores (0-100). Pass threshold is 70.\n"
    "- Award zero or near-zero scores when the submission is empty, unreachable, "
    "or unrelated to the assignment.\n"
    "- Calibrate expectations to the stated seniority level.\n\n"
    "Respond with a single JSON object and nothing else:\n"
    "{\n"
    + "".join(f'  "{key}": <number>,\n' for key in SUBMISSION_RUBRIC)
    + '  "total_score": <number>,\n'
    '  "summary": "<overall assessment>",\n'
    '  "strengths": ["<strength>", "..."],\n'
    '  "improvements": ["<improvement>", "..."],\n'
    '  "plagiarism_indicators": "<signs of copied work, or none>",\n'
    '  "recommendation": "<pass or fail with reasoning>"\n'
    "}"
)

ASSIGNMENT_SYSTEM_PROMPT = (
    "You are a technical assignment creator for fintech companies. Create practical, "
    "original, fintech-specific coding challenges that test the core skills of the role."
)

VISION_PROMPT = "Extract ALL text from this document/image. Return only the extracted text, no commentary."


def resume_user_prompt(job: Job, resume_text: str) -> str:
    skills = ", ".join(job.skills_required) or "not specified"
    return (
        f"JOB TITLE: {job.title}\n"
        f"ROLE: {job.role}\n"
        f"REQUIRED EXPERIENCE: {job.experience_required} years\n"
        f"REQUIRED SKILLS: {skills}\n\n"
        f"DESCRIPTION:\n{job.description}\n\n"
        f"REQUIREMENTS:\n{job.requirements}\n\n"
        f"RESUME:\n{resume_text}\n\n"
        "Score this resume against the job using the weighted scale."
    )


def assignment_user_prompt(
    candidate: Candidate,
    job: Job,
    *,
    difficulty: str,
    time_limit_hours: int,
    token: str,
) -> str:
    skills = ", ".join(job.skills_required) or job.role
    rubric = "\n".join(
        f"- {_RUBRIC_LABELS[key]}: {points} points" for key, points in SUBMISSION_RUBRIC.items()
    )
    return (
        f"Generate a unique {difficulty}-level coding assignment for a {job.role} "
        f"position ({job.title}) at a fintech company.\n"
        f"Candidate experience: {candidate.experience:g} years.\n"
        f"Skills to exercise: {skills}.\n"
        f"Time limit: {time_limit_hours} hours.\n"
        f"Assignment reference: {token[:8]}. Make the scenario specific to this reference "
        "so it cannot be reused across candidates.\n\n"
        "The assignment must include:\n"
        "1. A realistic fintech scenario (payments, ledgers, fraud detection, reconciliation, etc.)\n"
        "2. Functional requirements and acceptance criteria\n"
        "3. Two or three reasoning questions the candidate answers in the README\n"
        "4. Submission format: a public repository or deployment URL with a README "
        "containing setup instructions\n"
        "5. This evaluation rubric, verbatim:\n"
        f"{rubric}\n"
        "Pass threshold: 70/100."
    )


def submission_user_prompt(assignment: Assignment, candidate: Candidate, job: Job) -> str:
    skills = ", ".join(job.skills_required) or "not specified"
    return (
        f"Evaluate this {assignment.difficulty_level}-level {candidate.role} submission "
        "using the fixed rubric.\n\n"
        f"ASSIGNMENT:\n{assignment.assignment_text}\n\n"
        f"SUBMISSION URL: {assignment.submission_url}\n\n"
        "CANDIDATE PROFILE:\n"
        f"- Experience: {candidate.experience:g} years\n"
        f"- Role: {candidate.role}\n"
        f"- Expected level: {assignment.difficulty_level}\n\n"
        "JOB REQUIREMENTS:\n"
        f"- Title: {job.title}\n"
        f"- Required skills: {skills}\n\n"
        "If the URL cannot be accessed, say so and score accordingly."
    )


def rubric_labels() -> Mapping[str, str]:
    return dict(_RUBRIC_LABELS)
