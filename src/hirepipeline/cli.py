"""Typer CLI entrypoint for the hiring pipeline."""

from __future__ import annotations

import json
import mimetypes
from dataclasses import asdict
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional

import typer
import yaml
from pydantic import ValidationError

from .container import create_container
from .errors import PipelineError
from .logging import configure_logging
from .pipeline import HiringPipeline, stats_to_dict
from .schemas import Job
from .schemas.config import load_config

app = typer.Typer(help="Candidate evaluation and progression pipeline CLI.")


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    records: Optional[Path] = typer.Option(None, dir_okay=False, help="JSON record store path."),
    blobs: Optional[Path] = typer.Option(None, file_okay=False, help="Directory for uploaded resumes."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
    oracle_endpoint: Optional[str] = typer.Option(None, help="Chat-completions endpoint for the oracle."),
    api_key: Optional[str] = typer.Option(None, envvar="HIREPIPELINE_API_KEY", help="Oracle API key."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Build the pipeline shared by every command."""
    settings: dict[str, Any] = {}
    if config:
        with config.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        try:
            settings = load_config(loaded).to_settings()
        except ValidationError as exc:
            raise typer.BadParameter(f"Invalid config file: {exc}", param_name="config") from exc

    storage = settings.setdefault("storage", {})
    if records:
        storage["records_path"] = str(records)
    if blobs:
        storage["blobs_path"] = str(blobs)
    if audit_log:
        storage["audit_log"] = str(audit_log)
    if oracle_endpoint:
        settings.setdefault("oracle", {})["endpoint"] = oracle_endpoint

    configure_logging(log_level)
    container = create_container(settings=settings, api_key=api_key)
    ctx.obj = container.pipeline()


def _handles_errors(func: Callable[..., None]) -> Callable[..., None]:
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        try:
            func(*args, **kwargs)
        except PipelineError as exc:
            prefix = "Temporary failure, try again later" if exc.retryable else "Error"
            typer.echo(f"{prefix}: {exc}", err=True)
            raise typer.Exit(code=1) from exc

    return wrapper


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _pipeline(ctx: typer.Context) -> HiringPipeline:
    return ctx.obj


@app.command("add-job")
@_handles_errors
def add_job(
    ctx: typer.Context,
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job posting JSON path."),
) -> None:
    """Register a job posting."""
    with job.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"Invalid job JSON: {exc}", param_name="job") from exc
    try:
        record = Job.model_validate(data)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid job: {exc}", param_name="job") from exc
    saved = _pipeline(ctx).register_job(record)
    _echo_json(saved.model_dump(mode="json"))


@app.command()
@_handles_errors
def apply(
    ctx: typer.Context,
    job_id: str = typer.Option(..., help="Job to apply for."),
    name: str = typer.Option(..., help="Candidate name."),
    email: str = typer.Option(..., help="Candidate email."),
    resume: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Resume document."),
    experience: Optional[float] = typer.Option(None, min=0, help="Years of experience."),
    no_evaluate: bool = typer.Option(False, "--no-evaluate", help="Only record the application."),
) -> None:
    """Submit an application and evaluate the resume."""
    mime_type, _ = mimetypes.guess_type(resume.name)
    candidate, evaluation = _pipeline(ctx).submit_application(
        name=name,
        email=email,
        job_id=job_id,
        resume=resume.read_bytes(),
        filename=resume.name,
        mime_type=mime_type,
        experience=experience,
        evaluate=not no_evaluate,
    )
    _echo_json(
        {
            "candidate": candidate.model_dump(mode="json"),
            "evaluation": _resume_evaluation_dict(evaluation) if evaluation else None,
        }
    )


@app.command("evaluate-resume")
@_handles_errors
def evaluate_resume(ctx: typer.Context, candidate_id: str = typer.Argument(...)) -> None:
    """Score a candidate's resume."""
    _echo_json(_resume_evaluation_dict(_pipeline(ctx).evaluate_resume(candidate_id)))


@app.command("create-assignment")
@_handles_errors
def create_assignment(ctx: typer.Context, candidate_id: str = typer.Argument(...)) -> None:
    """Retry assignment generation for a shortlisted candidate."""
    _echo_json(_pipeline(ctx).create_assignment(candidate_id).model_dump(mode="json"))


@app.command()
@_handles_errors
def submit(
    ctx: typer.Context,
    assignment_id: str = typer.Argument(...),
    token: str = typer.Option(..., help="Anti-cheat token from the assignment link."),
    url: str = typer.Option(..., help="Repository or deployment URL."),
) -> None:
    """Submit a solution URL for an assignment."""
    saved = _pipeline(ctx).submit_assignment(assignment_id, token, url)
    _echo_json({"id": saved.id, "status": saved.status, "submitted_at": saved.submitted_at})


@app.command("evaluate-submission")
@_handles_errors
def evaluate_submission(ctx: typer.Context, assignment_id: str = typer.Argument(...)) -> None:
    """Score a submitted assignment."""
    _echo_json(asdict(_pipeline(ctx).evaluate_submission(assignment_id)))


@app.command("resume-text")
@_handles_errors
def resume_text(ctx: typer.Context, candidate_id: str = typer.Argument(...)) -> None:
    """Print the extracted text of a candidate's resume."""
    typer.echo(_pipeline(ctx).resume_text(candidate_id))


@app.command()
@_handles_errors
def stats(ctx: typer.Context) -> None:
    """Print pipeline statistics."""
    _echo_json(stats_to_dict(_pipeline(ctx).stats()))


def _resume_evaluation_dict(evaluation) -> dict[str, Any]:
    payload = asdict(evaluation)
    if evaluation.assignment is not None:
        assignment = evaluation.assignment.model_dump(mode="json")
        payload["assignment"] = {
            "id": assignment["id"],
            "difficulty_level": assignment["difficulty_level"],
            "time_limit_hours": assignment["time_limit_hours"],
            "deadline": assignment["deadline"],
            "anti_cheat_token": assignment["anti_cheat_token"],
        }
    return payload


def main() -> None:
    app()


if __name__ == "__main__":
    main()
