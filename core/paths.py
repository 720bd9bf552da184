# ============================================================================
# STORAGE PATH CONVENTIONS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Artifact path construction and file-name parsing
# PURPOSE: One place for the storage layout of dialectic artifacts
# CREATED: 18 OCT 2026
# ============================================================================
"""
Storage Path Conventions

Artifacts live under::

    projects/{project_id}/sessions/{session_id}/iteration_{n}/{stage_slug}/

Contribution files are named ``{model_slug}_{attempt}_{document_key}.{ext}``,
with a ``_raw`` suffix before the extension for the unparsed model response.
The resolver recovers ``document_key`` from these names when a row has no
dedicated document_key column value.
"""

import re
from dataclasses import dataclass
from typing import Optional

_CONTRIBUTION_FILE_RE = re.compile(
    r"^(?P<model_slug>.+?)_(?P<attempt>\d+)_(?P<document_key>[A-Za-z0-9][\w\-]*?)(?P<raw>_raw)?$"
)

SEED_PROMPT_FILE_NAME = "seed_prompt.md"


@dataclass(frozen=True)
class ParsedFileName:
    """Parts recovered from a contribution file name."""
    model_slug: str
    attempt_count: int
    document_key: str
    is_raw: bool
    extension: str


def parse_file_name(file_name: Optional[str]) -> Optional[ParsedFileName]:
    """
    Split a contribution file name into its parts.

    Returns None when the name does not follow the convention.

    Example:
        >>> parse_file_name("claude-3-opus_0_business_case.md").document_key
        'business_case'
    """
    if not file_name:
        return None

    stem, dot, extension = file_name.rpartition(".")
    if not dot:
        stem, extension = file_name, ""

    match = _CONTRIBUTION_FILE_RE.match(stem)
    if not match:
        return None

    return ParsedFileName(
        model_slug=match.group("model_slug"),
        attempt_count=int(match.group("attempt")),
        document_key=match.group("document_key"),
        is_raw=match.group("raw") is not None,
        extension=extension,
    )


def stage_directory(
    project_id: str,
    session_id: str,
    iteration_number: int,
    stage_slug: str,
) -> str:
    return f"projects/{project_id}/sessions/{session_id}/iteration_{iteration_number}/{stage_slug}"


def feedback_file_name(stage_slug: str) -> str:
    return f"user_feedback_{stage_slug}.md"


def feedback_path(project_id: str, session_id: str, iteration_number: int, stage_slug: str) -> str:
    directory = stage_directory(project_id, session_id, iteration_number, stage_slug)
    return f"{directory}/{feedback_file_name(stage_slug)}"


def seed_prompt_path(project_id: str, session_id: str, iteration_number: int, stage_slug: str) -> str:
    directory = stage_directory(project_id, session_id, iteration_number, stage_slug)
    return f"{directory}/{SEED_PROMPT_FILE_NAME}"


__all__ = [
    "ParsedFileName",
    "parse_file_name",
    "stage_directory",
    "feedback_file_name",
    "feedback_path",
    "seed_prompt_path",
    "SEED_PROMPT_FILE_NAME",
]
