# utils/exporters.py
"""
Export helpers for the normalized collaborator permission records.

Writes the structured (JSON) and tabular (CSV) artifacts, hands their paths
to the GitHub Actions workflow for upload, and posts a Markdown rendering
of the table as a one-shot, immediately closed issue.
"""
import os
import logging
import time
from datetime import datetime
from typing import List, Optional, Sequence

import pandas as pd
from github import Auth, Github

from .normalizer import PermissionRecord
from .script_utils import write_json_file

logger = logging.getLogger(__name__)

EXPORT_HEADER = ["enterprise", "organization", "repo", "user", "login", "permission"]
ARTIFACT_NAME_PREFIX = "user-report"
MAX_ISSUE_BODY_LENGTH = 65536 # GitHub rejects issue bodies longer than this
TRUNCATION_NOTICE = "\n\n_Table truncated; download the run artifact for the full report._"

def records_to_dataframe(records: Sequence[PermissionRecord]) -> pd.DataFrame:
    """Builds a DataFrame with exactly the export columns, in record order."""
    if not records:
        return pd.DataFrame(columns=EXPORT_HEADER)
    return pd.DataFrame([tuple(r) for r in records], columns=EXPORT_HEADER)

def write_json_export(records: Sequence[PermissionRecord], filepath: str):
    """Writes the records as a JSON list of objects keyed by the export header."""
    write_json_file([r._asdict() for r in records], filepath)

def write_csv_export(records: Sequence[PermissionRecord], filepath: str) -> str:
    """Writes the records as comma-separated text with a header row and returns that text."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    csv_text = records_to_dataframe(records).to_csv(index=False)
    with open(filepath, 'w', encoding='utf-8', newline='') as f:
        f.write(csv_text)
    logger.info(f"Successfully wrote {len(records)} rows to {filepath}")
    return csv_text

def _markdown_cell(value) -> str:
    if value is None:
        return ""
    return str(value).replace("|", "\\|").replace("\n", " ")

def render_markdown_table(records: Sequence[PermissionRecord]) -> str:
    lines = [
        "| " + " | ".join(EXPORT_HEADER) + " |",
        "|" + "|".join(["---"] * len(EXPORT_HEADER)) + "|",
    ]
    for record in records:
        lines.append("| " + " | ".join(_markdown_cell(v) for v in record) + " |")
    return "\n".join(lines) + "\n"

def publish_artifact_paths(
    paths: List[str],
    run_number: Optional[str],
    github_output_path: Optional[str]
) -> Optional[str]:
    """
    Exposes the artifact files to the GitHub Actions workflow through $GITHUB_OUTPUT
    so an upload-artifact step can pick them up. Returns the artifact name, or
    None when not running inside Actions.
    """
    if not run_number:
        logger.debug("Not running in GitHub Actions, skipping artifact upload.")
        return None
    if not github_output_path:
        logger.warning("GITHUB_RUN_NUMBER is set but GITHUB_OUTPUT is not; cannot hand artifact paths to the workflow.")
        return None

    artifact_name = f"{ARTIFACT_NAME_PREFIX}-{int(time.time() * 1000)}"
    with open(github_output_path, 'a', encoding='utf-8') as f:
        f.write(f"artifact-name={artifact_name}\n")
        f.write(f"artifact-files={','.join(paths)}\n")
    logger.info(f"Published artifact '{artifact_name}' with files: {', '.join(paths)}")
    return artifact_name

def post_results_to_issue(
    token: str,
    repository: str,
    markdown_body: str,
    github_api_url: Optional[str] = None,
    gh_client: Optional[Github] = None
) -> int:
    """
    Creates an issue holding the report table in `owner/repo`, then closes it
    right away. Returns the issue number.
    """
    if gh_client is None:
        if github_api_url:
            gh_client = Github(auth=Auth.Token(token), base_url=github_api_url)
        else:
            gh_client = Github(auth=Auth.Token(token))

    if len(markdown_body) > MAX_ISSUE_BODY_LENGTH:
        logger.warning(f"Report table is {len(markdown_body)} characters; truncating issue body to {MAX_ISSUE_BODY_LENGTH}.")
        cut = markdown_body[:MAX_ISSUE_BODY_LENGTH - len(TRUNCATION_NOTICE)]
        markdown_body = cut[:cut.rfind("\n") + 1].rstrip("\n") + TRUNCATION_NOTICE

    title = f"Collaborator permissions report for {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
    logger.info(f"Posting result to issue {repository}.")
    repo = gh_client.get_repo(repository)
    issue = repo.create_issue(title=title, body=markdown_body)
    logger.info(f"Created issue #{issue.number} in {repository}; closing it.")
    issue.edit(state="closed")
    return issue.number
