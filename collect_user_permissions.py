# collect_user_permissions.py
"""
Main script for the collaborator permissions report.

Collects every repository collaborator and their permission level across a
GitHub organization, or across all organizations of a GitHub enterprise,
then writes the result as JSON and CSV, hands the files to the GitHub
Actions workflow for upload and optionally posts the table as an issue.
"""

import logging
import argparse
import sys
import time
from typing import List, Optional

from clients import github_connector
from clients.graphql_clients import github_gql
from utils import Config, ConfigurationError, CollectionState, normalize_collection_state
from utils.exporters import (
    write_json_export, write_csv_export, render_markdown_table,
    publish_artifact_paths, post_results_to_issue
)
from utils.logging_config import setup_global_logging
from utils.script_utils import format_duration, is_placeholder_token

logger = logging.getLogger(__name__)

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collect repository collaborators and their permissions for a GitHub organization or enterprise.")
    target = parser.add_argument_group("target (mutually exclusive)")
    target.add_argument("--org", help="Organization login to scan.")
    target.add_argument("--enterprise", help="Enterprise slug whose organizations are scanned.")
    parser.add_argument("--token", help="GitHub token with read access to organization repositories.")
    parser.add_argument("--issue", action="store_true", default=None, help="Post the report table as an issue (created and closed).")
    parser.add_argument("--repository", help="owner/repo to post the issue into.")
    parser.add_argument("--output-dir", help="Directory for the JSON and CSV artifacts.")
    parser.add_argument("--ghes-url", help="Base URL of a GitHub Enterprise Server instance.")
    return parser

def apply_cli_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    if args.org:
        cfg.ORGANIZATION = args.org
    if args.enterprise:
        cfg.ENTERPRISE = args.enterprise
    if args.token:
        cfg.TOKEN = args.token
    if args.issue:
        cfg.POST_TO_ISSUE = True
    if args.repository:
        cfg.REPOSITORY = args.repository
    if args.output_dir:
        cfg.OUTPUT_DIR = args.output_dir
    if args.ghes_url:
        cfg.GITHUB_GRAPHQL_URL = args.ghes_url
    return cfg

def resolve_organizations(client, cfg: Config, main_logger: logging.Logger) -> List[str]:
    if cfg.ENTERPRISE:
        main_logger.info(f"Resolving organizations of enterprise {cfg.ENTERPRISE}.")
        return github_connector.expand_enterprise_organizations(client, cfg.ENTERPRISE, logger_instance=main_logger)
    return [cfg.ORGANIZATION]

def export_results(state: CollectionState, cfg: Config, main_logger: logging.Logger) -> int:
    """Normalizes the frozen state and writes every export. Returns the number of records."""
    records = normalize_collection_state(state, enterprise=cfg.ENTERPRISE)

    write_json_export(records, cfg.JSON_EXPORT_FILEPATH)
    write_csv_export(records, cfg.CSV_EXPORT_FILEPATH)

    publish_artifact_paths(
        [cfg.JSON_EXPORT_FILEPATH, cfg.CSV_EXPORT_FILEPATH],
        run_number=cfg.GITHUB_RUN_NUMBER,
        github_output_path=cfg.GITHUB_OUTPUT
    )

    if cfg.POST_TO_ISSUE:
        post_results_to_issue(cfg.TOKEN, cfg.REPOSITORY, render_markdown_table(records), github_api_url=cfg.GITHUB_REST_URL)
    else:
        main_logger.info(f"Skipping posting result to issue {cfg.REPOSITORY}.")
    return len(records)

# --- Main CLI Function ---
def main_cli(argv: Optional[List[str]] = None):
    script_start_time = time.time()

    args = build_arg_parser().parse_args(argv)
    cfg = apply_cli_overrides(Config(), args)
    setup_global_logging(cfg.LOG_LEVEL, cfg.LOG_FILE)
    main_logger = logging.getLogger(__name__)

    try:
        cfg.validate()
    except ConfigurationError as cfg_err:
        main_logger.error(f"Configuration error: {cfg_err}")
        sys.exit(1)
    if is_placeholder_token(cfg.TOKEN):
        main_logger.error("GitHub token not found. Please provide it via --token or the INPUT_TOKEN/TOKEN/GITHUB_TOKEN environment variables.")
        sys.exit(1)

    client = github_gql.get_github_gql_client(cfg.TOKEN, cfg.GITHUB_GRAPHQL_URL, retries=cfg.GQL_TRANSPORT_RETRIES)
    github_gql.fetch_rate_limit_status_graphql(client, logger_instance=main_logger)

    organizations = resolve_organizations(client, cfg, main_logger)
    if not organizations:
        main_logger.warning("No organizations to scan.")

    state = github_connector.collect_all_organizations(
        client, organizations,
        collaborators_page_size=cfg.COLLABORATORS_PAGE_SIZE,
        logger_instance=main_logger
    )
    state.freeze()

    try:
        total_records = export_results(state, cfg, main_logger)
    except Exception as export_err:
        main_logger.critical(f"Export failed: {export_err}", exc_info=True)
        sys.exit(1)

    github_gql.fetch_rate_limit_status_graphql(client, logger_instance=main_logger)
    main_logger.info(f"Exported {total_records} records for {len(state)} organizations.")
    main_logger.info(f"Total script execution time: {format_duration(time.time() - script_start_time)}.")
    main_logger.info("----------------------------------------------------------------------")
    sys.exit(0)

if __name__ == "__main__":
    main_cli()
