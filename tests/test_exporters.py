import json
from unittest.mock import MagicMock

from utils import exporters
from utils.normalizer import PermissionRecord

RECORDS = [
    PermissionRecord(None, "acme", "r1", "Alice", "alice", "admin"),
    PermissionRecord(None, "acme", "r1", None, "bob", "read"),
]


def test_csv_has_header_and_empty_enterprise_cell(tmp_path):
    target = tmp_path / "out" / "raw-data.csv"
    text = exporters.write_csv_export(RECORDS, str(target))

    lines = target.read_text(encoding="utf-8").splitlines()
    assert text == target.read_text(encoding="utf-8")
    assert lines == [
        "enterprise,organization,repo,user,login,permission",
        ",acme,r1,Alice,alice,admin",
        ",acme,r1,,bob,read",
    ]


def test_csv_without_records_is_header_only(tmp_path):
    target = tmp_path / "raw-data.csv"
    exporters.write_csv_export([], str(target))
    assert target.read_text(encoding="utf-8").splitlines() == ["enterprise,organization,repo,user,login,permission"]


def test_csv_quotes_fields_with_commas(tmp_path):
    target = tmp_path / "raw-data.csv"
    exporters.write_csv_export([PermissionRecord("ent", "o", "r", "Doe, Jane", "jd", "write")], str(target))
    assert target.read_text(encoding="utf-8").splitlines()[1] == 'ent,o,r,"Doe, Jane",jd,write'


def test_json_is_list_of_objects(tmp_path):
    target = tmp_path / "raw-data.json"
    exporters.write_json_export(RECORDS, str(target))

    data = json.loads(target.read_text(encoding="utf-8"))
    assert data[0] == {
        "enterprise": None, "organization": "acme", "repo": "r1",
        "user": "Alice", "login": "alice", "permission": "admin",
    }
    assert len(data) == 2


def test_markdown_table_escapes_pipes():
    table = exporters.render_markdown_table([PermissionRecord(None, "o", "r", "a|b", "ab", "read")])
    lines = table.splitlines()
    assert lines[0] == "| enterprise | organization | repo | user | login | permission |"
    assert lines[1] == "|---|---|---|---|---|---|"
    assert lines[2] == "|  | o | r | a\\|b | ab | read |"


class TestPublishArtifactPaths:
    def test_outside_actions_does_nothing(self, tmp_path):
        output = tmp_path / "github_output"
        assert exporters.publish_artifact_paths(["a.json"], None, str(output)) is None
        assert not output.exists()

    def test_missing_output_file(self):
        assert exporters.publish_artifact_paths(["a.json"], "7", None) is None

    def test_writes_name_and_files(self, tmp_path):
        output = tmp_path / "github_output"
        name = exporters.publish_artifact_paths(["data/raw-data.json", "data/raw-data.csv"], "7", str(output))

        assert name.startswith("user-report-")
        assert output.read_text(encoding="utf-8").splitlines() == [
            f"artifact-name={name}",
            "artifact-files=data/raw-data.json,data/raw-data.csv",
        ]


class TestPostResultsToIssue:
    def test_creates_then_closes_issue(self):
        gh_client = MagicMock()
        issue = gh_client.get_repo.return_value.create_issue.return_value
        issue.number = 42

        number = exporters.post_results_to_issue("tkn", "acme/reports", "| table |\n", gh_client=gh_client)

        assert number == 42
        gh_client.get_repo.assert_called_once_with("acme/reports")
        _, kwargs = gh_client.get_repo.return_value.create_issue.call_args
        assert kwargs["title"].startswith("Collaborator permissions report for ")
        assert kwargs["body"] == "| table |\n"
        issue.edit.assert_called_once_with(state="closed")

    def test_long_body_is_truncated(self):
        gh_client = MagicMock()
        body = exporters.render_markdown_table(
            [PermissionRecord(None, "org", f"repo-{i}", "User", f"user-{i}", "read") for i in range(3000)]
        )
        assert len(body) > exporters.MAX_ISSUE_BODY_LENGTH

        exporters.post_results_to_issue("tkn", "acme/reports", body, gh_client=gh_client)

        _, kwargs = gh_client.get_repo.return_value.create_issue.call_args
        assert len(kwargs["body"]) <= exporters.MAX_ISSUE_BODY_LENGTH
        assert kwargs["body"].endswith(exporters.TRUNCATION_NOTICE)
