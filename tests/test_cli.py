import json
from unittest.mock import MagicMock

import pytest

import collect_user_permissions
from clients.graphql_clients import github_gql


@pytest.fixture
def cli_env(clean_env):
    clean_env.setattr(collect_user_permissions, "setup_global_logging", lambda *args, **kwargs: None)
    return clean_env


def _use_client(monkeypatch, client):
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(github_gql, "get_github_gql_client", factory)
    return factory


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        collect_user_permissions.main_cli(argv)
    return exc_info.value.code


def test_organization_and_enterprise_together_fail_before_any_call(cli_env):
    factory = _use_client(cli_env, MagicMock())
    assert _run(["--org", "acme", "--enterprise", "ent", "--token", "t"]) == 1
    factory.assert_not_called()


def test_missing_token_fails(cli_env):
    factory = _use_client(cli_env, MagicMock())
    assert _run(["--org", "acme"]) == 1
    factory.assert_not_called()


def test_organization_run_writes_exports(cli_env, acme_client, tmp_path):
    factory = _use_client(cli_env, acme_client)

    assert _run(["--org", "acme", "--token", "t", "--output-dir", str(tmp_path)]) == 0

    factory.assert_called_once_with("t", None, retries=3)
    assert acme_client.calls[0] == ("rateLimit",)
    assert acme_client.calls[-1] == ("rateLimit",)

    csv_lines = (tmp_path / "raw-data.csv").read_text(encoding="utf-8").splitlines()
    assert csv_lines == [
        "enterprise,organization,repo,user,login,permission",
        ",acme,r1,Alice,alice,admin",
        ",acme,r1,Bob,bob,read",
        ",acme,r2,Carol,carol,write",
    ]
    data = json.loads((tmp_path / "raw-data.json").read_text(encoding="utf-8"))
    assert [row["login"] for row in data] == ["alice", "bob", "carol"]


def test_enterprise_run_stamps_enterprise(cli_env, acme_client, tmp_path):
    acme_client.responses[("ent", None)] = {"enterprise": {"organizations": {
        "pageInfo": {"hasNextPage": False, "endCursor": None},
        "nodes": [{"login": "acme"}],
    }}}
    _use_client(cli_env, acme_client)

    assert _run(["--enterprise", "ent", "--token", "t", "--output-dir", str(tmp_path)]) == 0

    csv_lines = (tmp_path / "raw-data.csv").read_text(encoding="utf-8").splitlines()
    assert csv_lines[1] == "ent,acme,r1,Alice,alice,admin"


def test_issue_is_posted_with_markdown_table(cli_env, acme_client, tmp_path):
    _use_client(cli_env, acme_client)
    post = MagicMock(return_value=1)
    cli_env.setattr(collect_user_permissions, "post_results_to_issue", post)

    code = _run(["--org", "acme", "--token", "t", "--output-dir", str(tmp_path),
                 "--issue", "--repository", "acme/reports"])

    assert code == 0
    args, kwargs = post.call_args
    assert args[:2] == ("t", "acme/reports")
    assert "| acme | r2 | Carol | carol | write |" in args[2]
    assert kwargs == {"github_api_url": None}


def test_artifact_paths_are_handed_to_the_workflow(cli_env, acme_client, tmp_path):
    _use_client(cli_env, acme_client)
    output = tmp_path / "github_output"
    cli_env.setenv("GITHUB_RUN_NUMBER", "12")
    cli_env.setenv("GITHUB_OUTPUT", str(output))

    assert _run(["--org", "acme", "--token", "t", "--output-dir", str(tmp_path / "data")]) == 0

    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("artifact-name=user-report-")
    assert lines[1].endswith("raw-data.csv")


def test_export_failure_exits_with_error(cli_env, acme_client, tmp_path):
    _use_client(cli_env, acme_client)
    cli_env.setattr(collect_user_permissions, "write_json_export", MagicMock(side_effect=OSError("disk full")))

    assert _run(["--org", "acme", "--token", "t", "--output-dir", str(tmp_path)]) == 1
