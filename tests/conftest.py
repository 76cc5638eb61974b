import pytest

from tests.gql_fakes import ScriptedClient, collaborator_edge, org_page


@pytest.fixture
def acme_client() -> ScriptedClient:
    """acme: r1 (alice/admin, bob/read over two collaborator pages), r2 (carol/write)."""
    return ScriptedClient({
        ("acme", None, None): org_page("acme", "r1", [collaborator_edge("alice", "admin", "Alice")],
                                       collaborators_next="C1", repositories_next="R1"),
        ("acme", None, "C1"): org_page("acme", "r1", [collaborator_edge("bob", "read", "Bob")],
                                       repositories_next="R1"),
        ("acme", "R1", None): org_page("acme", "r2", [collaborator_edge("carol", "write", "Carol")],
                                       repositories_end="R2"),
    })


CONFIG_ENV_VARS = (
    "INPUT_TOKEN", "TOKEN", "GITHUB_TOKEN",
    "INPUT_ORGANIZATION", "ORGANIZATION", "INPUT_ENTERPRISE", "ENTERPRISE",
    "INPUT_ISSUE", "ISSUE", "GITHUB_REPOSITORY", "GITHUB_GRAPHQL_URL",
    "OutputDir", "ArtifactFileName", "COLLABORATORS_PAGE_SIZE", "GITHUB_GQL_TRANSPORT_RETRIES",
    "LOG_LEVEL", "LOG_FILE", "GITHUB_RUN_NUMBER", "GITHUB_OUTPUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Removes every variable Config reads and keeps a stray .env file out of the picture."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("utils.config.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch
