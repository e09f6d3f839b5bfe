import pytest

from triagebot.context import Context
from triagebot.db import dispose_engines
from triagebot.decision import repo as decision_repo
from triagebot.errors import GithubError
from triagebot.github import Issue
from triagebot.scheduler import repo as job_repo
from triagebot.team_data import Team, TeamMember


class FakeGithub:
    def __init__(self, issues=None):
        self.issues = dict(issues or {})
        self.comments = []
        self.labels = []
        self.merged = []

    def get_issue(self, reference):
        if reference not in self.issues:
            raise GithubError(f"fetch issue ({reference}): HTTP 404")
        return self.issues[reference]

    def post_comment(self, issue, body):
        self.comments.append((issue.number, body))

    def add_labels(self, issue, labels):
        self.labels.append((issue.number, list(labels)))

    def merge(self, issue):
        self.merged.append(issue.number)


class FakeTeams:
    def __init__(self, teams=None, fail=False):
        self.teams = dict(teams or {})
        self.fail = fail

    def get_team(self, name):
        if self.fail:
            raise GithubError("fetch teams: connection refused")
        return self.teams.get(name)

    def is_team_member(self, login):
        if self.fail:
            raise GithubError("fetch teams: connection refused")
        return any(m.github == login for t in self.teams.values() for m in t.members)


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{(tmp_path / 'triagebot.db').as_posix()}"
    job_repo.init_db(url)
    decision_repo.init_db(url)
    yield url
    dispose_engines()


@pytest.fixture
def issue():
    return Issue(
        number=7,
        title="Stabilize the thing",
        html_url="https://github.com/o/r/pull/7",
        repository_url="https://api.github.com/repos/o/r",
        is_pull_request=True,
    )


@pytest.fixture
def teams():
    return FakeTeams(
        {
            "lang": Team(name="lang", members=[TeamMember("bob"), TeamMember("alice")]),
            "infra": Team(name="infra", members=[TeamMember("carol")]),
        }
    )


@pytest.fixture
def github(issue):
    return FakeGithub({issue.reference: issue})


@pytest.fixture
def ctx(database_url, github, teams):
    return Context(database_url=database_url, github=github, teams=teams)
