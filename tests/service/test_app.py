"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from repoprofile.analyzers.team import TeamAnalytics
from repoprofile.organization import OrganizationProfiler
from repoprofile.service.app import create_app
from tests._fixtures.repo_builder import RepoBuilder


def _empty_log(args, cwd, capture_output=False, **kwargs):
    return ""


@pytest.fixture
def factory_calls() -> List[int]:
    return []


@pytest.fixture
def client(factory_calls: List[int]) -> TestClient:
    def _factory() -> OrganizationProfiler:
        factory_calls.append(1)
        return OrganizationProfiler(team_analytics=TeamAnalytics(runner=_empty_log))

    return TestClient(create_app(_factory))


def _python_repo(make_repo: Callable[[str], RepoBuilder], name: str) -> RepoBuilder:
    builder = make_repo(name)
    builder.write(
        {
            "requirements.txt": "Django==3.2.8\n",
            "README.md": "# Service\n",
            "app/views.py": """
            import os

            def index(request):
                return os.getcwd()
            """,
        }
    )
    return builder


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert "multi-repository-analysis" in payload["capabilities"]


def test_profile_endpoint(client: TestClient, make_repo) -> None:
    repo = _python_repo(make_repo, "svc")

    response = client.post("/profile", json={"path": str(repo.path()), "options": {"max_depth": 3}})

    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "svc"
    assert [item["language"] for item in payload["languages"]][0] == "python"
    django = next(item for item in payload["frameworks"] if item["name"] == "django")
    assert django["version"] == "3.2.8"


def test_profile_missing_path_is_404(client: TestClient, tmp_path: Path) -> None:
    response = client.post("/profile", json={"path": str(tmp_path / "missing")})

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


def test_profile_file_path_is_400(client: TestClient, tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    response = client.post("/profile", json={"path": str(target)})

    assert response.status_code == 400


def test_organization_endpoint(client: TestClient, make_repo) -> None:
    first = _python_repo(make_repo, "first")
    second = _python_repo(make_repo, "second")

    response = client.post(
        "/organization", json={"paths": [str(first.path()), str(second.path())]}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["repository_count"] == 2
    assert payload["consistency_score"] == pytest.approx(100.0)
    assert "framework:django" in payload["shared_technologies"]
    assert payload["best_practice_adoption"]["documentation"] == pytest.approx(100.0)


def test_organization_without_repositories_is_422(client: TestClient, tmp_path: Path) -> None:
    (tmp_path / "plain").mkdir()

    response = client.post("/organization", json={"paths": [str(tmp_path)]})

    assert response.status_code == 422
    assert "No repositories found" in response.json()["detail"]


def test_compliance_endpoint(client: TestClient, make_repo) -> None:
    repo = _python_repo(make_repo, "svc")

    response = client.post("/compliance", json={"paths": [str(repo.path())]})

    assert response.status_code == 200
    payload = response.json()
    assert payload["standards_adoption"]["documentation"] == pytest.approx(100.0)
    assert "linting" in payload["violations"]["svc"]


def test_profiler_is_created_once(client: TestClient, factory_calls: List[int]) -> None:
    client.get("/health")
    client.get("/health")

    assert factory_calls == [1]
