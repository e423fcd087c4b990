import asyncio
import base64
import httpx
import pytest
from repograde.probes.github import RepositoryProbe
from repograde.models.snapshot import RepositoryIdentifier
from repograde.errors import RepositoryNotFound, UpstreamError

IDENT = RepositoryIdentifier(owner="acme", name="widget")
REPO = "/repos/acme/widget"

META = {
    "description": "A widget service",
    "stargazers_count": 42,
    "forks_count": 7,
    "open_issues_count": 3,
}

def readme_payload(text):
    return {"content": base64.b64encode(text.encode()).decode(), "encoding": "base64"}

def make_transport(routes, seen=None):
    """
    `routes` maps a path (plus query) to either a JSON body or an (status, body) tuple.
    Unknown paths answer 404.
    """
    def handler(request: httpx.Request):
        key = request.url.path + (f"?{request.url.query.decode()}" if request.url.query else "")
        if seen is not None:
            seen.append(request)
        route = routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=route)
    return httpx.MockTransport(handler)

def full_routes(tree_branch="main"):
    return {
        REPO: META,
        f"{REPO}/languages": {"Python": 9000, "Dockerfile": 120},
        f"{REPO}/git/trees/{tree_branch}?recursive=1": {"tree": [
            {"path": "requirements.txt", "type": "blob"},
            {"path": "app", "type": "tree"},
            {"path": "app/api/routes.py", "type": "blob"},
            {"path": "app/api/v1/users.py", "type": "blob"},
        ]},
        f"{REPO}/readme": readme_payload("# Widget\nRuns widgets."),
    }

def fetch(routes, **kwargs):
    probe = RepositoryProbe(transport=make_transport(routes, kwargs.pop("seen", None)), **kwargs)
    return asyncio.run(probe.fetch_snapshot(IDENT))

def test_full_snapshot():
    snapshot = fetch(full_routes())
    assert snapshot.owner == "acme" and snapshot.name == "widget"
    assert snapshot.description == "A widget service"
    assert (snapshot.star_count, snapshot.fork_count, snapshot.open_issue_count) == (42, 7, 3)
    assert snapshot.language_byte_counts == {"Python": 9000, "Dockerfile": 120}
    assert snapshot.file_paths == ["requirements.txt", "app", "app/api/routes.py"]
    assert snapshot.readme_excerpt == "# Widget\nRuns widgets."
    assert snapshot.has_package_json is False

def test_tree_falls_back_to_master():
    snapshot = fetch(full_routes(tree_branch="master"))
    assert snapshot.file_paths[0] == "requirements.txt"

def test_secondary_failures_degrade_to_empty():
    routes = {
        REPO: {**META, "description": None},
        f"{REPO}/languages": (500, {"message": "boom"}),
        f"{REPO}/readme": (404, {"message": "Not Found"}),
    }
    snapshot = fetch(routes)
    assert snapshot.description == ""
    assert snapshot.language_byte_counts == {}
    assert snapshot.file_paths == []
    assert snapshot.readme_excerpt == ""

def test_scenario_d_metadata_failure_is_fatal():
    routes = full_routes()
    routes[REPO] = (404, {"message": "Not Found"})
    with pytest.raises(RepositoryNotFound) as exc_info:
        fetch(routes)
    assert exc_info.value.to_payload() == {"error": "Repository not found or private"}

def test_metadata_transport_error_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    probe = RepositoryProbe(transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError) as exc_info:
        probe.fetch(IDENT)
    assert exc_info.value.message == "Failed to fetch repository data"
    assert "connection refused" in exc_info.value.details

def test_bearer_token_on_every_request():
    seen = []
    fetch(full_routes(), token="ghp_secret", seen=seen)
    # metadata, languages, tree (main), readme
    assert len(seen) == 4
    assert all(r.headers["Authorization"] == "Bearer ghp_secret" for r in seen)

def test_no_token_sends_no_authorization():
    seen = []
    fetch(full_routes(), seen=seen)
    assert seen and all("Authorization" not in r.headers for r in seen)

def test_tree_cap_and_package_json_flag():
    routes = full_routes()
    routes[f"{REPO}/git/trees/main?recursive=1"] = {"tree": (
        [{"path": "package.json", "type": "blob"}]
        + [{"path": f"src/{i}.ts", "type": "blob"} for i in range(300)]
    )}
    snapshot = fetch(routes)
    assert len(snapshot.file_paths) == 100
    assert snapshot.has_package_json is True

def test_odd_tree_and_readme_shapes_degrade():
    routes = full_routes()
    routes[f"{REPO}/git/trees/main?recursive=1"] = {"tree": [
        "package.json",
        None,
        {"path": 7, "type": "blob"},
        {"path": "index.js", "type": "blob"},
    ]}
    routes[f"{REPO}/readme"] = {"content": 12345, "encoding": "base64"}
    snapshot = fetch(routes)
    assert snapshot.file_paths == ["index.js"]
    assert snapshot.has_package_json is False
    assert snapshot.readme_excerpt == ""
