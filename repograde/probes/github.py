import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional, List
import httpx
from repograde.models.snapshot import RepositoryIdentifier, RepositorySnapshot
from repograde.probes.normalizer import shape_file_tree, decode_readme
from repograde.errors import RepositoryNotFound, UpstreamError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
TREE_BRANCHES = ("main", "master")

@dataclass
class FetchOutcome:
    """Result of one sub-request: either a value or the error that replaced it."""
    name: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default

async def _settle(name: str, coro) -> FetchOutcome:
    try:
        return FetchOutcome(name, value=await coro)
    except (httpx.HTTPError, ValueError) as e:
        return FetchOutcome(name, error=e)

class RepositoryProbe:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "repograde/0.1 (+https://github.com)"
        }
        if self.token:
            self.auth_headers = {
                **self.headers,
                "Authorization": f"Bearer {self.token}"
            }
        else:
            self.auth_headers = self.headers

    def fetch(self, identifier: RepositoryIdentifier) -> RepositorySnapshot:
        return asyncio.run(self.fetch_snapshot(identifier))

    async def fetch_snapshot(self, identifier: RepositoryIdentifier) -> RepositorySnapshot:
        """
        Runs the four sub-requests concurrently and waits for all of them.
        Only the metadata request is allowed to fail the snapshot.
        """
        client_kwargs = {"headers": self.auth_headers, "follow_redirects": True}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout

        repo_url = f"{self.base_url}/repos/{identifier.owner}/{identifier.name}"

        async with httpx.AsyncClient(**client_kwargs) as client:
            meta, languages, tree, readme = await asyncio.gather(
                _settle("metadata", self._get_json(client, repo_url)),
                _settle("languages", self._get_json(client, f"{repo_url}/languages")),
                _settle("tree", self._fetch_tree(client, repo_url)),
                _settle("readme", self._get_json(client, f"{repo_url}/readme")),
            )

        if not meta.ok:
            self._raise_for_metadata(identifier, meta.error)
        if not isinstance(meta.value, dict):
            raise UpstreamError("Failed to fetch repository data", details="unexpected metadata payload")

        for outcome in (languages, tree, readme):
            if not outcome.ok:
                logger.warning(f"{identifier.full_name}: {outcome.name} unavailable ({outcome.error}), using empty default")

        return self._build_snapshot(
            identifier,
            meta.value,
            languages.value_or({}),
            tree.value_or([]),
            readme.value_or({})
        )

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> Any:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()

    async def _fetch_tree(self, client: httpx.AsyncClient, repo_url: str) -> List[Dict[str, Any]]:
        last_error = None
        for branch in TREE_BRANCHES:
            try:
                data = await self._get_json(client, f"{repo_url}/git/trees/{branch}?recursive=1")
                if not isinstance(data, dict):
                    raise ValueError(f"unexpected tree payload for {branch}")
                return data.get("tree") or []
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
        raise last_error

    def _raise_for_metadata(self, identifier: RepositoryIdentifier, error: BaseException):
        if isinstance(error, httpx.HTTPStatusError):
            logger.error(f"GitHub API Error for {identifier.full_name}: {error.response.status_code}")
            raise RepositoryNotFound("Repository not found or private")
        logger.error(f"GitHub API Error for {identifier.full_name}: {error}")
        raise UpstreamError("Failed to fetch repository data", details=str(error)) from error

    def _build_snapshot(
        self,
        identifier: RepositoryIdentifier,
        meta: Dict[str, Any],
        languages: Dict[str, int],
        tree_nodes: List[Dict[str, Any]],
        readme_payload: Dict[str, Any]
    ) -> RepositorySnapshot:
        file_paths = shape_file_tree(tree_nodes)
        return RepositorySnapshot(
            owner=identifier.owner,
            name=identifier.name,
            description=meta.get("description") or "",
            star_count=meta.get("stargazers_count") or 0,
            fork_count=meta.get("forks_count") or 0,
            open_issue_count=meta.get("open_issues_count") or 0,
            readme_excerpt=decode_readme(readme_payload),
            file_paths=file_paths,
            language_byte_counts=languages if isinstance(languages, dict) else {},
            has_package_json="package.json" in file_paths
        )
