import re
import json
import base64
import binascii
from typing import Dict, Any, List, Optional
from repograde.models.snapshot import RepositoryIdentifier, RepositorySnapshot
from repograde.errors import InvalidInput

GITHUB_URL_PATTERN = re.compile(r"github\.com/([A-Za-z0-9-]+)/([A-Za-z0-9._-]+)(?=[/?#]|$)")

MAX_TREE_DEPTH = 3
MAX_TREE_ENTRIES = 100
MAX_README_CHARS = 8000

def parse_repo_url(url: Optional[str]) -> RepositoryIdentifier:
    """
    Extracts owner/repo from anything shaped like `.../github.com/<owner>/<repo>...`.
    """
    if not url or not url.strip():
        raise InvalidInput("Repo URL is required")

    match = GITHUB_URL_PATTERN.search(url.strip())
    if not match:
        raise InvalidInput("Invalid GitHub URL")

    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not repo or repo in (".", ".."):
        raise InvalidInput("Invalid GitHub URL")

    return RepositoryIdentifier(owner=owner, name=repo)

def shape_file_tree(
    tree_nodes: List[Dict[str, Any]],
    max_depth: int = MAX_TREE_DEPTH,
    max_entries: int = MAX_TREE_ENTRIES
) -> List[str]:
    """
    Keeps blob/tree paths no deeper than `max_depth`, in upstream order, capped at `max_entries`.
    """
    paths = []
    for node in tree_nodes or []:
        if not isinstance(node, dict) or node.get("type") not in ("blob", "tree"):
            continue
        path = node.get("path")
        if not isinstance(path, str) or not path or len(path.split("/")) > max_depth:
            continue
        paths.append(path)
        if len(paths) >= max_entries:
            break
    return paths

def decode_readme(payload: Dict[str, Any], max_chars: int = MAX_README_CHARS) -> str:
    if not isinstance(payload, dict):
        return ""
    content = payload.get("content")
    if not isinstance(content, str) or not content:
        return ""
    try:
        # GitHub wraps the base64 body at 60 columns
        raw = base64.b64decode("".join(content.split()))
    except (binascii.Error, ValueError):
        return ""
    return raw.decode("utf-8", errors="replace")[:max_chars]

def normalize_repository_context(snapshot: RepositorySnapshot) -> str:
    """
    Renders the snapshot as the data section of the evaluation prompt.
    Values go in verbatim; nothing is escaped or filtered.
    """
    lines = ["Evaluate this repository:"]
    lines.append(f"Owner: {snapshot.owner}")
    lines.append(f"Repo: {snapshot.name}")
    lines.append(f"Description: {snapshot.description}")
    lines.append(f"Stars: {snapshot.star_count} | Forks: {snapshot.fork_count} | Open Issues: {snapshot.open_issue_count}")
    lines.append(f"Languages: {json.dumps(snapshot.language_byte_counts)}")
    lines.append(f"File Structure (partial): {json.dumps(snapshot.file_paths)}")
    lines.append(f"README Preview: {snapshot.readme_excerpt}")
    return "\n".join(lines)
