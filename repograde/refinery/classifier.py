from repograde.models.snapshot import RepositorySnapshot
from repograde.models.evaluation import RepoContext

DSA_KEYWORDS = ("leetcode", "hackerrank", "dsa", "algorithm", "solutions", "cp", "competitive")
BACKEND_CONFIG_FILES = ("package.json", "requirements.txt", "go.mod", "Cargo.toml")
MIN_PROJECT_FILES = 10

def detect_context(snapshot: RepositorySnapshot) -> RepoContext:
    """
    Picks the grading rubric. First matching rule wins; there is no confidence value.
    """
    name = snapshot.name.lower()
    description = (snapshot.description or "").lower()
    if any(k in name or k in description for k in DSA_KEYWORDS):
        return RepoContext.DSA

    # Small and unconfigured reads as a scratchpad of solutions, not a service
    has_backend_config = any(
        config in path for path in snapshot.file_paths for config in BACKEND_CONFIG_FILES
    )
    if not has_backend_config and len(snapshot.file_paths) < MIN_PROJECT_FILES:
        return RepoContext.DSA

    return RepoContext.BACKEND
