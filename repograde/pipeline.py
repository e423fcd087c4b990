import logging
from typing import Optional
from repograde.config import Settings
from repograde.models.evaluation import EvaluationResult
from repograde.probes.github import RepositoryProbe
from repograde.probes.normalizer import parse_repo_url
from repograde.refinery.classifier import detect_context
from repograde.refinery.engine import Evaluator

logger = logging.getLogger(__name__)

class EvaluationPipeline:
    """
    URL -> identifier -> snapshot -> context -> model evaluation.
    Stateless between calls; one instance is shared by every request.
    """

    def __init__(self, probe: RepositoryProbe, evaluator: Evaluator):
        self.probe = probe
        self.evaluator = evaluator

    @classmethod
    def from_settings(cls, settings: Settings, token: Optional[str] = None) -> "EvaluationPipeline":
        probe = RepositoryProbe(
            token=token or settings.github_token,
            timeout=settings.github_timeout
        )
        return cls(probe, Evaluator(settings))

    async def run(self, repo_url: Optional[str]) -> EvaluationResult:
        identifier = parse_repo_url(repo_url)
        self.evaluator.ensure_credentials()

        logger.info(f"Fetching {identifier.full_name}")
        snapshot = await self.probe.fetch_snapshot(identifier)

        context = detect_context(snapshot)
        logger.info(f"{identifier.full_name} classified as {context.value} ({len(snapshot.file_paths)} paths)")

        return await self.evaluator.evaluate(snapshot, context)
