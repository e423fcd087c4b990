import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union, Callable, Sequence, List
import httpx
from pydantic_ai import Agent
from pydantic_ai.exceptions import UnexpectedModelBehavior, ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider
from repograde.config import Settings
from repograde.errors import CredentialMissing, ModelUnavailable, MalformedModelOutput
from repograde.models.evaluation import EvaluationResult, RepoContext
from repograde.models.snapshot import RepositorySnapshot
from repograde.probes.normalizer import normalize_repository_context

logger = logging.getLogger(__name__)

# Failures of the remote call itself; anything else is a local bug and propagates
MODEL_CALL_ERRORS = (ModelHTTPError, httpx.HTTPError, asyncio.TimeoutError, ConnectionError)

# --- Prompts ---

BASE_PROMPT = """
You are a world-class Senior Staff Software Engineer and Technical Interviewer.
Your job is to strictly evaluate a GitHub repository based on the provided metadata, file structure, and README.

**CRITICAL INSTRUCTION:**
You MUST output your response by calling the tool/function that matches the `EvaluationResult` schema.
Do NOT reply with plain markdown text.
"""

DSA_RUBRIC = """
**SCORING RUBRIC: DSA / Competitive Programming**
1. **Documentation:** Does the README explain the problems, approaches and complexities?
2. **Efficiency:** Judge algorithm choices and time/space complexity where visible.
3. **Clean Code:** Naming conventions, consistent file naming, readable solutions.
4. **Variety:** Breadth of problems and techniques covered.
"""

BACKEND_RUBRIC = """
**SCORING RUBRIC: Backend / Project**
1. **Architecture:** Separation of concerns, layering, module boundaries.
2. **Robustness:** Error handling, configuration management, secrets hygiene.
3. **Documentation:** Setup instructions, API docs, architecture notes.
4. **Scalability & Operations:** Tests, CI/CD, containerization, observability.
"""

OUTPUT_REQUIREMENTS = """
**OUTPUT REQUIREMENTS:**
- Be critical but constructive.
- `score` is 0-100. 90+ is FAANG production ready. 50 is an average student project.
- `breakdown` holds one integer sub-score for each of documentation, structure, code_quality and best_practices.
- `production_gaps` must be specific missing features (e.g., "Missing unit tests", "No CI/CD pipeline", "Secrets committed").
- `suggestions` should be ordered by impact, most important first.
"""

def build_system_prompt(context: RepoContext) -> str:
    rubric = DSA_RUBRIC if context == RepoContext.DSA else BACKEND_RUBRIC
    return (
        f"{BASE_PROMPT}\n"
        f"CONTEXT: This repository is identified as: {context.value}.\n"
        f"{rubric}\n"
        f"{OUTPUT_REQUIREMENTS}"
    )

def build_user_prompt(snapshot: RepositorySnapshot) -> str:
    return normalize_repository_context(snapshot)

# --- Model candidates ---

@dataclass
class ModelCandidate:
    """One entry in the ordered fallback list. `factory` is only called when the candidate is tried."""
    name: str
    factory: Callable[[], Union[Model, str]]

def gemini_candidates(model_names: Sequence[str], api_key: str) -> List[ModelCandidate]:
    def _factory(model_name: str):
        return lambda: GoogleModel(model_name, provider=GoogleProvider(api_key=api_key))

    return [ModelCandidate(name, _factory(name)) for name in model_names]

class Evaluator:
    def __init__(
        self,
        settings: Settings,
        candidates: Optional[Sequence[ModelCandidate]] = None,
        output_retries: int = 1
    ):
        self.settings = settings
        self.candidates = list(candidates) if candidates is not None else None
        self.output_retries = output_retries

    def ensure_credentials(self):
        self._resolve_candidates()

    def _resolve_candidates(self) -> List[ModelCandidate]:
        if self.candidates is not None:
            return self.candidates
        if not self.settings.model_api_key:
            raise CredentialMissing("Gemini API key missing")
        return gemini_candidates(self.settings.model_names, self.settings.model_api_key)

    def _model_settings(self):
        if self.settings.model_timeout is None:
            return None
        return {"timeout": self.settings.model_timeout}

    async def evaluate(self, snapshot: RepositorySnapshot, context: RepoContext) -> EvaluationResult:
        """
        Tries each candidate in order and returns the first structured result.
        A reply that does not fit the schema ends the request; it is not retried on the next model.
        """
        candidates = self._resolve_candidates()
        system_prompt = build_system_prompt(context)
        user_prompt = build_user_prompt(snapshot)

        last_error: Optional[BaseException] = None
        for candidate in candidates:
            agent = Agent(
                candidate.factory(),
                output_type=EvaluationResult,
                system_prompt=system_prompt,
                retries=self.output_retries
            )
            try:
                result = await agent.run(user_prompt, model_settings=self._model_settings())
            except UnexpectedModelBehavior as e:
                logger.error(f"Model {candidate.name} returned unusable output: {e}")
                raise MalformedModelOutput("AI failed to respond", details=str(e)) from e
            except MODEL_CALL_ERRORS as e:
                last_error = e
                logger.warning(f"Model {candidate.name} failed: {e}")
                continue

            logger.info(f"Successfully using model: {candidate.name}")
            return result.output

        raise ModelUnavailable(
            "Failed to connect to any Gemini model",
            details=str(last_error) if last_error else "Unknown error"
        )

    def evaluate_sync(self, snapshot: RepositorySnapshot, context: RepoContext) -> EvaluationResult:
        return asyncio.run(self.evaluate(snapshot, context))
