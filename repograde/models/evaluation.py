from enum import Enum
from typing import List
from pydantic import BaseModel, Field

class RepoContext(str, Enum):
    DSA = "DSA"
    BACKEND = "Backend"
    FRONTEND = "Frontend"
    PROJECT = "Project"

class EvaluationBreakdown(BaseModel):
    documentation: int = Field(..., description="Sub-score for README and inline documentation")
    structure: int = Field(..., description="Sub-score for project layout and modularity")
    code_quality: int = Field(..., description="Sub-score for readability, naming and error handling")
    best_practices: int = Field(..., description="Sub-score for testing, CI and tooling")

class EvaluationResult(BaseModel):
    context: RepoContext = Field(..., description="Category the repository was judged as")
    score: int = Field(..., description="Overall score from 0 to 100")
    breakdown: EvaluationBreakdown
    summary: str = Field(..., description="Short critical summary of the repository")
    suggestions: List[str] = Field(..., description="Ordered, actionable improvements")
    production_gaps: List[str] = Field(..., description="Specific missing capabilities (e.g. 'Missing unit tests', 'No CI/CD pipeline')")
