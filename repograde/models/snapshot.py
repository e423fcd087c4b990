from typing import List, Dict
from pydantic import BaseModel, ConfigDict, Field

class RepositoryIdentifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

class RepositorySnapshot(BaseModel):
    owner: str
    name: str
    description: str = ""
    star_count: int = 0
    fork_count: int = 0
    open_issue_count: int = 0
    readme_excerpt: str = Field(default="", description="Decoded README, truncated for the prompt")
    file_paths: List[str] = Field(default_factory=list, description="Shallow file tree in upstream order")
    language_byte_counts: Dict[str, int] = Field(default_factory=dict)
    has_package_json: bool = False
