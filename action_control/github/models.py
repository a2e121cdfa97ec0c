from pydantic import BaseModel, Field


class Repository(BaseModel):
    """A repository as listed by the hosting API."""
    name: str = Field(description="Short repository name")
    full_name: str = Field(description="owner/repo")
    description: str = Field(default="", description="Repository description")
    private: bool = Field(default=False, description="Whether the repository is private")
