from pydantic import BaseModel, ConfigDict, Field


class Deadline(BaseModel):
    label: str
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    notes: str = ""


class Step(BaseModel):
    title: str
    details: str = ""


class OfficialSite(BaseModel):
    name: str
    url: str


class AnalysisResult(BaseModel):
    """Shape the instruction prompt asks the model to produce."""

    model_config = ConfigDict(extra="allow")

    summary: str
    what_it_means: str
    deadlines: list[Deadline] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    missing_info: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    official_sites: list[OfficialSite] = Field(default_factory=list)
