from pydantic import BaseModel, Field


class EnvironmentOut(BaseModel):
    name: str
    variables: dict[str, str]
    active: bool = False


class EnvironmentUpdate(BaseModel):
    variables: dict[str, str] = Field(default_factory=dict)


class ActiveEnvironment(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ResolveRequest(BaseModel):
    text: str
    environment: str | None = None


class ResolveResponse(BaseModel):
    text: str
    environment: str


class EnvironmentValidation(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
