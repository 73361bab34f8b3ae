from fastapi import APIRouter, Depends, HTTPException, status

from posterboy.api.deps import get_environments, get_template_engine
from posterboy.schemas.environment import (
    ActiveEnvironment,
    EnvironmentOut,
    EnvironmentUpdate,
    EnvironmentValidation,
    ResolveRequest,
    ResolveResponse,
)
from posterboy.services.repository import EnvironmentRepository
from posterboy.services.variables import TemplateEngine

router = APIRouter()


@router.get("/", response_model=list[EnvironmentOut])
def list_environments(environments: EnvironmentRepository = Depends(get_environments)):
    active = environments.active_name()
    return [
        EnvironmentOut(name=name, variables=variables, active=name == active)
        for name, variables in environments.all().items()
    ]


@router.get("/active", response_model=ActiveEnvironment)
def get_active_environment(environments: EnvironmentRepository = Depends(get_environments)):
    return ActiveEnvironment(name=environments.active_name())


@router.put("/active", response_model=ActiveEnvironment)
def set_active_environment(
    payload: ActiveEnvironment,
    environments: EnvironmentRepository = Depends(get_environments),
):
    environments.set_active(payload.name)
    return ActiveEnvironment(name=payload.name)


@router.post("/resolve", response_model=ResolveResponse)
def resolve_text(
    payload: ResolveRequest,
    engine: TemplateEngine = Depends(get_template_engine),
):
    name = payload.environment or engine.environments.active_name()
    return ResolveResponse(text=engine.resolve(payload.text, name), environment=name)


@router.get("/{name}/validate", response_model=EnvironmentValidation)
def validate_environment(
    name: str,
    environments: EnvironmentRepository = Depends(get_environments),
):
    return environments.validate(name)


@router.get("/{name}", response_model=EnvironmentOut)
def get_environment(
    name: str,
    environments: EnvironmentRepository = Depends(get_environments),
):
    if not environments.exists(name):
        raise HTTPException(status_code=404, detail="Environment not found")
    return EnvironmentOut(name=name, variables=environments.get(name), active=name == environments.active_name())


@router.put("/{name}", response_model=EnvironmentOut)
def set_variables(
    name: str,
    payload: EnvironmentUpdate,
    environments: EnvironmentRepository = Depends(get_environments),
):
    variables = environments.put(name, payload.variables)
    return EnvironmentOut(name=name, variables=variables, active=name == environments.active_name())


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_environment(
    name: str,
    environments: EnvironmentRepository = Depends(get_environments),
):
    if not environments.remove(name):
        raise HTTPException(status_code=404, detail="Environment not found")
