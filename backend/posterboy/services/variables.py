"""
``{{variable}}`` substitution against a named environment.
"""
import re
from typing import TYPE_CHECKING, Any, Mapping

from posterboy.schemas.collection import (
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    FormBody,
    JsonBody,
    KeyValue,
    RawBody,
    Request,
    stringify,
)

if TYPE_CHECKING:
    from posterboy.services.repository import EnvironmentRepository

VAR_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def resolve_template(value: Any, variables: Mapping[str, Any]) -> Any:
    """Replace every known ``{{ key }}`` in one pass; unknown placeholders stay as written."""
    if not isinstance(value, str):
        return value

    def replacer(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        return stringify(variables[key])

    return VAR_PATTERN.sub(replacer, value)


def _resolve_pairs(pairs: list[KeyValue], variables: Mapping[str, Any]) -> list[KeyValue]:
    return [KeyValue(key=kv.key, value=resolve_template(kv.value, variables)) for kv in pairs]


def resolve_request(request: Request, variables: Mapping[str, Any]) -> Request:
    """Return a copy of ``request`` with placeholders resolved in every value (never in keys)."""
    auth = request.auth
    if isinstance(auth, BearerAuth):
        auth = auth.model_copy(update={"token": resolve_template(auth.token, variables)})
    elif isinstance(auth, BasicAuth):
        auth = auth.model_copy(update={
            "username": resolve_template(auth.username, variables),
            "password": resolve_template(auth.password, variables),
        })
    elif isinstance(auth, ApiKeyAuth):
        auth = auth.model_copy(update={"value": resolve_template(auth.value, variables)})

    body = request.body
    if isinstance(body, (JsonBody, RawBody)):
        body = body.model_copy(update={"data": resolve_template(body.data, variables)})
    elif isinstance(body, FormBody):
        body = body.model_copy(update={"data": _resolve_pairs(body.data, variables)})

    return request.model_copy(update={
        "url": resolve_template(request.url, variables),
        "headers": _resolve_pairs(request.headers, variables),
        "params": _resolve_pairs(request.params, variables),
        "cookies": _resolve_pairs(request.cookies, variables),
        "auth": auth,
        "body": body,
    })


class TemplateEngine:
    """Resolves templates against the active environment (or an explicitly named one)."""

    def __init__(self, environments: "EnvironmentRepository"):
        self.environments = environments

    def variables(self, environment: str | None = None) -> dict[str, str]:
        return self.environments.get(environment or self.environments.active_name())

    def resolve(self, value: Any, environment: str | None = None) -> Any:
        return resolve_template(value, self.variables(environment))

    def resolve_request(self, request: Request, environment: str | None = None) -> Request:
        return resolve_request(request, self.variables(environment))
