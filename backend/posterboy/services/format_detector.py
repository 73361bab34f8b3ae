"""
Classify raw import content into a FormatTag.

Structural matches always win; the filename only breaks ties for JSON that
matches no known shape.
"""
import json
from enum import Enum as PyEnum
from typing import Any

import yaml  # type: ignore

from posterboy.config import settings


class FormatTag(str, PyEnum):
    POSTMAN_COLLECTION = "postman_collection"
    POSTMAN_ENVIRONMENT = "postman_environment"
    INSOMNIA_EXPORT = "insomnia_export"
    OPENAPI_SPEC = "openapi_spec"
    NATIVE_EXPORT = "native_export"
    HAR_FILE = "har_file"
    CURL_TEXT = "curl_text"
    UNKNOWN = "unknown"


_NATIVE_SUFFIXES = ("_export", "_collection", "_environments")


def parse_json(text: str) -> Any:
    """Return the decoded JSON document, or raise ``ValueError``."""
    return json.loads(text)


def is_native_envelope(data: dict) -> bool:
    return any(
        f"{marker}{suffix}" in data
        for marker in settings.export_markers
        for suffix in _NATIVE_SUFFIXES
    )


def detect_structure(data: Any) -> FormatTag:
    """Classify an already-parsed JSON document by shape alone."""
    if not isinstance(data, dict):
        return FormatTag.UNKNOWN

    info = data.get("info")
    if isinstance(info, dict) and info.get("schema") and "item" in data:
        return FormatTag.POSTMAN_COLLECTION

    if data.get("name") and isinstance(data.get("values"), list):
        return FormatTag.POSTMAN_ENVIRONMENT

    if data.get("_type") == "export" and data.get("resources"):
        return FormatTag.INSOMNIA_EXPORT

    if data.get("openapi") or data.get("swagger"):
        return FormatTag.OPENAPI_SPEC

    if is_native_envelope(data):
        return FormatTag.NATIVE_EXPORT

    log = data.get("log")
    if isinstance(log, dict) and log.get("entries") is not None:
        return FormatTag.HAR_FILE

    return FormatTag.UNKNOWN


def detect_from_filename(filename: str | None) -> FormatTag:
    name = (filename or "").lower()
    if "postman" in name:
        if "environment" in name:
            return FormatTag.POSTMAN_ENVIRONMENT
        return FormatTag.POSTMAN_COLLECTION
    if "insomnia" in name:
        return FormatTag.INSOMNIA_EXPORT
    if ".har" in name:
        return FormatTag.HAR_FILE
    return FormatTag.UNKNOWN


def _looks_like_openapi_yaml(text: str) -> bool:
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError:
        return False
    return isinstance(doc, dict) and bool(doc.get("openapi") or doc.get("swagger"))


def detect_format(text: str, filename: str | None = None) -> FormatTag:
    """Classify raw text; pure function of ``text`` with ``filename`` as a tie-break."""
    try:
        data = parse_json(text)
    except ValueError:
        if "curl " in text:
            return FormatTag.CURL_TEXT
        if _looks_like_openapi_yaml(text):
            return FormatTag.OPENAPI_SPEC
        return FormatTag.UNKNOWN

    tag = detect_structure(data)
    if tag is not FormatTag.UNKNOWN:
        return tag
    if isinstance(data, dict):
        return detect_from_filename(filename)
    return FormatTag.UNKNOWN
