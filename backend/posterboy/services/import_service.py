"""
Import orchestration: detect -> decode -> commit -> notify.

``ImportService`` never raises for a failed import; every outcome is reported
as an ``ImportResult`` and as one notification.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any

from posterboy.errors import FormatUnrecognized, ImportFailure, MalformedInput
from posterboy.schemas.import_export import ImportResult
from posterboy.services.format_detector import FormatTag, detect_format, parse_json
from posterboy.services.importers import DECODERS, ImportBundle
from posterboy.services.importers.base import CONVERSION_ERRORS, EnvironmentPolicy
from posterboy.services.model_builder import IdAllocator, unique_collection_name
from posterboy.services.notifications import LoggingNotifier, Notifier, Severity
from posterboy.services.repository import CollectionRepository, EnvironmentRepository

logger = logging.getLogger(__name__)

NOTHING_TO_IMPORT = "No importable requests or environments found"

# Decoders of these formats take the raw text instead of parsed JSON
_TEXT_FORMATS = (FormatTag.CURL_TEXT, FormatTag.OPENAPI_SPEC)


def _is_json(text: str) -> bool:
    try:
        parse_json(text)
    except ValueError:
        return False
    return True


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def _summary(bundle: ImportBundle) -> str:
    parts = []
    if bundle.collections:
        parts.append(
            f"Imported {_plural(len(bundle.collections), 'collection')} "
            f"with {_plural(bundle.request_count, 'request')}"
        )
    if bundle.environments:
        verb = "and" if parts else "Imported"
        parts.append(f"{verb} {_plural(len(bundle.environments), 'environment')}")
    message = " ".join(parts)
    if bundle.skipped:
        message += f" ({bundle.skipped} skipped)"
    return message


class ImportService:
    def __init__(
        self,
        collections: CollectionRepository,
        environments: EnvironmentRepository,
        notifier: Notifier | None = None,
        ids: IdAllocator | None = None,
    ):
        self.collections = collections
        self.environments = environments
        self.notifier = notifier or LoggingNotifier()
        self.ids = ids or IdAllocator()

    def _decode(self, tag: FormatTag, text: str) -> ImportBundle:
        if tag is FormatTag.UNKNOWN:
            # Text that is not even JSON is malformed; valid JSON of no known shape is unrecognized
            if not _is_json(text):
                raise MalformedInput()
            raise FormatUnrecognized()

        payload: Any = text
        if tag not in _TEXT_FORMATS:
            try:
                payload = parse_json(text)
            except ValueError as exc:
                raise MalformedInput() from exc

        try:
            return DECODERS[tag](payload, self.ids)
        except CONVERSION_ERRORS as exc:
            logger.exception("Decoder for %s failed", tag.value)
            raise MalformedInput() from exc

    def _commit(self, bundle: ImportBundle) -> list[str]:
        existing = self.collections.names()
        collection_ids = []
        for collection in bundle.collections:
            name = unique_collection_name(collection.name, existing)
            stored = self.collections.add(collection.model_copy(update={"name": name}))
            existing.append(stored.name)
            collection_ids.append(stored.id)
        store_environment = (
            self.environments.put
            if bundle.environment_policy is EnvironmentPolicy.REPLACE
            else self.environments.merge
        )
        for name, variables in bundle.environments.items():
            store_environment(name, variables)
        return collection_ids

    def _failure(self, tag: FormatTag, message: str, skipped: int = 0) -> ImportResult:
        logger.warning("Import failed (%s): %s", tag.value, message)
        self.notifier.notify("Import Failed", message, Severity.ERROR)
        return ImportResult(success=False, format=tag, message=message, error=message, skipped=skipped)

    def import_text(self, text: str, filename: str | None = None) -> ImportResult:
        tag = detect_format(text, filename)
        logger.info("Importing %s as %s", filename or "<text>", tag.value)

        try:
            bundle = self._decode(tag, text)
        except ImportFailure as exc:
            return self._failure(tag, str(exc))

        if bundle.is_empty:
            return self._failure(tag, NOTHING_TO_IMPORT, bundle.skipped)

        collection_ids = self._commit(bundle)
        message = _summary(bundle)
        logger.info("Import finished (%s): %s", tag.value, message)
        self.notifier.notify("Import Successful", message, Severity.SUCCESS)
        return ImportResult(
            success=True,
            format=tag,
            message=message,
            collection_ids=collection_ids,
            collections_imported=len(bundle.collections),
            folders_imported=bundle.folder_count,
            requests_imported=bundle.request_count,
            environments_imported=len(bundle.environments),
            skipped=bundle.skipped,
        )

    async def import_file(self, path: str | Path) -> ImportResult:
        """Read ``path`` on a worker thread, then import its text."""
        path = Path(path)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            return self._failure(FormatTag.UNKNOWN, f"Could not read {path.name}: {exc}")
        return self.import_text(text, path.name)
