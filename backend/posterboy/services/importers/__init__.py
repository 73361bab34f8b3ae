from posterboy.services.format_detector import FormatTag
from posterboy.services.importers.base import Decoder, ImportBundle
from posterboy.services.importers.curl import decode_curl_text
from posterboy.services.importers.har import decode_har
from posterboy.services.importers.insomnia import decode_insomnia_export
from posterboy.services.importers.native import decode_native_export
from posterboy.services.importers.openapi import decode_openapi
from posterboy.services.importers.postman import decode_postman_collection, decode_postman_environment

# Every tag except UNKNOWN has exactly one decoder
DECODERS: dict[FormatTag, Decoder] = {
    FormatTag.POSTMAN_COLLECTION: decode_postman_collection,
    FormatTag.POSTMAN_ENVIRONMENT: decode_postman_environment,
    FormatTag.INSOMNIA_EXPORT: decode_insomnia_export,
    FormatTag.OPENAPI_SPEC: decode_openapi,
    FormatTag.NATIVE_EXPORT: decode_native_export,
    FormatTag.HAR_FILE: decode_har,
    FormatTag.CURL_TEXT: decode_curl_text,
}

__all__ = ["DECODERS", "Decoder", "ImportBundle"]
