"""
Best-effort cURL command decoder.

This is a regex tokenizer, not a shell parser: a token is ``'...'``,
``"..."`` or a run of non-space characters, and only the outer quotes are
stripped. Escapes inside quotes and quotes glued to a flag (``-H"a: b"``) are
not understood.
"""
import re
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from posterboy.errors import ItemConversionFailure, MalformedInput
from posterboy.services.importers.base import ImportBundle, convert_item, is_json_text, skip_item
from posterboy.services.model_builder import CollectionBuilder, IdAllocator

_COMMAND_START = re.compile(r"(?<![\w/.-])curl\s+", re.IGNORECASE)
_TOKEN = re.compile(r"""'[^']*'|"[^"]*"|\S+""")

_METHOD_FLAGS = ("-X", "--request")
_HEADER_FLAGS = ("-H", "--header")
_DATA_FLAGS = ("-d", "--data", "--data-raw", "--data-binary", "--data-ascii", "--data-urlencode")
_FORM_FLAGS = ("-F", "--form")
_USER_FLAGS = ("-u", "--user")
_COOKIE_FLAGS = ("-b", "--cookie")
_URL_FLAGS = ("--url",)
# Flags whose argument is consumed and ignored
_SKIP_ARG_FLAGS = (
    "-o", "--output", "-A", "--user-agent", "-e", "--referer", "-m", "--max-time",
    "--connect-timeout", "-x", "--proxy", "-U", "--proxy-user", "-w", "--write-out",
    "-c", "--cookie-jar", "-T", "--upload-file", "-E", "--cert", "--cacert", "-r",
    "--range", "--retry", "-K", "--config", "--resolve", "--limit-rate", "-D", "--dump-header",
)


def split_commands(text: str) -> list[str]:
    """Split free text into one string per ``curl`` invocation."""
    text = re.sub(r"\\\s*\r?\n", " ", text)
    starts = [m.start() for m in _COMMAND_START.finditer(text)]
    return [text[start:end].strip() for start, end in zip(starts, starts[1:] + [len(text)])]


def tokenize(command: str) -> list[str]:
    tokens = []
    for token in _TOKEN.findall(command):
        if len(token) >= 2 and token[0] == token[-1] and token[0] in "'\"":
            token = token[1:-1]
        tokens.append(token)
    return tokens


def _split_pair(text: str, sep: str) -> tuple[str, str]:
    key, _, value = text.partition(sep)
    return key.strip(), value.strip()


def parse_curl_command(command: str) -> dict[str, Any]:
    """Parse one command into request fields; raise ItemConversionFailure when it has no URL."""
    tokens = tokenize(command)
    if not tokens or tokens[0].lower() != "curl":
        raise ItemConversionFailure("not a cURL command")

    url = ""
    method: str | None = None
    headers: list[dict[str, str]] = []
    cookies: list[dict[str, str]] = []
    data_parts: list[str] = []
    form_fields: list[dict[str, str]] = []
    auth: dict[str, Any] = {"type": "none"}

    i = 1
    while i < len(tokens):
        arg = tokens[i]
        value = tokens[i + 1] if i + 1 < len(tokens) else None

        if arg in _METHOD_FLAGS and value is not None:
            method = value.upper()
            i += 1
        elif arg in _HEADER_FLAGS and value is not None:
            if ":" in value:
                key, header_value = _split_pair(value, ":")
                headers.append({"key": key, "value": header_value})
            i += 1
        elif arg in _DATA_FLAGS and value is not None:
            data_parts.append(value)
            i += 1
        elif arg in _FORM_FLAGS and value is not None:
            key, field_value = _split_pair(value, "=")
            if not field_value.startswith("@"):
                form_fields.append({"key": key, "value": field_value})
            i += 1
        elif arg in _USER_FLAGS and value is not None:
            username, _, password = value.partition(":")
            auth = {"type": "basic", "username": username, "password": password}
            i += 1
        elif arg in _COOKIE_FLAGS and value is not None:
            for pair in value.split(";"):
                if "=" in pair:
                    key, cookie_value = _split_pair(pair, "=")
                    cookies.append({"key": key, "value": cookie_value})
            i += 1
        elif arg in _URL_FLAGS and value is not None:
            url = url or value
            i += 1
        elif arg in _SKIP_ARG_FLAGS:
            i += 1
        elif not arg.startswith("-") and not url:
            url = arg
        i += 1

    if not url:
        raise ItemConversionFailure("cURL command has no URL")

    body: dict[str, Any] = {"type": "none"}
    if data_parts:
        data = "&".join(data_parts)
        body = {"type": "json" if is_json_text(data) else "raw", "data": data}
    elif form_fields:
        body = {"type": "form", "data": form_fields}

    if method is None:
        method = "POST" if body["type"] != "none" else "GET"

    query = urlsplit(url).query
    params = [{"key": k, "value": v} for k, v in parse_qsl(query, keep_blank_values=True)]

    return {
        "name": f"{method} {url}",
        "description": "Imported from cURL command",
        "method": method,
        "url": url,
        "headers": headers,
        "params": params,
        "cookies": cookies,
        "auth": auth,
        "body": body,
    }


def decode_curl_text(data: Any, ids: IdAllocator) -> ImportBundle:
    if not isinstance(data, str):
        raise MalformedInput("cURL input must be text")

    bundle = ImportBundle()
    builder = CollectionBuilder(ids, name="Imported cURL Commands", description="Imported from cURL commands")

    for index, command in enumerate(split_commands(data)):
        try:
            convert_item(f"command {index + 1}", lambda: builder.add_request(parse_curl_command(command)))
        except ItemConversionFailure as exc:
            skip_item(bundle, "cURL", exc)

    if builder.request_count:
        bundle.collections.append(builder.build())
    return bundle
