"""
Translation loading and locale negotiation.

Translations live in ``{locales_dir}/{locale}/{namespace}.json``. Keys are
dotted paths into the JSON document and values may contain ``{{name}}``
placeholders.
"""

from __future__ import annotations

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from yoyo_mall.core.exceptions import NotFoundError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core.config import settings

logger = get_logger(__name__)

SUPPORTED_LOCALES: Tuple[str, ...] = ("zh-CN", "en-US", "ja-JP", "ko-KR")
NAMESPACES: Tuple[str, ...] = ("common", "navigation", "product", "cart", "auth", "admin", "error")

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def default_locale() -> str:
    configured = settings.i18n.default_locale
    return configured if configured in SUPPORTED_LOCALES else SUPPORTED_LOCALES[0]


@lru_cache(maxsize=64)
def _read_file(path: Path) -> Dict[str, Any]:
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def load_namespace(locale: str, namespace: str, locales_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load one translation file.

    Raises:
        NotFoundError: ``LOCALE_NOT_FOUND`` for an unsupported locale or
            namespace, or when the file is missing or unreadable
    """
    if locale not in SUPPORTED_LOCALES or namespace not in NAMESPACES:
        raise NotFoundError("Translation file not found", code="LOCALE_NOT_FOUND")
    path = Path(locales_dir or settings.i18n.locales_dir) / locale / f"{namespace}.json"
    if not path.is_file():
        raise NotFoundError("Translation file not found", code="LOCALE_NOT_FOUND")
    try:
        return _read_file(path)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load translation file {path}: {e}")
        raise NotFoundError("Translation file not found", code="LOCALE_NOT_FOUND")


def _parse_accept_language(header: str) -> List[Tuple[str, float]]:
    ranges: List[Tuple[str, float]] = []
    for part in header.split(","):
        piece = part.strip()
        if not piece:
            continue
        tag, _, params = piece.partition(";")
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        ranges.append((tag.strip(), quality))
    ranges.sort(key=lambda r: r[1], reverse=True)
    return ranges


def _match(tag: str) -> Optional[str]:
    lowered = tag.lower()
    for locale in SUPPORTED_LOCALES:
        if locale.lower() == lowered:
            return locale
    language = lowered.split("-")[0]
    for locale in SUPPORTED_LOCALES:
        if locale.lower().split("-")[0] == language:
            return locale
    return None


def negotiate_locale(accept_language: Optional[str] = None, explicit: Optional[str] = None) -> str:
    """Pick the response locale.

    An explicit supported locale wins, then the best ``Accept-Language``
    match by quality (exact tag first, then language prefix), then the
    default locale.
    """
    if explicit:
        matched = _match(explicit)
        if matched:
            return matched
    if accept_language:
        for tag, quality in _parse_accept_language(accept_language):
            if quality <= 0 or tag == "*":
                continue
            matched = _match(tag)
            if matched:
                return matched
    return default_locale()


def _lookup(document: Dict[str, Any], key: str) -> Optional[str]:
    node: Any = document
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def interpolate(template: str, **values: Any) -> str:
    return _PLACEHOLDER.sub(lambda m: str(values.get(m.group(1), m.group(0))), template)


def translate(key: str, locale: Optional[str] = None, namespace: str = "common", **values: Any) -> str:
    """Translate ``key``, falling back to the default locale, then to the key itself."""
    candidates = [locale or default_locale()]
    if default_locale() not in candidates:
        candidates.append(default_locale())
    for candidate in candidates:
        try:
            document = load_namespace(candidate, namespace)
        except NotFoundError:
            continue
        text = _lookup(document, key)
        if text is not None:
            return interpolate(text, **values)
    return key
