"""
Translation File Endpoints.

Serves the JSON translation namespaces used by the storefront. Mounted
without the API version prefix.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from yoyo_mall.core.exceptions import NotFoundError
from yoyo_mall.server.services.i18n import NAMESPACES, SUPPORTED_LOCALES, default_locale, load_namespace

router = APIRouter()

CACHE_CONTROL = "public, max-age=3600"


@router.get(
    "",
    summary="List Locales",
    description="Supported locales, translation namespaces and the default locale.",
)
async def list_locales():
    return {"locales": list(SUPPORTED_LOCALES), "namespaces": list(NAMESPACES), "defaultLocale": default_locale()}


@router.get(
    "/{locale}/{namespace}",
    summary="Get Translations",
    description="One translation namespace for one locale.",
    responses={404: {"description": "Translation file not found"}},
)
async def get_translations(locale: str, namespace: str) -> JSONResponse:
    try:
        document = load_namespace(locale, namespace)
    except NotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Translation file not found"})
    return JSONResponse(content=document, headers={"Cache-Control": CACHE_CONTROL})
