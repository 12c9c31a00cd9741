# autocompleted/routers/autocomplete.py
# Responsibility: Handles the autocomplete endpoint. Validates input and formats output.

from fastapi import APIRouter, Depends, Query, Request, Response

from autocompleted.config.settings import settings
from autocompleted.services.autocomplete_service import AutocompleteService

JSON_MEDIA_TYPE = "application/json; charset=utf-8"

router = APIRouter(
    tags=["Autocomplete"]
)

# --- Dependency Injection ---
def get_autocomplete_service(request: Request) -> AutocompleteService:
    """Provider for the AutocompleteService built at startup."""
    return request.app.state.autocomplete_service

# --- Endpoints ---
@router.get("/")
def autocomplete_endpoint(
    tag_prefix: str = Query(..., alias="search[name_matches]", description="Partial tag name"),
    service: AutocompleteService = Depends(get_autocomplete_service)
):
    """
    Tag autocomplete endpoint.
    Returns a JSON array of tags ranked by post count. Errors are rendered
    by the handlers registered in main.create_app.
    """
    body = service.resolve(tag_prefix)
    return Response(
        content=body,
        media_type=JSON_MEDIA_TYPE,
        headers={"Cache-Control": f"public, max-age={settings.SERVER.HTTP_MAX_AGE_SECONDS}"},
    )
