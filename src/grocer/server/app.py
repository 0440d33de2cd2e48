"""ASGI application for Grocer."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, List, Optional, Union
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field, model_validator

from grocer import __version__, metrics
from grocer.config import Settings, get_settings
from grocer.consolidation.quantities import coerce_quantity
from grocer.errors import (
    EmptyItemNameError,
    InvalidCategoryError,
    InvalidQuantityError,
    ItemNotFoundError,
    ItemOwnershipError,
    ShoppingListError,
)
from grocer.logging_utils import configure_logging as configure_app_logging
from grocer.models.shopping import AddResult, ImportSummary, ShoppingItem, ShoppingSection
from grocer.server import deps

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[ShoppingListError], int], ...] = (
    (ItemNotFoundError, status.HTTP_404_NOT_FOUND),
    (ItemOwnershipError, status.HTTP_403_FORBIDDEN),
    (EmptyItemNameError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidQuantityError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidCategoryError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def _http_error(exc: ShoppingListError) -> HTTPException:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _route_path(request: Request) -> str:
    # Label metrics by route template so item ids do not explode cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class ItemCreateRequest(BaseModel):
    name: str = Field(default="", max_length=255)
    quantity: Union[int, float, str] = Field(default=1)
    category: Optional[str] = Field(default=None, max_length=32)
    source_recipe_id: Optional[str] = Field(default=None, max_length=128)

    @model_validator(mode="before")
    @classmethod
    def coerce_quantity_input(cls, data: Any) -> Any:
        """Accept "", "2" and "a pinch" the way the add form submits them."""
        if isinstance(data, dict) and "quantity" in data:
            data = {**data, "quantity": coerce_quantity(data["quantity"])}
        return data


class ItemUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    quantity: Optional[Union[int, float, str]] = Field(default=None)
    category: Optional[str] = Field(default=None, max_length=32)

    @model_validator(mode="before")
    @classmethod
    def coerce_quantity_input(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("quantity") is not None:
            data = {**data, "quantity": coerce_quantity(data["quantity"])}
        return data


class CompletionRequest(BaseModel):
    completed: bool


class RecipeImportRequest(BaseModel):
    source_recipe_id: Optional[str] = Field(default=None, max_length=128)
    ingredients: List[str] = Field(default_factory=list)


class ClearResponse(BaseModel):
    deleted: int


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Grocer Shopping List", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("grocer.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log and meter each request, echoing or minting an X-Request-ID."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    request.url.path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                path = _route_path(request)
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            path = _route_path(request)
            metrics.REQUEST_COUNT.labels(method=method, path=path, status=str(response.status_code)).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            **log_kwargs,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _json_safe(exc.errors())},
        )

    @application.get("/healthz", include_in_schema=False)
    def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @application.get(
        "/shopping-list",
        response_model=list[ShoppingSection],
        summary="List the caller's items grouped by category",
    )
    def shopping_list_sections(
        owner_id: str = Depends(deps.require_owner),
        provider: deps.SectionsProvider = Depends(deps.get_sections_provider),
    ) -> list[ShoppingSection]:
        return provider(owner_id)

    @application.get(
        "/shopping-list/items/{item_id}",
        response_model=ShoppingItem,
        summary="Fetch one shopping list item",
    )
    def shopping_list_item(
        item_id: int,
        owner_id: str = Depends(deps.require_owner),
        fetcher: deps.ItemFetcher = Depends(deps.get_item_fetcher),
    ) -> ShoppingItem:
        item = fetcher(owner_id, item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
        return item

    @application.post(
        "/shopping-list",
        response_model=AddResult,
        status_code=status.HTTP_201_CREATED,
        summary="Add an item, merging with a matching active item",
    )
    def shopping_list_add(
        payload: ItemCreateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        adder: deps.ItemAdder = Depends(deps.get_item_adder),
    ) -> AddResult:
        try:
            return adder(owner_id, payload.model_dump())
        except ShoppingListError as exc:
            logger.info("Rejected shopping list add for owner %s: %s", owner_id, exc)
            raise _http_error(exc) from exc

    @application.post(
        "/shopping-list/import",
        response_model=ImportSummary,
        summary="Add every ingredient line of a recipe",
    )
    def shopping_list_import(
        payload: RecipeImportRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        importer: deps.RecipeImporter = Depends(deps.get_recipe_importer),
        settings: Settings = Depends(get_settings),
    ) -> ImportSummary:
        if len(payload.ingredients) > settings.max_import_lines:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"At most {settings.max_import_lines} ingredient lines per import",
            )
        return importer(owner_id, payload.ingredients, payload.source_recipe_id)

    @application.patch(
        "/shopping-list/items/{item_id}",
        response_model=ShoppingItem,
        summary="Edit an item's name, quantity or category",
    )
    def shopping_list_update(
        item_id: int,
        payload: ItemUpdateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        updater: deps.ItemUpdater = Depends(deps.get_item_updater),
    ) -> ShoppingItem:
        update_payload = payload.model_dump(exclude_unset=True)
        if not update_payload:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields provided for update",
            )
        try:
            return updater(owner_id, item_id, update_payload)
        except ShoppingListError as exc:
            raise _http_error(exc) from exc

    @application.put(
        "/shopping-list/items/{item_id}/completed",
        response_model=ShoppingItem,
        summary="Mark an item done or not done",
    )
    def shopping_list_set_completed(
        item_id: int,
        payload: CompletionRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        setter: deps.CompletionSetter = Depends(deps.get_completion_setter),
    ) -> ShoppingItem:
        try:
            return setter(owner_id, item_id, payload.completed)
        except ShoppingListError as exc:
            raise _http_error(exc) from exc

    @application.delete(
        "/shopping-list/items/{item_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete an item (no-op for unknown ids)",
    )
    def shopping_list_delete(
        item_id: int,
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        deleter: deps.ItemDeleter = Depends(deps.get_item_deleter),
    ) -> Response:
        try:
            deleter(owner_id, item_id)
        except ShoppingListError as exc:
            raise _http_error(exc) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @application.post(
        "/shopping-list/clear-completed",
        response_model=ClearResponse,
        summary="Delete the caller's completed items",
    )
    def shopping_list_clear_completed(
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        clearer: deps.ListClearer = Depends(deps.get_completed_clearer),
    ) -> ClearResponse:
        return ClearResponse(deleted=clearer(owner_id))

    @application.post(
        "/shopping-list/reset",
        response_model=ClearResponse,
        summary="Delete every item on the caller's list",
    )
    def shopping_list_reset(
        auth: None = Depends(deps.require_api_token),
        owner_id: str = Depends(deps.require_owner),
        resetter: deps.ListClearer = Depends(deps.get_list_resetter),
    ) -> ClearResponse:
        return ClearResponse(deleted=resetter(owner_id))

    return application


app = create_app()

__all__ = ["app", "create_app"]
