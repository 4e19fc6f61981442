"""Concrete product catalog service."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, JsonValue, ValidationError

from packages.storefront_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.storefront_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    exception_to_error,
    not_found_error,
    validation_error,
)
from packages.storefront_shared.logging import get_logger, public_api_logged
from resources.substrates.rabbitmq import NotInitializedError
from services.action.notifications import NOTIFY_KIND
from services.action.task_queue import TaskProducer
from services.state.cache_coordinator import CacheCoordinator
from services.state.product_catalog.config import (
    COMPONENT_ID,
    ProductCatalogSettings,
)
from services.state.product_catalog.domain import (
    LIST_VIEW_KEY,
    Product,
    ProductListing,
)
from services.state.product_catalog.repository import ProductRepository
from services.state.product_catalog.service import ProductCatalogService
from services.state.product_catalog.validation import (
    CreateProductRequest,
    DeleteProductRequest,
    UpdateProductRequest,
)

_LOGGER = get_logger(__name__)


class DefaultProductCatalogService(ProductCatalogService):
    """Catalog backed by a repository, the cache coordinator and the producer.

    Every write commits to the repository, then invalidates the listing view,
    then optionally enqueues a ``notify`` task. A failed invalidation or
    enqueue is reported as a dependency error even though the write itself
    has committed; the committed product is still returned as payload.
    """

    def __init__(
        self,
        *,
        settings: ProductCatalogSettings,
        repository: ProductRepository,
        coordinator: CacheCoordinator,
        producer: TaskProducer,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._coordinator = coordinator
        self._producer = producer

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID)
    def create_product(
        self,
        *,
        meta: EnvelopeMeta,
        name: str,
        price: Decimal | str | float,
        quantity: int,
        description: str = "",
        notify: str | None = None,
    ) -> Envelope[Product]:
        """Create one product and invalidate the listing before returning."""
        request, errors = self._validate_request(
            meta=meta,
            model=CreateProductRequest,
            payload={
                "name": name,
                "price": price,
                "quantity": quantity,
                "description": description,
                "notify": notify,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, CreateProductRequest)

        try:
            product = self._repository.create(
                name=request.name,
                price=request.price,
                quantity=request.quantity,
                description=request.description,
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(
                meta=meta, operation="create", resource="product_repository", exc=exc
            )
        return self._after_write(
            meta=meta, product=product, event="product_created", notify=request.notify
        )

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID, id_fields=("product_id",))
    def update_product(
        self,
        *,
        meta: EnvelopeMeta,
        product_id: int,
        name: str | None = None,
        price: Decimal | str | float | None = None,
        quantity: int | None = None,
        description: str | None = None,
        notify: str | None = None,
    ) -> Envelope[Product]:
        """Apply a partial update and invalidate the listing before returning."""
        request, errors = self._validate_request(
            meta=meta,
            model=UpdateProductRequest,
            payload={
                "product_id": product_id,
                "name": name,
                "price": price,
                "quantity": quantity,
                "description": description,
                "notify": notify,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, UpdateProductRequest)

        try:
            product = self._repository.update(
                product_id=request.product_id, changes=request.changes()
            )
        except ValidationError as exc:
            return failure(meta=meta, errors=[_validation_detail(exc)])
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(
                meta=meta, operation="update", resource="product_repository", exc=exc
            )
        if product is None:
            return failure(meta=meta, errors=[_product_not_found(request.product_id)])
        return self._after_write(
            meta=meta, product=product, event="product_updated", notify=request.notify
        )

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID, id_fields=("product_id",))
    def delete_product(
        self,
        *,
        meta: EnvelopeMeta,
        product_id: int,
        notify: str | None = None,
    ) -> Envelope[Product]:
        """Delete one product and invalidate the listing before returning."""
        request, errors = self._validate_request(
            meta=meta,
            model=DeleteProductRequest,
            payload={"product_id": product_id, "notify": notify},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, DeleteProductRequest)

        try:
            product = self._repository.delete(product_id=request.product_id)
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(
                meta=meta, operation="delete", resource="product_repository", exc=exc
            )
        if product is None:
            return failure(meta=meta, errors=[_product_not_found(request.product_id)])
        return self._after_write(
            meta=meta, product=product, event="product_deleted", notify=request.notify
        )

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID)
    def list_products(self, *, meta: EnvelopeMeta) -> Envelope[ProductListing]:
        """Return every product through the read-through listing view."""
        try:
            validate_meta(meta)
        except ValueError as exc:
            return failure(
                meta=meta, errors=[validation_error(str(exc), code=codes.INVALID_ARGUMENT)]
            )

        try:
            view = self._coordinator.read_through(
                key=LIST_VIEW_KEY,
                recompute=self._listing_source,
                validate=_parse_listing,
            )
            products = _parse_listing(view.value)
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(
                meta=meta, operation="list", resource="product_repository", exc=exc
            )
        return success(
            meta=meta,
            payload=ProductListing(products=products, from_cache=view.from_cache),
        )

    def _listing_source(self) -> list[dict[str, Any]]:
        return [product.model_dump(mode="json") for product in self._repository.list_all()]

    def _after_write(
        self,
        *,
        meta: EnvelopeMeta,
        product: Product,
        event: str,
        notify: str | None,
    ) -> Envelope[Product]:
        """Invalidate the listing, then enqueue a notification when requested."""
        try:
            self._coordinator.invalidate(key=LIST_VIEW_KEY)
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(
                meta=meta,
                operation="invalidate",
                resource="substrate_redis",
                exc=exc,
                payload=product,
            )

        recipient = notify or self._settings.notify_recipient
        if recipient is not None:
            try:
                self._producer.enqueue(
                    NOTIFY_KIND,
                    {
                        "to": recipient,
                        "event": event,
                        "product_id": product.id,
                        "name": product.name,
                    },
                )
            except Exception as exc:  # noqa: BLE001
                return self._dependency_failure(
                    meta=meta,
                    operation="enqueue",
                    resource="substrate_rabbitmq",
                    exc=exc,
                    payload=product,
                )
        return success(meta=meta, payload=product)

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        model: type[BaseModel],
        payload: dict[str, Any],
    ) -> tuple[BaseModel | None, list[ErrorDetail]]:
        """Validate metadata and request payload with stable error messages."""
        try:
            validate_meta(meta)
        except ValueError as exc:
            return None, [validation_error(str(exc), code=codes.INVALID_ARGUMENT)]

        try:
            return model.model_validate(payload), []
        except ValidationError as exc:
            return None, [_validation_detail(exc)]

    def _dependency_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        resource: str,
        exc: Exception,
        payload: Product | None = None,
    ) -> Envelope[Any]:
        """Map collaborator exceptions into dependency-category envelope errors."""
        _LOGGER.warning(
            "catalog operation failed due to dependency error: operation=%s exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        if isinstance(exc, NotInitializedError):
            error = dependency_error(
                f"{operation} failed: {exc}",
                code=codes.NOT_INITIALIZED,
                metadata={"resource": resource, "exception_type": type(exc).__name__},
            )
        elif isinstance(exc, (ConnectionError, TimeoutError)):
            error = exception_to_error(exc, resource=resource)
        else:
            error = dependency_error(
                f"{operation} failed",
                code=codes.DEPENDENCY_FAILURE,
                metadata={"resource": resource, "exception_type": type(exc).__name__},
            )
        return failure(meta=meta, errors=[error], payload=payload)


def _validation_detail(exc: ValidationError) -> ErrorDetail:
    issue = exc.errors()[0]
    field = ".".join(str(item) for item in issue.get("loc", ()))
    field_name = field if field else "payload"
    message = f"{field_name}: {issue.get('msg', 'invalid value')}"
    return validation_error(message, code=codes.INVALID_ARGUMENT)


def _product_not_found(product_id: int) -> ErrorDetail:
    return not_found_error(
        f"product {product_id} not found",
        code=codes.RESOURCE_NOT_FOUND,
        metadata={"product_id": str(product_id)},
    )


def _parse_listing(value: JsonValue) -> list[Product]:
    """Parse a listing view; raises ``ValueError`` for any other shape."""
    if not isinstance(value, list):
        raise ValueError("listing view must be a JSON array")
    return [Product.model_validate(item) for item in value]
