"""
Entrypoint registry.

Holds every query under a key with its price and input schema, validates
input, invokes the handler and wraps the result in the status envelope.
Payment verification happens outside this service; a successful paid
invocation is only recorded with the analytics recorder.
"""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
import structlog

from btc_intel.core.errors import IntelError
from btc_intel_api.schemas.envelope import InvokeResponse
from btc_intel_api.services.analytics import INCOMING, PaymentTracker
from btc_intel_api.utils.metrics import metrics

logger = structlog.get_logger(__name__)

Handler = Callable[[BaseModel], Awaitable[Dict[str, Any]]]

INTERNAL_ERROR_MESSAGE = "Internal error"


@dataclass
class Entrypoint:
    """A registered query."""
    key: str
    description: str
    input_model: Type[BaseModel]
    price: int
    handler: Handler

    @property
    def path(self) -> str:
        return f"/entrypoints/{self.key}/invoke"

    def manifest(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "description": self.description,
            "price": str(self.price),
            "path": self.path,
            "input": self.input_model.model_json_schema(by_alias=True),
        }


def format_validation_error(exc: ValidationError) -> str:
    """Human-readable summary of pydantic errors."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "input"
        parts.append(f"{location}: {error['msg']}")
    return "Invalid input - " + "; ".join(parts)


def extract_input(body: Any) -> Dict[str, Any]:
    """``{"input": {...}}`` or a bare input object; anything else is ``{}``."""
    if not isinstance(body, dict):
        return {}
    payload = body.get("input")
    if isinstance(payload, dict):
        return payload
    return body


class EntrypointRegistry:
    """Registry of invocable queries."""

    def __init__(self, payment_tracker: Optional[PaymentTracker] = None):
        self.entrypoints: Dict[str, Entrypoint] = {}
        self.payment_tracker = payment_tracker

    def add_entrypoint(self,
                       key: str,
                       description: str,
                       input_model: Type[BaseModel],
                       price: int,
                       handler: Handler) -> Entrypoint:
        if key in self.entrypoints:
            raise ValueError(f"Entrypoint already registered: {key}")
        if price < 0:
            raise ValueError(f"Entrypoint price must be non-negative: {key}")

        entrypoint = Entrypoint(key=key, description=description,
                                input_model=input_model, price=price, handler=handler)
        self.entrypoints[key] = entrypoint
        logger.debug("Entrypoint registered", entrypoint=key, price=price)
        return entrypoint

    def get(self, key: str) -> Optional[Entrypoint]:
        return self.entrypoints.get(key)

    def list(self) -> List[Entrypoint]:
        return list(self.entrypoints.values())

    def manifest(self) -> List[Dict[str, Any]]:
        return [entrypoint.manifest() for entrypoint in self.entrypoints.values()]

    async def invoke(self, key: str, payload: Dict[str, Any]) -> Tuple[int, InvokeResponse]:
        """
        Validate ``payload`` and run the entrypoint.

        Returns:
            (HTTP status code, envelope)
        """
        entrypoint = self.get(key)
        if entrypoint is None:
            return 404, InvokeResponse.failed(f"Unknown entrypoint: {key}")

        request_logger = logger.bind(entrypoint=key)

        try:
            params = entrypoint.input_model.model_validate(payload)
        except ValidationError as e:
            message = format_validation_error(e)
            request_logger.info("Input validation failed", error=message)
            metrics.query_count.labels(entrypoint=key, status="invalid").inc()
            return 400, InvokeResponse.failed(message)

        start_time = time.time()
        try:
            output = await entrypoint.handler(params)
        except IntelError as e:
            request_logger.warning("Query failed", error=e.message, error_type=type(e).__name__)
            metrics.query_count.labels(entrypoint=key, status="failed").inc()
            return 502, InvokeResponse.failed(e.message)
        except Exception as e:
            request_logger.error("Query crashed", error=str(e), exc_info=True)
            metrics.query_count.labels(entrypoint=key, status="failed").inc()
            return 500, InvokeResponse.failed(INTERNAL_ERROR_MESSAGE)
        finally:
            metrics.query_duration.labels(entrypoint=key).observe(time.time() - start_time)

        if entrypoint.price > 0 and self.payment_tracker is not None:
            self.payment_tracker.record(INCOMING, entrypoint.price, key)

        request_logger.info("Query succeeded")
        metrics.query_count.labels(entrypoint=key, status="succeeded").inc()
        return 200, InvokeResponse.succeeded(output)

    def mount(self, app: FastAPI) -> None:
        """Expose ``POST /entrypoints/{key}/invoke`` and ``GET /entrypoints``."""

        @app.post("/entrypoints/{key}/invoke")
        async def invoke_entrypoint(key: str, request: Request):
            try:
                body = await request.json()
            except ValueError:
                body = {}

            status_code, envelope = await self.invoke(key, extract_input(body))
            return JSONResponse(status_code=status_code, content=envelope.to_dict())

        @app.get("/entrypoints")
        async def list_entrypoints():
            return {"entrypoints": self.manifest()}
