"""Observability configuration using Logfire.

Application code uses logfire directly:

    import logfire

    logfire.info("Comment created", comment_id=comment.id, fine_id=fine_id)

    with logfire.span("comment_store.fetch_thread", fine_id=fine_id):
        ...
"""

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from fines.config import ObservabilitySettings, Settings

SERVICE_NAME = "fines-comments"
SERVICE_VERSION = "0.1.0"


def _should_send(observability: ObservabilitySettings) -> bool:
    """Explicit flag wins, otherwise send only when a token is configured."""
    if observability.send_to_logfire is not None:
        return observability.send_to_logfire
    return bool(observability.logfire_token)


def configure_logfire(settings: Settings, service_name: str = SERVICE_NAME) -> None:
    """Configure Logfire for the comments service.

    Without a token, spans and logs only go to the console.

    Args:
        settings: Application settings
        service_name: Name reported with every span
    """
    observability = settings.observability
    send_to_logfire = _should_send(observability)

    logfire.configure(
        service_name=service_name,
        service_version=SERVICE_VERSION,
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        token=observability.logfire_token,
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    )

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        realtime_enabled=settings.realtime.enabled,
    )


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every HTTP request handled by the app.

    The acting user from ``X-User-Id`` is attached to request spans.
    """

    def _comment_request_attributes(request, attributes):
        result = {**attributes}
        user_id = request.headers.get("x-user-id")
        if user_id:
            result["user_id"] = user_id
        if hasattr(request, "method"):
            result["method"] = request.method
        return result

    logfire.instrument_fastapi(
        app,
        capture_headers=False,
        request_attributes_mapper=_comment_request_attributes,
        excluded_urls="/health",
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace comment queries issued through the pooled engine."""
    logfire.instrument_sqlalchemy(engine=engine.sync_engine, enable_commenter=True)


def instrument_asyncpg() -> None:
    """Trace the raw LISTEN connections opened by the realtime change feed."""
    logfire.instrument_asyncpg()
