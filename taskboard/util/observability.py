"""Observability configuration using Logfire.

Domain services, use cases and the identity adapter log through logfire
directly:

    import logfire

    logfire.info("Invitation created", invitation_id=str(invitation.id))

    with logfire.span("invitation_service.revoke", invitation_id=str(id)):
        ...
"""

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from taskboard.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire for the process.

    Sends to Logfire cloud when OBSERVABILITY__SEND_TO_LOGFIRE is set, or
    when a token is present and the flag is left unset. Otherwise logs only
    go to the console.

    Args:
        settings: Application settings
    """
    if settings.observability.send_to_logfire is not None:
        send_to_logfire = settings.observability.send_to_logfire
    else:
        send_to_logfire = bool(settings.observability.logfire_token)

    config_kwargs = {
        "service_name": "taskboard-api",
        "service_version": settings.git_sha,
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
        # Invite tokens, PKCE verifiers and provider keys never leave the process
        "scrubbing": logfire.ScrubbingOptions(
            extra_patterns=[
                "invite_token",
                "code_verifier",
                "service_role_key",
                "apikey",
            ]
        ),
    }

    if settings.observability.logfire_token:
        config_kwargs["token"] = settings.observability.logfire_token

    logfire.configure(**config_kwargs)

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        base_url=settings.base_url,
    )


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by the app."""

    def _map_request_attributes(request, attributes):
        result = {**attributes}
        if hasattr(request, "method"):
            result["method"] = request.method
        if hasattr(request, "url"):
            result["path"] = request.url.path
        return result

    # Cookies carry the session token
    logfire.instrument_fastapi(
        app,
        capture_headers=False,
        request_attributes_mapper=_map_request_attributes,
    )
    logfire.info("FastAPI instrumented")


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace SQL statements issued through the engine."""
    logfire.instrument_sqlalchemy(engine=engine.sync_engine, enable_commenter=True)
    logfire.info("SQLAlchemy instrumented")


def instrument_httpx() -> None:
    """Trace outbound calls to the identity provider."""
    logfire.instrument_httpx()
    logfire.info("httpx instrumented")
