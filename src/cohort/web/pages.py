"""Server-rendered pages and the declarative page routing table.

Each ``PageRoute`` names a path, a template and a title. ``page_router``
registers one GET handler per entry; the handler builds the template
context with the route's loader. Anything not in the table falls through to
the not-found page rendered by the app's error handler.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from markupsafe import Markup
from pydantic import BaseModel

from cohort.core.types import VerificationMethod
from cohort.registration.service import RegistrationError
from cohort.verification.service import verification_feedback
from cohort.web.components import templates
from cohort.web.wizard_router import register_from_wizard
from cohort.wizard.models import FieldDefinition, FieldOption, StepStatus, WizardState
from cohort.wizard.progress import steps_from

logger = logging.getLogger(__name__)

ContextLoader = Callable[[Request], Awaitable[dict[str, Any] | Response]]


class PageRoute(BaseModel):
    path: str
    template: str
    title: str


PAGE_ROUTES: tuple[PageRoute, ...] = (
    PageRoute(path="/", template="home.html", title="Welcome"),
    PageRoute(path="/registration", template="registration.html", title="Registration"),
    PageRoute(
        path="/registration/trainee",
        template="trainee_registration.html",
        title="Trainee Registration",
    ),
    PageRoute(path="/trainees", template="trainees.html", title="Trainees"),
    PageRoute(path="/sponsors", template="sponsors.html", title="Sponsors"),
)

REGISTRATION_OPTIONS = (
    {"title": "Trainee", "href": "/registration/trainee", "available": True},
    {"title": "Staff", "href": None, "available": False},
    {"title": "Resource Person", "href": None, "available": False},
)


def resolve_page(path: str) -> PageRoute | None:
    """Look up the table entry for ``path``; trailing slashes are ignored."""
    normalized = path.rstrip("/") or "/"
    for route in PAGE_ROUTES:
        if route.path == normalized:
            return route
    return None


# --- Context loaders ---


async def _home(request: Request) -> dict[str, Any]:
    return {}


async def _registration(request: Request) -> dict[str, Any]:
    return {"options": REGISTRATION_OPTIONS}


async def _trainees(request: Request) -> dict[str, Any]:
    return {"trainees": await request.app.state.registration_service.list_trainees()}


async def _sponsors(request: Request) -> dict[str, Any]:
    return {"sponsors": await request.app.state.registration_service.list_sponsors()}


async def _trainee_registration(request: Request) -> dict[str, Any] | Response:
    engine = request.app.state.wizard_engine
    settings = request.app.state.settings
    state_id = request.query_params.get("state")

    state: WizardState | None = None
    if state_id:
        try:
            state = engine.get_state(state_id)
        except KeyError:
            logger.info("Wizard state %s expired or unknown; starting over", state_id)
    if state is None:
        state = engine.start_wizard(settings.wizard.registration_wizard)
        return _wizard_redirect(state.id)

    defn = engine.definition_for(state)
    context: dict[str, Any] = {
        "state": state,
        "steps": steps_from(defn.steps),
        "notice": request.query_params.get("notice"),
        "error": request.query_params.get("error"),
        "trainee": None,
    }

    if state.completed:
        trainee_id = request.query_params.get("trainee")
        if trainee_id:
            try:
                context["trainee"] = await request.app.state.registration_service.get_trainee(
                    trainee_id
                )
            except KeyError:
                logger.info("Registered trainee %s no longer exists", trainee_id)
        context["step_form"] = Markup(
            templates.env.get_template("partials/registration_complete.html").render(
                trainee=context["trainee"]
            )
        )
        return context

    step_def = defn.steps[state.current_step_index]
    step_state = state.steps[state.current_step_index]
    fields = [
        {
            "field": f,
            "options": await _field_options(request, f),
            "groups": _lga_groups(request) if f.options_from == "lgas" else None,
            "value": step_state.data.get(f.id, ""),
            "errors": step_state.errors.get(f.id, []),
        }
        for f in step_def.fields
    ]
    context["step_form"] = Markup(
        templates.env.get_template("partials/wizard_step.html").render(
            state=state,
            step=step_def,
            fields=fields,
            is_first=state.current_step_index == 0,
            is_last=state.current_step_index == len(state.steps) - 1,
            sends_code=any(f.id == "verificationCode" for f in step_def.fields),
        )
    )
    return context


_LOADERS: dict[str, ContextLoader] = {
    "/": _home,
    "/registration": _registration,
    "/registration/trainee": _trainee_registration,
    "/trainees": _trainees,
    "/sponsors": _sponsors,
}


async def _field_options(request: Request, field: FieldDefinition) -> list[FieldOption]:
    if field.options:
        return field.options
    locations = request.app.state.validation_engine.locations
    if field.options_from == "states":
        return locations.state_options()
    if field.options_from == "sponsors":
        sponsors = await request.app.state.registration_service.list_sponsors()
        return [FieldOption(value="", label="No sponsor")] + [
            FieldOption(value=s.id, label=s.name) for s in sponsors
        ]
    return []


def _lga_groups(request: Request) -> list[tuple[str, list[FieldOption]]]:
    locations = request.app.state.validation_engine.locations
    return [(opt.label, locations.lga_options(opt.value)) for opt in locations.state_options()]


def _wizard_redirect(state_id: str, **params: str) -> RedirectResponse:
    query = urlencode({"state": state_id, **params})
    return RedirectResponse(url=f"/registration/trainee?{query}", status_code=303)


def _page_handler(route: PageRoute, loader: ContextLoader):
    async def handler(request: Request) -> Response:
        context = await loader(request)
        if isinstance(context, Response):
            return context
        return templates.TemplateResponse(
            request, route.template, {"title": route.title, "page": route, **context}
        )

    handler.__name__ = f"page_{route.template.removesuffix('.html')}"
    return handler


def page_router() -> APIRouter:
    """Build the router that serves every entry of ``PAGE_ROUTES``."""
    router = APIRouter()
    for route in PAGE_ROUTES:
        router.add_api_route(
            route.path,
            _page_handler(route, _LOADERS[route.path]),
            methods=["GET"],
            response_class=HTMLResponse,
            include_in_schema=False,
        )

    router.add_api_route(
        "/registration/trainee/{state_id}/step",
        submit_wizard_step,
        methods=["POST"],
        include_in_schema=False,
    )
    router.add_api_route(
        "/registration/trainee/{state_id}/back",
        wizard_back,
        methods=["POST"],
        include_in_schema=False,
    )
    router.add_api_route(
        "/registration/trainee/{state_id}/send-code",
        wizard_send_code,
        methods=["POST"],
        include_in_schema=False,
    )
    return router


# --- Wizard form posts ---


def _wizard_state(request: Request, state_id: str) -> WizardState:
    try:
        return request.app.state.wizard_engine.get_state(state_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Registration session not found")


async def submit_wizard_step(state_id: str, request: Request) -> RedirectResponse:
    engine = request.app.state.wizard_engine
    state = _wizard_state(request, state_id)
    form = await request.form()
    step_id = state.steps[state.current_step_index].step_id

    try:
        state = engine.submit_step(state_id, step_id, dict(form))
    except ValueError as e:
        return _wizard_redirect(state_id, error=str(e))

    last = state.steps[-1]
    if step_id != last.step_id or last.status != StepStatus.COMPLETED:
        return _wizard_redirect(state_id)

    try:
        trainee = await register_from_wizard(
            engine, request.app.state.registration_service, state_id
        )
    except RegistrationError as exc:
        if exc.verification is not None:
            return _wizard_redirect(state_id, error=verification_feedback(exc.verification))
        return _wizard_redirect(state_id, error=exc.message)
    except ValueError as e:
        return _wizard_redirect(state_id, error=str(e))
    return _wizard_redirect(state_id, trainee=trainee.id)


async def wizard_back(state_id: str, request: Request) -> RedirectResponse:
    _wizard_state(request, state_id)
    try:
        request.app.state.wizard_engine.go_back(state_id)
    except ValueError as e:
        return _wizard_redirect(state_id, error=str(e))
    return _wizard_redirect(state_id)


async def wizard_send_code(state_id: str, request: Request) -> RedirectResponse:
    state = _wizard_state(request, state_id)
    form = await request.form()
    data = state.collected_data()
    method = str(form.get("verificationMethod") or data.get("verificationMethod") or "")
    if method not in ("email", "phone"):
        return _wizard_redirect(state_id, error="Choose whether to receive the code by email or phone")

    identifier = data.get(method)
    if not identifier:
        return _wizard_redirect(state_id, error=f"Enter your {method} before requesting a code")

    service = request.app.state.verification_service
    response = await service.send_code(identifier, VerificationMethod(method))

    if not response.success:
        return _wizard_redirect(state_id, error=response.message)
    notice = response.message
    if response.code:
        notice = f"{notice} (development code: {response.code})"
    return _wizard_redirect(state_id, notice=notice)
