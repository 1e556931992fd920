"""
Generic CRUD blueprint, instantiated once per resource descriptor.

Every route is an ordered tuple of stages. A stage receives the request's
`Exchange` and returns either None (continue with the next stage) or a
response (stop). Write stages never redirect themselves: they set
`exchange.redirect_to` and leave the actual redirect to `redirect_view`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, url_for
from flask.typing import ResponseReturnValue
from sqlalchemy.orm import Session

from app.utnode import store
from app.utnode.audit import record_event
from app.utnode.db import db_session
from app.utnode.errors import ConstraintViolation
from app.utnode.models import User
from app.utnode.resource import Resource
from app.utnode.validation import validate_payload


@dataclass
class Exchange:
    resource: Resource
    db: Session
    actor: User | None = None
    record_id: int | None = None
    form: Mapping[str, str] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)
    locals: dict[str, Any] = field(default_factory=dict)
    redirect_to: str | None = None

    def endpoint(self, name: str) -> str:
        return f"{self.resource.slug}.{name}"


Stage = Callable[[Exchange], "ResponseReturnValue | None"]


def run_pipeline(ex: Exchange, stages: tuple[Stage, ...]) -> ResponseReturnValue:
    for stage in stages:
        rv = stage(ex)
        if rv is not None:
            return rv
    raise RuntimeError(f"{ex.resource.slug}: pipeline finished without a response")


def _render(ex: Exchange, view: str) -> ResponseReturnValue:
    r = ex.resource
    return render_template(
        [f"{r.slug}/{view}.html", f"crud/{view}.html"],
        resource=r,
        **ex.locals,
    )


def _form_url(ex: Exchange) -> str:
    if ex.record_id is None:
        return url_for(ex.endpoint("new"))
    return url_for(ex.endpoint("edit"), record_id=ex.record_id)


# ---------- Stages ----------
def index(ex: Exchange) -> None:
    ex.locals["records"] = store.find_all(ex.db, ex.resource.model)


def index_view(ex: Exchange) -> ResponseReturnValue:
    return _render(ex, "index")


def new(ex: Exchange) -> ResponseReturnValue:
    return _render(ex, "new")


def validate_input(ex: Exchange) -> ResponseReturnValue | None:
    violations = validate_payload(ex.form, ex.resource.rules)
    if violations:
        for v in violations:
            flash(v.message, "error")
        return redirect(_form_url(ex))
    ex.values = ex.resource.to_values(ex.form)
    return None


def create(ex: Exchange) -> ResponseReturnValue | None:
    r = ex.resource
    try:
        record = store.insert(ex.db, r.model, ex.values)
        record_event(
            ex.db,
            actor=ex.actor,
            action=f"{r.slug}.create",
            entity_type=r.name,
            entity_id=str(record.id),
            metadata={"label": r.label_of(record)},
        )
        store.commit(ex.db, r.model)
    except ConstraintViolation as e:
        current_app.logger.info("%s create rejected by store: %s", r.slug, e.message)
        flash(r.store_message(e), "error")
        return redirect(url_for(ex.endpoint("new")))

    flash(f"{r.name} {r.label_of(record)} created successfully!", "success")
    ex.redirect_to = url_for(ex.endpoint("index"))
    return None


def show(ex: Exchange) -> None:
    ex.locals["record"] = store.find_by_id(ex.db, ex.resource.model, ex.record_id)


def show_view(ex: Exchange) -> ResponseReturnValue:
    return _render(ex, "show")


def edit(ex: Exchange) -> ResponseReturnValue:
    ex.locals["record"] = store.find_by_id(ex.db, ex.resource.model, ex.record_id)
    return _render(ex, "edit")


def update(ex: Exchange) -> ResponseReturnValue | None:
    r = ex.resource
    try:
        record = store.update_by_id(ex.db, r.model, ex.record_id, ex.values)
        record_event(
            ex.db,
            actor=ex.actor,
            action=f"{r.slug}.update",
            entity_type=r.name,
            entity_id=str(record.id),
            metadata={"fields": sorted(ex.values)},
        )
        store.commit(ex.db, r.model)
    except ConstraintViolation as e:
        current_app.logger.info("%s %s update rejected by store: %s", r.slug, ex.record_id, e.message)
        flash(r.store_message(e), "error")
        return redirect(url_for(ex.endpoint("edit"), record_id=ex.record_id))

    flash(f"{r.name} {r.label_of(record)} updated successfully!", "success")
    ex.redirect_to = url_for(ex.endpoint("show"), record_id=ex.record_id)
    return None


def delete(ex: Exchange) -> None:
    r = ex.resource
    # Absent ids raise RecordNotFound (404) here, before anything is written.
    record = store.find_by_id(ex.db, r.model, ex.record_id)
    label = r.label_of(record)
    record_event(
        ex.db,
        actor=ex.actor,
        action=f"{r.slug}.delete",
        entity_type=r.name,
        entity_id=str(ex.record_id),
        metadata={"label": label},
    )
    store.delete_by_id(ex.db, r.model, ex.record_id)
    store.commit(ex.db, r.model)

    flash(f"{r.name} {label} deleted successfully!", "success")
    ex.redirect_to = url_for(ex.endpoint("index"))


def redirect_view(ex: Exchange) -> ResponseReturnValue | None:
    if ex.redirect_to is None:
        return None
    return redirect(ex.redirect_to)


@dataclass(frozen=True)
class Route:
    method: str
    rule: str
    endpoint: str
    stages: tuple[Stage, ...]


ROUTES: tuple[Route, ...] = (
    Route("GET", "", "index", (index, index_view)),
    Route("GET", "/new", "new", (new,)),
    Route("POST", "/create", "create", (validate_input, create, redirect_view)),
    Route("GET", "/<int:record_id>", "show", (show, show_view)),
    Route("GET", "/<int:record_id>/edit", "edit", (edit,)),
    Route("PUT", "/<int:record_id>/update", "update", (validate_input, update, redirect_view)),
    Route("DELETE", "/<int:record_id>/delete", "delete", (delete, redirect_view)),
)


def _make_view(resource: Resource, stages: tuple[Stage, ...]) -> Callable[..., ResponseReturnValue]:
    def view(record_id: int | None = None) -> ResponseReturnValue:
        ex = Exchange(
            resource=resource,
            db=db_session(),
            actor=getattr(g, "current_user", None),
            record_id=record_id,
            form=resource.form_payload(request.form),
        )
        return run_pipeline(ex, stages)

    return view


def create_blueprint(resource: Resource) -> Blueprint:
    bp = Blueprint(resource.slug, __name__)
    for route in ROUTES:
        bp.add_url_rule(
            route.rule,
            endpoint=route.endpoint,
            view_func=_make_view(resource, route.stages),
            methods=[route.method],
        )
    return bp
