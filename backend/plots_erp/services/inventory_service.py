# Overview: Service-layer operations for projects and plots (inventory setup and reads).

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Project, Plot
from ..constants import ProjectStatus, PlotSizeUnit, Facing, PlotStatus
from ..errors import NotFoundError
from ..permissions import SETTINGS_CRUD, EDIT_RATES
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
    enforce_rules_plot_rates,
    enforce_positive_size,
)
from . import permission_service


PROJECT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "code", "location_city", "location_area", "geo_lat", "geo_lng",
        "developer_name", "launch_date", "status", "default_plot_size_unit",
        "base_rate_cents", "amenities",
    },
    required_on_create={"name", "code"},
    choices={
        "status": set(ProjectStatus.ALL),
        "default_plot_size_unit": set(PlotSizeUnit.ALL),
    },
)

PLOT_POLICY = ModelValidationPolicy(
    writable_fields={
        "block", "phase", "plot_no", "size", "size_unit", "facing", "corner",
        "base_rate_cents", "current_rate_cents", "min_rate_cents", "max_rate_cents",
        "coordinates", "utilities", "tags", "notes",
    },
    required_on_create={
        "plot_no", "size", "base_rate_cents", "current_rate_cents",
        "min_rate_cents", "max_rate_cents",
    },
    choices={
        "size_unit": set(PlotSizeUnit.ALL),
        "facing": set(Facing.ALL),
    },
)


def create_project(user, **fields) -> Project:
    permission_service.require_capability(user, SETTINGS_CRUD)
    patch = validate_payload(model=Project, payload=fields, policy=PROJECT_POLICY, partial=False)
    patch["code"] = patch["code"].upper()

    if db.session.query(Project.id).filter_by(code=patch["code"]).first() is not None:
        raise ValidationError(f"Project code already exists: {patch['code']}")

    project = Project(**patch)
    project.created_by_user_id = user.id
    db.session.add(project)
    db.session.commit()
    current_app.logger.info("Project %s created by user_id=%s", project.code, user.id)
    return project


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found", details={"project_id": project_id})
    return project


def list_projects(status: str | None = None) -> list[Project]:
    q = db.session.query(Project)
    if status:
        q = q.filter(Project.status == status)
    return q.order_by(Project.name.asc()).all()


def add_plot(user, project_id: int, **fields) -> Plot:
    """
    Add a plot to a project. New plots always start available.

    Rates must satisfy min <= current <= max; plot_no is unique per project.
    """
    permission_service.require_capability(user, EDIT_RATES)
    project = get_project(project_id)

    patch = validate_payload(model=Plot, payload=fields, policy=PLOT_POLICY, partial=False)
    enforce_positive_size(patch)
    enforce_rules_plot_rates(patch)
    patch.setdefault("size_unit", project.default_plot_size_unit)

    duplicate = (
        db.session.query(Plot.id)
        .filter(Plot.project_id == project.id, Plot.plot_no == patch["plot_no"])
        .first()
    )
    if duplicate is not None:
        raise ValidationError(
            f"Plot {patch['plot_no']} already exists in project {project.code}"
        )

    plot = Plot(project_id=project.id, status=PlotStatus.AVAILABLE, **patch)
    db.session.add(plot)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(
            f"Plot {patch['plot_no']} already exists in project {project.code}"
        )
    current_app.logger.info(
        "Plot %s added to project %s by user_id=%s", plot.plot_no, project.code, user.id,
    )
    return plot


def get_plot(plot_id: int) -> Plot:
    plot = db.session.get(Plot, plot_id)
    if plot is None:
        raise NotFoundError(f"Plot {plot_id} not found", details={"plot_id": plot_id})
    return plot


def list_plots(
    project_id: int | None = None,
    status: str | None = None,
    facing: str | None = None,
) -> list[Plot]:
    if status is not None and status not in PlotStatus.ALL:
        raise ValidationError(f"status must be one of: {', '.join(sorted(PlotStatus.ALL))}")

    q = db.session.query(Plot)
    if project_id is not None:
        q = q.filter(Plot.project_id == project_id)
    if status:
        q = q.filter(Plot.status == status)
    if facing:
        q = q.filter(Plot.facing == facing)
    return q.order_by(Plot.project_id.asc(), Plot.plot_no.asc()).all()
