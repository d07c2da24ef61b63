"""
Pytest fixtures for plots ERP backend tests.

Provides an in-memory database, a recording notifier, and user / project /
plot / lead fixtures. Time-dependent services are driven with explicit now=.
"""

from datetime import datetime

import pytest
from plots_erp import create_app
from plots_erp.extensions import db
from plots_erp.models import User, Project, Plot, Lead
from plots_erp.constants import UserRole, PlotStatus
from plots_erp.services.notification_service import RecordingNotifier, NOTIFIER_EXTENSION_KEY


T0 = datetime(2024, 5, 1, 10, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_HOLD_HOURS': 48,
        'DEFAULT_TOKEN_AMOUNT_CENTS': 5_000_000,
        'NOTIFIER': RecordingNotifier(),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        db.session.rollback()
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def notifier(app):
    recorder = app.extensions[NOTIFIER_EXTENSION_KEY]
    recorder.sent.clear()
    return recorder


def make_user(role: str, name: str | None = None, active: bool = True,
              phone: str = "+910000000000", reports_to: User | None = None) -> User:
    name = name or f"{role.title()} User"
    user = User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}@plots.test",
        phone=phone,
        role=role,
        active=active,
        reports_to_user_id=reports_to.id if reports_to is not None else None,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user(UserRole.ADMIN)


@pytest.fixture(scope='function')
def sales_user(db_session):
    return make_user(UserRole.SALES)


@pytest.fixture(scope='function')
def pm_user(db_session):
    return make_user(UserRole.PM)


@pytest.fixture(scope='function')
def finance_user(db_session):
    return make_user(UserRole.FINANCE)


@pytest.fixture(scope='function')
def project(db_session):
    project = Project(name="Green Meadows", code="GM01")
    db_session.add(project)
    db_session.commit()
    return project


def make_plot(project: Project, plot_no: str = "A-101", *, rate_cents: int = 110_000,
              size: float = 2400.0, status: str = PlotStatus.AVAILABLE) -> Plot:
    plot = Plot(
        project_id=project.id,
        plot_no=plot_no,
        size=size,
        status=status,
        base_rate_cents=rate_cents,
        current_rate_cents=rate_cents,
        min_rate_cents=rate_cents - 10_000,
        max_rate_cents=rate_cents + 10_000,
    )
    db.session.add(plot)
    db.session.commit()
    return plot


@pytest.fixture(scope='function')
def plot(project):
    """Available plot, rate 1100.00 per sqft, 2400 sqft."""
    return make_plot(project)


@pytest.fixture(scope='function')
def lead(db_session, sales_user):
    lead = Lead(
        first_name="Ravi",
        last_name="Kumar",
        phone="+919876543210",
        assigned_to_user_id=sales_user.id,
    )
    db_session.add(lead)
    db_session.commit()
    return lead
