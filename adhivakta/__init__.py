from __future__ import annotations

import click
from flask import Flask, jsonify

from adhivakta.cases import cases_bp
from adhivakta.cases.hearings import resync_hearings
from adhivakta.core.auth import auth_bp, users_bp
from adhivakta.core.config import Config
from adhivakta.core.errors import Unauthenticated, register_error_handlers
from adhivakta.core.extensions import db, login_manager, migrate, tasks
from adhivakta.core.identity import load_identity
from adhivakta.core.log import configure_logging
from adhivakta.core.models import Role, User, seed_demo_data
from adhivakta.core.notifications import init_notifier
from adhivakta.core.storage import init_storage


def create_app(config_object: type[Config] | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    configure_logging(app)
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    tasks.init_app(app)
    init_storage(app)
    init_notifier(app)

    app.before_request(load_identity)

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(cases_bp)

    register_error_handlers(app)
    register_cli(app)
    register_routes(app)
    return app


@login_manager.user_loader
def load_user(user_id: str) -> User | None:
    user = db.session.get(User, int(user_id))
    return user if user is not None and user.is_active else None


@login_manager.unauthorized_handler
def unauthorized():
    raise Unauthenticated()


def register_routes(app: Flask) -> None:
    @app.get("/api/health")
    def health():
        return jsonify({"success": True, "status": "ok"})


def register_cli(app: Flask) -> None:
    @app.cli.command("seed-demo")
    @click.option("--reset", is_flag=True, help="Delete existing data before seed.")
    def seed_demo(reset: bool) -> None:
        """Seed demo users, a case and its hearing."""
        if reset:
            db.drop_all()
            db.create_all()
        if not User.query.first():
            seed_demo_data(db.session)
            click.echo("Demo data seeded.")
        else:
            click.echo("Seed skipped: existing users found.")

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--name", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(email: str, name: str, password: str) -> None:
        """Create an administrator account."""
        email = email.strip().lower()
        if User.query.filter_by(email=email).first():
            raise click.ClickException(f"User {email} already exists")
        user = User(email=email, full_name=name.strip(), role=Role.ADMIN)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f"Admin {email} created.")

    @app.cli.command("resync-hearings")
    @click.option("--case-id", type=int, default=None, help="Only reconcile this case.")
    def resync_hearings_command(case_id: int | None) -> None:
        """Reconcile hearing events with case hearing dates."""
        synced, failed = resync_hearings(case_id)
        click.echo(f"Hearings synced: {synced}, failed: {failed}")
