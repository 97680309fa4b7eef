from __future__ import annotations

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from adhivakta.core.tasks import BackgroundTasks

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
tasks = BackgroundTasks()
