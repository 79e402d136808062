"""Application factory and extension initialization for ExpenseFlow."""
from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from config import config_by_name

# Global extension instances -------------------------------------------------

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_name: Optional[str] = None) -> Flask:
    """Flask application factory."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    config_name = config_name or os.getenv("FLASK_CONFIG", "development")
    config_class = config_by_name.get(config_name.lower())
    if config_class is None:
        raise ValueError(f"Unknown Flask configuration '{config_name}'")

    app.config.from_object(config_class)

    # Ensure instance folder exists for SQLite DBs
    os.makedirs(app.instance_path, exist_ok=True)

    logging.getLogger("expenseflow").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from expenseflow.admin import admin_bp
    from expenseflow.approvals import approvals_bp
    from expenseflow.expenses import expenses_bp

    app.register_blueprint(admin_bp)
    app.register_blueprint(approvals_bp)
    app.register_blueprint(expenses_bp)

    from expenseflow.errors import register_error_handlers
    register_error_handlers(app)

    # Import all models to ensure they are registered with SQLAlchemy
    from expenseflow.models import (  # noqa: F401
        ApprovalFlow, ApprovalRule, AuditLog, Company, EmployeeProfile,
        Expense, ExpenseApproval, FlowStep, RuleCondition, User,
    )

    @app.shell_context_processor
    def shell_context():
        return {"db": db, "User": User, "Expense": Expense}

    return app
