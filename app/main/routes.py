"""
app/main/routes.py
──────────────────
Landing redirect and the health probe.
"""
from datetime import datetime, timezone

from flask import redirect, url_for, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.main import main
from app.auth.decorators import login_required


@main.route('/')
@login_required
def index():
    """The counter screen is the home page."""
    return redirect(url_for('billing.index'))


@main.route("/health")
def health():
    """Health check for load balancers and monitoring."""
    status = "ok"
    failures = []

    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db.session.rollback()
        status = "error"
        failures.append(f"DB: {str(e)}")
        current_app.logger.error(f"Health check failed (DB): {e}")

    response = {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "details": {
            "db": "ok" if not failures else "error",
        }
    }

    if failures:
        response["failures"] = failures

    return response, 200 if status != "error" else 500
