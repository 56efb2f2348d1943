import logging

from flask import Flask, jsonify
from config import Config
from routes import health_bp, availability_bp, reservations_bp, payments_bp, audit_bp

from models import db
from flask_migrate import Migrate
from utils.auth_context import load_current_user
from booking.errors import BookingError


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(availability_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(BookingError)
    def _booking_error(err):
        body = {"error": err.message, "code": err.code}
        if err.details:
            body["details"] = err.details
        return jsonify(body), err.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from booking import availability, materializer

def register_cli(app):
    @app.cli.command("materialize")
    @click.argument("template_id", type=int)
    @click.argument("start_date")
    @click.argument("end_date", required=False)
    def materialize(template_id, start_date, end_date):
        """Expand a weekly template into sessions for START_DATE[..END_DATE]."""
        try:
            template = availability.get_template(template_id)
            start = availability.parse_date(start_date, "start_date")
            end = availability.parse_date(end_date, "end_date") if end_date else start
            sessions = materializer.materialize_range(template, start, end)
        except BookingError as e:
            raise click.ClickException(e.message)

        for s in sessions:
            print(f"session {s.id}: {s.date.isoformat()} {s.start_time:%H:%M}-{s.end_time:%H:%M} capacity={s.capacity}")
        print(f"{len(sessions)} session(s) ready")

    @app.cli.command("init-db")
    def init_db():
        """Create tables directly (development without migrations)."""
        db.create_all()
        print("Database tables created")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
