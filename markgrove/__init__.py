import asyncio
from pathlib import Path

import click
from flask import Flask

from markgrove.api import api_bp
from markgrove.config import Config
from markgrove.extensions import db, migrate
from markgrove.services.pipeline import IMPORT_FORMATS, detect_format, import_bookmarks
from markgrove.services.reconciler import check_policy
from markgrove.services.store import SqlBookmarkStore


def create_app(config_object=Config, store=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config["LOG_LEVEL"])
    check_policy(app.config["FOLDER_MATCH_POLICY"])

    db.init_app(app)
    migrate.init_app(app, db)

    # One store handle per app, handed to every service call.
    app.extensions["bookmark_store"] = store or SqlBookmarkStore()

    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Initialized MarkGrove database.")

    @app.cli.command("import-bookmarks")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    @click.option("--format", "fmt", type=click.Choice(sorted(IMPORT_FORMATS)))
    def import_bookmarks_command(path, fmt):
        payload = Path(path).read_text(encoding="utf-8-sig", errors="replace")
        fmt = fmt or detect_format(path, payload)
        summary = asyncio.run(
            import_bookmarks(
                app.extensions["bookmark_store"],
                payload,
                fmt,
                policy=app.config["FOLDER_MATCH_POLICY"],
            )
        )
        print(f"Imported {summary.leaves} bookmarks: {summary.report.as_dict()}")

    with app.app_context():
        db.create_all()

    return app
