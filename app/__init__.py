"""
PDF Converter Application Factory
"""
import time
from datetime import datetime, timezone
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from sqlalchemy.exc import OperationalError
from config import get_config

db = SQLAlchemy()
migrate = Migrate()


def init_database(app):
    """Create tables, retrying while the database is still starting up"""
    retries = max(1, int(app.config.get('DB_CONNECT_RETRIES', 5)))
    delay = float(app.config.get('DB_CONNECT_RETRY_DELAY', 6))

    for attempt in range(1, retries + 1):
        try:
            with app.app_context():
                db.create_all()
            app.logger.info('Database initialized successfully')
            return
        except OperationalError as e:
            app.logger.warning(f'Failed to connect to database (attempt {attempt}/{retries}): {e}')
            if attempt == retries:
                raise
            time.sleep(delay)


def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from app.services.office_service import OfficeConverter, WorkingDirectory
    app.extensions['office_converter'] = OfficeConverter(
        workdir=WorkingDirectory(app.config['CONVERSION_WORKDIR']),
        command=app.config['DOCUMENT_CONVERTER'],
    )

    # Register blueprints
    from app.api import api_bp
    app.register_blueprint(api_bp)

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            db_status = "ok"
        except Exception as e:
            db_status = f"error: {e}"

        return jsonify({
            "status": "ok" if db_status == "ok" else "degraded",
            "version": app.config['APP_VERSION'],
            "database": db_status,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        from app.services.office_service import converter_available
        from app.services.pdf_service import supported_extensions

        documents = app.config['DOCUMENT_CONVERSION_ENABLED']
        return jsonify({
            "version": app.config['APP_VERSION'],
            "build_time": app.config['BUILD_TIME'],
            "git_commit": app.config['GIT_COMMIT'],
            "supported_extensions": supported_extensions(include_documents=documents),
            "features": {
                "image_conversion": True,
                "text_conversion": True,
                "document_conversion": documents,
                "document_converter_installed": converter_available(app.config['DOCUMENT_CONVERTER']),
                "zip_download": True,
            }
        })

    init_database(app)

    return app
