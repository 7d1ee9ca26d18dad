# core/firebase.py
import json
import logging
import os

import firebase_admin
from firebase_admin import credentials
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


def _load_credentials():
    # FIREBASE_CONFIG holds the service account JSON itself
    firebase_config = getattr(settings, "FIREBASE_CONFIG", None)
    if firebase_config:
        if isinstance(firebase_config, str):
            firebase_config = json.loads(firebase_config)
        return credentials.Certificate(firebase_config)

    cert_path = getattr(settings, "FIREBASE_CERT_PATH", None)
    if cert_path and os.path.exists(cert_path):
        return credentials.Certificate(cert_path)

    # Falls back to GOOGLE_APPLICATION_CREDENTIALS / metadata server
    logger.warning(
        "No Firebase service account configured, using application default credentials"
    )
    return credentials.ApplicationDefault()


def get_app():
    """Return the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    try:
        cred = _load_credentials()
    except (ValueError, OSError) as e:
        raise ImproperlyConfigured(f"Invalid Firebase credentials: {e}") from e

    options = {}
    project_id = getattr(settings, "FIREBASE_PROJECT_ID", None)
    if project_id:
        options["projectId"] = project_id

    app = firebase_admin.initialize_app(cred, options or None)
    logger.info("Firebase app initialized for project %s", project_id or "<default>")
    return app
