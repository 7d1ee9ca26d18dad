# fanbase/settings_test.py
from .settings import *  # noqa: F401,F403

DEBUG = False

DOCUMENT_STORE_BACKEND = "tests.fakes.memory_store.MemoryDocumentStore"

CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

WEBSOCKET_HEARTBEAT_INTERVAL = 3600

FIREBASE_CONFIG = None
FIREBASE_CERT_PATH = None
FIREBASE_PROJECT_ID = "fanbase-test"

LOGGING["loggers"]["messaging"]["level"] = "DEBUG"  # noqa: F405
