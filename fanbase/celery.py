# fanbase/celery.py
import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fanbase.settings")

app = Celery("fanbase")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
