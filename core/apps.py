# core/apps.py
from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = "core"
