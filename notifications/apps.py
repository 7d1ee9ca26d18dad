# notifications/apps.py
from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    name = "notifications"
