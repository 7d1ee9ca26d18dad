# messaging/apps.py
from django.apps import AppConfig


class MessagingConfig(AppConfig):
    name = "messaging"
