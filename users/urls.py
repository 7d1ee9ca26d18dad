# users/urls.py
from django.urls import path
from .views import PresenceView, SessionView

urlpatterns = [
    path("me/", SessionView.as_view(), name="session"),
    path("<str:uid>/presence/", PresenceView.as_view(), name="user-presence"),
]
