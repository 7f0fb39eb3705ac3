"""
URL configuration for chat API.

URL Structure:
    /chats/                  GET
    /chats/search/           GET
    /chats/{id}/messages/    GET
    /chats/{id}/read/        POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
The WebSocket endpoint lives in routing.py.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ChatViewSet

router = DefaultRouter()
router.register(r"chats", ChatViewSet, basename="chat")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
]
