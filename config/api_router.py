from django.conf import settings
from django.urls import include
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from itemchat.chats.api.views import ChatViewSet
from itemchat.items.api.views import ItemViewSet
from itemchat.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("items", ItemViewSet)
router.register("chats", ChatViewSet, basename="chat")


app_name = "api"
urlpatterns = [
    path(
        "audit/",
        include(("itemchat.audit.api.urls", "audit"), namespace="audit"),
    ),
    *router.urls,
]
