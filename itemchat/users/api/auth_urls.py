from django.urls import path

from .auth_views import LoginView
from .auth_views import ProfileView
from .auth_views import RegisterView

# Token refresh/verify live in config.urls next to the other JWT endpoints.
urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("profile/", ProfileView.as_view(), name="profile"),
]
