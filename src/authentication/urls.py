"""URL patterns for authentication and profile endpoints."""

from django.urls import path

from .views import (
    AvatarView,
    FollowView,
    LoginView,
    LogoutView,
    MeView,
    ProfileView,
    RefreshView,
    RegisterView,
)

urlpatterns = [
    path("register/", RegisterView.as_view(), name="auth-register"),
    path("login/", LoginView.as_view(), name="auth-login"),
    path("refresh/", RefreshView.as_view(), name="auth-refresh"),
    path("logout/", LogoutView.as_view(), name="auth-logout"),
    path("me/", MeView.as_view(), name="auth-me"),
    path("profile/", ProfileView.as_view(), name="auth-profile"),
    path("avatar/", AvatarView.as_view(), name="auth-avatar"),
    path("follow/<str:user_id>/", FollowView.as_view(), name="auth-follow"),
]
