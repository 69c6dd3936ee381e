from django.urls import path

from user_app.api.views import (
    AvatarUploadView,
    ChangePasswordView,
    EmailConfirmView,
    LoginView,
    LogoutView,
    OAuthStartView,
    PasswordResetConfirmView,
    PasswordResetRequestView,
    ProfileView,
    RegistrationView,
    TokenRefreshView,
)

urlpatterns = [
    path("auth/register/",                RegistrationView.as_view(),          name="auth-register"),
    path("auth/confirm/",                 EmailConfirmView.as_view(),          name="auth-confirm"),
    path("auth/login/",                   LoginView.as_view(),                 name="auth-login"),
    path("auth/token/refresh/",           TokenRefreshView.as_view(),          name="auth-token-refresh"),
    path("auth/logout/",                  LogoutView.as_view(),                name="auth-logout"),
    path("auth/oauth/<str:provider>/",    OAuthStartView.as_view(),            name="auth-oauth"),
    path("auth/password-reset/",          PasswordResetRequestView.as_view(),  name="password-reset"),
    path("auth/password-reset/confirm/",  PasswordResetConfirmView.as_view(),  name="password-reset-confirm"),
    path("auth/password/",                ChangePasswordView.as_view(),        name="auth-password"),

    path("profile/",                      ProfileView.as_view(),               name="profile"),
    path("profile/avatar/",               AvatarUploadView.as_view(),          name="profile-avatar"),
]
