import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import generics, status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from housing_app.models import Profile
from housing_app.services import identity
from housing_app.services.client import get_client
from housing_app.services.storage import store_avatar
from housing_app.validators import validate_avatar_image

from user_app.api.serializers import (
    ChangePasswordSerializer,
    EmailConfirmSerializer,
    LoginSerializer,
    OAuthStartSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    ProfileSerializer,
    RefreshTokenSerializer,
    RegistrationSerializer,
)

logger = logging.getLogger(__name__)


def _session_body(session):
    body = session.model_dump(mode="json")
    # SimpleJWT-style aliases
    body["access"] = session.access_token
    body["refresh"] = session.refresh_token
    return body


# --------------------
# Registration
# --------------------
class RegistrationView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "register"

    def post(self, request):
        ser = RegistrationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        user = identity.register_account(
            data["email"],
            data["password"],
            data={"full_name": data["full_name"], "role": data["role"]},
            redirect_to=data.get("redirect_to") or None,
        )
        return Response(
            {
                "user": identity.identity_for(user).model_dump(),
                "detail": "Please check your email to confirm your account.",
            },
            status=status.HTTP_201_CREATED,
        )


class EmailConfirmView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        ser = EmailConfirmSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        identity.confirm_account(ser.validated_data["uid"], ser.validated_data["token"])
        return Response({"detail": "Email confirmed. You can now sign in."})


# --------------------
# Auth / Login
# --------------------
class LoginView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "login"

    def post(self, request):
        ser = LoginSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = identity.authenticate_password(ser.validated_data["email"], ser.validated_data["password"])
        return Response(_session_body(identity.issue_session(user)), status=status.HTTP_200_OK)


class TokenRefreshView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        ser = RefreshTokenSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return Response(_session_body(identity.refresh_session(ser.validated_data["refresh"])))


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = RefreshTokenSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        identity.revoke(ser.validated_data["refresh"])
        return Response({"detail": "Logged out."})


class OAuthStartView(APIView):
    """POST /api/auth/oauth/<provider>/ → the provider's authorize URL."""
    permission_classes = [AllowAny]

    def post(self, request, provider):
        ser = OAuthStartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        url = identity.oauth_authorize_url(provider, ser.validated_data.get("redirect_to") or None)
        return Response({"provider": provider, "url": url})


# --------------------
# Passwords
# --------------------
class PasswordResetRequestView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "password-reset"

    def post(self, request):
        ser = PasswordResetRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        identity.send_password_reset(ser.validated_data["email"], ser.validated_data.get("redirect_to") or None)
        # same answer whether or not the address is registered
        return Response({"detail": "If that address is registered, a reset link is on its way."})


class PasswordResetConfirmView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "password-reset"

    def post(self, request):
        ser = PasswordResetConfirmSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        identity.reset_password(data["uid"], data["token"], data["new_password"])
        return Response({"detail": "Password has been reset."})


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = ChangePasswordSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)
        identity.change_password(request.user, ser.validated_data["new_password"])
        return Response({"detail": "Password updated."})


# --------------------
# Profile
# --------------------
class ProfileView(generics.RetrieveUpdateAPIView):
    """GET / PATCH /api/profile/: the signed-in user's profile row."""
    serializer_class = ProfileSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "patch", "head", "options"]

    def get_object(self):
        user = self.request.user
        profile, _ = Profile.objects.get_or_create(user=user, defaults={"email": user.email})
        return profile


class AvatarUploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        file_obj = request.FILES.get("avatar")
        if not file_obj:
            return Response(
                {"avatar": "File is required (form-data key 'avatar')."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            validate_avatar_image(file_obj)
        except DjangoValidationError as e:
            msg = "; ".join(str(m) for m in e.messages)
            return Response({"detail": msg}, status=status.HTTP_400_BAD_REQUEST)

        url = store_avatar(get_client().storage, request.user.pk, file_obj)
        profile, _ = Profile.objects.get_or_create(user=request.user, defaults={"email": request.user.email})
        profile.avatar_url = url
        profile.save(update_fields=["avatar_url", "updated_at"])
        logger.info("avatar updated for user %s", request.user.pk)
        return Response({"avatar_url": url}, status=status.HTTP_200_OK)
