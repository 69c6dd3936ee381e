# user_app/tests.py
from io import StringIO
from urllib.parse import parse_qs, urlparse

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.urls import reverse
from rest_framework import status

from housing_app.models import Profile
from notifications.models import OutboundNotification


def link_params(user, template_key):
    out = OutboundNotification.objects.filter(user=user, template_key=template_key).latest("created_at")
    url = out.context.get("confirm_url") or out.context.get("reset_url")
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


pytestmark = pytest.mark.django_db


def test_register(api_client):
    data = {
        "email": "Newcomer@Example.com",
        "password": "NewPassword@123",
        "password2": "NewPassword@123",
        "full_name": "New Comer",
        "role": "merchant",
    }

    response = api_client.post(reverse("api:auth-register"), data, format="json")
    assert response.status_code == status.HTTP_201_CREATED, response.data
    assert response.data["user"]["email"] == "newcomer@example.com"

    profile = Profile.objects.get(email="newcomer@example.com")
    assert profile.role == "merchant"
    assert not profile.email_confirmed


def test_register_password_mismatch(api_client):
    data = {
        "email": "x@example.com",
        "password": "NewPassword@123",
        "password2": "Different@123",
        "full_name": "X",
    }
    response = api_client.post(reverse("api:auth-register"), data, format="json")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "password2" in response.data["field_errors"]


# --------------------
# Registration & login
# --------------------
def test_register_confirm_login_refresh_logout(api_client):
    api_client.post(reverse("api:auth-register"), {
        "email": "sam@example.com",
        "password": "Campus-Nest-2030",
        "password2": "Campus-Nest-2030",
        "full_name": "Sam Student",
    })
    user = get_user_model().objects.get(email="sam@example.com")
    creds = {"email": "sam@example.com", "password": "Campus-Nest-2030"}

    r = api_client.post(reverse("api:auth-login"), creds)
    assert r.status_code == 403
    assert r.data["code"] == "email_not_confirmed"

    r = api_client.post(reverse("api:auth-confirm"), link_params(user, "auth.confirm_signup"))
    assert r.status_code == 200

    r = api_client.post(reverse("api:auth-login"), creds)
    assert r.status_code == 200
    assert r.data["user"]["id"] == user.pk
    assert r.data["access"] == r.data["access_token"]
    first_refresh = r.data["refresh"]

    r = api_client.post(reverse("api:auth-token-refresh"), {"refresh": first_refresh})
    assert r.status_code == 200
    access, refresh = r.data["access"], r.data["refresh"]

    r = api_client.post(reverse("api:auth-token-refresh"), {"refresh": first_refresh})
    assert r.status_code == 401
    assert r.data["code"] == "refresh_token_not_found"

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    r = api_client.post(reverse("api:auth-logout"), {"refresh": refresh})
    assert r.status_code == 200

    api_client.credentials()
    r = api_client.post(reverse("api:auth-token-refresh"), {"refresh": refresh})
    assert r.status_code == 401


def test_register_duplicate_email(api_client, user):
    r = api_client.post(reverse("api:auth-register"), {
        "email": "ALICE@example.com",
        "password": "Campus-Nest-2030",
        "password2": "Campus-Nest-2030",
        "full_name": "Alice Again",
    })
    assert r.status_code == 409
    assert r.data["code"] == "user_already_exists"


def test_register_cannot_pick_admin_role(api_client):
    r = api_client.post(reverse("api:auth-register"), {
        "email": "sneaky@example.com",
        "password": "Campus-Nest-2030",
        "password2": "Campus-Nest-2030",
        "full_name": "Sneaky",
        "role": "admin",
    })
    assert r.status_code == 400
    assert "role" in r.data["field_errors"]


def test_register_weak_password(api_client):
    r = api_client.post(reverse("api:auth-register"), {
        "email": "weak@example.com",
        "password": "123",
        "password2": "123",
        "full_name": "Weak",
    })
    assert r.status_code == 400
    assert r.data["code"] == "weak_password"


def test_login_wrong_password(api_client, user):
    r = api_client.post(reverse("api:auth-login"), {"email": user.email, "password": "nope"})
    assert r.status_code == 400
    assert r.data["code"] == "invalid_credentials"
    assert r.data["message"] == "Invalid login credentials"


def test_confirm_with_bad_token(api_client, user):
    r = api_client.post(reverse("api:auth-confirm"), {"uid": "MQ", "token": "bad-token"})
    assert r.status_code == 400
    assert r.data["code"] == "otp_expired"


def test_logout_requires_auth(api_client):
    r = api_client.post(reverse("api:auth-logout"), {"refresh": "x"})
    assert r.status_code == 401


# --------------------
# OAuth
# --------------------
def test_oauth_start(api_client):
    r = api_client.post(reverse("api:auth-oauth", args=["google"]), {"redirect_to": "http://frontend.test/done"})
    assert r.status_code == 200
    assert r.data["provider"] == "google"
    assert r.data["url"].startswith("https://accounts.google.com/")


def test_oauth_unknown_provider(api_client):
    r = api_client.post(reverse("api:auth-oauth", args=["github"]), {})
    assert r.status_code == 400
    assert r.data["code"] == "provider_disabled"


# --------------------
# Passwords
# --------------------
def test_password_reset_round_trip(api_client, user):
    r = api_client.post(reverse("api:password-reset"), {"email": user.email})
    assert r.status_code == 200

    params = link_params(user, "auth.password_reset")
    r = api_client.post(reverse("api:password-reset-confirm"), {
        "uid": params["uid"],
        "token": params["token"],
        "new_password": "Fresh-Start-2030",
        "confirm_password": "Fresh-Start-2030",
    })
    assert r.status_code == 200

    r = api_client.post(reverse("api:auth-login"), {"email": user.email, "password": "Fresh-Start-2030"})
    assert r.status_code == 200


def test_password_reset_unknown_email_looks_the_same(api_client):
    r = api_client.post(reverse("api:password-reset"), {"email": "ghost@example.com"})
    assert r.status_code == 200
    assert not OutboundNotification.objects.exists()


def test_change_password(auth_client, user):
    url = reverse("api:auth-password")
    r = auth_client.post(url, {
        "current_password": "wrong",
        "new_password": "Fresh-Start-2030",
        "confirm_password": "Fresh-Start-2030",
    })
    assert r.status_code == 400
    assert "current_password" in r.data["field_errors"]

    r = auth_client.post(url, {
        "current_password": "pass12345",
        "new_password": "Fresh-Start-2030",
        "confirm_password": "Fresh-Start-2030",
    })
    assert r.status_code == 200
    user.refresh_from_db()
    assert user.check_password("Fresh-Start-2030")


# --------------------
# Profile
# --------------------
def test_profile_get_and_patch(auth_client, user):
    url = reverse("api:profile")
    r = auth_client.get(url)
    assert r.status_code == 200
    assert r.data["id"] == user.pk
    assert r.data["full_name"] == "Alice Student"

    r = auth_client.patch(url, {"phone": "+91 98765-43210", "preferred_location": "Pune", "role": "admin"})
    assert r.status_code == 200
    assert r.data["phone"] == "+91 98765-43210"
    assert r.data["role"] == "student"
    assert Profile.objects.get(user=user).preferred_location == "Pune"


def test_profile_rejects_bad_phone(auth_client):
    r = auth_client.patch(reverse("api:profile"), {"phone": "call me"})
    assert r.status_code == 400
    assert "phone" in r.data["field_errors"]


def test_profile_put_not_allowed(auth_client):
    assert auth_client.put(reverse("api:profile"), {}).status_code == 405


def test_avatar_upload(auth_client, user):
    avatar = SimpleUploadedFile("me.png", b"\x89PNG\r\n\x1a\n fake", content_type="image/png")
    r = auth_client.post(reverse("api:profile-avatar"), {"avatar": avatar}, format="multipart")

    assert r.status_code == 200
    assert r.data["avatar_url"].startswith(f"http://media.campusnest.test/media/storage/avatars/{user.pk}/")
    assert Profile.objects.get(user=user).avatar_url == r.data["avatar_url"]


def test_avatar_upload_requires_file(auth_client):
    r = auth_client.post(reverse("api:profile-avatar"), {}, format="multipart")
    assert r.status_code == 400


def test_avatar_upload_rejects_non_images(auth_client):
    doc = SimpleUploadedFile("cv.pdf", b"%PDF-1.4", content_type="application/pdf")
    r = auth_client.post(reverse("api:profile-avatar"), {"avatar": doc}, format="multipart")
    assert r.status_code == 400
    assert "Unsupported image type" in r.data["detail"]


# --------------------
# Admin bootstrap
# --------------------
def test_create_admin_skipped_without_flag(monkeypatch):
    monkeypatch.delenv("CREATE_ADMIN", raising=False)
    out = StringIO()
    call_command("create_or_reset_admin", stdout=out)
    assert "skipping" in out.getvalue()
    assert not get_user_model().objects.filter(is_superuser=True).exists()


def test_create_then_reset_admin(monkeypatch):
    monkeypatch.setenv("CREATE_ADMIN", "1")
    monkeypatch.setenv("ADMIN_EMAIL", "Boss@CampusNest.in")
    monkeypatch.setenv("ADMIN_PASSWORD", "first-Secret-1")
    call_command("create_or_reset_admin", stdout=StringIO())

    admin = get_user_model().objects.get(username="boss@campusnest.in")
    assert admin.is_superuser
    assert admin.profile.role == "admin"
    assert admin.profile.email_confirmed

    monkeypatch.setenv("ADMIN_PASSWORD", "second-Secret-2")
    out = StringIO()
    call_command("create_or_reset_admin", stdout=out)
    admin.refresh_from_db()
    assert admin.check_password("second-Secret-2")
    assert "password reset" in out.getvalue()
