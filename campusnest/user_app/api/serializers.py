from rest_framework import serializers

from housing_app.models import GENDER_CHOICES, Profile, ROLE_MERCHANT, ROLE_STUDENT


SIGNUP_ROLE_CHOICES = ((ROLE_STUDENT, "Student"), (ROLE_MERCHANT, "Merchant"))


class RegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'}, write_only=True)
    password2 = serializers.CharField(style={'input_type': 'password'}, write_only=True)
    full_name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=SIGNUP_ROLE_CHOICES, default=ROLE_STUDENT)
    redirect_to = serializers.URLField(required=False, allow_blank=True)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_full_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Full name is required.")
        return value

    def validate(self, attrs):
        if attrs.get('password') != attrs.get('password2'):
            raise serializers.ValidationError({'password2': 'Passwords do not match.'})
        return attrs


class EmailConfirmSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'}, trim_whitespace=False)


class RefreshTokenSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class OAuthStartSerializer(serializers.Serializer):
    redirect_to = serializers.URLField(required=False, allow_blank=True)


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    redirect_to = serializers.URLField(required=False, allow_blank=True)


class PasswordResetConfirmSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(trim_whitespace=False)
    confirm_password = serializers.CharField(trim_whitespace=False)

    def validate(self, attrs):
        if attrs["new_password"] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": "Passwords do not match."})
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(trim_whitespace=False)
    confirm_password = serializers.CharField(trim_whitespace=False)

    def validate_current_password(self, value):
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate(self, attrs):
        if attrs["new_password"] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": "Passwords do not match."})
        return attrs


class ProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)
    preferred_gender_accommodation = serializers.ChoiceField(
        choices=GENDER_CHOICES, required=False, allow_blank=True
    )

    class Meta:
        model = Profile
        fields = [
            "id",
            "email",
            "full_name",
            "role",
            "phone",
            "avatar_url",
            "gender",
            "preferred_location",
            "preferred_property_type",
            "preferred_gender_accommodation",
            "max_budget",
            "notifications_enabled",
            "email_confirmed",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "email", "role", "avatar_url", "email_confirmed", "created_at", "updated_at"]

    def validate_phone(self, value):
        digits = value.replace(" ", "").replace("-", "")
        if digits and not digits.lstrip("+").isdigit():
            raise serializers.ValidationError("Phone number may contain digits, spaces, dashes and a leading +.")
        return value.strip()
