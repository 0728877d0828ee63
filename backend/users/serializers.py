from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import exceptions, serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    u_id = serializers.UUIDField(source='id', read_only=True)
    password = serializers.CharField(write_only=True, required=False)

    class Meta:
        model = User
        fields = ['id', 'u_id', 'username', 'email', 'display_name', 'role', 'is_active', 'date_joined', 'password']
        read_only_fields = ['id', 'u_id', 'date_joined']


class ProfileSerializer(serializers.ModelSerializer):
    """Self-service profile: a user cannot change their own role or status."""

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'display_name', 'role', 'is_active']
        read_only_fields = ['id', 'username', 'role', 'is_active']


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Issues tokens only to active users whose role may sign in."""

    default_error_messages = {
        **TokenObtainPairSerializer.default_error_messages,
        'inactive_account': 'Your account is inactive. Please contact administrator.',
        'role_denied': 'Access denied. Admin privileges required.',
    }

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.role
        return token

    def validate(self, attrs):
        username = attrs.get(self.username_field)
        candidate = User.objects.filter(**{self.username_field: username}).first()
        if candidate is not None and not candidate.is_active and candidate.check_password(attrs.get('password')):
            raise exceptions.AuthenticationFailed(self.error_messages['inactive_account'], 'inactive_account')

        data = super().validate(attrs)

        if not (self.user.is_superuser or self.user.role in settings.ERP_LOGIN_ROLES):
            raise exceptions.PermissionDenied(self.error_messages['role_denied'])

        data['user'] = ProfileSerializer(self.user).data
        return data
