from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import authenticate
from .models import CustomUser

ACCOUNT_STATUS_ERRORS = {
    'PENDING': "This account is awaiting approval",
    'REJECTED': "This account has been rejected",
    'SUSPENDED': "This account has been suspended",
}


def account_status_error(user):
    """Returns the reason an account may not sign in, or None once it is approved."""
    if user.is_approved:
        return None
    return ACCOUNT_STATUS_ERRORS.get(user.account_status, "This account is not active")


class CustomUserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(min_length=8, write_only=True)

    class Meta:
        model = CustomUser
        fields = ['id', 'email', 'name', 'phone_number', 'password', 'account_status']
        read_only_fields = ['account_status']

    def create(self, validated_data):
        # New accounts wait for platform approval before they can join a store
        return CustomUser.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data.get('name'),
            phone_number=validated_data.get('phone_number'),
        )

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        email = data.get('email')
        password = data.get('password')

        user = authenticate(request=self.context.get('request'), email=email, password=password)
        if not user:
            raise serializers.ValidationError("Invalid credentials")
        error = account_status_error(user)
        if error:
            raise serializers.ValidationError(error)

        data['user'] = user
        return data


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['id', 'email', 'name']


class AdminUserDetailSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = [
            'id', 'email', 'name', 'phone_number', 'account_status',
            'approved_at', 'is_super_admin', 'is_active', 'date_joined',
        ]
        read_only_fields = ['id', 'email', 'approved_at', 'date_joined']


class ApprovedTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token pair for approved accounts only"""

    def validate(self, attrs):
        data = super().validate(attrs)
        error = account_status_error(self.user)
        if error:
            raise AuthenticationFailed(error)
        return data
