from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, AuditLog
from .permissions import get_role_permissions


class UserSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'whatsapp_number',
                  'role', 'store', 'store_name', 'is_active', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['role', 'is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone', 'whatsapp_number']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True, role=self.context.get('role', User.ROLE_CUSTOMER))
        user.set_password(password)
        user.save()
        return user


class TeamMemberSerializer(serializers.ModelSerializer):
    """Back-office member; role is writable but CUSTOMER is not allowed"""
    password = serializers.CharField(write_only=True, required=False, validators=[validate_password])
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'whatsapp_number',
                  'role', 'store', 'is_active', 'password', 'permissions', 'created_at']
        read_only_fields = ['created_at']

    def get_permissions(self, obj):
        return get_role_permissions(obj.role)

    def validate_role(self, value):
        if value == User.ROLE_CUSTOMER:
            raise serializers.ValidationError("Team members cannot have the CUSTOMER role.")
        return value

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        if not password:
            raise serializers.ValidationError({'password': 'This field is required.'})
        validated_data.setdefault('role', User.ROLE_STAFF)
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
