from rest_framework import serializers
from django.contrib.auth import get_user_model

User = get_user_model()


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user login request data.
    """
    email = serializers.EmailField(
        required=True,
        help_text="User's email address"
    )
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'},
        help_text="User's password"
    )

    def validate_email(self, value):
        return value.lower().strip()


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for user data in responses.
    """
    full_name = serializers.CharField(read_only=True)
    can_record_purchase = serializers.BooleanField(read_only=True)
    can_record_sale = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'role',
            'can_record_purchase',
            'can_record_sale',
            'phone_number',
            'is_active',
            'date_joined',
            'last_login',
        ]
        read_only_fields = fields
