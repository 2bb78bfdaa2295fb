import logging

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import authenticate

from .serializers import LoginSerializer, UserSerializer

logger = logging.getLogger(__name__)


class LoginAPIView(APIView):
    """
    Login API endpoint that authenticates users and returns JWT tokens with user details.
    """
    permission_classes = [AllowAny]
    serializer_class = LoginSerializer

    def post(self, request):
        """
        Authenticate user with email and password.

        Expected payload:
        {
            "email": "user@example.com",
            "password": "userpassword"
        }

        Returns:
        - JWT access and refresh tokens
        - User profile information
        """
        serializer = LoginSerializer(data=request.data)

        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email']
        password = serializer.validated_data['password']

        user = authenticate(request, username=email, password=password)

        if user is None:
            logger.warning("Failed login attempt", extra={"email": email})
            return Response(
                {"error": "Invalid email or password"},
                status=status.HTTP_401_UNAUTHORIZED
            )
        if not user.is_active:
            return Response(
                {"error": "Account is deactivated"},
                status=status.HTTP_401_UNAUTHORIZED
            )

        refresh = RefreshToken.for_user(user)
        response_data = {
            'access_token': str(refresh.access_token),
            'refresh_token': str(refresh),
            **UserSerializer(user).data
        }
        return Response(response_data, status=status.HTTP_200_OK)
