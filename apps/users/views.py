"""
Views for the Users app.

Authentication is JWT based; responses use camelCase and a flat token
structure.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.users.serializers import (
    ChangePasswordSerializer,
    UserRegistrationSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


def _build_auth_response(user, refresh_token, http_status=status.HTTP_200_OK):
    """Helper to build a consistent auth response with camelCase tokens."""
    return Response(
        {
            'success': True,
            'user': UserSerializer(user).data,
            'accessToken': str(refresh_token.access_token),
            'refreshToken': str(refresh_token),
        },
        status=http_status,
    )


def _error(code, message, http_status):
    return Response(
        {
            'success': False,
            'error': {
                'code': code,
                'message': message,
            },
        },
        status=http_status,
    )


class RegisterView(APIView):
    """
    Register a new user account.

    POST /api/v1/auth/register/
    Body: {"firstName": "...", "lastName": "...", "email": "...", "password": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        refresh = RefreshToken.for_user(user)
        return _build_auth_response(user, refresh, status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Login with email and password to obtain JWT tokens.

    POST /api/v1/auth/login/
    Body: {"email": "...", "password": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        email = (request.data.get('email') or '').strip().lower()
        password = request.data.get('password')

        if not email or not password:
            return _error(
                'validation_error',
                'Both email and password are required.',
                status.HTTP_400_BAD_REQUEST,
            )

        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            return _error(
                'authentication_failed',
                'Invalid email or password.',
                status.HTTP_401_UNAUTHORIZED,
            )

        if not user.check_password(password):
            return _error(
                'authentication_failed',
                'Invalid email or password.',
                status.HTTP_401_UNAUTHORIZED,
            )

        if not user.is_active:
            return _error(
                'account_disabled',
                'This account has been disabled.',
                status.HTTP_403_FORBIDDEN,
            )

        refresh = RefreshToken.for_user(user)
        return _build_auth_response(user, refresh, status.HTTP_200_OK)


class TokenRefreshView(APIView):
    """
    Refresh JWT tokens using camelCase field names.

    POST /api/v1/auth/refresh/
    Body: {"refreshToken": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        refresh_token_str = request.data.get('refreshToken') or request.data.get('refresh')
        if not refresh_token_str:
            return _error(
                'validation_error',
                'refreshToken is required.',
                status.HTTP_400_BAD_REQUEST,
            )

        try:
            old_refresh = RefreshToken(refresh_token_str)
            user = User.objects.get(id=old_refresh.payload.get('user_id'))
        except TokenError:
            return _error(
                'token_invalid',
                'Token is invalid or expired.',
                status.HTTP_401_UNAUTHORIZED,
            )
        except User.DoesNotExist:
            return _error(
                'user_not_found',
                'User not found.',
                status.HTTP_401_UNAUTHORIZED,
            )

        if settings.SIMPLE_JWT.get('ROTATE_REFRESH_TOKENS', False):
            old_refresh.blacklist()
            return _build_auth_response(user, RefreshToken.for_user(user))
        return _build_auth_response(user, old_refresh)


class LogoutView(APIView):
    """
    Logout by blacklisting the refresh token.

    POST /api/v1/auth/logout/
    Body: {"refreshToken": "<refresh_token>"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = (
            request.data.get('refreshToken')
            or request.data.get('refresh')
        )
        if not refresh_token:
            return _error(
                'validation_error',
                'Refresh token is required.',
                status.HTTP_400_BAD_REQUEST,
            )

        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as exc:
            # Already expired or blacklisted, the client is logged out either way
            logger.info('Logout with unusable refresh token for user %s: %s', request.user.id, exc)

        return Response(
            {
                'success': True,
                'message': 'Successfully logged out.',
            },
            status=status.HTTP_200_OK,
        )


class UserProfileView(APIView):
    """
    Retrieve or update the authenticated user's profile.

    GET   /api/v1/users/me/
    PATCH /api/v1/users/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response({'success': True, 'data': serializer.data})

    def patch(self, request):
        serializer = UserUpdateSerializer(
            request.user,
            data=request.data,
            partial=True,
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {
                'success': True,
                'data': UserSerializer(request.user).data,
            }
        )


class ChangePasswordView(APIView):
    """
    Change the authenticated user's password.

    POST /api/v1/users/change-password/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(
            data=request.data,
            context={'request': request},
        )
        serializer.is_valid(raise_exception=True)

        request.user.set_password(serializer.validated_data['new_password'])
        request.user.save()

        return Response(
            {
                'success': True,
                'message': 'Password changed successfully.',
            },
            status=status.HTTP_200_OK,
        )


class UserSearchView(generics.ListAPIView):
    """
    Search for users by email or name, e.g. to pick someone to add to a trip.

    GET /api/v1/users/search/?q=<query>
    """
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        query = self.request.query_params.get('q', '').strip()
        if not query or len(query) < 2:
            return User.objects.none()
        return User.objects.filter(
            Q(email__icontains=query)
            | Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
        ).exclude(id=self.request.user.id)[:20]

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})
