"""
URL configuration for the Users app.
"""
from django.urls import path

from apps.users.views import (
    ChangePasswordView,
    LoginView,
    LogoutView,
    RegisterView,
    TokenRefreshView,
    UserProfileView,
    UserSearchView,
)

app_name = 'users'

urlpatterns = [
    # Authentication
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('auth/logout/', LogoutView.as_view(), name='logout'),

    # User profile
    path('users/me/', UserProfileView.as_view(), name='user-profile'),
    path('users/change-password/', ChangePasswordView.as_view(), name='change-password'),
    path('users/search/', UserSearchView.as_view(), name='user-search'),
]
