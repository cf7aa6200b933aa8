import pytest
from rest_framework.test import APIClient
from apps.accounts.models import User, UserRole


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def buyer(db):
    """Create and return a buyer."""
    return User.objects.create_user(
        email='buyer@example.com',
        password='TestPass123!',
        display_name='Buyer',
    )


@pytest.fixture
def seller(db):
    """Create and return a seller."""
    return User.objects.create_user(
        email='seller@example.com',
        password='TestPass123!',
        role=UserRole.SELLER,
    )
