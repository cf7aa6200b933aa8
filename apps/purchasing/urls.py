from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'purchasing'

router = DefaultRouter()
router.register(r'sessions', views.PurchaseSessionViewSet, basename='session')
router.register(
    rf'sessions/(?P<session_pk>{views.UUID_PATTERN})/items',
    views.SessionItemViewSet,
    basename='session-item',
)
router.register(r'lots', views.PurchaseLotViewSet, basename='lot')

urlpatterns = [
    # Sessions
    # GET    /api/purchasing/sessions/                 - List sessions
    # POST   /api/purchasing/sessions/                 - Plan a new day
    # GET    /api/purchasing/sessions/{id}/            - Get session
    # PATCH  /api/purchasing/sessions/{id}/            - Reschedule
    # POST   /api/purchasing/sessions/{id}/open/       - Open
    # POST   /api/purchasing/sessions/{id}/close/      - Close and sweep prices

    # Items
    # GET    /api/purchasing/sessions/{sid}/items/                 - List
    # POST   /api/purchasing/sessions/{sid}/items/                 - Add
    # PATCH  /api/purchasing/sessions/{sid}/items/{id}/            - Edit plan
    # DELETE /api/purchasing/sessions/{sid}/items/{id}/            - Remove
    # POST   /api/purchasing/sessions/{sid}/items/{id}/reserve/    - Reserve
    # POST   /api/purchasing/sessions/{sid}/items/{id}/release/    - Release
    # POST   /api/purchasing/sessions/{sid}/items/{id}/cancel/     - Cancel
    # POST   /api/purchasing/sessions/{sid}/items/{id}/confirm/    - Confirm purchase

    # Lots
    # GET    /api/purchasing/lots/?session=&variant=   - List lots
    # POST   /api/purchasing/lots/{id}/weigh/          - Record measured weight
    path('', include(router.urls)),
]
