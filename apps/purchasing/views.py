from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import IsBuyerOrAdmin, IsPricingAdmin
from apps.core.http import HANDLED_ERRORS, error_response
from apps.pricing.serializers import DailyPriceSerializer
from .serializers import (
    PurchaseSessionSerializer,
    SessionDateSerializer,
    SessionFilterSerializer,
    SessionItemSerializer,
    AddItemSerializer,
    UpdateItemPlanSerializer,
    ReserveItemSerializer,
    ConfirmItemSerializer,
    ConfirmItemResponseSerializer,
    PurchaseLotSerializer,
    LotFilterSerializer,
    WeighLotSerializer,
    ErrorResponseSerializer,
)
from .services import (
    create_session,
    reschedule_session,
    open_session,
    close_session,
    get_session,
    list_sessions,
    add_item,
    update_item_plan,
    remove_item,
    list_session_items,
    reserve_item,
    release_item,
    cancel_item,
    confirm_item,
    list_lots,
    weigh_lot,
)
from .services.item_planning import UNSET


UUID_PATTERN = r'[0-9a-f-]{36}'


class SessionPagination(PageNumberPagination):
    """Custom pagination for sessions."""
    page_size = 30
    page_size_query_param = 'page_size'
    max_page_size = 100


class PurchaseSessionViewSet(viewsets.ViewSet):
    """
    Purchase sessions.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Sessions, newest day first (filter by status, date_from, date_to)
    create: Plan a new day (admin only)
    retrieve: Get a session
    partial_update: Move a planning session to another day (admin only)
    open / close: Lifecycle transitions (admin only)
    """

    lookup_value_regex = UUID_PATTERN
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        """Lifecycle changes are admin only."""
        if self.action in ['create', 'partial_update', 'open', 'close']:
            return [IsAuthenticated(), IsPricingAdmin()]
        return [IsAuthenticated()]

    @extend_schema(
        parameters=[
            OpenApiParameter('status', OpenApiTypes.STR, description='planning, open or closed'),
            OpenApiParameter('date_from', OpenApiTypes.DATE),
            OpenApiParameter('date_to', OpenApiTypes.DATE),
        ],
        responses={200: PurchaseSessionSerializer(many=True)},
        tags=['purchasing'],
    )
    def list(self, request):
        filters = SessionFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        sessions = list_sessions(**filters.validated_data)
        paginator = SessionPagination()
        page = paginator.paginate_queryset(sessions, request, view=self)
        serializer = PurchaseSessionSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        request=SessionDateSerializer,
        responses={201: PurchaseSessionSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    def create(self, request):
        serializer = SessionDateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            session = create_session(
                date_key=serializer.validated_data['date_key'],
                created_by=request.user,
            )
        except HANDLED_ERRORS as e:
            return error_response(e)

        return Response(PurchaseSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: PurchaseSessionSerializer, 404: ErrorResponseSerializer}, tags=['purchasing'])
    def retrieve(self, request, pk=None):
        try:
            session = get_session(session_id=pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(PurchaseSessionSerializer(session).data)

    @extend_schema(
        request=SessionDateSerializer,
        responses={200: PurchaseSessionSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    def partial_update(self, request, pk=None):
        serializer = SessionDateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            session = reschedule_session(
                session_id=pk,
                date_key=serializer.validated_data['date_key'],
            )
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(PurchaseSessionSerializer(session).data)

    @extend_schema(request=None, responses={200: PurchaseSessionSerializer, 409: ErrorResponseSerializer}, tags=['purchasing'])
    @action(detail=True, methods=['post'])
    def open(self, request, pk=None):
        """Start buying."""
        try:
            session = open_session(session_id=pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(PurchaseSessionSerializer(session).data)

    @extend_schema(request=None, responses={200: PurchaseSessionSerializer, 409: ErrorResponseSerializer}, tags=['purchasing'])
    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        """Stop buying and sweep every purchased variant's price."""
        try:
            session = close_session(session_id=pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(PurchaseSessionSerializer(session).data)



class SessionItemViewSet(viewsets.ViewSet):
    """
    Items of one purchase session, nested under the session.

    list: Items with lazy reservation expiry and what was bought so far
    create: Add a variant to the list
    partial_update / destroy: Edit or drop a planned item while planning
    reserve / release / cancel / confirm: Item state transitions
    """

    lookup_value_regex = UUID_PATTERN
    permission_classes = [IsAuthenticated, IsBuyerOrAdmin]

    @extend_schema(responses={200: SessionItemSerializer(many=True)}, tags=['purchasing'])
    def list(self, request, session_pk=None):
        try:
            items = list_session_items(session_id=session_pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(SessionItemSerializer(items, many=True).data)

    @extend_schema(
        request=AddItemSerializer,
        responses={201: SessionItemSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    def create(self, request, session_pk=None):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            item = add_item(
                session_id=session_pk,
                variant_id=data['variant'],
                origin=data['origin'],
                planned_quantity=data.get('planned_quantity'),
                reference_price=data.get('reference_price'),
                reference_purchase_unit=data.get('reference_purchase_unit'),
            )
        except HANDLED_ERRORS as e:
            return error_response(e)

        return Response(SessionItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=UpdateItemPlanSerializer,
        responses={200: SessionItemSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    def partial_update(self, request, session_pk=None, pk=None):
        serializer = UpdateItemPlanSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            item = update_item_plan(
                session_id=session_pk,
                item_id=pk,
                planned_quantity=data.get('planned_quantity', UNSET),
                reference_price=data.get('reference_price', UNSET),
                reference_purchase_unit=data.get('reference_purchase_unit', UNSET),
            )
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(SessionItemSerializer(item).data)

    @extend_schema(responses={204: None, 409: ErrorResponseSerializer}, tags=['purchasing'])
    def destroy(self, request, session_pk=None, pk=None):
        try:
            remove_item(session_id=session_pk, item_id=pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=ReserveItemSerializer,
        responses={200: SessionItemSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    @action(detail=True, methods=['post'])
    def reserve(self, request, session_pk=None, pk=None):
        """Hold the item for 10, 15 or 30 minutes."""
        serializer = ReserveItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            item = reserve_item(
                session_id=session_pk,
                item_id=pk,
                actor=request.user,
                minutes=serializer.validated_data['minutes'],
            )
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(SessionItemSerializer(item).data)

    @extend_schema(request=None, responses={200: SessionItemSerializer, 409: ErrorResponseSerializer}, tags=['purchasing'])
    @action(detail=True, methods=['post'])
    def release(self, request, session_pk=None, pk=None):
        try:
            item = release_item(session_id=session_pk, item_id=pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(SessionItemSerializer(item).data)

    @extend_schema(request=None, responses={200: SessionItemSerializer, 409: ErrorResponseSerializer}, tags=['purchasing'])
    @action(detail=True, methods=['post'])
    def cancel(self, request, session_pk=None, pk=None):
        try:
            item = cancel_item(session_id=session_pk, item_id=pk)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(SessionItemSerializer(item).data)

    @extend_schema(
        request=ConfirmItemSerializer,
        responses={200: ConfirmItemResponseSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    @action(detail=True, methods=['post'])
    def confirm(self, request, session_pk=None, pk=None):
        """Record the purchase; returns the lots created and the new daily price."""
        serializer = ConfirmItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            item, lots, daily_price = confirm_item(
                session_id=session_pk,
                item_id=pk,
                supplier_id=data['supplier'],
                quantity=data['quantity'],
                unit_cost=data['unit_cost'],
                actor=request.user,
            )
        except HANDLED_ERRORS as e:
            return error_response(e)

        return Response({
            'item': SessionItemSerializer(item).data,
            'lots': PurchaseLotSerializer(lots, many=True).data,
            'daily_price': DailyPriceSerializer(daily_price).data,
        })


class PurchaseLotViewSet(viewsets.ViewSet):
    """
    Purchase lots (read only, plus weighing).

    list: Lots filtered by session and/or variant
    weigh: Record the measured weight of a container lot
    """

    lookup_value_regex = UUID_PATTERN
    permission_classes = [IsAuthenticated, IsBuyerOrAdmin]

    @extend_schema(
        parameters=[
            OpenApiParameter('session', OpenApiTypes.UUID),
            OpenApiParameter('variant', OpenApiTypes.UUID),
        ],
        responses={200: PurchaseLotSerializer(many=True)},
        tags=['purchasing'],
    )
    def list(self, request):
        filters = LotFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        lots = list_lots(
            session_id=filters.validated_data.get('session'),
            variant_id=filters.validated_data.get('variant'),
        )
        return Response(PurchaseLotSerializer(lots, many=True).data)

    @extend_schema(
        request=WeighLotSerializer,
        responses={200: PurchaseLotSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=['purchasing'],
    )
    @action(detail=True, methods=['post'])
    def weigh(self, request, pk=None):
        serializer = WeighLotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            lot = weigh_lot(lot_id=pk, measured_weight=serializer.validated_data['measured_weight'])
        except HANDLED_ERRORS as e:
            return error_response(e)
        return Response(PurchaseLotSerializer(lot).data)
