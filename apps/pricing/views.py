from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import IsPricingAdmin
from apps.core.http import HANDLED_ERRORS, error_response
from .serializers import (
    DailyPriceSerializer,
    PriceViewSerializer,
    PendingPriceSerializer,
    ManualPriceSerializer,
    PricingSettingsSerializer,
    PricingSnapshotSerializer,
    ConversionFactorSerializer,
)
from .services import (
    get_daily_price,
    list_daily_prices,
    list_pending_prices,
    recompute_daily_price,
    recompute_session,
    change_pricing_settings,
    set_manual_price,
    clear_manual_price,
    set_conversion_factor,
    get_pricing_snapshot,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class DailyPriceFilterSerializer(drf_serializers.Serializer):
    session = drf_serializers.UUIDField()
    only_ready = drf_serializers.BooleanField(required=False, default=False)


class RecomputeResultSerializer(drf_serializers.Serializer):
    recomputed = drf_serializers.IntegerField()
    prices = DailyPriceSerializer(many=True)


def _price_view_response(request, price_view):
    include_costs = request.user.is_pricing_admin
    serializer = PriceViewSerializer(price_view, context={'include_costs': include_costs})
    return Response(serializer.data)


@extend_schema(
    parameters=[
        OpenApiParameter('session', OpenApiTypes.UUID, required=True),
        OpenApiParameter('only_ready', OpenApiTypes.BOOL, description='Admins only; sellers always get READY rows'),
    ],
    responses={200: PriceViewSerializer(many=True), 404: ErrorResponseSerializer},
    description="Daily prices of a session with movement against the previous session. "
                "Non-admins only see READY prices and never see costs.",
    tags=['pricing'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def daily_price_list(request):
    filters = DailyPriceFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)

    include_costs = request.user.is_pricing_admin
    only_ready = filters.validated_data['only_ready'] or not include_costs

    try:
        views = list_daily_prices(
            session_id=filters.validated_data['session'],
            only_ready=only_ready,
        )
    except HANDLED_ERRORS as e:
        return error_response(e)

    serializer = PriceViewSerializer(views, many=True, context={'include_costs': include_costs})
    return Response(serializer.data)


@extend_schema(
    responses={200: PriceViewSerializer, 404: ErrorResponseSerializer},
    tags=['pricing'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def daily_price_detail(request, session_id, variant_id):
    try:
        price_view = get_daily_price(session_id=session_id, variant_id=variant_id)
    except HANDLED_ERRORS as e:
        return error_response(e)

    if not request.user.is_pricing_admin and price_view.price.sale_price is None:
        return Response({'error': 'Price not published yet'}, status=status.HTTP_404_NOT_FOUND)
    return _price_view_response(request, price_view)


@extend_schema(
    request=None,
    responses={200: PriceViewSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    description="Recompute one variant's price from its lots. Closed sessions are final.",
    tags=['pricing'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPricingAdmin])
def daily_price_recompute(request, session_id, variant_id):
    try:
        recompute_daily_price(session_id=session_id, variant_id=variant_id)
        price_view = get_daily_price(session_id=session_id, variant_id=variant_id)
    except HANDLED_ERRORS as e:
        return error_response(e)
    return _price_view_response(request, price_view)


@extend_schema(
    methods=['POST'],
    request=ManualPriceSerializer,
    responses={200: PriceViewSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    description="Pin a manual sale price. Automatic recomputes keep it until cleared.",
    tags=['pricing'],
)
@extend_schema(
    methods=['DELETE'],
    request=None,
    responses={200: PriceViewSerializer, 404: ErrorResponseSerializer},
    description="Clear the manual price and recompute.",
    tags=['pricing'],
)
@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, IsPricingAdmin])
def daily_price_manual(request, session_id, variant_id):
    if request.method == 'DELETE':
        try:
            clear_manual_price(session_id=session_id, variant_id=variant_id)
            price_view = get_daily_price(session_id=session_id, variant_id=variant_id)
        except HANDLED_ERRORS as e:
            return error_response(e)
        return _price_view_response(request, price_view)

    serializer = ManualPriceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        set_manual_price(
            session_id=session_id,
            variant_id=variant_id,
            price=serializer.validated_data['sale_price'],
            actor=request.user,
            note=serializer.validated_data['note'],
        )
        price_view = get_daily_price(session_id=session_id, variant_id=variant_id)
    except HANDLED_ERRORS as e:
        return error_response(e)
    return _price_view_response(request, price_view)


@extend_schema(
    request=None,
    responses={200: RecomputeResultSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    description="Recompute every variant bought in an open or planned session.",
    tags=['pricing'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPricingAdmin])
def session_recompute(request, session_id):
    try:
        prices = recompute_session(session_id=session_id)
    except HANDLED_ERRORS as e:
        return error_response(e)

    return Response({
        'recomputed': len(prices),
        'prices': DailyPriceSerializer(prices, many=True).data,
    })


@extend_schema(
    responses={200: PendingPriceSerializer(many=True), 404: ErrorResponseSerializer},
    description="Prices still PENDING or PARTIAL, with the last manual price of each variant as a hint.",
    tags=['pricing'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPricingAdmin])
def session_pending(request, session_id):
    try:
        prices = list_pending_prices(session_id=session_id)
    except HANDLED_ERRORS as e:
        return error_response(e)
    return Response(PendingPriceSerializer(prices, many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: PricingSnapshotSerializer},
    tags=['pricing'],
)
@extend_schema(
    methods=['PATCH'],
    request=PricingSettingsSerializer,
    responses={200: PricingSnapshotSerializer, 400: ErrorResponseSerializer},
    description="Change margin and/or rounding step; open sessions are recomputed.",
    tags=['pricing'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsPricingAdmin])
def pricing_settings(request):
    if request.method == 'GET':
        return Response(PricingSnapshotSerializer(get_pricing_snapshot()).data)

    serializer = PricingSettingsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        snapshot, recomputed = change_pricing_settings(**serializer.validated_data)
    except HANDLED_ERRORS as e:
        return error_response(e)

    data = PricingSnapshotSerializer(snapshot).data
    data['recomputed'] = len(recomputed)
    return Response(data)


@extend_schema(
    request=ConversionFactorSerializer,
    responses={
        200: DailyPriceSerializer(many=True),
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Set or clear a variant's conversion factor and recompute affected prices.",
    tags=['pricing'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsPricingAdmin])
def variant_conversion(request, variant_id):
    serializer = ConversionFactorSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        prices = set_conversion_factor(
            variant_id=variant_id,
            conversion_factor=serializer.validated_data['conversion_factor'],
            session_id=serializer.validated_data.get('session'),
        )
    except HANDLED_ERRORS as e:
        return error_response(e)
    return Response(DailyPriceSerializer(prices, many=True).data)
