# categories/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, validation, persistence.

Commands are coroutines; the views stay synchronous DRF APIViews and
drive them with async_to_sync.
"""

import logging

from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require_role, resolve_actor
from accounts.models import CompanyMembership

from .batch import process_batch
from .commands import (
    ErrorKind,
    create_category,
    delete_category,
    update_category,
)
from .presets import seed_preset_categories
from .serializers import (
    BatchRequestSerializer,
    CategoryCreateSerializer,
    CategorySerializer,
    CategoryUpdateSerializer,
    serialize_batch,
    serialize_result,
)
from .store import CategoryStore, CategoryStoreError

logger = logging.getLogger(__name__)

_FAILURE_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORE: status.HTTP_502_BAD_GATEWAY,
}


def _failure_response(result) -> Response:
    return Response(
        serialize_result(result),
        status=_FAILURE_STATUS.get(result.error_kind, status.HTTP_400_BAD_REQUEST),
    )


def _store_error_response(exc: CategoryStoreError) -> Response:
    return Response(
        {"success": False, "error": exc.message, "errorKind": ErrorKind.STORE},
        status=status.HTTP_502_BAD_GATEWAY,
    )


def _list_categories(store, company_id):
    return async_to_sync(store.list_categories)(company_id)


class CategoryListCreateView(APIView):
    """
    GET /api/categories/ -> list categories for the active company
    POST /api/categories/ -> create a category in the active company
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        store = CategoryStore()

        try:
            categories = _list_categories(store, actor.company_id)
        except CategoryStoreError as exc:
            return _store_error_response(exc)

        return Response(CategorySerializer(categories, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = CategoryCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        store = CategoryStore()
        result = async_to_sync(create_category)(
            actor.company_id,
            data["name"],
            data["type"],
            data.get("parent_id"),
            store=store,
            reject_duplicate_name=True,
        )
        if not result.success:
            return _failure_response(result)

        body = serialize_result(result)
        try:
            body["categories"] = CategorySerializer(
                _list_categories(store, actor.company_id), many=True,
            ).data
        except CategoryStoreError as exc:
            # The create committed; the client can re-list.
            logger.warning("Category list refresh failed after create: %s", exc.message)
        return Response(body, status=status.HTTP_201_CREATED)


class CategoryDetailView(APIView):
    """
    PATCH /api/categories/<id>/ -> combined edit of name, type, parent
    DELETE /api/categories/<id>/ -> delete (no children, not in use)
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, category_id):
        actor = resolve_actor(request)

        input_serializer = CategoryUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        store = CategoryStore()
        result = async_to_sync(update_category)(
            actor.company_id,
            category_id,
            store=store,
            **input_serializer.validated_data,
        )
        if not result.success:
            return _failure_response(result)

        body = serialize_result(result)
        try:
            body["categories"] = CategorySerializer(
                _list_categories(store, actor.company_id), many=True,
            ).data
        except CategoryStoreError as exc:
            logger.warning("Category list refresh failed after update: %s", exc.message)
        return Response(body)

    def delete(self, request, category_id):
        actor = resolve_actor(request)

        result = async_to_sync(delete_category)(actor.company_id, category_id)
        if not result.success:
            return _failure_response(result)

        return Response(serialize_result(result))


class CategoryBatchView(APIView):
    """
    POST /api/categories/batch/ -> apply an ordered list of operations

    Always 200 with one result per operation once the envelope is valid.
    Steps run against the company's categories as stored right now.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = BatchRequestSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        store = CategoryStore()
        try:
            categories = _list_categories(store, actor.company_id)
        except CategoryStoreError as exc:
            return _store_error_response(exc)

        steps = async_to_sync(process_batch)(
            input_serializer.validated_data["operations"],
            categories,
            actor.company_id,
            store=store,
        )
        return Response({"results": serialize_batch(steps)})


class CategoryPresetView(APIView):
    """
    POST /api/categories/presets/ -> add the default chart of accounts

    Owner only. Categories that already exist by name are skipped.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        require_role(actor, CompanyMembership.Role.OWNER)

        store = CategoryStore()
        try:
            steps = async_to_sync(seed_preset_categories)(actor.company_id, store=store)
            categories = _list_categories(store, actor.company_id)
        except CategoryStoreError as exc:
            return _store_error_response(exc)

        return Response({
            "results": serialize_batch(steps),
            "categories": CategorySerializer(categories, many=True).data,
        })
