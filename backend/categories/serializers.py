# categories/serializers.py
"""
Serializers for the categories API.

Note: These serializers are used for:
1. Input validation (shape only; business rules live in policies.py)
2. Output formatting of categories and CommandResults

Type values are validated by the commands, not here, so an unknown type
reaches the client with the same message the batch would produce.
"""

from django.conf import settings
from rest_framework import serializers

from .models import Category


class CategorySerializer(serializers.ModelSerializer):
    """Serializer for Category rows (read side)."""
    parent_id = serializers.IntegerField(read_only=True, allow_null=True)
    company_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Category
        fields = [
            "id", "company_id", "name", "type", "parent_id",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class CategoryCreateSerializer(serializers.Serializer):
    """Serializer for creating a category via command."""
    name = serializers.CharField(max_length=255, trim_whitespace=False)
    type = serializers.CharField(max_length=20)
    parent_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class CategoryUpdateSerializer(serializers.Serializer):
    """Serializer for the combined PATCH edit. Every field is optional."""
    name = serializers.CharField(max_length=255, required=False, trim_whitespace=False)
    type = serializers.CharField(max_length=20, required=False)
    parent_id = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one of name, type, parent_id.")
        return attrs


class BatchRequestSerializer(serializers.Serializer):
    """
    Envelope for POST /api/categories/batch/.

    Individual operations are not validated here: a malformed operation
    becomes a failed step, never a failed request.
    """
    operations = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=True,
    )

    def validate_operations(self, value):
        limit = getattr(settings, "CATEGORY_BATCH_MAX_OPERATIONS", 50)
        if len(value) > limit:
            raise serializers.ValidationError(f"A batch may contain at most {limit} operations.")
        return value


def serialize_result(result) -> dict:
    """
    Render a CommandResult as `{success, error?, errorKind?, warnings?, ...}`.

    A Category payload is rendered under `category`, a list under
    `categories`.
    """
    body = {"success": result.success}
    if not result.success:
        body["error"] = result.error
        body["errorKind"] = result.error_kind
    if result.warnings:
        body["warnings"] = result.warnings

    if isinstance(result.data, Category):
        body["category"] = CategorySerializer(result.data).data
    elif isinstance(result.data, (list, tuple)):
        body["categories"] = CategorySerializer(result.data, many=True).data
    return body


def serialize_batch(steps) -> list:
    return [
        {"action": step.action, "name": step.name, "result": serialize_result(step.result)}
        for step in steps
    ]
