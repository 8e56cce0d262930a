"""
Response Serializers for Marketplace API Documentation

These serializers define the structure of error responses for OpenAPI schema generation.
They are NOT used for data validation, only for documentation in Swagger/ReDoc.
"""

from rest_framework import serializers


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response; never carries store or exception details"""

    error = serializers.CharField(help_text="Error code identifier, e.g. category_not_found")
    message = serializers.CharField(help_text="Human-readable error message")
