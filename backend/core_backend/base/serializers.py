from rest_framework import serializers


class BaseModelSerializer(serializers.ModelSerializer):
    """
    Base serializer for all model serializers.

    Subclasses may declare ``select_related_fields`` and
    ``prefetch_related_fields`` on Meta; OptimizedQuerysetMixin applies them.
    """

    class Meta:
        select_related_fields = []
        prefetch_related_fields = []


class ServerContextMixin:
    """
    Resolves the acting server id for a write request: the ``server_id`` body
    field wins, then the ``X-Server-Id`` header.
    """

    def get_server_id(self, validated_data=None):
        if validated_data and validated_data.get("server_id"):
            return validated_data["server_id"]
        request = self.context.get("request")
        if request is None:
            return None
        return request.headers.get("X-Server-Id") or None
