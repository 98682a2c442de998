"""
Core backend base components.

Foundational viewset, serializer and filter classes shared by every app.
"""

from .viewsets import BaseViewSet, ReadOnlyBaseViewSet
from .serializers import BaseModelSerializer
from .mixins import OptimizedQuerysetMixin
from .filters import BaseFilterSet

__all__ = [
    # ViewSets
    'BaseViewSet',
    'ReadOnlyBaseViewSet',

    # Serializers
    'BaseModelSerializer',

    # Mixins
    'OptimizedQuerysetMixin',

    # Filters
    'BaseFilterSet',
]
