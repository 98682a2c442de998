from rest_framework.viewsets import ViewSetMixin


class OptimizedQuerysetMixin(ViewSetMixin):
    """
    Applies ``select_related_fields`` and ``prefetch_related_fields`` declared in
    the Meta class of the current action's serializer.
    """

    def get_queryset(self):
        queryset = super().get_queryset()

        try:
            serializer_class = self.get_serializer_class()
        except (AttributeError, AssertionError):
            return queryset

        meta = getattr(serializer_class, "Meta", None)
        if meta is None:
            return queryset

        select_related = getattr(meta, "select_related_fields", [])
        prefetch_related = getattr(meta, "prefetch_related_fields", [])

        if select_related:
            queryset = queryset.select_related(*select_related)

        if prefetch_related:
            queryset = queryset.prefetch_related(*prefetch_related)

        return queryset
