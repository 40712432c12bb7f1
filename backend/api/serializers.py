from rest_framework import serializers


class CalculateRouteSerializer(serializers.Serializer):
    addresses = serializers.ListField(
        child=serializers.CharField(allow_blank=False), min_length=2
    )
