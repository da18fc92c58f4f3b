from rest_framework import serializers
from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """{id, name, email} - the shape embedded in projects, members and tasks."""
    name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'email']


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'name',
            'date_joined',
        ]
        read_only_fields = ['id', 'date_joined']
