from django.contrib.auth import get_user_model
from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Project, ProjectMember, Task

User = get_user_model()


# ---- Read shapes ------------------------------------------------------


class ProjectMemberSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = ProjectMember
        fields = ['role', 'user', 'joined_at']


class TaskSerializer(serializers.ModelSerializer):
    assignee = UserSummarySerializer(read_only=True)

    class Meta:
        model = Task
        fields = [
            'id',
            'project',
            'title',
            'description',
            'status',
            'priority',
            'order',
            'assignee',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    """Project with owner summary and member list (PATCH response shape)."""
    owner = UserSummarySerializer(read_only=True)
    members = ProjectMemberSerializer(many=True, read_only=True)

    class Meta:
        model = Project
        fields = [
            'id',
            'title',
            'description',
            'status',
            'owner',
            'members',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ProjectDetailSerializer(ProjectSerializer):
    """GET /projects/<id>/ - adds the ordered task list."""
    tasks = TaskSerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['tasks']
        read_only_fields = fields


class ProjectListSerializer(ProjectSerializer):
    task_count = serializers.IntegerField(read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['task_count']
        read_only_fields = fields


# ---- Write payloads ---------------------------------------------------


class ProjectWriteSerializer(serializers.ModelSerializer):
    """
    Create: {title, description?, status?}
    Update (partial=True): {title?, description?, status?}
    Unknown keys are ignored.
    """

    class Meta:
        model = Project
        fields = ['title', 'description', 'status']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True},
            'status': {'required': False},
        }


class MemberAddSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False)
    email = serializers.EmailField(required=False)
    role = serializers.ChoiceField(choices=ProjectMember.ASSIGNABLE_ROLES, default=ProjectMember.ROLE_VIEWER)

    def validate(self, attrs):
        user_id = attrs.get("user_id")
        email = attrs.get("email")

        if user_id is None and not email:
            raise serializers.ValidationError("Either user_id or email is required")

        if user_id is not None:
            user = User.objects.filter(pk=user_id).first()
            if user is None:
                raise serializers.ValidationError({"user_id": "User not found"})
        else:
            user = User.objects.filter(email__iexact=email).first()
            if user is None:
                raise serializers.ValidationError({"email": "No user with this email"})

        attrs["user"] = user
        return attrs


class MemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ProjectMember.ASSIGNABLE_ROLES)


class TransferOwnershipSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class TaskWriteSerializer(serializers.ModelSerializer):
    """
    Payload for task create/update. Needs `project` in context to check that
    the assignee belongs to the project.
    """
    assignee_id = serializers.IntegerField(required=False, allow_null=True)

    class Meta:
        model = Task
        fields = ['title', 'description', 'status', 'priority', 'assignee_id']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True},
            'status': {'required': False},
            'priority': {'required': False},
        }

    def validate_assignee_id(self, value):
        if value is None:
            return value

        project = self.context["project"]
        if not ProjectMember.objects.filter(project=project, user_id=value).exists():
            raise serializers.ValidationError("Assignee must be a member of the project")
        return value


class TaskMoveSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Task.STATUS_CHOICES)
    index = serializers.IntegerField(min_value=0)
