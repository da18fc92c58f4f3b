import logging

from django.db import transaction
from django.db.models import Count, Prefetch
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework import status

from .models import Project, ProjectMember, Task
from .policies import (
    ProjectPolicy,
    CAPABILITY_VIEW,
    CAPABILITY_EDIT,
    CAPABILITY_DELETE,
    CAPABILITY_MANAGE_MEMBERS,
)
from . import ordering
from .serializers import (
    ProjectSerializer,
    ProjectDetailSerializer,
    ProjectListSerializer,
    ProjectWriteSerializer,
    ProjectMemberSerializer,
    MemberAddSerializer,
    MemberRoleSerializer,
    TransferOwnershipSerializer,
    TaskSerializer,
    TaskWriteSerializer,
    TaskMoveSerializer,
)

logger = logging.getLogger("taskboard.projects")


# ---- Lookups ----------------------------------------------------------


def member_queryset():
    return ProjectMember.objects.select_related("user")


def project_queryset():
    return (
        Project.objects
        .select_related("owner")
        .prefetch_related(Prefetch("members", queryset=member_queryset()))
    )


def get_project_or_404(project_id, queryset=None):
    queryset = queryset if queryset is not None else Project.objects.all()
    project = queryset.filter(pk=project_id).first()
    if project is None:
        raise NotFound("Project not found")
    return project


def get_task_or_404(task_id):
    task = Task.objects.select_related("project", "assignee").filter(pk=task_id).first()
    if task is None:
        raise NotFound("Task not found")
    return task


def serialize_project(project_id, serializer_class=ProjectSerializer):
    queryset = project_queryset()
    if serializer_class is ProjectDetailSerializer:
        queryset = queryset.prefetch_related(
            Prefetch(
                "tasks",
                queryset=Task.objects.select_related("assignee").order_by("order", "id"),
            )
        )
    return serializer_class(get_project_or_404(project_id, queryset)).data


# ---- Projects ---------------------------------------------------------


class ProjectListCreateView(APIView):
    """
    GET  /projects/   → projects the caller is a member of
    POST /projects/   → create project, caller becomes owner
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        projects = (
            project_queryset()
            .filter(members__user=request.user)
            .annotate(task_count=Count("tasks", distinct=True))
        )

        status_filter = request.query_params.get("status")
        if status_filter:
            projects = projects.filter(status=status_filter.upper())

        return Response(ProjectListSerializer(projects, many=True).data)

    def post(self, request):
        serializer = ProjectWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = serializer.save(owner=request.user)

        return Response(serialize_project(project.pk), status=status.HTTP_201_CREATED)


class ProjectDetailView(APIView):
    """
    GET    /projects/<id>/  → project + owner + members + ordered tasks (view)
    PATCH  /projects/<id>/  → partial update of title/description/status (edit)
    DELETE /projects/<id>/  → delete, cascades members and tasks (owner)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_VIEW)

        return Response(serialize_project(project_id, ProjectDetailSerializer))

    def patch(self, request, project_id):
        project = get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_EDIT)

        serializer = ProjectWriteSerializer(project, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        logger.info(
            "Project updated: project=%s, actor=%s, fields=%s",
            project.pk, request.user.pk, sorted(serializer.validated_data),
        )
        return Response(serialize_project(project.pk))

    def delete(self, request, project_id):
        project = get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_DELETE)

        project.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---- Members ----------------------------------------------------------


class ProjectMemberListView(APIView):
    """
    GET  /projects/<id>/members/  → list members (view)
    POST /projects/<id>/members/  → add member or update role (owner)
        Body → { user_id | email, role }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_VIEW)

        members = member_queryset().filter(project_id=project_id)
        return Response(ProjectMemberSerializer(members, many=True).data)

    def post(self, request, project_id):
        project = get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_MANAGE_MEMBERS)

        serializer = MemberAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target_user = serializer.validated_data["user"]
        role = serializer.validated_data["role"]

        if target_user.pk == project.owner_id:
            raise ValidationError({"user_id": "The owner is already a member of this project"})

        membership, created = ProjectMember.objects.get_or_create(
            project=project,
            user=target_user,
            defaults={"role": role},
        )

        if not created and membership.role != role:
            membership.role = role
            membership.save(update_fields=["role"])

        logger.info(
            "Member %s: project=%s, user=%s, role=%s, actor=%s",
            "added" if created else "updated", project.pk, target_user.pk, role, request.user.pk,
        )
        return Response(
            ProjectMemberSerializer(membership).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class ProjectMemberDetailView(APIView):
    """
    PATCH  /projects/<id>/members/<user_id>/  → change role (owner)
    DELETE /projects/<id>/members/<user_id>/  → remove (owner, or the member themself)
    """
    permission_classes = [IsAuthenticated]

    def _get_membership(self, project_id, user_id):
        membership = member_queryset().filter(project_id=project_id, user_id=user_id).first()
        if membership is None:
            raise NotFound("Member not found")
        return membership

    def patch(self, request, project_id, user_id):
        project = get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_MANAGE_MEMBERS)
        membership = self._get_membership(project_id, user_id)

        serializer = MemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if membership.user_id == project.owner_id:
            raise ValidationError({"role": "The owner's role cannot be changed; transfer ownership instead"})

        membership.role = serializer.validated_data["role"]
        membership.save(update_fields=["role"])

        logger.info(
            "Member role changed: project=%s, user=%s, role=%s, actor=%s",
            project.pk, user_id, membership.role, request.user.pk,
        )
        return Response(ProjectMemberSerializer(membership).data)

    def delete(self, request, project_id, user_id):
        project = get_project_or_404(project_id)

        # Leaving a project only needs membership
        if request.user.pk == user_id:
            ProjectPolicy.require(request.user, project_id, CAPABILITY_VIEW)
        else:
            ProjectPolicy.require(request.user, project_id, CAPABILITY_MANAGE_MEMBERS)

        membership = self._get_membership(project_id, user_id)
        if membership.user_id == project.owner_id:
            raise ValidationError({"user_id": "The owner cannot be removed from the project"})

        membership.delete()
        Task.objects.filter(project=project, assignee_id=user_id).update(assignee=None)

        logger.info(
            "Member removed: project=%s, user=%s, actor=%s",
            project.pk, user_id, request.user.pk,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProjectOwnershipTransferView(APIView):
    """
    POST /projects/<id>/transfer-ownership/
        Body → { user_id }
    Target must already be a member. Former owner stays on as editor.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, project_id):
        project = get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_MANAGE_MEMBERS)

        serializer = TransferOwnershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_owner_id = serializer.validated_data["user_id"]

        if new_owner_id == project.owner_id:
            raise ValidationError({"user_id": "User already owns this project"})

        target = ProjectMember.objects.filter(project=project, user_id=new_owner_id).first()
        if target is None:
            raise ValidationError({"user_id": "New owner must be a member of the project"})

        old_owner_id = project.owner_id
        with transaction.atomic():
            ProjectMember.objects.filter(project=project, user_id=old_owner_id).update(
                role=ProjectMember.ROLE_EDITOR
            )
            target.role = ProjectMember.ROLE_OWNER
            target.save(update_fields=["role"])
            project.owner_id = new_owner_id
            project.save(update_fields=["owner", "updated_at"])

        logger.info(
            "Ownership transferred: project=%s, from=%s, to=%s",
            project.pk, old_owner_id, new_owner_id,
        )
        return Response(serialize_project(project.pk))


# ---- Tasks ------------------------------------------------------------


class ProjectTaskListView(APIView):
    """
    GET  /projects/<id>/tasks/  → tasks ordered by column position (view)
    POST /projects/<id>/tasks/  → create task at the bottom of its column (edit)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_VIEW)

        tasks = Task.objects.select_related("assignee").filter(project_id=project_id)
        status_filter = request.query_params.get("status")
        if status_filter:
            tasks = tasks.filter(status=status_filter.upper())

        return Response(TaskSerializer(tasks.order_by("order", "id"), many=True).data)

    def post(self, request, project_id):
        project = get_project_or_404(project_id)
        ProjectPolicy.require(request.user, project_id, CAPABILITY_EDIT)

        serializer = TaskWriteSerializer(data=request.data, context={"project": project})
        serializer.is_valid(raise_exception=True)

        task = ordering.create_task(project, created_by=request.user, **serializer.validated_data)
        logger.info(
            "Task created: task=%s, project=%s, status=%s, order=%s, actor=%s",
            task.pk, project.pk, task.status, task.order, request.user.pk,
        )
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)


class TaskDetailView(APIView):
    """
    GET    /tasks/<id>/  (view)
    PATCH  /tasks/<id>/  (edit) - a status change appends to the new column
    DELETE /tasks/<id>/  (edit)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, task_id):
        task = get_task_or_404(task_id)
        ProjectPolicy.require(request.user, task.project_id, CAPABILITY_VIEW)

        return Response(TaskSerializer(task).data)

    def patch(self, request, task_id):
        task = get_task_or_404(task_id)
        ProjectPolicy.require(request.user, task.project_id, CAPABILITY_EDIT)

        serializer = TaskWriteSerializer(
            task,
            data=request.data,
            partial=True,
            context={"project": task.project},
        )
        serializer.is_valid(raise_exception=True)

        data = dict(serializer.validated_data)
        new_status = data.pop("status", None)

        with transaction.atomic():
            for attr, value in data.items():
                setattr(task, attr, value)
            task.save()

            if new_status is not None:
                task = ordering.change_status(task, new_status)

        return Response(TaskSerializer(get_task_or_404(task.pk)).data)

    def delete(self, request, task_id):
        task = get_task_or_404(task_id)
        ProjectPolicy.require(request.user, task.project_id, CAPABILITY_EDIT)

        task.delete()
        logger.info(
            "Task deleted: task=%s, project=%s, actor=%s",
            task_id, task.project_id, request.user.pk,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class TaskMoveView(APIView):
    """
    POST /tasks/<id>/move/
        Body → { status, index }
    Drag-and-drop reorder; index is clamped to the destination column.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, task_id):
        task = get_task_or_404(task_id)
        ProjectPolicy.require(request.user, task.project_id, CAPABILITY_EDIT)

        serializer = TaskMoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        task = ordering.move_task(
            task,
            serializer.validated_data["status"],
            serializer.validated_data["index"],
        )
        return Response(TaskSerializer(get_task_or_404(task.pk)).data)
