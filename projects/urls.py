from django.urls import path
from .views import (
    ProjectListCreateView,
    ProjectDetailView,
    ProjectMemberListView,
    ProjectMemberDetailView,
    ProjectOwnershipTransferView,
    ProjectTaskListView,
    TaskDetailView,
    TaskMoveView,
)


urlpatterns = [
    path("projects/", ProjectListCreateView.as_view(), name="project-list-create"),
    path("projects/<int:project_id>/", ProjectDetailView.as_view(), name="project-detail"),
    path(
        "projects/<int:project_id>/members/",
        ProjectMemberListView.as_view(),
        name="project-member-list",
    ),
    path(
        "projects/<int:project_id>/members/<int:user_id>/",
        ProjectMemberDetailView.as_view(),
        name="project-member-detail",
    ),
    path(
        "projects/<int:project_id>/transfer-ownership/",
        ProjectOwnershipTransferView.as_view(),
        name="project-transfer-ownership",
    ),
    path(
        "projects/<int:project_id>/tasks/",
        ProjectTaskListView.as_view(),
        name="project-task-list",
    ),
    path("tasks/<int:task_id>/", TaskDetailView.as_view(), name="task-detail"),
    path("tasks/<int:task_id>/move/", TaskMoveView.as_view(), name="task-move"),
]
