from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from projects.models import Project, ProjectMember, Task
from projects.policies import ProjectPermissionDenied

User = get_user_model()


class ProjectAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(
            username="owner", email="owner@example.com", password="ownerpass", name="Olivia Owner",
        )
        self.editor = User.objects.create_user(
            username="editor", email="editor@example.com", password="editorpass",
        )
        self.viewer = User.objects.create_user(
            username="viewer", email="viewer@example.com", password="viewerpass",
        )
        self.outsider = User.objects.create_user(
            username="outsider", email="outsider@example.com", password="outsiderpass",
        )

        self.project = Project.objects.create(
            owner=self.owner,
            title="P1",
            description="First project",
        )
        ProjectMember.objects.create(project=self.project, user=self.editor, role=ProjectMember.ROLE_EDITOR)
        ProjectMember.objects.create(project=self.project, user=self.viewer, role=ProjectMember.ROLE_VIEWER)

        self.url = reverse("project-detail", kwargs={"project_id": self.project.id})

    def auth(self, user):
        self.client.force_authenticate(user=user)

    # ---- GET -----------------------------------------------------------

    def test_owner_fetches_project_with_members_and_ordered_tasks(self):
        Task.objects.create(project=self.project, title="second", order=1, assignee=self.editor)
        Task.objects.create(project=self.project, title="first", order=0)
        Task.objects.create(project=self.project, title="done", status=Task.STATUS_DONE, order=0)

        self.auth(self.owner)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.content)
        data = response.json()
        self.assertEqual(data["title"], "P1")
        self.assertEqual(data["owner"], {"id": self.owner.id, "name": "Olivia Owner", "email": "owner@example.com"})

        roles = {m["user"]["id"]: m["role"] for m in data["members"]}
        self.assertEqual(roles[self.owner.id], ProjectMember.ROLE_OWNER)
        self.assertEqual(roles[self.editor.id], ProjectMember.ROLE_EDITOR)
        self.assertEqual(roles[self.viewer.id], ProjectMember.ROLE_VIEWER)

        orders = [t["order"] for t in data["tasks"]]
        self.assertEqual(orders, sorted(orders))
        second = next(t for t in data["tasks"] if t["title"] == "second")
        self.assertEqual(second["assignee"]["id"], self.editor.id)
        # name falls back to username
        self.assertEqual(second["assignee"]["name"], "editor")

    def test_viewer_can_fetch_project(self):
        self.auth(self.viewer)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_non_member_gets_permission_denied(self):
        self.auth(self.outsider)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json(), {"error": ProjectPermissionDenied.default_detail})

    def test_missing_project_is_not_found(self):
        self.auth(self.owner)
        response = self.client.get(reverse("project-detail", kwargs={"project_id": 999999}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {"error": "Project not found"})

    def test_unauthenticated_request_is_rejected(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", response.json())

    # ---- PATCH ---------------------------------------------------------

    def test_editor_updates_project(self):
        self.auth(self.editor)
        response = self.client.patch(
            self.url,
            {"title": "Renamed", "status": Project.STATUS_COMPLETED, "ignored": "x"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.content)
        data = response.json()
        self.assertEqual(data["title"], "Renamed")
        self.assertEqual(data["status"], Project.STATUS_COMPLETED)
        self.assertEqual(data["owner"]["id"], self.owner.id)
        self.assertEqual(len(data["members"]), 3)
        self.assertNotIn("tasks", data)

        self.project.refresh_from_db()
        self.assertEqual(self.project.title, "Renamed")
        self.assertEqual(self.project.description, "First project")

    def test_viewer_cannot_update_project(self):
        self.auth(self.viewer)
        response = self.client.patch(self.url, {"title": "Hijacked"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json(), {"error": ProjectPermissionDenied.default_detail})
        self.project.refresh_from_db()
        self.assertEqual(self.project.title, "P1")

    def test_viewer_with_invalid_payload_still_gets_permission_denied(self):
        self.auth(self.viewer)
        response = self.client.patch(self.url, {"title": ""}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_empty_title_fails_validation(self):
        self.auth(self.owner)
        response = self.client.patch(self.url, {"title": ""}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        errors = response.json()["error"]
        self.assertIsInstance(errors, list)
        self.assertEqual(errors[0]["path"], ["title"])
        self.assertEqual(errors[0]["code"], "blank")

        self.project.refresh_from_db()
        self.assertEqual(self.project.title, "P1")

    def test_unknown_status_fails_validation(self):
        self.auth(self.owner)
        response = self.client.patch(self.url, {"status": "PAUSED"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"][0]["path"], ["status"])
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, Project.STATUS_ACTIVE)

    def test_store_failure_on_update_is_generic_server_error(self):
        self.auth(self.owner)
        with mock.patch.object(Project, "save", side_effect=DatabaseError("connection reset")):
            response = self.client.patch(self.url, {"title": "New"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Internal server error"})

    # ---- DELETE --------------------------------------------------------

    def test_owner_deletes_project_and_it_is_gone(self):
        Task.objects.create(project=self.project, title="t", order=0)

        self.auth(self.owner)
        response = self.client.delete(self.url)

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(response.content, b"")

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(ProjectMember.objects.filter(project_id=self.project.id).exists())
        self.assertFalse(Task.objects.filter(project_id=self.project.id).exists())

    def test_editor_cannot_delete_project(self):
        self.auth(self.editor)
        response = self.client.delete(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Project.objects.filter(pk=self.project.pk).exists())

    def test_viewer_cannot_delete_project(self):
        self.auth(self.viewer)
        response = self.client.delete(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Project.objects.filter(pk=self.project.pk).exists())

    def test_store_failure_on_delete_is_generic_server_error(self):
        self.auth(self.owner)
        with mock.patch.object(Project, "delete", side_effect=DatabaseError("disk full")):
            response = self.client.delete(self.url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Internal server error"})


class ProjectListCreateTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="alice", email="alice@example.com", password="pass")
        self.other = User.objects.create_user(username="bob", email="bob@example.com", password="pass")
        self.client.force_authenticate(user=self.user)
        self.url = reverse("project-list-create")

    def test_create_project_makes_owner_membership(self):
        response = self.client.post(self.url, {"title": "Launch", "description": "Go"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.content)
        project = Project.objects.get(title="Launch")
        self.assertEqual(project.owner, self.user)
        self.assertEqual(project.status, Project.STATUS_ACTIVE)

        membership = ProjectMember.objects.get(project=project, user=self.user)
        self.assertEqual(membership.role, ProjectMember.ROLE_OWNER)
        self.assertEqual(response.json()["members"][0]["role"], ProjectMember.ROLE_OWNER)

    def test_create_requires_title(self):
        response = self.client.post(self.url, {"description": "no title"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"][0]["path"], ["title"])

    def test_list_only_shows_my_projects(self):
        mine = Project.objects.create(owner=self.user, title="Mine")
        shared = Project.objects.create(owner=self.other, title="Shared")
        Project.objects.create(owner=self.other, title="Not mine")
        ProjectMember.objects.create(project=shared, user=self.user, role=ProjectMember.ROLE_VIEWER)
        Task.objects.create(project=mine, title="a", order=0)
        Task.objects.create(project=mine, title="b", order=1)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_title = {p["title"]: p for p in response.json()}
        self.assertEqual(set(by_title), {"Mine", "Shared"})
        self.assertEqual(by_title["Mine"]["task_count"], 2)
        self.assertEqual(by_title["Shared"]["task_count"], 0)

    def test_list_filters_by_status(self):
        Project.objects.create(owner=self.user, title="Live")
        Project.objects.create(owner=self.user, title="Old", status=Project.STATUS_ARCHIVED)

        response = self.client.get(self.url, {"status": "archived"})

        self.assertEqual([p["title"] for p in response.json()], ["Old"])
