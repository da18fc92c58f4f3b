from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from projects import ordering
from projects.models import Project, ProjectMember, Task

User = get_user_model()


def column(project, status_value):
    return list(
        Task.objects
        .filter(project=project, status=status_value)
        .order_by("order")
        .values_list("title", flat=True)
    )


class TaskAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(username="owner", email="owner@example.com", password="pass")
        self.editor = User.objects.create_user(username="editor", email="editor@example.com", password="pass")
        self.viewer = User.objects.create_user(username="viewer", email="viewer@example.com", password="pass")
        self.outsider = User.objects.create_user(username="outsider", email="out@example.com", password="pass")

        self.project = Project.objects.create(owner=self.owner, title="Board")
        ProjectMember.objects.create(project=self.project, user=self.editor, role=ProjectMember.ROLE_EDITOR)
        ProjectMember.objects.create(project=self.project, user=self.viewer, role=ProjectMember.ROLE_VIEWER)

        self.tasks_url = reverse("project-task-list", kwargs={"project_id": self.project.id})

    def make_tasks(self, titles, status_value=Task.STATUS_TODO):
        return [
            ordering.create_task(self.project, title=title, status=status_value)
            for title in titles
        ]

    # ---- create / list -------------------------------------------------

    def test_created_tasks_go_to_bottom_of_column(self):
        self.client.force_authenticate(user=self.editor)

        first = self.client.post(self.tasks_url, {"title": "one"}, format="json")
        second = self.client.post(self.tasks_url, {"title": "two", "priority": "HIGH"}, format="json")
        done = self.client.post(self.tasks_url, {"title": "shipped", "status": "DONE"}, format="json")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.content)
        self.assertEqual(first.json()["order"], 0)
        self.assertEqual(second.json()["order"], 1)
        self.assertEqual(second.json()["priority"], Task.PRIORITY_HIGH)
        self.assertEqual(done.json()["order"], 0)
        self.assertEqual(Task.objects.get(title="one").created_by, self.editor)

    def test_viewer_cannot_create_task(self):
        self.client.force_authenticate(user=self.viewer)
        response = self.client.post(self.tasks_url, {"title": "nope"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Task.objects.exists())

    def test_assignee_must_be_member(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            self.tasks_url, {"title": "x", "assignee_id": self.outsider.id}, format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"][0]["path"], ["assignee_id"])

    def test_list_tasks_filtered_by_status(self):
        self.make_tasks(["a", "b"])
        self.make_tasks(["c"], Task.STATUS_DONE)

        self.client.force_authenticate(user=self.viewer)
        response = self.client.get(self.tasks_url, {"status": "done"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t["title"] for t in response.json()], ["c"])

    # ---- detail --------------------------------------------------------

    def test_outsider_cannot_read_task(self):
        task, = self.make_tasks(["secret"])
        self.client.force_authenticate(user=self.outsider)

        response = self.client.get(reverse("task-detail", kwargs={"task_id": task.id}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_task_is_not_found(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("task-detail", kwargs={"task_id": 987654}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {"error": "Task not found"})

    def test_status_change_appends_to_new_column(self):
        a, b = self.make_tasks(["a", "b"])
        self.make_tasks(["done-1"], Task.STATUS_DONE)

        self.client.force_authenticate(user=self.editor)
        response = self.client.patch(
            reverse("task-detail", kwargs={"task_id": a.id}),
            {"status": "DONE", "title": "a!"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.content)
        self.assertEqual(response.json()["status"], Task.STATUS_DONE)
        self.assertEqual(response.json()["order"], 1)
        self.assertEqual(column(self.project, Task.STATUS_DONE), ["done-1", "a!"])
        self.assertEqual(column(self.project, Task.STATUS_TODO), ["b"])

    def test_editor_deletes_task(self):
        task, = self.make_tasks(["bye"])
        self.client.force_authenticate(user=self.editor)

        response = self.client.delete(reverse("task-detail", kwargs={"task_id": task.id}))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Task.objects.filter(pk=task.pk).exists())

    def test_viewer_cannot_delete_task(self):
        task, = self.make_tasks(["stay"])
        self.client.force_authenticate(user=self.viewer)

        response = self.client.delete(reverse("task-detail", kwargs={"task_id": task.id}))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Task.objects.filter(pk=task.pk).exists())

    # ---- move (drag-and-drop) ------------------------------------------

    def test_move_within_column(self):
        a, b, c = self.make_tasks(["a", "b", "c"])
        self.client.force_authenticate(user=self.editor)

        response = self.client.post(
            reverse("task-move", kwargs={"task_id": c.id}),
            {"status": "TODO", "index": 0},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.content)
        self.assertEqual(response.json()["order"], 0)
        self.assertEqual(column(self.project, Task.STATUS_TODO), ["c", "a", "b"])

    def test_move_across_columns_renumbers_both(self):
        a, b, c = self.make_tasks(["a", "b", "c"])
        self.make_tasks(["x", "y"], Task.STATUS_IN_PROGRESS)
        self.client.force_authenticate(user=self.owner)

        response = self.client.post(
            reverse("task-move", kwargs={"task_id": b.id}),
            {"status": "IN_PROGRESS", "index": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.content)
        self.assertEqual(column(self.project, Task.STATUS_IN_PROGRESS), ["x", "b", "y"])
        self.assertEqual(column(self.project, Task.STATUS_TODO), ["a", "c"])
        self.assertEqual(
            list(Task.objects.filter(project=self.project, status=Task.STATUS_TODO).order_by("order").values_list("order", flat=True)),
            [0, 1],
        )

    def test_move_index_is_clamped(self):
        a, = self.make_tasks(["a"])
        self.make_tasks(["d1"], Task.STATUS_DONE)
        self.client.force_authenticate(user=self.owner)

        response = self.client.post(
            reverse("task-move", kwargs={"task_id": a.id}),
            {"status": "DONE", "index": 50},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(column(self.project, Task.STATUS_DONE), ["d1", "a"])

    def test_move_rejects_negative_index(self):
        a, = self.make_tasks(["a"])
        self.client.force_authenticate(user=self.owner)

        response = self.client.post(
            reverse("task-move", kwargs={"task_id": a.id}),
            {"status": "DONE", "index": -1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"][0]["path"], ["index"])

    def test_viewer_cannot_move(self):
        a, b = self.make_tasks(["a", "b"])
        self.client.force_authenticate(user=self.viewer)

        response = self.client.post(
            reverse("task-move", kwargs={"task_id": b.id}),
            {"status": "TODO", "index": 0},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(column(self.project, Task.STATUS_TODO), ["a", "b"])

    def test_ordering_writes_lock_the_project_row(self):
        with mock.patch("projects.ordering._lock_project", wraps=ordering._lock_project) as lock:
            task = ordering.create_task(self.project, title="first", status=Task.STATUS_DONE)
            ordering.move_task(task, Task.STATUS_TODO, 0)

        self.assertEqual(
            lock.call_args_list,
            [mock.call(self.project.pk), mock.call(self.project.pk)],
        )
        self.assertEqual(column(self.project, Task.STATUS_TODO), ["first"])
