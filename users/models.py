# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Account used by every project member.
    Login is by email, so it has to be unique.
    """
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True, help_text="Display name shown on boards")

    @property
    def display_name(self):
        return self.name or self.username

    def __str__(self):
        return self.username
