"""Per-session list state and the request-scoped user context."""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock

import config

from auth import CurrentUser
from listing import APPLICATIONS, CONTACTS, EntityKind, ListView
from mutations import MutationCoordinator
from notifications import Notifier
from store import DataStore


@dataclass
class Workspace:
    """The lists one signed-in session is looking at."""

    user: CurrentUser
    applications: ListView
    contacts: ListView

    @classmethod
    def open(cls, user: CurrentUser) -> "Workspace":
        return cls(
            user=user,
            applications=ListView(APPLICATIONS, user.id),
            contacts=ListView(CONTACTS, user.id),
        )

    def view(self, kind: EntityKind) -> ListView:
        return self.applications if kind is APPLICATIONS else self.contacts


class WorkspaceRegistry:
    """Workspaces by session token, bounded to the most recently used ``capacity``."""

    def __init__(self, capacity: int | None = None) -> None:
        self.capacity = capacity or config.SESSION_CACHE_SIZE
        self._workspaces: OrderedDict[str, Workspace] = OrderedDict()
        self._lock = Lock()

    def get(self, token: str, user: CurrentUser) -> Workspace:
        with self._lock:
            workspace = self._workspaces.get(token)
            if workspace is None or workspace.user != user:
                workspace = Workspace.open(user)
                self._workspaces[token] = workspace
            self._workspaces.move_to_end(token)
            while len(self._workspaces) > self.capacity:
                self._workspaces.popitem(last=False)
            return workspace

    def __len__(self) -> int:
        return len(self._workspaces)

    def drop(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            self._workspaces.pop(token, None)

    def clear(self) -> None:
        with self._lock:
            self._workspaces.clear()


@dataclass
class UserContext:
    """Everything a request handler needs about the signed-in user.

    Resolved once per request; the owner id travels from here into every
    store call.
    """

    user: CurrentUser
    token: str
    store: DataStore
    notifier: Notifier
    workspace: Workspace

    @property
    def owner_id(self) -> str:
        return self.user.id

    def coordinator(self, kind: EntityKind) -> MutationCoordinator:
        return MutationCoordinator(self.store, self.workspace.view(kind), self.notifier)
