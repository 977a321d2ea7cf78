"""Reporting-tree reconstruction over a flat user snapshot.

Every function here works on an immutable list of user-like records carrying
``id`` and ``manager_id``. The tree is rebuilt per call from an id-keyed
child index; nothing is mutated in place.

Precondition: manager edges are acyclic. Mutations that set ``manager_id``
go through :mod:`teamclock.services.assignment`, which refuses cycles. Data
edited behind that validator's back can still contain one, so both
:func:`build_hierarchy_tree` and :func:`collect_descendants` keep a visited
set and terminate on any input; the tree builder also logs
``hierarchy_cycle_detected`` and detaches the offending edge so every user
still appears exactly once.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger("teamclock.hierarchy")


class HierarchyMember(Protocol):
    id: Any
    manager_id: Any


@dataclass(frozen=True)
class HierarchyNode:
    user: Any
    children: tuple[HierarchyNode, ...] = ()

    @property
    def id(self) -> Hashable:
        return self.user.id

    def walk(self) -> Iterable[HierarchyNode]:
        """Yield this node and every node below it, depth-first, pre-order."""
        stack: list[HierarchyNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def build_children_index(users: Sequence[HierarchyMember]) -> dict[Hashable, list[Hashable]]:
    """Map each manager id to its direct reports, in input order.

    Only ids present in ``users`` appear as keys; reports pointing at an
    unknown manager are left out.
    """
    known_ids = {user.id for user in users}
    index: dict[Hashable, list[Hashable]] = {user.id: [] for user in users}
    for user in users:
        manager_id = user.manager_id
        if manager_id is None or manager_id == user.id or manager_id not in known_ids:
            continue
        index[manager_id].append(user.id)
    return index


def _find_cycle_member(start_id: Hashable, manager_of: dict[Hashable, Hashable]) -> Hashable:
    seen: set[Hashable] = set()
    current = start_id
    while current not in seen:
        seen.add(current)
        current = manager_of[current]
    return current


def _mark_reachable(root_id: Hashable, index: dict[Hashable, list[Hashable]], reached: set[Hashable]) -> None:
    queue: deque[Hashable] = deque([root_id])
    while queue:
        current = queue.popleft()
        if current in reached:
            continue
        reached.add(current)
        queue.extend(index.get(current, ()))


def _freeze(
    root_id: Hashable,
    index: dict[Hashable, list[Hashable]],
    users_by_id: dict[Hashable, HierarchyMember],
) -> HierarchyNode:
    order: list[Hashable] = []
    stack: list[Hashable] = [root_id]
    while stack:
        current = stack.pop()
        order.append(current)
        stack.extend(index.get(current, ()))

    built: dict[Hashable, HierarchyNode] = {}
    for node_id in reversed(order):
        built[node_id] = HierarchyNode(
            user=users_by_id[node_id],
            children=tuple(built[child_id] for child_id in index.get(node_id, ())),
        )
    return built[root_id]


def build_hierarchy_tree(users: Sequence[HierarchyMember]) -> list[HierarchyNode]:
    """Rebuild the manager/report forest from a flat user list.

    Users with no manager, or whose ``manager_id`` does not resolve within
    ``users``, become roots. Roots and children keep the input order.
    """
    users_by_id: dict[Hashable, HierarchyMember] = {}
    for user in users:
        users_by_id.setdefault(user.id, user)
    unique_users = list(users_by_id.values())

    index = build_children_index(unique_users)
    root_ids = [
        user.id
        for user in unique_users
        if user.manager_id is None or user.manager_id == user.id or user.manager_id not in users_by_id
    ]

    reached: set[Hashable] = set()
    for root_id in root_ids:
        _mark_reachable(root_id, index, reached)

    if len(reached) < len(unique_users):
        manager_of = {user.id: user.manager_id for user in unique_users}
        detached: list[Hashable] = []
        for user in unique_users:
            if user.id in reached:
                continue
            cycle_member = _find_cycle_member(user.id, manager_of)
            index[manager_of[cycle_member]].remove(cycle_member)
            root_ids.append(cycle_member)
            detached.append(cycle_member)
            _mark_reachable(cycle_member, index, reached)
        logger.warning(
            "hierarchy_cycle_detected",
            extra={"detached_user_ids": [str(item) for item in detached]},
        )

    root_order = {user.id: position for position, user in enumerate(unique_users)}
    root_ids.sort(key=lambda item: root_order[item])
    return [_freeze(root_id, index, users_by_id) for root_id in root_ids]


def collect_descendants(user_id: Hashable, users: Sequence[HierarchyMember]) -> set[Hashable]:
    """Return every transitive direct report of ``user_id``, excluding itself."""
    index = build_children_index(users)
    descendants: set[Hashable] = set()
    queue: deque[Hashable] = deque(index.get(user_id, ()))
    while queue:
        current = queue.popleft()
        if current in descendants or current == user_id:
            continue
        descendants.add(current)
        queue.extend(index.get(current, ()))
    return descendants
