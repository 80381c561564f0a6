"""
Persistence of the user's preferred group display order.

Only the order of group identifiers is stored; the groups themselves are
rebuilt from the directory on every activation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar, Union

from contact_reminder.errors import StorageFailure
from contact_reminder.storage.settings import SettingsStore
from contact_reminder.sync.group import GroupDescriptor

logger = logging.getLogger(__name__)

GROUP_ORDER_KEY = "groupOrder"

G = TypeVar("G", bound=Union[GroupDescriptor, str])


def _group_id(group: GroupDescriptor | str) -> str:
    if isinstance(group, GroupDescriptor):
        return group.id
    return group


class GroupOrderStore:
    """
    Stores the ordered list of group identifiers under the groupOrder key.

    Usage:
        store = GroupOrderStore(SettingsStore(path))
        store.reorder(["contactGroups/b", "contactGroups/a"])
        ordered = store.resolve_order(directory.list_groups())
    """

    def __init__(self, settings: SettingsStore):
        self.settings = settings

    def reorder(self, new_order: Iterable[GroupDescriptor | str]) -> None:
        """
        Persist a new full group order, replacing the previous one.

        Failures are logged and never raised; the caller proceeds with the
        order it already displays.
        """
        order = [_group_id(group) for group in new_order]
        try:
            self.settings.set(GROUP_ORDER_KEY, order)
        except StorageFailure as e:
            logger.error(f"Failed to save group order: {e}")
            return
        logger.debug(f"Saved group order ({len(order)} groups)")

    def stored_order(self) -> list[str]:
        """Return the persisted group order, or [] if none is stored or readable."""
        try:
            value = self.settings.get(GROUP_ORDER_KEY, [])
        except StorageFailure as e:
            logger.warning(f"Ignoring unreadable group order: {e}")
            return []

        if not isinstance(value, list):
            logger.warning(f"Ignoring malformed group order: {value!r}")
            return []
        return [str(item) for item in value]

    def resolve_order(self, candidate_groups: Sequence[G]) -> list[G]:
        """
        Sort candidate groups by their position in the stored order.

        Groups missing from the stored order follow all known ones, keeping
        the order the directory returned them in.
        """
        positions: dict[str, int] = {}
        for index, group_id in enumerate(self.stored_order()):
            positions.setdefault(group_id, index)

        unknown = len(positions)
        return sorted(
            candidate_groups,
            key=lambda group: positions.get(_group_id(group), unknown),
        )
