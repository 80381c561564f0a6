"""
GroupDescriptor data model for directory contact groups.

Groups are rebuilt from the directory on every activation; only their
display order is persisted (see group_order.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Group types as defined by Google People API
GROUP_TYPE_UNSPECIFIED = "GROUP_TYPE_UNSPECIFIED"
GROUP_TYPE_USER_CONTACT_GROUP = "USER_CONTACT_GROUP"
GROUP_TYPE_SYSTEM_CONTACT_GROUP = "SYSTEM_CONTACT_GROUP"


@dataclass(frozen=True)
class GroupDescriptor:
    """
    A directory contact group.

    Attributes:
        resource_name: Google's unique ID (e.g., "contactGroups/123abc")
        name: Display name of the group (e.g., "Family", "Work")
        group_type: USER_CONTACT_GROUP or SYSTEM_CONTACT_GROUP
        member_count: Number of members reported by the directory
    """

    resource_name: str
    name: str
    group_type: str = GROUP_TYPE_USER_CONTACT_GROUP
    member_count: int = 0

    @classmethod
    def from_api_response(cls, group_data: dict[str, Any]) -> GroupDescriptor:
        """
        Create a GroupDescriptor from a Google People API response.

        Example API response structure::

            {
                'resourceName': 'contactGroups/123abc',
                'name': 'Family',
                'formattedName': 'Family',
                'groupType': 'USER_CONTACT_GROUP',
                'memberCount': 5,
            }
        """
        # System groups carry a localized formattedName ("Starred") and a
        # raw name ("starred")
        name = group_data.get("formattedName") or group_data.get("name", "")
        return cls(
            resource_name=group_data.get("resourceName", ""),
            name=name,
            group_type=group_data.get("groupType", GROUP_TYPE_UNSPECIFIED),
            member_count=group_data.get("memberCount", 0),
        )

    @property
    def id(self) -> str:
        return self.resource_name

    def is_user_group(self) -> bool:
        """Check if this is a user-created contact group."""
        return self.group_type == GROUP_TYPE_USER_CONTACT_GROUP

    def is_system_group(self) -> bool:
        """Check if this is a system group (myContacts, starred, ...)."""
        return self.group_type == GROUP_TYPE_SYSTEM_CONTACT_GROUP
