"""Flag sets describing which item fields changed and what an item allows."""

from __future__ import annotations

import enum


class ItemFields(enum.Flag):
    """Host-changeable item fields (the changed-field set of a modify)."""

    NONE = 0
    CONTENTS = enum.auto()
    FILENAME = enum.auto()
    PARENT = enum.auto()
    LAST_USED_DATE = enum.auto()
    CREATION_DATE = enum.auto()
    CONTENT_MODIFICATION_DATE = enum.auto()
    TAG_DATA = enum.auto()
    FAVORITE_RANK = enum.auto()
    FILE_SYSTEM_FLAGS = enum.auto()
    EXTENDED_ATTRIBUTES = enum.auto()
    TYPE_AND_CREATOR = enum.auto()


class ItemCapabilities(enum.Flag):
    NONE = 0
    READING = enum.auto()
    WRITING = enum.auto()
    RENAMING = enum.auto()
    REPARENTING = enum.auto()
    TRASHING = enum.auto()
    DELETING = enum.auto()
    ADDING_SUB_ITEMS = enum.auto()


BASE_CAPABILITIES = (
    ItemCapabilities.READING
    | ItemCapabilities.RENAMING
    | ItemCapabilities.TRASHING
    | ItemCapabilities.DELETING
)
