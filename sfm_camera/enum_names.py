"""
Name <-> value lookup for enums.

Each enum class gets an explicit table of (name, value) pairs, built the
first time it is queried and cached afterwards. Both directions raise on
unknown input instead of returning an empty string or a sentinel.
"""

from enum import Enum
from typing import Dict, Tuple, Type, TypeVar

E = TypeVar("E", bound=Enum)

_name_tables: Dict[type, Tuple[Tuple[str, Enum], ...]] = {}


def _table(enum_cls: Type[E]) -> Tuple[Tuple[str, E], ...]:
    """Return the cached (name, member) table for an enum class."""
    table = _name_tables.get(enum_cls)
    if table is None:
        table = tuple((member.name, member) for member in enum_cls)
        _name_tables[enum_cls] = table
    return table


def enum_names(enum_cls: Type[E]) -> Tuple[str, ...]:
    """Names of an enum class, in definition order."""
    return tuple(name for name, _ in _table(enum_cls))


def get_enum_name(value: Enum) -> str:
    """
    Get the programmatic name of an enum member.

    Args:
        value: Enum member

    Returns:
        Member name as written in the enum definition

    Raises:
        ValueError: If the value is not a member of its enum
    """
    for name, member in _table(type(value)):
        if member is value:
            return name
    raise ValueError(f"Invalid enum value: {value!r}")


def enum_value_name(enum_cls: Type[E], value: int) -> str:
    """
    Get the name of the member of ``enum_cls`` with the given raw value.

    Raises:
        ValueError: If no member has that value
    """
    for name, member in _table(enum_cls):
        if member.value == value:
            return name
    raise ValueError(f"Invalid enum value: {value}")


def enum_from_name(enum_cls: Type[E], name: str) -> E:
    """
    Get the enum member with the given name.

    Args:
        enum_cls: Enum class to search
        name: Member name (case-sensitive)

    Returns:
        The matching member

    Raises:
        ValueError: If the name is not a member of ``enum_cls``
    """
    for member_name, member in _table(enum_cls):
        if member_name == name:
            return member
    raise ValueError(f"Invalid enum name: {name}")
