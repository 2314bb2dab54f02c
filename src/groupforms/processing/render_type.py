"""Render type resolution for closed option domains."""

from __future__ import annotations

from typing import TYPE_CHECKING

from groupforms.typing.enums import RenderType

if TYPE_CHECKING:
    from groupforms.typing.models import GroupingStrategy, OptionSet

_BOOLEAN_CODES = frozenset({"YES", "NO", "TRUE", "FALSE", "1", "0"})
_RADIO_MAX_OPTIONS = 4


def is_boolean_option_set(option_set: OptionSet) -> bool:
    """Return whether an option set is a two-option yes/no style domain."""
    options = option_set.options
    return len(options) == 2 and all(option.code.strip().upper() in _BOOLEAN_CODES for option in options)  # noqa: PLR2004


def compute_render_type(option_set: OptionSet) -> RenderType:
    """Map an option set to a UI control family.

    Args:
        option_set (OptionSet): Option domain.

    Returns:
        RenderType: First matching of yes/no buttons, radio buttons, icon palette, dropdown.
    """
    if is_boolean_option_set(option_set):
        return RenderType.YES_NO_BUTTONS
    if len(option_set.options) <= _RADIO_MAX_OPTIONS:
        return RenderType.RADIO_BUTTONS
    if any(option.icon is not None for option in option_set.options):
        return RenderType.ICON_PALETTE
    return RenderType.DROPDOWN


def resolve_member_render_types(strategy: GroupingStrategy) -> list[RenderType | None]:
    """Resolve each member's own option set, in member order.

    Args:
        strategy (GroupingStrategy): Grouping decision.

    Returns:
        list[RenderType | None]: Render type per member, None for members without option set.
    """
    return [
        compute_render_type(member.option_set) if member.option_set is not None else None
        for member in strategy.members
    ]
