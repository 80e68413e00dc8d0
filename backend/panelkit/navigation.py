"""
panelkit/navigation.py

Navigation items contributed by resources, and their grouping per panel.
"""
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class NavigationItem:
    """
    Attributes:
        label: text of the entry
        url: target URL
        group: group label; None for top-level entries
        icon / active_icon: icon names
        active_route_pattern: route names for which the entry is active (fnmatch)
        badge / badge_color: optional counter and its colour
        sort: position inside the group; None sorts last
    """

    label: str
    url: str
    group: Optional[str] = None
    icon: Optional[str] = None
    active_icon: Optional[str] = None
    active_route_pattern: Optional[str] = None
    badge: Optional[str] = None
    badge_color: Optional[str] = None
    sort: Optional[int] = None

    def is_active(self, route_name: Optional[str]) -> bool:
        if not route_name or not self.active_route_pattern:
            return False
        return fnmatchcase(route_name, self.active_route_pattern)


@dataclass
class NavigationGroup:
    label: Optional[str]
    items: List[NavigationItem] = field(default_factory=list)


def _item_sort_key(item: NavigationItem):
    return (item.sort is None, item.sort or 0, item.label)


def build_navigation(
    items: Iterable[NavigationItem],
    group_order: Sequence[str] = (),
) -> List[NavigationGroup]:
    """
    Group and sort items

    Ungrouped items come first, then groups listed in ``group_order``, then
    any other group in order of first appearance. Items sort by ``sort``
    (unsorted last), then label.
    """
    groups: Dict[Optional[str], NavigationGroup] = {}
    for item in items:
        groups.setdefault(item.group, NavigationGroup(label=item.group)).items.append(item)

    for group in groups.values():
        group.items.sort(key=_item_sort_key)

    ordered: List[NavigationGroup] = []
    if None in groups:
        ordered.append(groups.pop(None))
    for label in group_order:
        if label in groups:
            ordered.append(groups.pop(label))
    ordered.extend(groups.values())
    return ordered


__all__ = [
    "NavigationItem",
    "NavigationGroup",
    "build_navigation",
]
