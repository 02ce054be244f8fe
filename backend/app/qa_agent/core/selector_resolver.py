"""
Selector Resolver

Maps a step target (descriptor id, role token or raw locator) to a
locator string. Pure lookup, no browser access.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

logger = logging.getLogger(__name__)


def _get(element: Any, key: str, attr: str) -> Any:
    if isinstance(element, dict):
        return element.get(key)
    return getattr(element, attr, None)


@dataclass
class ElementIndex:
    """Lookup tables built once per execution"""
    by_id: Dict[str, str] = field(default_factory=dict)
    by_role: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_descriptors(cls, elements: Iterable[Any]) -> "ElementIndex":
        """
        Build the index from ElementDescriptors or their dict records.

        Records without a locator are skipped. When several elements share
        a role the last one wins the role entry.
        """
        index = cls()
        for element in elements or []:
            locator = _get(element, "locator", "locator") or _get(element, "selector", "selector")
            if not locator:
                continue
            element_id = _get(element, "id", "id")
            role = _get(element, "role", "role")
            if element_id:
                index.by_id[element_id] = locator
            if role:
                index.by_role[role] = locator
        return index


class SelectorResolver:
    """Resolves step targets against an ElementIndex"""

    def __init__(self, index: ElementIndex):
        self.index = index

    @classmethod
    def from_elements(cls, elements: Iterable[Any]) -> "SelectorResolver":
        return cls(ElementIndex.from_descriptors(elements))

    def resolve(self, target: str) -> str:
        """Id lookup, then role lookup, else the target itself"""
        if target in self.index.by_id:
            return self.index.by_id[target]
        if target in self.index.by_role:
            logger.debug(f"Resolved '{target}' by role")
            return self.index.by_role[target]
        return target
