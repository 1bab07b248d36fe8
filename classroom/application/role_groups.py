from types import MappingProxyType
from typing import Mapping

from ..domain.entities import Role, RoleGroup


class RoleGroupRegistry:
    """Named role groups, fixed once the process has started."""

    def __init__(self, groups: Mapping[str, RoleGroup]):
        self._groups = MappingProxyType(dict(groups))

    @classmethod
    def from_config(cls, config: Mapping[str, list[str]]) -> "RoleGroupRegistry":
        groups = {
            name: RoleGroup(name=name, roles=tuple(Role(r) for r in roles))
            for name, roles in config.items()
        }
        return cls(groups)

    def get(self, name: str) -> RoleGroup:
        try:
            return self._groups[name]
        except KeyError:
            raise KeyError(f"Unknown role group: {name}") from None

    def names(self) -> list[str]:
        return list(self._groups)

    def __contains__(self, name: str) -> bool:
        return name in self._groups
