"""Typed view of the HyperNode custom resource (topology.volcano.sh/v1alpha1)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import MalformedObjectError

HYPERNODE_LABEL = "volcano.sh/hypernodes"
HYPERNODE_NAME_PREFIX = "hypernode-"
TOP_TIER = "1"

API_GROUP = "topology.volcano.sh"
API_VERSION = "v1alpha1"
PLURAL = "hypernodes"
KIND = "HyperNode"


def parse_membership_label(value: str | None) -> list[str]:
    """Split a membership label into its ordered list of names.

    An absent or empty label yields ``[]``. Otherwise the value is split on
    ``,`` as is: order, duplicates and empty segments are all kept.
    """
    if not value:
        return []
    return value.split(",")


@dataclass(frozen=True)
class ExactMatch:
    name: str = ""


@dataclass(frozen=True)
class RegexMatch:
    pattern: str = ""


@dataclass(frozen=True)
class MemberSelector:
    exact_match: ExactMatch | None = None
    regex_match: RegexMatch | None = None

    def is_empty(self) -> bool:
        return self == MemberSelector()


@dataclass(frozen=True)
class MemberSpec:
    type: str = ""
    selector: MemberSelector = field(default_factory=MemberSelector)


@dataclass
class HyperNode:
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    tier: str = ""
    members: list[MemberSpec] = field(default_factory=list)

    @property
    def member_hypernodes(self) -> list[str]:
        """Names listed in the membership label, in declared order."""
        return parse_membership_label(self.labels.get(HYPERNODE_LABEL))

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "HyperNode":
        """Decode a HyperNode from its Kubernetes object representation."""
        if not isinstance(obj, Mapping):
            raise MalformedObjectError("hypernode object must be a mapping")

        metadata = _mapping(obj.get("metadata"), "metadata")
        spec = _mapping(obj.get("spec"), "spec")

        labels = _mapping(metadata.get("labels"), "metadata.labels")
        for key, value in labels.items():
            if not isinstance(value, str):
                raise MalformedObjectError(f"label {key} must be a string")

        tier = spec.get("tier", "")
        if tier is None:
            tier = ""
        # Tier is declared as a string in the CRD but YAML may hand us an int
        if isinstance(tier, int) and not isinstance(tier, bool):
            tier = str(tier)
        if not isinstance(tier, str):
            raise MalformedObjectError("spec.tier must be a string")

        raw_members = spec.get("members") or []
        if not isinstance(raw_members, list):
            raise MalformedObjectError("spec.members must be a list")

        return cls(
            name=metadata.get("name") or "",
            labels=dict(labels),
            tier=tier,
            members=[_decode_member(m, i) for i, m in enumerate(raw_members)],
        )


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MalformedObjectError(f"{path} must be an object")
    return value


def _decode_member(raw: Any, index: int) -> MemberSpec:
    member = _mapping(raw, f"spec.members[{index}]")
    selector = _mapping(member.get("selector"), f"spec.members[{index}].selector")

    exact_match = None
    if selector.get("exactMatch") is not None:
        exact = _mapping(selector["exactMatch"], f"spec.members[{index}].selector.exactMatch")
        exact_match = ExactMatch(name=exact.get("name") or "")

    regex_match = None
    if selector.get("regexMatch") is not None:
        regex = _mapping(selector["regexMatch"], f"spec.members[{index}].selector.regexMatch")
        regex_match = RegexMatch(pattern=regex.get("pattern") or "")

    return MemberSpec(
        type=member.get("type") or "",
        selector=MemberSelector(exact_match=exact_match, regex_match=regex_match),
    )
