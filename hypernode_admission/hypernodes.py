"""
Admission rules for HyperNode resources.

A HyperNode may list other HyperNodes in its ``volcano.sh/hypernodes`` label.
On CREATE every listed name must be well formed and must exist. On UPDATE the
list may be cleared, but it may not grow or shrink; each position whose name
changed must point at an existing tier-1 HyperNode. Every check stops at the
first violation.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .errors import (
    ConflictingSelectorError,
    MalformedLabelError,
    MalformedObjectError,
    MembershipLengthChangedError,
    ReferenceNotFoundError,
    TierViolationError,
    TopologyLookupError,
)
from .models import (
    API_GROUP,
    API_VERSION,
    HYPERNODE_LABEL,
    HYPERNODE_NAME_PREFIX,
    KIND,
    TOP_TIER,
    HyperNode,
)
from .registry import REGISTRY, Registry
from .store import TopologyStore
from .validator import validating

logger = logging.getLogger(__name__)


def validate_members(hypernode: HyperNode) -> None:
    """Reject members whose selector sets both exactMatch and regexMatch."""
    for member in hypernode.members:
        if member.selector.is_empty():
            continue

        if member.selector.exact_match is not None and member.selector.regex_match is not None:
            raise ConflictingSelectorError()


class HyperNodeValidator:
    def __init__(self, store: TopologyStore):
        self.store = store

    def _lookup(self, name: str) -> HyperNode:
        try:
            return self.store.get(name)
        except TopologyLookupError as e:
            raise ReferenceNotFoundError(name, e) from e

    def validate_create(self, hypernode: HyperNode) -> None:
        validate_members(hypernode)

        for name in hypernode.member_hypernodes:
            if not name.startswith(HYPERNODE_NAME_PREFIX):
                raise MalformedLabelError(HYPERNODE_LABEL)

            self._lookup(name)

    def validate_update(self, old: HyperNode, new: HyperNode) -> None:
        validate_members(new)

        old_names = old.member_hypernodes
        new_names = new.member_hypernodes

        # clearing the list is always allowed
        if not new_names:
            return

        if len(new_names) != len(old_names):
            raise MembershipLengthChangedError()

        # positional compare; unchanged entries are not looked up again
        for old_name, new_name in zip(old_names, new_names):
            if new_name == old_name:
                continue

            if not new_name.startswith(HYPERNODE_NAME_PREFIX):
                raise MalformedLabelError(HYPERNODE_LABEL)

            replacement = self._lookup(new_name)
            if replacement.tier != TOP_TIER:
                raise TierViolationError(new_name)


def register_hypernode_hooks(store: TopologyStore, registry: Registry | None = None) -> HyperNodeValidator:
    """Register the CREATE and UPDATE HyperNode hooks on ``registry``."""
    registry = registry if registry is not None else REGISTRY
    hypernode_validator = HyperNodeValidator(store)
    api_version = f"{API_GROUP}/{API_VERSION}"

    @validating(
        "validatehypernode-create",
        kind=KIND,
        apiVersion=api_version,
        operation="CREATE",
        registry=registry,
    )
    def admit_create(object: Mapping[str, Any]) -> bool:
        logger.debug("admitting hypernode -- CREATE")
        hypernode_validator.validate_create(HyperNode.from_dict(object))
        return True

    @validating(
        "validatehypernode-update",
        kind=KIND,
        apiVersion=api_version,
        operation="UPDATE",
        registry=registry,
    )
    def admit_update(object: Mapping[str, Any], oldObject: Mapping[str, Any]) -> bool:
        logger.debug("admitting hypernode -- UPDATE")
        # a missing or null oldObject reaches us as an empty mapping
        if not oldObject:
            raise MalformedObjectError("oldObject is required for UPDATE")
        hypernode_validator.validate_update(
            HyperNode.from_dict(oldObject),
            HyperNode.from_dict(object),
        )
        return True

    return hypernode_validator
