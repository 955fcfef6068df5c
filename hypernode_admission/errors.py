"""
Error types raised while admitting HyperNode resources.

Admission errors carry a short ``kind`` tag and a human readable ``message``.
The registry turns them into a denied admission response, using the message as
``status.message`` and the kind as ``status.reason``.

Store errors are kept separate: a store raises them, and the validators wrap
them into ``ReferenceNotFoundError``.
"""

from __future__ import annotations


class AdmissionError(Exception):
    """Base class for every rejection produced by a HyperNode validator."""

    kind = "AdmissionError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictingSelectorError(AdmissionError):
    kind = "ConflictingSelector"

    def __init__(self):
        super().__init__("exactMatch and regexMatch cannot be specified together")


class MalformedLabelError(AdmissionError):
    kind = "MalformedLabel"

    def __init__(self, label_key: str):
        super().__init__(
            f"the label {label_key} must be like `hypernode-0,hypernode-1,...,hypernode-n`"
        )
        self.label_key = label_key


class ReferenceNotFoundError(AdmissionError):
    kind = "ReferenceNotFound"

    def __init__(self, name: str, cause: Exception):
        super().__init__(f"failed to get hypernode {name}: {cause}")
        self.name = name
        self.cause = cause


class MembershipLengthChangedError(AdmissionError):
    kind = "MembershipLengthChanged"

    def __init__(self):
        super().__init__("change hypernode list length is not allowed")


class TierViolationError(AdmissionError):
    kind = "TierViolation"

    def __init__(self, name: str):
        super().__init__(f"changed hypernode {name} tier is not tier 1 is not allowed")
        self.name = name


class MalformedObjectError(AdmissionError):
    kind = "MalformedObject"


class TopologyLookupError(Exception):
    """A topology store could not answer a lookup."""


class HyperNodeNotFound(TopologyLookupError):
    def __init__(self, name: str):
        super().__init__(f'hypernodes.topology.volcano.sh "{name}" not found')
        self.name = name
