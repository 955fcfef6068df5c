"""
Validator module containing the @validating decorator and helper functions.

This module provides the @validating decorator used to register admission
validation functions on a Registry, along with supporting helper functions.
"""

from typing import Any, Callable
import re
import inspect

from .registry import REGISTRY, Registry, Validator, ValidatingHook


def create_condition_check(field_path: list[str], expected_value: str | re.Pattern):
    """Create a condition check that returns True on match and False otherwise."""

    def check(request: dict[str, Any]) -> bool:
        current = request
        for field in field_path:
            if isinstance(current, dict):
                current = current.get(field, {})
            else:
                current = {}
                break

        actual_value = current if isinstance(current, str) else ""
        if not actual_value:
            return False

        if isinstance(expected_value, re.Pattern):
            return expected_value.match(actual_value) is not None
        return actual_value == expected_value

    return check


def create_pre_conditions(
    kind: str | re.Pattern | None,
    namespace: str | re.Pattern | None,
    apiVersion: str | re.Pattern | None,
    operation: str | re.Pattern | None,
) -> list:
    """Create pre-conditions based on provided parameters."""
    pre_conditions = []

    condition_mappings: list[tuple[str | re.Pattern | None, list[str]]] = [
        (kind, ["object", "kind"]),
        (namespace, ["object", "metadata", "namespace"]),
        (apiVersion, ["object", "apiVersion"]),
        (operation, ["operation"]),
    ]

    for value, path in condition_mappings:
        if value is not None:
            pre_conditions.append(create_condition_check(path, value))

    return pre_conditions


def extract_fields_from_signature(f: Callable) -> dict[str, list[str]]:
    """Extract the fields that need to be passed to the function based on signature."""
    sig = inspect.signature(f)
    extract_fields = {}

    # Mapping of parameter names to their paths in the request
    field_mappings = {
        "labels": ["object", "metadata", "labels"],
        "name": ["object", "metadata", "name"],
        "metadata": ["object", "metadata"],
        "spec": ["object", "spec"],
        "object": ["object"],  # The resource being admitted
        "oldObject": ["oldObject"],  # The previous state (for UPDATE)
        "operation": ["operation"],  # CREATE, UPDATE, DELETE or CONNECT
        "raw_object": [],  # Special case - pass the entire request
    }

    for param_name in sig.parameters:
        if param_name in field_mappings:
            extract_fields[param_name] = field_mappings[param_name]

    return extract_fields


def validating(
    name: str,
    kind: str | re.Pattern | None = None,
    namespace: str | re.Pattern | None = None,
    apiVersion: str | re.Pattern | None = None,
    operation: str | re.Pattern | None = None,
    registry: Registry | None = None,
):
    """
    Decorator to register an admission validation function.

    The function is only invoked when every given filter matches the incoming
    request; requests that do not match are left to other hooks.

    Args:
        name: Unique name for this validator within the registry.
        kind: Only validate objects of this kind (str for exact match,
            re.Pattern for a regex, None for any kind).
        namespace: Only validate objects in this namespace.
        apiVersion: Only validate objects with this apiVersion, e.g.
            "topology.volcano.sh/v1alpha1".
        operation: Only validate this admission operation, e.g. "CREATE".
        registry: Registry to add the hook to. Defaults to the module REGISTRY.

    The decorated function can accept any combination of these parameters:
        - object: The resource being admitted (mapping)
        - oldObject: Previous state of the resource for UPDATE (mapping)
        - raw_object: The complete admission request (mapping)
        - metadata, labels, spec: Sections of the admitted object
        - name: The admitted object's name (str)
        - operation: The admission operation being performed (str)

    The function returns True to allow, False or (False, message) to deny, or
    raises an AdmissionError to deny with a typed reason.

    Raises:
        Exception: If a validator with the same name already exists

    Example:
        @validating("tier-present", kind="HyperNode", operation="CREATE")
        def require_tier(spec):
            return bool(spec.get("tier")), "spec.tier is required"
    """
    def inner(f):
        target = registry if registry is not None else REGISTRY

        validator = Validator(
            pre_conditions=create_pre_conditions(kind, namespace, apiVersion, operation),
            user_function=f,
            name=name,
            extract_fields=extract_fields_from_signature(f),
        )

        if name in target.validating_hooks:
            raise Exception(f"Duplicate hook name: {name}")

        target.add_validating_webhook(ValidatingHook(name=name, validators=[validator]))
        return f

    return inner
