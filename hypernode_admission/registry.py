from typing import Any, Callable
from dataclasses import dataclass
import logging
import types

from .errors import AdmissionError

logger = logging.getLogger(__name__)


def create_field_cache(request: dict[str, Any]) -> tuple[dict[str, types.MappingProxyType], Any]:
    """Create a cache for extracted fields to avoid re-computation"""
    field_cache = {}

    def get_cached_field(field_name: str, field_path: list[str]):
        if field_name not in field_cache:
            if field_name == "raw_object":
                # Special case: pass the entire request as immutable 'raw_object'
                field_cache[field_name] = types.MappingProxyType(request)
            else:
                current = request
                for path_part in field_path:
                    current = current.get(path_part, {}) if isinstance(current, dict) else {}
                if isinstance(current, dict):
                    field_cache[field_name] = types.MappingProxyType(current)
                elif isinstance(current, str):
                    field_cache[field_name] = current
                else:
                    field_cache[field_name] = types.MappingProxyType({})
        return field_cache[field_name]

    return field_cache, get_cached_field


def validate_request_structure(request: dict[str, Any]) -> None:
    """Validate the structure of the incoming request"""
    if not isinstance(request, dict):
        raise ValueError("Request must be a dictionary")

    if "object" not in request:
        raise ValueError("Request must contain an 'object' field")

    if not isinstance(request["object"], dict):
        raise ValueError("Request 'object' field must be a dictionary")

    obj = request["object"]
    if "kind" not in obj:
        raise ValueError("Request object must contain a 'kind' field")

    if "apiVersion" not in obj:
        raise ValueError("Request object must contain an 'apiVersion' field")

    if "metadata" in obj and not isinstance(obj["metadata"], dict):
        raise ValueError("Request object 'metadata' field must be a dictionary")

    if request.get("oldObject") is not None and not isinstance(request["oldObject"], dict):
        raise ValueError("Request 'oldObject' field must be a dictionary")


@dataclass
class Validator:
    pre_conditions: list[
        Callable[[dict[str, Any]], bool]
    ]  # kind/apiVersion/operation conditions which must all hold before running user code
    user_function: Callable[..., Any]
    name: str
    extract_fields: dict[str, list[str]]  # field name -> path to extract from request


@dataclass
class ValidatingHook:
    name: str
    validators: list[Validator]


@dataclass
class ValidationResult:
    allowed: bool
    message: str = ""
    reason: str = ""


ALLOWED = ValidationResult(allowed=True)


class Registry:
    def __init__(self):
        self.validating_hooks: dict[str, ValidatingHook] = {}

    def add_validating_webhook(self, hook: ValidatingHook):
        if hook.name in self.validating_hooks:
            raise Exception(f"Duplicate hook.name={hook.name}")
        self.validating_hooks[hook.name] = hook

    def _check_pre_conditions(self, validator: Validator, request: dict[str, Any]) -> bool:
        """Check all pre-conditions for a validator"""
        for pre_condition in validator.pre_conditions:
            if not pre_condition(request):
                logger.debug("Pre-condition did not match for %s, skipping", validator.name)
                return False
        return True

    def _extract_validator_kwargs(self, validator: Validator, get_cached_field) -> dict[str, Any]:
        """Extract kwargs for a validator using the field cache"""
        kwargs = {}
        for field_name, field_path in validator.extract_fields.items():
            kwargs[field_name] = get_cached_field(field_name, field_path)
        return kwargs

    def _run_validator(self, validator: Validator, kwargs: dict[str, Any]) -> ValidationResult:
        """Run a single validator and return the result"""
        try:
            response = validator.user_function(**kwargs)
        except AdmissionError as e:
            logger.info("%s denied request: %s", validator.name, e.message)
            return ValidationResult(allowed=False, message=e.message, reason=e.kind)

        message = ""
        if isinstance(response, tuple) and len(response) == 2:
            response, message = response

        if not isinstance(response, bool):
            logger.warning(
                "%s returned invalid type %s, assuming False",
                validator.name,
                type(response).__name__,
            )
            return ValidationResult(
                allowed=False,
                message=f"Validation failed: {validator.name} returned invalid result type",
            )

        if response is False:
            logger.info("%s returned false", validator.name)
            return ValidationResult(
                allowed=False,
                message=str(message) or f"Validation failed: {validator.name}",
            )
        return ALLOWED

    def validate_request_detailed(self, request: dict[str, Any]) -> ValidationResult:
        """Evaluate all matching validating hooks, stopping at the first denial"""
        validate_request_structure(request)

        field_cache, get_cached_field = create_field_cache(request)

        for hook in self.validating_hooks.values():
            for validator in hook.validators:
                if not self._check_pre_conditions(validator, request):
                    continue

                kwargs = self._extract_validator_kwargs(validator, get_cached_field)

                result = self._run_validator(validator, kwargs)
                if not result.allowed:
                    return result

        return ALLOWED

    def validate_request(self, request: dict[str, Any]) -> bool:
        """Evaluate all validating hooks against the request"""
        return self.validate_request_detailed(request).allowed

    def process_admission_review(self, admission_review: dict[str, Any]) -> dict[str, Any]:
        """Answer an AdmissionReview with an AdmissionReview carrying the verdict"""
        request = admission_review.get("request") or {}
        uid = request.get("uid", "") if isinstance(request, dict) else ""

        try:
            result = self.validate_request_detailed(request)
        except ValueError as e:
            logger.info("Rejecting malformed admission request %s: %s", uid, e)
            result = ValidationResult(allowed=False, message=str(e), reason="BadRequest")

        response: dict[str, Any] = {"uid": uid, "allowed": result.allowed}
        if not result.allowed:
            response["status"] = {
                "code": 400,
                "message": result.message,
                "reason": result.reason,
            }

        return {
            "apiVersion": admission_review.get("apiVersion", "admission.k8s.io/v1"),
            "kind": "AdmissionReview",
            "response": response,
        }


REGISTRY = Registry()
