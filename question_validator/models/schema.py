from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from question_validator.core.exceptions import SchemaViolationError

FieldType = Literal["string", "integer", "number", "boolean", "array", "object"]

_PY_TYPES: Dict[str, tuple] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
}


class FieldSpec(BaseModel):
    type: FieldType
    required: bool = True
    description: Optional[str] = None
    enum: Optional[List[str]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    items: Optional[FieldSpec] = None
    properties: Optional[Dict[str, FieldSpec]] = None

    def to_json_schema(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {"type": self.type}
        if self.description:
            node["description"] = self.description
        if self.enum is not None:
            node["enum"] = list(self.enum)
        if self.minimum is not None:
            node["minimum"] = self.minimum
        if self.maximum is not None:
            node["maximum"] = self.maximum
        if self.items is not None:
            node["items"] = self.items.to_json_schema()
        if self.properties is not None:
            node.update(_object_schema(self.properties))
        return node

    def check(self, value: Any, path: str) -> List[str]:
        """Return a list of violations for ``value`` (empty when valid)."""
        # bool is an int subclass; never accept it for numeric fields
        if isinstance(value, bool) and self.type in ("integer", "number"):
            return [f"{path}: expected {self.type}, got boolean"]
        if not isinstance(value, _PY_TYPES[self.type]):
            return [f"{path}: expected {self.type}, got {type(value).__name__}"]

        errors: List[str] = []
        if self.enum is not None and value not in self.enum:
            errors.append(f"{path}: {value!r} is not one of {self.enum}")
        if self.minimum is not None and value < self.minimum:
            errors.append(f"{path}: {value} is below minimum {self.minimum:g}")
        if self.maximum is not None and value > self.maximum:
            errors.append(f"{path}: {value} is above maximum {self.maximum:g}")
        if self.items is not None:
            for i, item in enumerate(value):
                errors.extend(self.items.check(item, f"{path}[{i}]"))
        if self.properties is not None:
            errors.extend(_check_object(self.properties, value, path))
        return errors


def _object_schema(fields: Dict[str, FieldSpec]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: spec.to_json_schema() for name, spec in fields.items()},
        "required": [name for name, spec in fields.items() if spec.required],
    }


def _check_object(fields: Dict[str, FieldSpec], value: Dict[str, Any], path: str) -> List[str]:
    errors: List[str] = []
    for name, spec in fields.items():
        child = f"{path}.{name}" if path else name
        if name not in value:
            if spec.required:
                errors.append(f"{child}: missing required field")
            continue
        errors.extend(spec.check(value[name], child))
    return errors


class OutputSchema(BaseModel):
    """Declared response shape for one model operation.

    Strict JSON-schema responses must be objects, so results that are really a
    bare string or list are declared under a single wrapper field named by
    ``unwrap``; ``validate_payload`` returns that field's value.
    """

    name: str
    fields: Dict[str, FieldSpec]
    unwrap: Optional[str] = None

    def to_json_schema(self) -> Dict[str, Any]:
        return {"title": self.name, **_object_schema(self.fields)}

    def validate_payload(self, payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise SchemaViolationError(
                f"Response for {self.name} must be a JSON object",
                details={"schema": self.name, "got": type(payload).__name__},
            )
        errors = _check_object(self.fields, payload, "")
        if errors:
            raise SchemaViolationError(
                f"Response for {self.name} does not match the declared schema",
                details={"schema": self.name, "errors": errors},
            )
        return payload[self.unwrap] if self.unwrap else payload


FieldSpec.model_rebuild()
