"""
Schema Definitions — Structural checks over parsed values.

A schema is a closed tagged union discriminated on `type`:
primitive (string/number/boolean/null), array, object, union, literal.
validate() walks a value against a schema and returns a list of
violations (empty list means valid).
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from llm_json.models import ErrorCode


class _SchemaBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class PrimitiveSchema(_SchemaBase):
    type: Literal["string", "number", "boolean", "null"]
    enum: list[str] | None = None


class ArraySchema(_SchemaBase):
    type: Literal["array"]
    items: "Schema"
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")


class ObjectSchema(_SchemaBase):
    type: Literal["object"]
    properties: dict[str, "Schema"] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: bool = Field(default=True, alias="additionalProperties")


class UnionSchema(_SchemaBase):
    type: Literal["union"]
    variants: list["Schema"]


class LiteralSchema(_SchemaBase):
    type: Literal["literal"]
    value: str | int | float | bool | None


Schema = Annotated[
    Union[PrimitiveSchema, ArraySchema, ObjectSchema, UnionSchema, LiteralSchema],
    Field(discriminator="type"),
]

for _model in (ArraySchema, ObjectSchema, UnionSchema):
    _model.model_rebuild()

_schema_adapter = TypeAdapter(Schema)


class SchemaViolation(BaseModel):
    """One reason a value does not match its schema."""
    path: str
    code: ErrorCode
    message: str
    expected: str | None = None
    actual: str | None = None


def schema_from_dict(data: dict) -> Schema:
    """
    Build a Schema from its plain-dict form.

    Raises pydantic.ValidationError for unknown kinds or missing fields.
    """
    return _schema_adapter.validate_python(data)


def describe_type(value: Any) -> str:
    """JSON type name of a parsed Python value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _child(path: str, name: Any) -> str:
    return f"{path.rstrip('/')}/{name}"


def _type_error(path: str, expected: str, value: Any) -> list[SchemaViolation]:
    return [SchemaViolation(
        path=path,
        code=ErrorCode.TYPE_ERROR,
        message=f"Expected {expected}",
        expected=expected,
        actual=describe_type(value),
    )]


def _literal_matches(value: Any, expected: Any) -> bool:
    # True == 1 in Python, but not in JSON
    if isinstance(expected, bool) or isinstance(value, bool):
        return type(value) is type(expected) and value == expected
    return value == expected and describe_type(value) == describe_type(expected)


def _validate_primitive(value: Any, schema: PrimitiveSchema, path: str) -> list[SchemaViolation]:
    if describe_type(value) != schema.type:
        return _type_error(path, schema.type, value)
    if schema.type == "string" and schema.enum is not None and value not in schema.enum:
        return [SchemaViolation(
            path=path,
            code=ErrorCode.TYPE_ERROR,
            message=f"Value {value!r} not in enum",
            expected="|".join(schema.enum),
            actual=value,
        )]
    return []


def _validate_array(value: Any, schema: ArraySchema, path: str) -> list[SchemaViolation]:
    if not isinstance(value, list):
        return _type_error(path, "array", value)

    errors = []
    if schema.min_items is not None and len(value) < schema.min_items:
        errors.append(SchemaViolation(
            path=path,
            code=ErrorCode.TYPE_ERROR,
            message=f"Expected at least {schema.min_items} items",
            expected=f">={schema.min_items}",
            actual=str(len(value)),
        ))
    if schema.max_items is not None and len(value) > schema.max_items:
        errors.append(SchemaViolation(
            path=path,
            code=ErrorCode.TYPE_ERROR,
            message=f"Expected at most {schema.max_items} items",
            expected=f"<={schema.max_items}",
            actual=str(len(value)),
        ))
    for i, item in enumerate(value):
        errors.extend(_validate(item, schema.items, _child(path, i)))
    return errors


def _validate_object(value: Any, schema: ObjectSchema, path: str) -> list[SchemaViolation]:
    if not isinstance(value, dict):
        return _type_error(path, "object", value)

    errors = []
    for field in schema.required:
        if field not in value:
            errors.append(SchemaViolation(
                path=_child(path, field),
                code=ErrorCode.MISSING_REQUIRED,
                message=f"Missing required field: {field}",
                expected=field,
            ))

    for key, item in value.items():
        if key in schema.properties:
            errors.extend(_validate(item, schema.properties[key], _child(path, key)))
        elif not schema.additional_properties:
            errors.append(SchemaViolation(
                path=_child(path, key),
                code=ErrorCode.TYPE_ERROR,
                message=f"Unknown property: {key}",
            ))
    return errors


def _validate_union(value: Any, schema: UnionSchema, path: str) -> list[SchemaViolation]:
    for variant in schema.variants:
        if not _validate(value, variant, path):
            return []
    return [SchemaViolation(
        path=path,
        code=ErrorCode.TYPE_ERROR,
        message="No union variant matched",
        expected="union",
        actual=describe_type(value),
    )]


def _validate_literal(value: Any, schema: LiteralSchema, path: str) -> list[SchemaViolation]:
    if _literal_matches(value, schema.value):
        return []
    return [SchemaViolation(
        path=path,
        code=ErrorCode.TYPE_ERROR,
        message=f"Expected literal {json.dumps(schema.value)}",
        expected=json.dumps(schema.value),
        actual=json.dumps(value, default=str),
    )]


def _validate(value: Any, schema: Schema, path: str) -> list[SchemaViolation]:
    if isinstance(schema, PrimitiveSchema):
        return _validate_primitive(value, schema, path)
    if isinstance(schema, ArraySchema):
        return _validate_array(value, schema, path)
    if isinstance(schema, ObjectSchema):
        return _validate_object(value, schema, path)
    if isinstance(schema, UnionSchema):
        return _validate_union(value, schema, path)
    if isinstance(schema, LiteralSchema):
        return _validate_literal(value, schema, path)
    raise TypeError(f"Unsupported schema kind: {type(schema).__name__}")


def validate(value: Any, schema: Schema | dict) -> list[SchemaViolation]:
    """
    Validate a parsed value against a schema.

    Accepts a Schema model or its plain-dict form. Returns a list of
    violations (empty list means valid). A malformed dict schema yields a
    single schema_mismatch violation at the root.
    """
    if isinstance(schema, dict):
        try:
            schema = schema_from_dict(schema)
        except ValidationError as e:
            return [SchemaViolation(
                path="/",
                code=ErrorCode.SCHEMA_MISMATCH,
                message="Invalid schema",
                actual=f"{e.error_count()} validation error(s)",
            )]
    return _validate(value, schema, "/")
