# schema.py
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

import jsonschema
from bson.int64 import Int64
from jsonschema.exceptions import best_match
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import SchemaValidationError, ValidationRuleError


class BsonType(str, Enum):
    STRING = "string"
    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    BOOL = "bool"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"


# BSON type -> JSON Schema type understood by _RuleValidator
_JSON_TYPES = {
    BsonType.STRING: "string",
    BsonType.INT: "int",
    BsonType.LONG: "long",
    BsonType.DOUBLE: "double",
    BsonType.BOOL: "boolean",
    BsonType.DATE: "date",
    BsonType.OBJECT: "object",
    BsonType.ARRAY: "array",
    BsonType.NULL: "null",
}


INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1


# Type checks follow how pymongo encodes Python values: plain ints in int32
# range become BSON int, larger ones and Int64 become long, floats double.
def _is_int(checker, instance):
    # bool is an int subclass but pymongo stores it as a BSON boolean
    if isinstance(instance, (bool, Int64)) or not isinstance(instance, int):
        return False
    return INT32_MIN <= instance <= INT32_MAX


def _is_long(checker, instance):
    if isinstance(instance, Int64):
        return True
    if isinstance(instance, bool) or not isinstance(instance, int):
        return False
    return INT64_MIN <= instance <= INT64_MAX and not INT32_MIN <= instance <= INT32_MAX


def _is_double(checker, instance):
    return isinstance(instance, float)


def _is_date(checker, instance):
    return isinstance(instance, datetime)


_type_checker = jsonschema.Draft7Validator.TYPE_CHECKER.redefine_many(
    {"int": _is_int, "long": _is_long, "double": _is_double, "date": _is_date}
)
_RuleValidator = jsonschema.validators.extend(
    jsonschema.Draft7Validator, type_checker=_type_checker
)


class FieldRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    bson_type: Union[BsonType, List[BsonType]] = Field(alias="bsonType")
    description: Optional[str] = None

    def types(self) -> List[BsonType]:
        if isinstance(self.bson_type, list):
            return list(self.bson_type)
        return [self.bson_type]

    def to_bson(self) -> dict:
        if isinstance(self.bson_type, list):
            bson_type = [t.value for t in self.bson_type]
        else:
            bson_type = self.bson_type.value
        prop = {"bsonType": bson_type}
        if self.description is not None:
            prop["description"] = self.description
        return prop


_RULE_KEYS = {"bsonType", "required", "properties"}


class SchemaRule(BaseModel):
    """Declarative `$jsonSchema` validator for a collection.

    ``required`` lists the field names every document must carry and
    ``properties`` maps field names to their expected BSON type.
    """

    model_config = ConfigDict(extra="forbid")

    required: List[str] = Field(default_factory=list)
    properties: Dict[str, FieldRule]

    @model_validator(mode="after")
    def check_required_are_described(self):
        if not self.properties:
            raise ValueError("schema rule must describe at least one property")
        missing = [name for name in self.required if name not in self.properties]
        if missing:
            raise ValueError(f"required fields without a property rule: {missing}")
        if len(set(self.required)) != len(self.required):
            raise ValueError("required field names must be unique")
        return self

    @classmethod
    def from_bson(cls, bson_schema: dict) -> "SchemaRule":
        """Build a rule from its `$jsonSchema` wire shape.

        Raises ValidationRuleError for unknown type tags or malformed rules.
        """
        if not isinstance(bson_schema, dict):
            raise ValidationRuleError("schema rule must be a mapping")
        if bson_schema.get("bsonType", "object") != "object":
            raise ValidationRuleError("top level bsonType must be 'object'")
        unknown = sorted(set(bson_schema) - _RULE_KEYS)
        if unknown:
            # keywords outside _RULE_KEYS have no representation in SchemaRule
            raise ValidationRuleError(f"Unsupported schema keywords: {unknown}")
        try:
            return cls.model_validate(
                {
                    "required": bson_schema.get("required", []),
                    "properties": bson_schema.get("properties", {}),
                }
            )
        except ValidationError as e:
            raise ValidationRuleError(f"Invalid schema rule: {e}") from e

    def to_bson(self) -> dict:
        schema = {
            "bsonType": "object",
            "properties": {name: rule.to_bson() for name, rule in self.properties.items()},
        }
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def to_validator(self) -> dict:
        return {"$jsonSchema": self.to_bson()}

    def to_jsonschema(self) -> dict:
        props = {}
        for key, rule in self.properties.items():
            json_types = [_JSON_TYPES[t] for t in rule.types()]
            props[key] = {"type": json_types[0] if len(json_types) == 1 else json_types}

        json_schema = {"type": "object", "properties": props}
        if self.required:
            json_schema["required"] = list(self.required)
        return json_schema

    def validate_document(self, doc: dict, index: int = 0) -> None:
        """Raise SchemaValidationError if ``doc`` violates this rule."""
        validator = _RuleValidator(self.to_jsonschema())
        error = best_match(validator.iter_errors(doc))
        if error is None:
            return
        raise SchemaValidationError(error.message, index=index, field=_offending_field(error))


def _offending_field(error: jsonschema.ValidationError) -> Optional[str]:
    if error.validator == "required":
        for name in error.validator_value:
            if name not in error.instance:
                return name
        return None
    if error.absolute_path:
        return str(error.absolute_path[0])
    return None


products_schema = {
    "bsonType": "object",
    "required": ["name", "quantity", "availability"],
    "properties": {
        "name": {
            "bsonType": "string",
            "description": "name is required and is a string",
        },
        "quantity": {
            "bsonType": "int",
            "description": "quantity is required and is an integer",
        },
        "availability": {
            "bsonType": "bool",
            "description": "availability is required and is a boolean",
        },
    },
}

PRODUCT_RULE = SchemaRule.from_bson(products_schema)
