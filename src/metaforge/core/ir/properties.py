"""
Property descriptor types for metaforge IR.

This module contains the value type system and the property descriptors
declared on classes and mixins.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class ValueKind(StrEnum):
    """Enumeration of supported property value types."""

    STRING = "string"
    MARKUP = "markup"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    ENUM = "enum"
    REF = "ref"
    COLLECTION = "collection"  # count of attached documents of class `of`
    ARRAY = "array"  # list of references to class `of`


REFERENCE_KINDS = frozenset({ValueKind.REF, ValueKind.COLLECTION, ValueKind.ARRAY})


class IndexKind(StrEnum):
    """Indexing applied to a property by the document store."""

    NONE = "none"
    FULL_TEXT = "full_text"


class Cardinality(StrEnum):
    SCALAR = "scalar"
    COLLECTION = "collection"


class ValueType(BaseModel):
    """
    Represents a property value type.

    Examples:
        - TypeString: ValueType(kind=STRING)
        - TypeRef(contact.class.Contact): ValueType(kind=REF, of="contact.class.Contact")
        - Collection(chunter.class.Comment): ValueType(kind=COLLECTION, of="chunter.class.Comment")
    """

    kind: ValueKind
    of: str | None = None  # class id for ref, collection, array
    values: list[str] | None = None  # for enum

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_reference_class(self) -> ValueType:
        if self.kind in REFERENCE_KINDS and not self.of:
            raise ValueError(f"Value type '{self.kind}' requires a target class")
        if self.kind not in REFERENCE_KINDS and self.of:
            raise ValueError(f"Value type '{self.kind}' does not take a target class")
        if self.kind == ValueKind.ENUM and not self.values:
            raise ValueError("Enum value type requires values")
        return self

    @property
    def is_reference(self) -> bool:
        return self.kind in REFERENCE_KINDS

    @property
    def cardinality(self) -> Cardinality:
        if self.kind in (ValueKind.COLLECTION, ValueKind.ARRAY):
            return Cardinality.COLLECTION
        return Cardinality.SCALAR


def type_string() -> ValueType:
    return ValueType(kind=ValueKind.STRING)


def type_markup() -> ValueType:
    return ValueType(kind=ValueKind.MARKUP)


def type_number() -> ValueType:
    return ValueType(kind=ValueKind.NUMBER)


def type_boolean() -> ValueType:
    return ValueType(kind=ValueKind.BOOLEAN)


def type_date() -> ValueType:
    return ValueType(kind=ValueKind.DATE)


def type_timestamp() -> ValueType:
    return ValueType(kind=ValueKind.TIMESTAMP)


def type_enum(*values: str) -> ValueType:
    return ValueType(kind=ValueKind.ENUM, values=list(values))


def type_ref(of: str) -> ValueType:
    return ValueType(kind=ValueKind.REF, of=of)


def collection(of: str) -> ValueType:
    return ValueType(kind=ValueKind.COLLECTION, of=of)


def array_of(of: str) -> ValueType:
    return ValueType(kind=ValueKind.ARRAY, of=of)


class PropertySpec(BaseModel):
    """
    Specification for a single property declared on a class or mixin.

    Attributes:
        name: Property identifier
        type: Value type specification
        label: Display label (opaque string id)
        short_label: Optional compact label
        index: Full-text indexing flag
        read_only: Whether editors may change the value
        hidden: Whether the property is hidden from generic editors
    """

    name: str
    type: ValueType
    label: str | None = None
    short_label: str | None = None
    index: IndexKind = IndexKind.NONE
    read_only: bool = False
    hidden: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or v.startswith("$") or "." in v:
            raise ValueError(f"Property name '{v}' is not a valid identifier")
        return v

    @property
    def cardinality(self) -> Cardinality:
        return self.type.cardinality

    @property
    def is_indexed(self) -> bool:
        return self.index != IndexKind.NONE
