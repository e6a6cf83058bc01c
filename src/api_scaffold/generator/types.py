"""Schema -> Swift type mapping.

One mapper instance serves every stage of a run, so a DTO field and a service
parameter that point at the same schema always render the same type text.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from api_scaffold.errors import UnsupportedSchema
from api_scaffold.naming import type_identifier
from api_scaffold.parser.loader import SCHEMA_REF_PREFIX, ref_name
from api_scaffold.parser.models import Parameter, ParameterLocation, RequestBody, Schema

logger = logging.getLogger(__name__)


class TypeKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    SEQUENCE = "sequence"
    REFERENCE = "reference"
    ANY = "any"


SWIFT_SCALARS: dict[TypeKind, str] = {
    TypeKind.STRING: "String",
    TypeKind.INTEGER: "Int",
    TypeKind.FLOAT: "Float",
    TypeKind.DOUBLE: "Double",
    TypeKind.BOOLEAN: "Bool",
    TypeKind.ANY: "Any",
}


class TypeDescriptor(BaseModel):
    """A resolved target type: scalar, sequence, DTO reference or catch-all."""

    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    optional: bool = False
    element: TypeDescriptor | None = None
    name: str | None = None  # DTO identifier when kind is REFERENCE

    def render(self) -> str:
        """Swift spelling, e.g. ``[User]?``."""
        text = self.render_base()
        return f"{text}?" if self.optional else text

    def render_base(self) -> str:
        if self.kind is TypeKind.SEQUENCE:
            return f"[{self.element.render()}]"
        if self.kind is TypeKind.REFERENCE:
            return self.name
        return SWIFT_SCALARS[self.kind]

    @property
    def is_opaque(self) -> bool:
        """True when the type (or its element) is the catch-all ``Any``."""
        if self.kind is TypeKind.SEQUENCE:
            return self.element.is_opaque
        return self.kind is TypeKind.ANY

    def referenced_names(self) -> set[str]:
        if self.kind is TypeKind.REFERENCE:
            return {self.name}
        if self.kind is TypeKind.SEQUENCE:
            return self.element.referenced_names()
        return set()


TypeDescriptor.model_rebuild()

ANY = TypeDescriptor(kind=TypeKind.ANY)


class TypeMapper:
    """Maps schema nodes to TypeDescriptors.

    ``component_names`` are the component schemas DTOs are emitted for;
    references to anything else degrade to ``Any``. With ``strict`` set,
    unresolved references and unknown types raise UnsupportedSchema instead.
    """

    def __init__(self, component_names: Iterable[str] = (), strict: bool = False):
        self.component_names = frozenset(component_names)
        self.strict = strict

    def map_type(self, schema: Schema | None, *, required: bool = True) -> TypeDescriptor:
        """Map ``schema``; optional iff not ``required``."""
        descriptor = self._map(schema)
        if required:
            return descriptor
        return descriptor.model_copy(update={"optional": True})

    def _map(self, schema: Schema | None) -> TypeDescriptor:
        if schema is None:
            return ANY

        if schema.ref:
            return self._map_reference(schema.ref)

        if isinstance(schema.type, list):
            if schema.base_type is None:
                self._degrade(f"Unsupported schema type {schema.type!r}")
                return ANY
            descriptor = self._map(schema.model_copy(update={"type": schema.base_type}))
            if schema.allows_null:
                return descriptor.model_copy(update={"optional": True})
            return descriptor

        schema_type = schema.type
        if schema_type == "string":
            # date-time, uuid, binary... stay plain strings
            return TypeDescriptor(kind=TypeKind.STRING)
        if schema_type == "integer":
            return TypeDescriptor(kind=TypeKind.INTEGER)
        if schema_type == "number":
            if schema.format == "float":
                return TypeDescriptor(kind=TypeKind.FLOAT)
            return TypeDescriptor(kind=TypeKind.DOUBLE)
        if schema_type == "boolean":
            return TypeDescriptor(kind=TypeKind.BOOLEAN)
        if schema_type == "array":
            element = self._map(schema.items.value if schema.items else None)
            return TypeDescriptor(kind=TypeKind.SEQUENCE, element=element)

        # object, absent type and compositions: no anonymous DTOs
        if schema_type not in (None, "object"):
            self._degrade(f"Unsupported schema type {schema_type!r}")
        return ANY

    def _map_reference(self, ref: str) -> TypeDescriptor:
        name = ref_name(ref)
        if ref.startswith(SCHEMA_REF_PREFIX) and name in self.component_names:
            return TypeDescriptor(kind=TypeKind.REFERENCE, name=type_identifier(name))
        self._degrade(f"Unresolved reference {ref}")
        return ANY

    def _degrade(self, reason: str) -> None:
        if self.strict:
            raise UnsupportedSchema(reason)
        logger.debug("%s mapped to Any", reason)


def required_for(owner: Schema | Parameter | RequestBody, name: str | None = None) -> bool:
    """The one required/optional rule.

    A schema property is required iff its owner lists ``name`` in ``required``.
    Parameters and request bodies carry their own flag, except that path
    parameters are always required.
    """
    if isinstance(owner, Schema):
        return owner.is_required(name)
    if isinstance(owner, Parameter) and owner.location is ParameterLocation.PATH:
        return True
    return owner.required
