# tests/orm/test_schema.py
"""
Tests for Property descriptors and Schema construction.
"""
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from gremlinalchemy.exceptions import SchemaError
from gremlinalchemy.orm.properties import Property, PropertyType, resolve_property_type
from gremlinalchemy.orm.schema import DISCRIMINATOR, Schema


# =============================================================================
# PROPERTY
# =============================================================================

class TestProperty:
    def test_defaults(self):
        prop = Property(name="name")
        assert prop.type is PropertyType.STRING
        assert not prop.indexed
        assert not prop.unique
        assert not prop.is_indexable()

    def test_unique_implies_indexed(self):
        prop = Property(name="email", type=PropertyType.STRING, unique=True)
        assert prop.indexed is True
        assert prop.is_indexable()

    def test_unique_implies_indexed_even_when_declared_false(self):
        prop = Property(name="email", unique=True, indexed=False)
        assert prop.indexed is True

    @pytest.mark.parametrize(
        "property_type, data_type",
        [
            (PropertyType.STRING, "String.class"),
            (PropertyType.INTEGER, "Integer.class"),
            (PropertyType.NUMBER, "Double.class"),
            (PropertyType.BOOLEAN, "Boolean.class"),
            (PropertyType.DATE, "String.class"),
        ],
    )
    def test_data_type_mapping(self, property_type, data_type):
        assert Property(name="p", type=property_type).data_type == data_type

    def test_to_backend_serializes_dates(self):
        prop = Property(name="born", type=PropertyType.DATE)
        assert prop.to_backend(datetime(1939, 5, 1, 12, 0)) == "1939-05-01T12:00:00"
        assert prop.to_backend(date(1939, 5, 1)) == "1939-05-01"
        assert prop.to_backend(None) is None

    def test_to_backend_passes_other_values(self):
        assert Property(name="age", type=PropertyType.INTEGER).to_backend(30) == 30

    def test_immutable(self):
        prop = Property(name="name")
        with pytest.raises(ValidationError):
            prop.indexed = True

    def test_repr(self):
        assert repr(Property(name="email", unique=True)) == "Property('email', string, indexed, unique)"


class TestResolvePropertyType:
    @pytest.mark.parametrize(
        "declared, expected",
        [
            (str, PropertyType.STRING),
            (int, PropertyType.INTEGER),
            (float, PropertyType.NUMBER),
            (bool, PropertyType.BOOLEAN),
            (datetime, PropertyType.DATE),
            (date, PropertyType.DATE),
            ("Number", PropertyType.NUMBER),
            (PropertyType.BOOLEAN, PropertyType.BOOLEAN),
        ],
    )
    def test_supported(self, declared, expected):
        assert resolve_property_type(declared) is expected

    @pytest.mark.parametrize("declared", [list, dict, "uuid", 3])
    def test_unsupported(self, declared):
        with pytest.raises(SchemaError):
            resolve_property_type(declared)


# =============================================================================
# SCHEMA
# =============================================================================

class TestSchema:
    def test_discriminator_always_present_and_indexed(self):
        schema = Schema({"name": str})

        assert list(schema.properties) == [DISCRIMINATOR, "name"]
        assert schema.discriminator.indexed
        assert schema.properties[DISCRIMINATOR].is_indexable()
        assert list(schema.declared_properties) == ["name"]

    def test_empty_schema(self):
        schema = Schema()
        assert len(schema) == 1
        assert schema.indexable_properties() == [schema.discriminator]

    def test_shorthand_and_options(self):
        schema = Schema({
            "name": str,
            "first_name": {"type": "string"},
            "age": {"type": int, "indexed": True},
            "email": {"type": str, "unique": True},
        })

        assert schema.get_property("name").type is PropertyType.STRING
        assert schema.get_property("age").indexed
        assert schema.get_property("email").unique
        assert schema.get_property("email").indexed
        assert "first_name" in schema
        assert "missing" not in schema

    def test_declaration_order_preserved(self):
        schema = Schema({"b": str, "a": str, "c": str})
        assert [prop.name for prop in schema][1:] == ["b", "a", "c"]

    def test_indexable_properties(self):
        schema = Schema({"a": {"type": str, "indexed": True}, "b": str, "c": {"type": str, "unique": True}})
        assert [prop.name for prop in schema.indexable_properties()] == [DISCRIMINATOR, "a", "c"]

    def test_missing_type_defaults_to_string(self):
        schema = Schema({"nickname": {"indexed": True}})
        assert schema.get_property("nickname").type is PropertyType.STRING

    def test_unique_without_type_rejected(self):
        with pytest.raises(SchemaError, match="explicit type"):
            Schema({"email": {"unique": True}})

    @pytest.mark.parametrize("name", [DISCRIMINATOR, "_id"])
    def test_reserved_names_rejected(self, name):
        with pytest.raises(SchemaError, match="reserved"):
            Schema({name: str})

    @pytest.mark.parametrize("name", ["first-name", "_secret", "has space", ""])
    def test_invalid_names_rejected(self, name):
        with pytest.raises(SchemaError):
            Schema({name: str})

    def test_unknown_option_rejected(self):
        with pytest.raises(SchemaError, match="Unknown options"):
            Schema({"name": {"type": str, "required": True}})

    def test_unknown_type_rejected(self):
        with pytest.raises(SchemaError):
            Schema({"tags": list})

    def test_definition_must_be_mapping(self):
        with pytest.raises(SchemaError):
            Schema(["name"])

    def test_name_is_lower_cased(self):
        assert Schema({}, name="User").name == "user"
        assert repr(Schema({"name": str}, name="User")) == "Schema('user', ['name'])"
