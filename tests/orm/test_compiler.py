# tests/orm/test_compiler.py
"""
Tests for model compilation: generated fields, finders, script binding and
name collision handling.
"""
import inspect
from typing import Optional
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from gremlinalchemy.core.scripts import BoundScriptBundle, ScriptBundle
from gremlinalchemy.exceptions import CompilationError, SchemaError
from gremlinalchemy.mapper import Mapper
from gremlinalchemy.orm.compiler import ModelCompiler, camel_case
from gremlinalchemy.orm.model import Model
from gremlinalchemy.orm.schema import Schema


@pytest.fixture
def compiler():
    return ModelCompiler(Mapper())


class TestCamelCase:
    @pytest.mark.parametrize(
        "name, expected",
        [("user", "User"), ("first_name", "FirstName"), ("blog-post", "BlogPost"), ("x", "X")],
    )
    def test_camel_case(self, name, expected):
        assert camel_case(name) == expected


class TestCompile:
    def test_generated_class(self, compiler):
        schema = Schema({"name": str, "age": {"type": int, "indexed": True}})

        User = compiler.compile("User", schema)

        assert issubclass(User, Model)
        assert User.__name__ == "User"
        assert User.__model_name__ == "user"
        assert User.__schema__ is schema
        assert User.__mapper__ is compiler.mapper
        assert set(User.model_fields) == {"id", "name", "age"}
        assert User.model_fields["age"].annotation == Optional[int]
        assert User.scripts is None

    def test_fields_are_validated(self, compiler):
        User = compiler.compile("user", Schema({"age": int}))

        user = User(age="42")
        assert user.age == 42

        with pytest.raises(ValidationError):
            user.age = "not a number"

    def test_generated_finders(self, compiler):
        User = compiler.compile("user", Schema({"name": str, "first_name": str}))

        assert inspect.iscoroutinefunction(User.find_by_name)
        assert inspect.iscoroutinefunction(User.find_by_first_name)
        assert User.find_by_name.__name__ == "find_by_name"
        assert set(User.__finders__) == {"find_by_id", "find_by_key_value", "find_by_name", "find_by_first_name"}

    def test_finders_do_not_leak_between_models(self, compiler):
        User = compiler.compile("user", Schema({"name": str}))
        Post = compiler.compile("post", Schema({"title": str}))

        assert hasattr(User, "find_by_name")
        assert not hasattr(Post, "find_by_name")
        assert not hasattr(Model, "find_by_title")

    def test_scripts_bound_to_model(self, compiler):
        bundle = ScriptBundle.from_groovy("def findById(id) {\n  g.v(id)\n}")

        with patch.object(ScriptBundle, "bind", autospec=True, side_effect=BoundScriptBundle) as bind:
            User = compiler.compile("user", Schema({"name": str}), bundle)

        bind.assert_called_once_with(bundle, User)
        assert isinstance(User.scripts, BoundScriptBundle)
        assert User.scripts.bundle is bundle
        assert User.scripts.model is User
        assert "findById" in User.scripts

    def test_scripts_from_groovy_source(self, compiler):
        User = compiler.compile("user", Schema({}), "def update(id, props) {\n  g.v(id)\n}")
        assert "update" in User.scripts

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, compiler, name):
        with pytest.raises(CompilationError):
            compiler.compile(name, Schema({}))

    def test_schema_required(self, compiler):
        with pytest.raises(SchemaError):
            compiler.compile("user", {"name": str})


class TestNameCollisions:
    @pytest.mark.parametrize("name", ["save", "insert", "update", "to_object", "add_edge", "find", "sync", "scripts", "id", "model_dump"])
    def test_runtime_names_rejected(self, compiler, name):
        with pytest.raises(CompilationError, match=name):
            compiler.compile("user", Schema({name: str}))

    @pytest.mark.parametrize("name", ["key_value"])
    def test_default_finder_collision_rejected(self, compiler, name):
        with pytest.raises(CompilationError, match="find_by_key_value"):
            compiler.compile("user", Schema({name: str}))

    def test_failed_compilation_is_not_registered(self):
        mapper = Mapper()
        with pytest.raises(CompilationError):
            mapper.model("user", Schema({"save": str}))
        assert not mapper.has_model("user")
        assert not mapper.has_schema("user")
