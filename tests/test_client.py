"""Tests for the client entry points and generator plugins."""

import asyncio
import logging

import pytest

from seedplan import (
    BaseGenerator,
    PersistenceError,
    Schema,
    SeedClient,
    TableNotFoundError,
    list_generators,
    register_generator,
)


def test_table_methods(client: SeedClient):
    """Test every table is available as a method."""
    plan = client.workspace([{}])

    assert plan.table == "workspace"
    with pytest.raises(AttributeError):
        client.nope


def test_shadowed_table_names(caplog):
    """Test tables named like client attributes are reached through generate()."""
    schema = Schema.from_dict(
        {"tables": {"seed": {"columns": [{"name": "id", "type": "uuid", "primary_key": True}]}}}
    )

    with caplog.at_level(logging.WARNING, logger="seedplan.client"):
        client = SeedClient(schema, seed="s")

    assert "shadowed by client attributes" in caplog.text
    assert client.seed == "s"
    store = client.generate("seed", lambda x: x(2)).run()
    assert len(store.rows("seed")) == 2


def test_generate_unknown_table(client: SeedClient):
    """Test unknown tables fail when the plan is built."""
    with pytest.raises(TableNotFoundError):
        client.generate("nope", [{}])


def test_schema_from_mapping_and_file(tmp_path, app_schema_data):
    """Test clients accept schema mappings and files."""
    import yaml

    path = tmp_path / "schema.yaml"
    path.write_text(yaml.safe_dump(app_schema_data, sort_keys=False))

    from_mapping = SeedClient(app_schema_data, seed="s")
    from_file = SeedClient(str(path), seed="s")

    assert from_mapping.schema.table_names == from_file.schema.table_names
    assert from_mapping.users([{}]).run().to_dict() == from_file.users([{}]).run().to_dict()


def test_create_store(client: SeedClient):
    """Test stores created by the client know the schema."""
    store = client.create_store({"users": [{"id": "u1"}]}, external=True)

    assert store.schema is client.schema
    assert store.is_external(store.users[0])
    assert store.to_sql() == []


def test_persist_requires_database(client: SeedClient):
    """Test persisting without a database client fails clearly."""
    store = client.users([{}]).run()

    with pytest.raises(PersistenceError):
        asyncio.run(client.persist(store))


def test_custom_generator(schema: Schema):
    """Test registering and using custom generator."""

    class ConstantGenerator(BaseGenerator):
        def generate(self, column_name, data_type, **context):
            return f"{column_name}-{context['seed'] % 1000:03d}"

    register_generator("constant", ConstantGenerator)
    assert "constant" in list_generators()

    client = SeedClient(schema, seed="s", strategy="constant")
    store = client.users([{}]).run()

    assert store.users[0].email.startswith("email-")


def test_unknown_strategy(schema: Schema):
    """Test unknown strategies fail when the client is built."""
    with pytest.raises(ValueError):
        SeedClient(schema, strategy="nope")


def test_register_requires_generate():
    """Test generator classes must define generate()."""
    with pytest.raises(ValueError):
        register_generator("broken", object)
