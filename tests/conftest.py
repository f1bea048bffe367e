"""Pytest configuration and shared fixtures."""

import pytest

from seedplan import SeedClient, Schema, clear_generators

APP_SCHEMA = {
    "tables": {
        "users": {
            "columns": [
                {"name": "id", "type": "uuid", "primary_key": True, "default": True},
                {"name": "email", "type": "text"},
                {"name": "name", "type": "text", "nullable": True},
            ],
        },
        "workspace": {
            "columns": [
                {"name": "id", "type": "uuid", "primary_key": True, "default": True},
                {"name": "name", "type": "text"},
                {"name": "owner_id", "type": "uuid"},
            ],
            "parents": [{"target": "users", "column": "owner_id"}],
        },
        "workspace_user_type": {
            "columns": [{"name": "type", "type": "text", "primary_key": True}],
        },
        "workspace_member": {
            "columns": [
                {"name": "id", "type": "uuid", "primary_key": True, "default": True},
                {"name": "user_id", "type": "uuid"},
                {"name": "workspace_id", "type": "uuid"},
                {"name": "type", "type": "text"},
            ],
            "parents": [
                {"target": "users", "column": "user_id"},
                {"target": "workspace", "column": "workspace_id"},
                {"name": "workspace_user_type", "target": "workspace_user_type", "column": "type"},
            ],
        },
        "channel": {
            "columns": [
                {"name": "id", "type": "uuid", "primary_key": True, "default": True},
                {"name": "name", "type": "text"},
                {"name": "workspace_id", "type": "uuid", "nullable": True},
            ],
            "parents": [{"target": "workspace", "column": "workspace_id"}],
        },
        "channel_member": {
            "columns": [
                {"name": "id", "type": "uuid", "primary_key": True, "default": True},
                {"name": "channel_id", "type": "uuid"},
                {"name": "user_id", "type": "uuid"},
            ],
            "parents": [
                {"target": "channel", "column": "channel_id"},
                {"target": "users", "column": "user_id"},
            ],
        },
        "user_message": {
            "columns": [
                {"name": "id", "type": "uuid", "primary_key": True, "default": True},
                {"name": "message", "type": "text"},
                {"name": "user_id", "type": "uuid"},
                {"name": "recipient_id", "type": "uuid"},
            ],
            "parents": [
                {
                    "name": "sender",
                    "target": "users",
                    "column": "user_id",
                    "child_name": "sent_messages",
                },
                {
                    "name": "recipient",
                    "target": "users",
                    "column": "recipient_id",
                    "child_name": "received_messages",
                },
            ],
        },
    }
}

CATEGORY_SCHEMA = {
    "tables": {
        "category": {
            "columns": [
                {"name": "id", "type": "integer", "primary_key": True, "identity": True},
                {"name": "name", "type": "text"},
                {"name": "parent_id", "type": "integer", "nullable": True},
            ],
            "parents": [
                {
                    "name": "parent",
                    "target": "category",
                    "column": "parent_id",
                    "child_name": "children",
                }
            ],
        }
    }
}


@pytest.fixture
def app_schema_data() -> dict:
    """Raw schema description behind the `schema` fixture."""
    return APP_SCHEMA


@pytest.fixture
def schema() -> Schema:
    """Workspace/channel/messaging schema with uuid primary keys."""
    return Schema.from_dict(APP_SCHEMA)


@pytest.fixture
def category_schema() -> Schema:
    """Self-referencing category tree with an identity primary key."""
    return Schema.from_dict(CATEGORY_SCHEMA)


@pytest.fixture
def client(schema: Schema) -> SeedClient:
    """Client with a fixed seed and default settings."""
    return SeedClient(schema, seed="test-seed")


@pytest.fixture(autouse=True)
def _reset_generators():
    """Registered generators never leak between tests."""
    yield
    clear_generators()
