"""Tests for lazy plans and their composition."""

import asyncio

import pytest

from seedplan import Plan, Schema, SeedClient, UnknownFieldError


def test_plans_are_lazy(client: SeedClient):
    """Test building a plan generates nothing until it runs."""
    store = client.create_store()
    plan = client.users(lambda x: x(2), store=store)

    assert isinstance(plan, Plan)
    assert len(store) == 0

    result = plan.run()

    assert result is store
    assert len(store.users) == 2


def test_generate_copies_passed_store(client: SeedClient):
    """Test an explicitly passed store is never modified."""
    initial = client.create_store({"users": [{"id": "u1"}]})

    result = client.users(lambda x: x(2)).run(initial)

    assert len(initial.users) == 1
    assert len(result.users) == 3


def test_plan_is_awaitable(client: SeedClient):
    """Test plans can be awaited directly or through generate()."""
    plan = client.users(lambda x: x(2))

    async def main():
        awaited = await plan
        generated = await plan.generate()
        return awaited, generated

    awaited, generated = asyncio.run(main())

    assert awaited.to_dict() == generated.to_dict()
    assert len(awaited.users) == 2


def test_pipe_connect_callback(client: SeedClient):
    """Test a later plan connects to rows of an earlier plan."""
    seen_ids = []

    def owner(ctx):
        seen_ids.extend(user.id for user in ctx.store.users)
        return ctx.store.users[0]

    store = client.pipe(
        [client.users(lambda x: x(3)), client.workspace([{"owner_id": owner}])]
    ).run()

    assert len(store.users) == 3
    assert len(store.workspace) == 1
    assert store.workspace[0].owner_id in {user.id for user in store.users}
    assert len(seen_ids) == 3

    statements = store.to_sql()
    assert len(statements) == 4
    assert all('"users"' in statement for statement in statements[:3])
    assert '"workspace"' in statements[3]


def test_pipe_allows_auto_connect(client: SeedClient):
    """Test pipe threads one store so auto-connect sees earlier rows."""
    store = client.pipe(
        [client.users(lambda x: x(2)), client.workspace(lambda x: x(3), auto_connect=True)]
    ).run()

    assert len(store.users) == 2


def test_merge_never_connects_across_plans(client: SeedClient):
    """Test merged plans run against independent stores."""
    store = client.merge(
        [client.users(lambda x: x(2)), client.workspace([{}], auto_connect=True)]
    ).run()

    assert len(store.users) == 3
    assert store.workspace[0].owner_id == store.users[2].id


def test_merge_is_concatenation(client: SeedClient):
    """Test merge equals the concatenation of independently generated plans."""
    plans = [client.users(lambda x: x(2)), client.users(lambda x: x(3))]

    merged = client.merge(plans).run()
    piped = client.pipe(plans).run()

    assert len(merged.users) == 5
    assert merged.to_dict() == piped.to_dict()


def test_merge_seeds_plans_by_position(client: SeedClient):
    """Test composed plans are seeded by their position, not as standalone plans."""
    first = client.users(lambda x: x(2))
    second = client.users(lambda x: x(3))

    merged = client.merge([first, second]).run()
    first_only = client.merge([first]).run()
    standalone = first.run()

    assert [user.id for user in merged.users[:2]] == [user.id for user in first_only.users]
    assert [user.id for user in merged.users[:2]] != [user.id for user in standalone.users]


def test_merge_keeps_preseeded_rows_once(client: SeedClient):
    """Test merge only appends rows its plans produced."""
    initial = client.create_store({"users": [{"id": "u1"}]})

    store = client.merge([client.users(lambda x: x(1)), client.users(lambda x: x(2))]).run(initial)

    assert len(store.users) == 4
    assert store.users[0].id == "u1"


def test_plan_methods_compose(client: SeedClient):
    """Test plan.pipe() and plan.merge() shorthands."""
    users = client.users(lambda x: x(1))

    piped = users.pipe([client.workspace([{}], auto_connect=True)]).run()
    merged = users.merge([client.users(lambda x: x(1))]).run()

    assert len(piped.users) == 1
    assert len(merged.users) == 2


def test_plan_seed_changes_values(client: SeedClient):
    """Test a plan's own seed replaces the client seed."""
    default = client.users(lambda x: x(1)).run()
    seeded = client.users(lambda x: x(1), seed="other").run()
    same = client.users(lambda x: x(1), seed="other").run()

    assert default.users[0].id != seeded.users[0].id
    assert seeded.users[0].id == same.users[0].id


def test_composite_seed_wins(client: SeedClient):
    """Test a composite seed overrides the seeds of the plans it composes."""
    first = client.pipe([client.users(lambda x: x(1), seed="a")], seed="outer").run()
    second = client.pipe([client.users(lambda x: x(1), seed="b")], seed="outer").run()
    unlocked_a = client.pipe([client.users(lambda x: x(1), seed="a")]).run()
    unlocked_b = client.pipe([client.users(lambda x: x(1), seed="b")]).run()

    assert first.users[0].id == second.users[0].id
    assert unlocked_a.users[0].id != unlocked_b.users[0].id


def test_models_precedence(schema: Schema):
    """Test plan models beat composite models, which beat client models."""
    client = SeedClient(schema, models={"users": {"data": {"name": "client"}}})

    def name_of(store):
        return store.users[0].name

    assert name_of(client.users([{}]).run()) == "client"
    assert name_of(
        client.pipe([client.users([{}])], models={"users": {"data": {"name": "pipe"}}}).run()
    ) == "pipe"
    assert name_of(
        client.pipe(
            [client.users([{}], models={"users": {"data": {"name": "plan"}}})],
            models={"users": {"data": {"name": "pipe"}}},
        ).run()
    ) == "plan"


def test_nested_composition(client: SeedClient):
    """Test composites nest."""
    inner = client.merge([client.users(lambda x: x(1)), client.users(lambda x: x(1))])

    store = client.pipe([inner, client.workspace(lambda x: x(2), auto_connect=True)]).run()

    assert len(store.users) == 2
    assert len(store.workspace) == 2


def test_later_pipe_stage_fails_before_generation(client: SeedClient):
    """Test an invalid later stage fails before any earlier stage generates rows."""
    calls = []

    def email(ctx):
        calls.append(ctx.seed)
        return "a@example.com"

    plan = client.pipe([client.users([{"email": email}]), client.users(lambda x: [{"nope": 1}])])

    with pytest.raises(UnknownFieldError):
        plan.run()

    assert calls == []


def test_invalid_merge_member_leaves_store_untouched(client: SeedClient):
    """Test validation of merged plans happens before the store is touched."""
    store = client.create_store()
    plan = client.merge(
        [client.users(lambda x: x(1)), client.workspace(lambda x: [{"nope": 1}])]
    )

    with pytest.raises(UnknownFieldError):
        plan.run(store)

    assert len(store) == 0


def test_plan_is_abstract(client: SeedClient):
    """Test the base plan cannot be instantiated."""
    with pytest.raises(TypeError):
        Plan(client)
