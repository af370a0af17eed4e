"""
Shared fixtures: a small schema, its resolvers and a started controller
"""

import asyncio

import pytest

from ..engine.executor import ExecutionEngine
from ..lifecycle.controller import LifecycleController

TEST_SDL = """
type Query {
  hello(name: String): String
  greeting: String!
  fail: String
  failRequired: String!
  user(id: ID!): User
  sum(values: [Int!]!): Int
  cancelled: Boolean
}

type User {
  id: ID!
  name: String
  friends: [User!]!
}

type Mutation {
  setMessage(text: String!): String
}

type Subscription {
  ticks: Int
}
"""


def resolve_hello(_parent, _info, name="world"):
    return f"Hello, {name}!"


async def resolve_greeting(_parent, _info):
    await asyncio.sleep(0)
    return "Hi there"


def resolve_fail(_parent, _info):
    raise RuntimeError("boom")


def resolve_fail_required(_parent, _info):
    raise RuntimeError("required boom")


def resolve_user(_parent, _info, id):
    friend = {"id": f"{id}-friend", "name": "Friend", "friends": []}
    return {"id": id, "name": f"user-{id}", "friends": [friend]}


def resolve_sum(_parent, _info, values):
    return sum(values)


def resolve_cancelled(_parent, info):
    return info.context.is_cancelled()


def resolve_set_message(_parent, _info, text):
    return text


TEST_RESOLVERS = {
    "Query.hello": resolve_hello,
    "Query.greeting": resolve_greeting,
    "Query.fail": resolve_fail,
    "Query.failRequired": resolve_fail_required,
    "Query.user": resolve_user,
    "Query.sum": resolve_sum,
    "Query.cancelled": resolve_cancelled,
    "Mutation.setMessage": resolve_set_message,
}


@pytest.fixture
def engine():
    """Engine over the test schema"""
    return ExecutionEngine.from_sdl(TEST_SDL, TEST_RESOLVERS)


@pytest.fixture
def controller():
    """Controller that has already been started"""
    ctrl = LifecycleController(name="test")
    ctrl.start()
    return ctrl
