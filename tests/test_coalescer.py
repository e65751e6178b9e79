"""Tests for StreamCoalescer."""

from __future__ import annotations

import pytest
from conftest import model, user

from workspace_chat.core import tree
from workspace_chat.core.coalescer import StreamCoalescer


class Holder:
    """Minimal state owner: read_state/commit pair plus a commit log."""

    def __init__(self, state):
        self.state = state
        self.commits = 0

    def read(self):
        return self.state

    def commit(self, state):
        self.commits += 1
        self.state = state


async def stream(*fragments, error=None):
    for fragment in fragments:
        yield fragment
    if error is not None:
        raise error


def messages(state, chat_id):
    return tree.find_chat(state, chat_id)[1].messages


class TestDrain:
    @pytest.mark.asyncio
    async def test_fragments_fold_into_one_message(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        total = await coalescer.drain("c1", stream("Hel", "lo wor", "ld"))

        assert total == "Hello world"
        assert messages(holder.state, "c1") == (user("q"), model("Hello world"))
        assert holder.commits == 3

    @pytest.mark.asyncio
    async def test_empty_stream_leaves_no_placeholder(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        assert await coalescer.drain("c1", stream()) == ""
        assert messages(holder.state, "c1") == (user("q"),)
        assert holder.commits == 0

    @pytest.mark.asyncio
    async def test_empty_fragments_skipped(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        await coalescer.drain("c1", stream("", "a", ""))
        assert messages(holder.state, "c1")[-1] == model("a")
        assert holder.commits == 1

    @pytest.mark.asyncio
    async def test_error_replaces_partial_reply(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        with pytest.raises(RuntimeError):
            await coalescer.drain("c1", stream("partial", error=RuntimeError("boom")))
        assert messages(holder.state, "c1") == (user("q"), model("Error: boom"))

    @pytest.mark.asyncio
    async def test_error_before_any_fragment_appends(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        with pytest.raises(ConnectionError):
            await coalescer.drain("c1", stream(error=ConnectionError("offline")))
        assert messages(holder.state, "c1") == (user("q"), model("Error: offline"))

    @pytest.mark.asyncio
    async def test_reads_fresh_state_each_write(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        async def interleaved():
            yield "a"
            # Something else changes the tree between fragments.
            holder.state = tree.select_workspace(holder.state, "ws-2")
            yield "b"

        await coalescer.drain("c1", interleaved())
        assert holder.state.active_workspace_id == "ws-2"
        assert messages(holder.state, "c1")[-1] == model("ab")

    @pytest.mark.asyncio
    async def test_other_chats_untouched(self, populated_state):
        holder = Holder(tree.append_user_message(populated_state, "c1", "q"))
        coalescer = StreamCoalescer(holder.read, holder.commit)

        await coalescer.drain("c1", stream("reply"))
        assert messages(holder.state, "c2") == messages(populated_state, "c2")
        assert messages(holder.state, "c4") == ()
