"""Tests for child ordering (orderBy / orderAsc) and the visual filter."""

import pytest

from mu_ctrl_sort import sort_key


def order(top, *names):
    return [top.Components[n]._uid for n in names]


def regions(top):
    return [el.id for el in top._controlsDiv.children]


def remove_listeners(control):
    event = control._dispatcher.events.get("remove")
    return len(event.callbacks) if event else 0


class TestSortKey:
    def test_numbers_before_strings(self):
        assert sorted([sort_key("b"), sort_key(10), sort_key("A"), sort_key(2.5)]) == [
            (0, 2.5), (0, 10), (1, "a"), (1, "b")]

    def test_lists_compare_as_text(self):
        assert sort_key(["B", 1]) == (1, "b,1")


class TestOrdering:
    @pytest.mark.asyncio
    async def test_children_inserted_in_order(self, top):
        top.Set({
            "orderBy": "rank",
            "a": {"controlType": "Item", "rank": 3},
            "b": {"controlType": "Item", "rank": 1},
            "c": {"controlType": "Item", "rank": 2},
        })
        await top.settle()
        assert regions(top) == order(top, "b", "c", "a")
        assert [c.Name for c in top._sort.sorted] == ["b", "c", "a"]

    @pytest.mark.asyncio
    async def test_descending(self, top):
        top.Set({
            "orderBy": "rank",
            "a": {"controlType": "Item", "rank": 3},
            "b": {"controlType": "Item", "rank": 1},
            "c": {"controlType": "Item", "rank": 2},
        })
        await top.settle()
        top.orderAsc = False
        assert regions(top) == order(top, "a", "c", "b")
        top.orderAsc = True
        assert regions(top) == order(top, "b", "c", "a")

    @pytest.mark.asyncio
    async def test_key_change_moves_one_child(self, top):
        top.Set({
            "orderBy": "rank",
            "a": {"controlType": "Item", "rank": 3},
            "b": {"controlType": "Item", "rank": 1},
            "c": {"controlType": "Item", "rank": 2},
        })
        await top.settle()
        top.b.rank = 10
        assert regions(top) == order(top, "c", "a", "b")
        top.Set({"a": {"rank": 0}})
        assert regions(top) == order(top, "a", "c", "b")

    @pytest.mark.asyncio
    async def test_order_set_after_children(self, top):
        top.Set({n: {"controlType": "Item", "label": label} for n, label in
                 (("x", "gamma"), ("y", "Alpha"), ("z", "beta"))})
        await top.settle()
        assert regions(top) == order(top, "x", "y", "z")
        top.orderBy = "label"
        assert regions(top) == order(top, "y", "z", "x")

    @pytest.mark.asyncio
    async def test_clearing_order_by(self, top):
        top.Set({"orderBy": "rank", "a": {"controlType": "Item", "rank": 2}, "b": {"controlType": "Item", "rank": 1}})
        await top.settle()
        top.orderBy = ""
        assert top._sort.sorted == []
        top.a.rank = 0
        assert regions(top) == order(top, "b", "a")

    @pytest.mark.asyncio
    async def test_children_without_the_key_are_not_sorted(self, top):
        top.Set({
            "orderBy": "rank",
            "a": {"controlType": "Item", "rank": 2},
            "t": {"controlType": "TextLabel"},
            "b": {"controlType": "Item", "rank": 1},
        })
        await top.settle()
        assert [c.Name for c in top._sort.sorted] == ["b", "a"]
        assert regions(top) == order(top, "b", "a", "t")

    @pytest.mark.asyncio
    async def test_removed_child_leaves_index(self, top):
        top.Set({"orderBy": "rank", "a": {"controlType": "Item", "rank": 2}, "b": {"controlType": "Item", "rank": 1}})
        await top.settle()
        b = top.b
        top.RemoveChild("b")
        assert [c.Name for c in top._sort.sorted] == ["a"]
        b.rank = 0
        assert regions(top) == order(top, "a")

    @pytest.mark.asyncio
    async def test_removed_child_not_held_by_parent(self, top):
        top.Set({"orderBy": "rank", "a": {"controlType": "Item", "rank": 2}, "b": {"controlType": "Item", "rank": 1}})
        await top.settle()
        a = top.a
        assert remove_listeners(top) == 2
        top.RemoveChild("a")
        assert remove_listeners(top) == 1
        hooks = top._dispatcher.events["remove"].callbacks
        cells = [cell.cell_contents for c in hooks for cell in (c.callback.__closure__ or ())]
        assert all(cell is not a for cell in cells)
        assert a._caller_hooks == {}

    @pytest.mark.asyncio
    async def test_resorting_keeps_remove_listeners_stable(self, top):
        top.Set({"orderBy": "rank", **{n: {"controlType": "Item", "rank": i} for i, n in enumerate("abcde")}})
        await top.settle()
        assert remove_listeners(top) == 5
        for _ in range(10):
            top.orderAsc = not top.orderAsc
        assert remove_listeners(top) == 5
        top.orderBy = "label"
        top.orderBy = ""
        assert remove_listeners(top) == 0


class TestFilter:
    @pytest.fixture
    def people(self):
        return {n: {"controlType": "Person", "age": age} for n, age in (("ann", 30), ("bob", 12), ("cid", 45))}

    @pytest.mark.asyncio
    async def test_filter_hides_without_touching_visible(self, top, people):
        top.Set(people)
        await top.settle()
        top.filter(lambda c: c.age >= 18)
        assert top.bob.region.display == "none"
        assert top.bob.visible is True
        assert top.ann.region.display == "inherit"

    @pytest.mark.asyncio
    async def test_monitored_property_reevaluates(self, top, people):
        top.Set(people)
        await top.settle()
        top.filter(lambda c: c.age >= 18, ["age"])
        top.bob.age = 18
        assert top.bob.region.display == "inherit"
        top.ann.age = 3
        assert top.ann.region.display == "none"

    @pytest.mark.asyncio
    async def test_unmonitored_property_is_ignored(self, top, people):
        top.Set(people)
        await top.settle()
        top.filter(lambda c: c.age >= 18, ["age"])
        top.filter(lambda c: c.age >= 18, [])
        assert top.bob._filter_callbacks == {}
        top.bob.age = 20
        assert top.bob.region.display == "none"

    @pytest.mark.asyncio
    async def test_monitor_changes_keep_remove_listeners_stable(self, top, people):
        top.Set(people)
        await top.settle()
        for _ in range(5):
            top.filter(lambda c: c.age >= 18, ["age"])
            top.filter(lambda c: c.age >= 18, ["fullName"])
        assert remove_listeners(top) == 3
        top.filter(None)
        assert remove_listeners(top) == 0

    @pytest.mark.asyncio
    async def test_clearing_filter_shows_all(self, top, people):
        top.Set(people)
        await top.settle()
        top.filter(lambda c: False)
        top.filter(None)
        assert {c.region.display for c in top.childControls} == {"inherit"}

    @pytest.mark.asyncio
    async def test_invisible_child_stays_hidden(self, top, people):
        people["ann"]["visible"] = False
        top.Set(people)
        await top.settle()
        top.filter(lambda c: True)
        assert top.ann.region.display == "none"

    @pytest.mark.asyncio
    async def test_show_respects_filter(self, top, people):
        top.Set(people)
        await top.settle()
        top.filter(lambda c: c.age >= 18)
        top.bob.Hide()
        top.bob.Show()
        assert top.bob.region.display == "none"

    @pytest.mark.asyncio
    async def test_new_child_is_filtered_on_insertion(self, top, people):
        top.Set(people)
        await top.settle()
        top.filter(lambda c: c.age >= 18, ["age"])
        top.Set({"dan": {"controlType": "Person", "age": 5}})
        await top.settle()
        assert top.dan.region.display == "none"
        top.dan.age = 50
        assert top.dan.region.display == "inherit"

    @pytest.mark.asyncio
    async def test_non_callable_predicate(self, top, people, log_lines):
        top.Set(people)
        await top.settle()
        top.filter("nope")
        assert not top._filter.active
        assert any("not callable" in line for line in log_lines())
