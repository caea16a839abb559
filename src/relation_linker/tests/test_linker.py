import uuid

import pytest

from ..exceptions import ChildResourceNotFoundError, ResourceNotFoundError, StaleResourceError
from ..implementations.memory import InMemoryAccessor
from ..relations import AttributeRelation, DataclassRelation
from .testing import CountingAccessor, FrozenResource, Representation, Resource, populate


@pytest.fixture
def resources():
    return InMemoryAccessor("resources")


@pytest.fixture
def representations():
    return InMemoryAccessor("representations")


@pytest.fixture
def owner_id(resources):
    return populate(resources, Resource(title="weather data"))[0]


@pytest.fixture
def child_ids(representations):
    return populate(representations, *(Representation(title=f"r{i}") for i in range(1, 10)))


@pytest.fixture
def target():
    from ..linker import RelationLinker

    return RelationLinker


@pytest.fixture
def linker(target, resources, representations):
    return target(resources, representations, AttributeRelation("representations"))


class TestGet:
    def test_empty(self, linker, owner_id):
        assert linker.get(owner_id) == frozenset()

    def test_unknown_owner(self, linker):
        with pytest.raises(ResourceNotFoundError) as e:
            linker.get(uuid.uuid4())
        assert e.value.resource_type == "resources"

    def test_does_not_persist(self, target, resources, representations, owner_id):
        counting = CountingAccessor(resources)
        linker = target(counting, representations, AttributeRelation("representations"))
        linker.get(owner_id)
        assert (counting.gets, counting.persists) == (1, 0)


class TestAdd:
    def test_basic(self, linker, owner_id, child_ids):
        r1, r2 = child_ids[:2]
        linker.add(owner_id, {r1, r2})
        assert linker.get(owner_id) == {r1, r2}

    def test_idempotence(self, linker, owner_id, child_ids):
        c = child_ids[0]
        linker.add(owner_id, {c})
        linker.add(owner_id, {c})
        assert linker.get(owner_id) == {c}

    def test_duplicates_collapse(self, linker, owner_id, child_ids):
        c = child_ids[0]
        linker.add(owner_id, [c, c, c])
        assert linker.get(owner_id) == {c}

    def test_disjoint_adds_union(self, linker, owner_id, child_ids):
        a, b = set(child_ids[:3]), set(child_ids[3:6])
        linker.add(owner_id, a)
        linker.add(owner_id, b)
        assert linker.get(owner_id) == a | b

    def test_stores_child_references(self, linker, resources, owner_id, child_ids):
        linker.add(owner_id, {child_ids[0]})
        owner = resources.get(owner_id)
        assert owner.representations[child_ids[0]].title == "r1"

    def test_refreshes_child_reference(
        self, linker, resources, representations, owner_id, child_ids
    ):
        linker.add(owner_id, {child_ids[0]})
        child = representations.get(child_ids[0])
        child.title = "renamed"
        representations.persist(child)
        linker.add(owner_id, {child_ids[0]})
        assert resources.get(owner_id).representations[child_ids[0]].title == "renamed"

    def test_missing_child_is_atomic(self, linker, resources, owner_id, child_ids):
        c1, c2 = child_ids[:2]
        linker.add(owner_id, {c1})
        version = resources.get(owner_id).version
        missing = uuid.uuid4()
        with pytest.raises(ChildResourceNotFoundError) as e:
            linker.add(owner_id, {c2, missing})
        assert e.value.keys == [missing]
        assert "child must exist" in str(e.value)
        assert linker.get(owner_id) == {c1}
        assert resources.get(owner_id).version == version

    def test_unknown_owner(self, linker, child_ids):
        with pytest.raises(ResourceNotFoundError):
            linker.add(uuid.uuid4(), {child_ids[0]})

    def test_single_load_and_persist(self, target, resources, representations, owner_id, child_ids):
        counting = CountingAccessor(resources)
        linker = target(counting, representations, AttributeRelation("representations"))
        linker.add(owner_id, set(child_ids))
        assert (counting.gets, counting.persists) == (1, 1)

    def test_no_persist_on_failure(self, target, resources, representations, owner_id):
        counting = CountingAccessor(resources)
        linker = target(counting, representations, AttributeRelation("representations"))
        with pytest.raises(ChildResourceNotFoundError):
            linker.add(owner_id, {uuid.uuid4()})
        assert (counting.gets, counting.persists) == (1, 0)

    def test_child_deleted_after_check(
        self, target, resources, representations, owner_id, child_ids
    ):
        class VanishingAccessor(CountingAccessor):
            def does_exist(self, key):
                retval = super().does_exist(key)
                representations.delete(key)
                return retval

        linker = target(
            resources, VanishingAccessor(representations), AttributeRelation("representations")
        )
        with pytest.raises(ChildResourceNotFoundError) as e:
            linker.add(owner_id, {child_ids[0]})
        assert e.value.keys == [child_ids[0]]
        assert linker.get(owner_id) == frozenset()


class TestReplace:
    def test_basic(self, linker, owner_id, child_ids):
        linker.add(owner_id, set(child_ids[:3]))
        linker.replace(owner_id, {child_ids[5]})
        assert linker.get(owner_id) == {child_ids[5]}

    @pytest.mark.parametrize(
        "before,after",
        [
            ((), (0, 1)),
            ((0, 1), (1, 2)),
            ((0, 1, 2), ()),
            ((3,), (3,)),
        ],
    )
    def test_equivalence(self, linker, owner_id, child_ids, before, after):
        linker.add(owner_id, {child_ids[i] for i in before})
        linker.replace(owner_id, {child_ids[i] for i in after})
        assert linker.get(owner_id) == {child_ids[i] for i in after}

    def test_missing_child_is_atomic(self, linker, owner_id, child_ids):
        linker.add(owner_id, set(child_ids[:2]))
        with pytest.raises(ChildResourceNotFoundError):
            linker.replace(owner_id, {child_ids[3], uuid.uuid4()})
        assert linker.get(owner_id) == set(child_ids[:2])

    def test_single_load_and_persist(self, target, resources, representations, owner_id, child_ids):
        counting = CountingAccessor(resources)
        linker = target(counting, representations, AttributeRelation("representations"))
        linker.replace(owner_id, set(child_ids[:2]))
        assert (counting.gets, counting.persists) == (1, 1)


class TestRemove:
    def test_basic(self, linker, owner_id, child_ids):
        linker.add(owner_id, set(child_ids[:3]))
        linker.remove(owner_id, {child_ids[0], child_ids[2]})
        assert linker.get(owner_id) == {child_ids[1]}

    def test_unlinked_child_is_noop(self, linker, owner_id, child_ids):
        linker.add(owner_id, {child_ids[0]})
        linker.remove(owner_id, {child_ids[8]})
        assert linker.get(owner_id) == {child_ids[0]}

    def test_missing_child_is_rejected(self, linker, owner_id, child_ids):
        linker.add(owner_id, {child_ids[0]})
        with pytest.raises(ChildResourceNotFoundError):
            linker.remove(owner_id, {child_ids[0], uuid.uuid4()})
        assert linker.get(owner_id) == {child_ids[0]}

    def test_dangling_link_is_kept_by_default(self, linker, representations, owner_id, child_ids):
        linker.add(owner_id, {child_ids[0]})
        representations.delete(child_ids[0])
        with pytest.raises(ChildResourceNotFoundError):
            linker.remove(owner_id, {child_ids[0]})
        assert linker.get(owner_id) == {child_ids[0]}

    def test_dangling_link_removal_when_relaxed(
        self, target, resources, representations, owner_id, child_ids
    ):
        linker = target(
            resources,
            representations,
            AttributeRelation("representations"),
            require_existing_on_remove=False,
        )
        linker.add(owner_id, {child_ids[0], child_ids[1]})
        representations.delete(child_ids[0])
        linker.remove(owner_id, {child_ids[0]})
        assert linker.get(owner_id) == {child_ids[1]}


def test_scenario(linker, owner_id, child_ids):
    r1, r2, r3, r9 = child_ids[0], child_ids[1], child_ids[2], child_ids[8]
    linker.add(owner_id, {r1, r2})
    assert linker.get(owner_id) == {r1, r2}
    linker.replace(owner_id, {r3})
    assert linker.get(owner_id) == {r3}
    linker.remove(owner_id, {r3})
    assert linker.get(owner_id) == set()
    linker.remove(owner_id, {r9})
    assert linker.get(owner_id) == set()


def test_frozen_owner(target, representations, child_ids):
    resources = InMemoryAccessor("resources")
    owner = FrozenResource()
    resources.persist(owner)
    linker = target(resources, representations, DataclassRelation("representations"))
    linker.add(owner.id, set(child_ids[:2]))
    assert linker.get(owner.id) == set(child_ids[:2])
    assert resources.get(owner.id).version == 2


def test_lost_update_is_detected(target, resources, representations, owner_id, child_ids):
    class InterleavingAccessor(CountingAccessor):
        def persist(self, entity):
            if self.persists == 0:
                # someone else writes the same owner between our load and our persist
                other = self.inner.get(owner_id)
                other.title = "changed elsewhere"
                self.inner.persist(other)
            return super().persist(entity)

    linker = target(
        InterleavingAccessor(resources), representations, AttributeRelation("representations")
    )
    with pytest.raises(StaleResourceError):
        linker.add(owner_id, {child_ids[0]})
    assert resources.get(owner_id).title == "changed elsewhere"
    assert resources.get(owner_id).representations == {}
