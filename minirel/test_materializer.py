import pytest

from minirel import MiniBase, SchemaRegistry, Text, Number, BelongsTo, HasMany, EntityMaterializer, MaterializedSequence
from minirel.states import ObjectState


class ZooBase(MiniBase):
    class Meta:
        abstract = True
        registry = SchemaRegistry("zoo")


class Keeper(ZooBase):
    name = Text()
    animals = HasMany()


class Animal(ZooBase):
    name = Text()
    legs = Number(default=4)
    keeper = BelongsTo()


@pytest.fixture
def session(make_session):
    return make_session(ZooBase._registry)


def counting(rows):
    """Wrap rows in a generator that records how many were pulled."""
    pulled = []

    def gen():
        for row in rows:
            pulled.append(row)
            yield row
    return gen(), pulled


def test_nothing_is_built_before_iteration():
    rows, pulled = counting([{"id": 1, "name": "Rex"}, {"id": 2, "name": "Tom"}])
    sequence = EntityMaterializer().materialize(rows, Animal._mapper)

    assert isinstance(sequence, MaterializedSequence)
    assert pulled == []
    assert sequence.loaded == 0

    iterator = iter(sequence)
    first = next(iterator)
    assert first.name == "Rex"
    assert len(pulled) == 1


def test_restartable_without_rereading_rows():
    rows, pulled = counting([{"id": 1, "name": "Rex"}, {"id": 2, "name": "Tom"}])
    sequence = EntityMaterializer().materialize(rows, Animal._mapper)

    first_pass = list(sequence)
    second_pass = list(sequence)
    assert [a.id for a in first_pass] == [1, 2]
    assert all(a is b for a, b in zip(first_pass, second_pass))
    assert len(pulled) == 2


def test_partial_iteration_then_restart():
    rows, pulled = counting([{"id": i, "name": f"a{i}"} for i in range(1, 4)])
    sequence = EntityMaterializer().materialize(rows, Animal._mapper)

    assert sequence[0].id == 1
    assert len(pulled) == 1
    assert [a.id for a in sequence] == [1, 2, 3]
    assert len(sequence) == 3
    assert sequence[-1].id == 3
    assert [a.id for a in sequence[1:]] == [2, 3]


def test_tuple_rows_follow_column_order():
    sequence = EntityMaterializer().materialize([(5, "Polly", 2, None)], Animal._mapper)
    (polly,) = list(sequence)
    assert (polly.id, polly.name, polly.legs, polly.keeper_id) == (5, "Polly", 2, None)


def test_empty_sequence_is_falsy():
    assert not EntityMaterializer().materialize([], Animal._mapper)


def test_instances_without_session_are_persistent_but_unattached():
    (rex,) = EntityMaterializer().materialize([{"id": 1, "name": "Rex", "unknown": "x"}], Animal._mapper)
    assert rex._orm_state == ObjectState.PERSISTENT
    assert rex._session is None
    assert not hasattr(rex, "unknown")
    assert rex.keeper is None


def test_materialized_instances_resolve_lazily(session):
    keeper = session.create(Keeper, name="Sam")
    session.create(Animal, name="Rex", keeper=keeper)
    session.create(Animal, name="Tom", keeper=keeper, legs=3)

    rows = session.engine.execute('SELECT * FROM "animals"')
    animals = list(session.materializer.materialize(rows, Animal._mapper))

    assert [a.legs for a in animals] == [4, 3]
    for animal in animals:
        assert animal._session is session
        assert "keeper" not in animal._association_cache
        assert animal.keeper.name == "Sam"
        assert "keeper" in animal._association_cache


def test_query_materializes_lazily(session, engine, monkeypatch):
    session.create(Keeper, name="Sam")
    calls = []
    original = engine.iterate

    def spy(sql, params=None):
        calls.append(sql)
        return original(sql, params)

    monkeypatch.setattr(engine, "iterate", spy)
    sequence = session.query(Keeper).materialize()
    # the generator has not been started
    assert sequence.loaded == 0
    assert [k.name for k in sequence] == ["Sam"]
    assert [k.name for k in sequence] == ["Sam"]
    assert len(calls) == 1


def test_round_trip_associated_sets(session):
    keepers = [session.create(Keeper, name=n) for n in ("Sam", "Ann")]
    for i, name in enumerate(["Rex", "Tom", "Kit", "Bo"]):
        session.create(Animal, name=name, keeper=keepers[i % 2])

    forward = {k.id: {a.id for a in k.animals} for k in session.query(Keeper)}
    backward = {}
    for animal in session.query(Animal).order_by("id", "DESC"):
        backward.setdefault(animal.keeper.id, set()).add(animal.id)
    assert forward == backward
