import pytest

from minirel import (
    MiniBase, SchemaRegistry, Session, Text, Number, BelongsTo, HasMany,
    NotFoundError, ConstraintViolationError,
)
from minirel.states import ObjectState


class ShopBase(MiniBase):
    class Meta:
        abstract = True
        registry = SchemaRegistry("shop_session")


class Customer(ShopBase):
    name = Text(nullable=False)
    email = Text(unique=True)
    orders = HasMany(dependent="destroy")
    reviews = HasMany(dependent="nullify")


class Order(ShopBase):
    total = Number(default=0)
    customer = BelongsTo(required=True)
    lines = HasMany("OrderLine", dependent="destroy")


class OrderLine(ShopBase):
    sku = Text()
    order = BelongsTo()


class Review(ShopBase):
    body = Text()
    customer = BelongsTo()


@pytest.fixture
def session(make_session):
    return make_session(ShopBase._registry)


class TestCrud:
    def test_create_assigns_primary_key(self, session):
        customer = session.create(Customer, name="Ann")
        assert customer.id is not None
        assert customer._orm_state == ObjectState.PERSISTENT
        assert customer._session is session

    def test_default_is_written_on_insert(self, session):
        customer = session.create(Customer, name="Ann")
        order = session.create(Order, customer=customer)
        assert session.find(Order, order.id).total == 0

    def test_update_writes_changed_columns_only(self, session, engine, monkeypatch):
        customer = session.create(Customer, name="Ann", email="ann@example.com")
        customer.name = "Anne"

        statements = []
        original = engine.execute

        def spy(sql, params=None):
            statements.append((sql, params))
            return original(sql, params)

        monkeypatch.setattr(engine, "execute", spy)
        session.save(customer)
        assert statements == [('UPDATE "customers" SET "name" = ? WHERE "id" = ?', ("Anne", customer.id))]

        session.save(customer)
        assert len(statements) == 1
        assert session.find(Customer, customer.id).name == "Anne"

    def test_get_returns_none_find_raises(self, session):
        assert session.get(Customer, 404) is None
        with pytest.raises(NotFoundError, match="Customer with id=404"):
            session.find(Customer, 404)

    def test_primary_key_is_fixed_once_persisted(self, session):
        customer = session.create(Customer, name="Ann")
        with pytest.raises(AttributeError, match="primary key"):
            customer.id = customer.id + 1

    def test_query_count_and_exists(self, session):
        for name in ("Ann", "Bob", "Cid"):
            session.create(Customer, name=name)
        assert session.query(Customer).count() == 3
        assert session.query(Customer).filter(name="Bob").exists()
        assert not session.query(Customer).filter(name="Dee").exists()
        assert [c.name for c in session.query(Customer).order_by("name", "DESC").limit(2)] == ["Cid", "Bob"]

    def test_filter_by_association(self, session):
        ann = session.create(Customer, name="Ann")
        bob = session.create(Customer, name="Bob")
        session.create(Order, customer=ann, total=5)
        session.create(Order, customer=bob, total=7)
        assert [o.total for o in session.query(Order).filter(customer=bob)] == [7]

    def test_filter_on_unknown_column(self, session):
        with pytest.raises(AttributeError, match="no column"):
            session.query(Customer).filter(age=3)


class TestConstraints:
    def test_required_parent(self, session):
        with pytest.raises(ConstraintViolationError, match="customer_id"):
            session.create(Order, total=3)

    def test_dangling_foreign_key(self, session):
        with pytest.raises(ConstraintViolationError):
            session.create(Order, customer_id=999)

    def test_not_null_column(self, session):
        with pytest.raises(ConstraintViolationError):
            session.create(Customer)

    def test_unique_column(self, session):
        session.create(Customer, name="Ann", email="a@example.com")
        with pytest.raises(ConstraintViolationError):
            session.create(Customer, name="Another Ann", email="a@example.com")


class TestDelete:
    def test_dependent_destroy_cascades(self, session):
        customer = session.create(Customer, name="Ann")
        order = session.create(Order, customer=customer)
        session.create(OrderLine, sku="X-1", order=order)
        session.create(OrderLine, sku="X-2", order=order)

        session.delete(customer)

        assert customer._orm_state == ObjectState.DELETED
        assert session.query(Order).count() == 0
        assert session.query(OrderLine).count() == 0

    def test_dependent_nullify(self, session):
        customer = session.create(Customer, name="Ann")
        review = session.create(Review, body="great", customer=customer)

        session.delete(customer)

        kept = session.find(Review, review.id)
        assert kept.customer_id is None
        assert kept.customer is None

    def test_deleted_entity_cannot_be_saved(self, session):
        customer = session.create(Customer, name="Ann")
        session.delete(customer)
        with pytest.raises(ConstraintViolationError, match="deleted"):
            session.save(customer)

    def test_refresh_of_deleted_row(self, session, engine):
        customer = session.create(Customer, name="Ann")
        engine.execute('DELETE FROM "customers" WHERE "id" = ?', (customer.id,))
        with pytest.raises(NotFoundError):
            session.refresh(customer)

    def test_saving_owner_after_deleting_a_loaded_child(self, session):
        customer = session.create(Customer, name="Ann")
        first = session.create(Order, customer=customer, total=1)
        session.create(Order, customer=customer, total=2)

        customer = session.find(Customer, customer.id)
        doomed = next(o for o in customer.orders if o.id == first.id)
        session.delete(doomed)
        customer.name = "Anne"
        session.save(customer)

        stored = session.find(Customer, customer.id)
        assert stored.name == "Anne"
        assert [o.total for o in stored.orders] == [2]

    def test_deleting_transient_entity_is_a_no_op(self, session):
        customer = Customer(name="Ann")
        session.delete(customer)
        assert customer._orm_state == ObjectState.TRANSIENT


class TestGraphSave:
    def test_children_assigned_to_collection_are_saved(self, session):
        customer = Customer(name="Ann")
        customer.orders = [Order(total=1), Order(total=2)]
        session.save(customer)

        stored = session.find(Customer, customer.id)
        assert sorted(o.total for o in stored.orders) == [1, 2]

    def test_transient_parent_is_saved_first(self, session):
        order = Order(total=9, customer=Customer(name="Ann"))
        session.save(order)
        assert order.customer.id is not None
        assert order.customer_id == order.customer.id


class TestLifecycle:
    def test_close_detaches(self, engine, make_session):
        make_session(ShopBase._registry)
        with Session(engine) as session:
            customer = session.create(Customer, name="Ann")
        assert customer._orm_state == ObjectState.DETACHED
        assert customer._session is None
        assert customer.orders == []

    def test_detached_entity_can_be_saved_again(self, engine, make_session):
        first = make_session(ShopBase._registry)
        customer = first.create(Customer, name="Ann")
        first.close()

        second = Session(engine)
        customer.name = "Anne"
        second.save(customer)
        assert customer._session is second
        assert second.find(Customer, customer.id).name == "Anne"
