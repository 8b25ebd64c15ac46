"""Repository registry lookups."""
import pytest

from persistkit.repository import RepositoryRegistry
from tests.models import (
    Customer,
    Order,
    CustomerRepository,
    ICustomerRepository,
    IInvoiceRepository,
    IOrderRepository,
    OrderRepository,
)


class PreferredCustomerRepository(CustomerRepository):
    model = Customer


class TestRegistration:

    def test_register_is_idempotent(self):
        registry = RepositoryRegistry()
        registry.register(CustomerRepository)
        registry.register(CustomerRepository)

        assert registry.implementations == [CustomerRepository]

    def test_register_as_decorator(self):
        registry = RepositoryRegistry()

        @registry.register
        class LocalOrderRepository(OrderRepository):
            pass

        assert registry.get_implementation(IOrderRepository) is LocalOrderRepository

    def test_register_rejects_instances(self):
        registry = RepositoryRegistry()
        with pytest.raises(TypeError):
            registry.register(CustomerRepository())


class TestLookup:

    def test_missing_capability_resolves_to_none(self, registry):
        assert registry.resolve(IInvoiceRepository) is None
        assert registry.get_implementation(IInvoiceRepository) is None
        assert registry.get_instances(IInvoiceRepository) == []

    def test_resolve_returns_instance_of_capability(self, registry):
        repository = registry.resolve(ICustomerRepository)
        assert isinstance(repository, CustomerRepository)

    def test_abstract_capabilities_are_not_instantiated(self):
        registry = RepositoryRegistry([ICustomerRepository, CustomerRepository])
        assert registry.get_implementations(ICustomerRepository) == [CustomerRepository]

    def test_first_registered_wins_and_warns(self, log_messages):
        registry = RepositoryRegistry([CustomerRepository, PreferredCustomerRepository])

        assert type(registry.resolve(ICustomerRepository)) is CustomerRepository
        assert any("PreferredCustomerRepository" in m for m in log_messages)

    def test_predicate_filters_implementations(self):
        registry = RepositoryRegistry([CustomerRepository, PreferredCustomerRepository])

        found = registry.get_implementation(
            ICustomerRepository, predicate=lambda cls: cls.__name__.startswith("Preferred")
        )
        assert found is PreferredCustomerRepository

    def test_get_instances_returns_all(self):
        registry = RepositoryRegistry([CustomerRepository, PreferredCustomerRepository, OrderRepository])

        instances = registry.get_instances(ICustomerRepository)
        assert [type(i) for i in instances] == [CustomerRepository, PreferredCustomerRepository]

    def test_constructor_arguments_are_positional(self):
        registry = RepositoryRegistry([CustomerRepository, PreferredCustomerRepository])

        instance = registry.get_instance(
            ICustomerRepository, Order, predicate=lambda cls: cls is PreferredCustomerRepository
        )
        assert type(instance) is PreferredCustomerRepository
        assert instance.model is Order

        instances = registry.get_instances(ICustomerRepository, model=Order)
        assert [i.model for i in instances] == [Order, Order]


class TestCaching:

    def test_without_caching_each_resolve_is_fresh(self, registry):
        assert registry.resolve(ICustomerRepository) is not registry.resolve(ICustomerRepository)

    def test_with_caching_lookup_is_reused_but_instances_are_fresh(self):
        registry = RepositoryRegistry([CustomerRepository], use_caching=True)

        first = registry.resolve(ICustomerRepository)
        second = registry.resolve(ICustomerRepository)
        assert type(first) is type(second) is CustomerRepository
        assert first is not second
        assert registry.resolve(IInvoiceRepository) is None

    def test_register_invalidates_cache(self):
        registry = RepositoryRegistry(use_caching=True)
        assert registry.resolve(IOrderRepository) is None

        registry.register(OrderRepository)
        assert isinstance(registry.resolve(IOrderRepository), OrderRepository)
